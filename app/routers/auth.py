from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from app.database import get_db
from app.rate_limit import rate_limit
from app.schemas import TokenResponse, UserCreate, UserLogin, UserResponse
from app.security import create_access_token
from app.services import user_service

router = APIRouter(prefix="/api/v1/auth", tags=["auth"], dependencies=[Depends(rate_limit)])

@router.post("/register", status_code=201, response_model=UserResponse)
async def register(data: UserCreate, db: AsyncSession = Depends(get_db)):
    return await user_service.create_user(db, data)

@router.post("/login", response_model=TokenResponse)
async def login(data: UserLogin, db: AsyncSession = Depends(get_db)):
    user = await user_service.authenticate(db, data.email, data.password)
    return TokenResponse(access_token=create_access_token(str(user.uuid)))
