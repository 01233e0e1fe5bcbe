from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from app.database import get_db
from app.rate_limit import rate_limit
from app.schemas import UserResponse
from app.services import user_service

router = APIRouter(prefix="/api/v1/users", tags=["users"], dependencies=[Depends(rate_limit)])

@router.get("", response_model=list[UserResponse])
async def list_users(db: AsyncSession = Depends(get_db)):
    return await user_service.get_users(db)

@router.get("/{user_id}", response_model=UserResponse)
async def get_user(user_id: UUID, db: AsyncSession = Depends(get_db)):
    return await user_service.get_user(db, user_id)
