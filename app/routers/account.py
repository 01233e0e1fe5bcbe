from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from app.database import get_db
from app.dependencies import get_current_user
from app.models import User
from app.rate_limit import rate_limit
from app.schemas import AccountUpdate, UserResponse
from app.services import user_service

router = APIRouter(prefix="/api/v1/account", tags=["account"], dependencies=[Depends(rate_limit)])

@router.get("", response_model=UserResponse)
async def get_account(user: User = Depends(get_current_user)):
    return user_service.to_user_view(user)

@router.put("", response_model=UserResponse)
async def update_account(
    data: AccountUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await user_service.update_account(db, user, data)
