from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from app.database import get_db
from app.dependencies import get_current_user
from app.rate_limit import rate_limit
from app.schemas import CategoryCreate, CategoryResponse
from app.services import category_service

router = APIRouter(prefix="/api/v1/categories", tags=["categories"], dependencies=[Depends(rate_limit)])

@router.get("", response_model=list[CategoryResponse])
async def list_categories(db: AsyncSession = Depends(get_db)):
    return await category_service.get_categories(db)

@router.post("", status_code=201, response_model=CategoryResponse, dependencies=[Depends(get_current_user)])
async def create_category(data: CategoryCreate, db: AsyncSession = Depends(get_db)):
    return await category_service.create_category(db, data)
