from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from app.database import get_db
from app.dependencies import get_current_user
from app.models import User
from app.rate_limit import rate_limit
from app.schemas import ArticleCreate, ArticleUpdate, ArticleResponse
from app.services import article_service

router = APIRouter(prefix="/api/v1/articles", tags=["articles"], dependencies=[Depends(rate_limit)])

@router.get("", response_model=list[ArticleResponse])
async def list_articles(db: AsyncSession = Depends(get_db)):
    return await article_service.get_articles(db)

@router.get("/{article_id}", response_model=ArticleResponse)
async def get_article(article_id: UUID, db: AsyncSession = Depends(get_db)):
    return await article_service.find_article_by_id(db, article_id)

@router.post("", status_code=201, response_model=ArticleResponse)
async def create_article(
    data: ArticleCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await article_service.create_article(db, user.id, data)

@router.put("/{article_id}", response_model=ArticleResponse)
async def update_article(
    article_id: UUID,
    data: ArticleUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await article_service.update_article(db, article_id, user.id, data)

@router.delete("/{article_id}", status_code=204)
async def delete_article(
    article_id: UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await article_service.delete_article(db, article_id, user.id)
