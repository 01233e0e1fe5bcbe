"""Category service: listing and creating article categories."""
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import unit_of_work
from app.exceptions import ConflictException
from app.models import Category
from app.schemas import CategoryCreate


def to_category_view(category: Category) -> dict:
    return {"uuid": str(category.uuid), "name": category.name}


async def get_categories(db: AsyncSession) -> list[dict]:
    result = await db.execute(select(Category).order_by(Category.name))
    return [to_category_view(c) for c in result.scalars().all()]


async def create_category(db: AsyncSession, data: CategoryCreate) -> dict:
    existing = await db.execute(select(Category.id).where(Category.name == data.name))
    if existing.scalar_one_or_none() is not None:
        raise ConflictException("Category already exists")

    async with unit_of_work(db):
        category = Category(name=data.name)
        db.add(category)
        await db.flush()

    return to_category_view(category)
