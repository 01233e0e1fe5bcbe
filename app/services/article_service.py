"""
Article service: business logic for the Article aggregate.

Design notes
------------
- Reads eager-load everything the public view needs in one pass:
  ``joinedload`` for the many-to-one thumbnail and author (plus the
  author's avatar), ``selectinload`` for the category join rows with
  each row's Category joined on.  ``populate_existing`` makes a read
  issued after a write in the same session see the committed state
  instead of whatever the identity map already holds.
- ``to_article_view`` is the only place an ORM Article becomes a public
  dict: foreign keys are replaced by UUIDs and join rows collapse into a
  list of category names.
- Every write is a single unit of work (``app.database.unit_of_work``):
  all sub-steps commit together or roll back together, and the error is
  re-raised untouched.  Nothing is retried.
- Writes return a fresh ``find_article_by_id`` read rather than the
  in-memory object so callers always get the fully joined view.
"""
import logging
from datetime import datetime, timezone
from uuid import UUID

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import joinedload, selectinload

from app.database import unit_of_work
from app.exceptions import BadRequestException, NotFoundException
from app.models import Article, ArticleCategory, Category, File, User
from app.schemas import ArticleCreate, ArticleUpdate

logger = logging.getLogger(__name__)

# Scalar columns a caller may change through ``update_article``.
_UPDATABLE_FIELDS = ("title", "description", "content")


# ---------------------------------------------------------------------------
# Serialisation helpers
# ---------------------------------------------------------------------------

def _isoformat(value: datetime | None) -> str | None:
    return value.isoformat() if value else None


def _serialize_author(author: User | None) -> dict | None:
    if author is None:
        return None
    return {
        "uuid": str(author.uuid),
        "full_name": author.full_name,
        "avatar": str(author.avatar.uuid) if author.avatar else None,
    }


def to_article_view(article: Article) -> dict:
    """
    Flatten an Article with its relationships loaded into the public view.

    ``thumbnail`` becomes the file UUID, ``categories`` the category names
    in the order the join rows were read, and the author a small summary
    carrying the avatar UUID.  Surrogate keys (``id``, ``thumbnail_id``,
    ``author_id``) never appear in the result.
    """
    return {
        "uuid": str(article.uuid),
        "title": article.title,
        "description": article.description,
        "content": article.content,
        "thumbnail": str(article.thumbnail.uuid),
        "author": _serialize_author(article.author),
        "categories": [link.category.name for link in article.categories],
        "created_at": _isoformat(article.created_at),
        "updated_at": _isoformat(article.updated_at),
    }


# ---------------------------------------------------------------------------
# Query helpers
# ---------------------------------------------------------------------------

def _article_view_query():
    """SELECT for non-deleted articles with every relationship the view needs."""
    return (
        select(Article)
        .where(Article.deleted_at.is_(None))
        .options(
            joinedload(Article.thumbnail),
            joinedload(Article.author).joinedload(User.avatar),
            selectinload(Article.categories).joinedload(ArticleCategory.category),
        )
        .execution_options(populate_existing=True)
    )


async def _find_categories(db: AsyncSession, category_ids: list[UUID]) -> list[Category]:
    """
    Return the Categories whose UUID is in *category_ids*.

    Unknown UUIDs are skipped, and a UUID listed twice still yields a
    single Category, so the join rows built from the result never repeat.
    """
    if not category_ids:
        return []
    result = await db.execute(select(Category).where(Category.uuid.in_(category_ids)))
    return list(result.scalars().all())


async def _find_active_article(db: AsyncSession, *criteria) -> Article | None:
    result = await db.execute(
        select(Article).where(Article.deleted_at.is_(None), *criteria)
    )
    return result.scalar_one_or_none()


# ---------------------------------------------------------------------------
# Write steps (always run inside a unit of work)
# ---------------------------------------------------------------------------

def _link_categories(db: AsyncSession, article_id: int, categories: list[Category]) -> None:
    db.add_all(
        ArticleCategory(article_id=article_id, category_id=category.id)
        for category in categories
    )


async def _unlink_categories(db: AsyncSession, article_id: int) -> None:
    # Join rows are hard-deleted; they have no soft-delete column.
    await db.execute(delete(ArticleCategory).where(ArticleCategory.article_id == article_id))


# ---------------------------------------------------------------------------
# Public service functions
# ---------------------------------------------------------------------------

async def get_articles(db: AsyncSession) -> list[dict]:
    """Return every non-deleted article as a public view."""
    result = await db.execute(_article_view_query())
    return [to_article_view(a) for a in result.unique().scalars().all()]


async def find_article_by_id(db: AsyncSession, article_id: UUID) -> dict:
    """
    Return the public view of the article whose UUID is *article_id*.

    Raises NotFoundException when no non-deleted article matches.
    """
    result = await db.execute(_article_view_query().where(Article.uuid == article_id))
    article = result.unique().scalar_one_or_none()
    if article is None:
        raise NotFoundException("Article is not found")
    return to_article_view(article)


async def create_article(db: AsyncSession, author_id: int, data: ArticleCreate) -> dict:
    """
    Create an article authored by *author_id* and link it to its categories.

    The thumbnail must exist and at least one of the requested categories
    must exist; unknown category UUIDs are otherwise ignored.
    """
    result = await db.execute(select(File).where(File.uuid == data.thumbnail))
    thumbnail = result.scalar_one_or_none()
    if thumbnail is None:
        raise NotFoundException("File is not found")

    categories = await _find_categories(db, data.categories)
    if not categories:
        raise NotFoundException("Categories is not found")

    async with unit_of_work(db):
        article = Article(
            title=data.title,
            description=data.description,
            content=data.content,
            thumbnail_id=thumbnail.id,
            author_id=author_id,
        )
        db.add(article)
        await db.flush()
        _link_categories(db, article.id, categories)
        await db.flush()

    logger.info("Article %s created by user %s", article.uuid, author_id)
    return await find_article_by_id(db, article.uuid)


async def update_article(
    db: AsyncSession, article_id: UUID, author_id: int, data: ArticleUpdate
) -> dict:
    """
    Partially update an article and optionally replace its category set.

    Only truthy scalar fields are applied, so an empty string leaves the
    column untouched.  A new thumbnail must be a file uploaded by
    *author_id*.  ``categories`` replaces the whole set; an empty list, or
    one where no UUID matches, leaves the article with no categories.
    """
    fields = {}
    for name in _UPDATABLE_FIELDS:
        value = getattr(data, name)
        if value:
            fields[name] = value

    if data.thumbnail:
        result = await db.execute(
            select(File).where(File.uuid == data.thumbnail, File.user_id == author_id)
        )
        thumbnail = result.scalar_one_or_none()
        if thumbnail is None:
            raise BadRequestException("File is not found")
        fields["thumbnail_id"] = thumbnail.id

    if not fields and data.categories is None:
        raise BadRequestException("Some field is required")

    article = await _find_active_article(db, Article.uuid == article_id)
    if article is None:
        raise BadRequestException("Article is not found")

    async with unit_of_work(db):
        for field, value in fields.items():
            setattr(article, field, value)
        if data.categories is not None:
            categories = await _find_categories(db, data.categories)
            await _unlink_categories(db, article.id)
            _link_categories(db, article.id, categories)
        await db.flush()

    logger.info("Article %s updated by user %s", article.uuid, author_id)
    return await find_article_by_id(db, article.uuid)


async def delete_article(db: AsyncSession, article_id: UUID, author_id: int) -> bool:
    """
    Soft-delete an article owned by *author_id* and drop its category links.

    A missing article and one owned by someone else raise the same
    BadRequestException.  Returns True on success.
    """
    article = await _find_active_article(
        db, Article.uuid == article_id, Article.author_id == author_id
    )
    if article is None:
        raise BadRequestException("Article is not found")

    async with unit_of_work(db):
        article.deleted_at = datetime.now(timezone.utc)
        await db.flush()
        await _unlink_categories(db, article.id)

    logger.info("Article %s deleted by user %s", article.uuid, author_id)
    return True
