import logging
from contextlib import asynccontextmanager

from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.orm import DeclarativeBase

from app.config import settings

logger = logging.getLogger(__name__)

# Module-level engine variable allows tests to override with a test engine.
engine = create_async_engine(
    settings.DATABASE_URL,
    echo=settings.DEBUG,
    pool_pre_ping=True,
)

async_session = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


class Base(DeclarativeBase):
    pass


async def get_db():
    async with async_session() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


@asynccontextmanager
async def unit_of_work(db: AsyncSession):
    """
    Run a block of writes as one transaction on *db*.

    Everything issued against the session inside the block commits
    together when the block exits; any exception rolls the whole block
    back and is re-raised unchanged.  Reads issued on the session before
    the block belong to the same transaction, which is harmless because
    they do not write.
    """
    try:
        yield db
        await db.commit()
    except Exception:
        await db.rollback()
        logger.warning("Transaction rolled back", exc_info=True)
        raise
