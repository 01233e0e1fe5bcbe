"""
User service: registration, authentication and profile management.

The password hash is a deferred column, so it only leaves the database
in ``authenticate``; every other read works with the default projection.
"""
import logging
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import joinedload, undefer

from app.database import unit_of_work
from app.exceptions import (
    BadRequestException,
    ConflictException,
    NotFoundException,
    UnauthorizedException,
)
from app.models import File, User
from app.schemas import AccountUpdate, UserCreate
from app.security import hash_password, verify_password

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Serialisation helpers
# ---------------------------------------------------------------------------

def to_user_view(user: User) -> dict:
    """Serialise a User with its avatar loaded to the public dict."""
    return {
        "uuid": str(user.uuid),
        "email": user.email,
        "full_name": user.full_name,
        "avatar": str(user.avatar.uuid) if user.avatar else None,
        "created_at": user.created_at.isoformat() if user.created_at else None,
    }


def _active_users():
    return (
        select(User)
        .where(User.deleted_at.is_(None))
        .options(joinedload(User.avatar))
        .execution_options(populate_existing=True)
    )


# ---------------------------------------------------------------------------
# Public service functions
# ---------------------------------------------------------------------------

async def get_users(db: AsyncSession) -> list[dict]:
    """Return all active users ordered by creation date (newest first)."""
    result = await db.execute(_active_users().order_by(User.created_at.desc(), User.id.desc()))
    return [to_user_view(u) for u in result.scalars().all()]


async def get_user_model(db: AsyncSession, user_id: UUID) -> User | None:
    result = await db.execute(_active_users().where(User.uuid == user_id))
    return result.scalar_one_or_none()


async def get_user(db: AsyncSession, user_id: UUID) -> dict:
    user = await get_user_model(db, user_id)
    if user is None:
        raise NotFoundException("User is not found")
    return to_user_view(user)


async def create_user(db: AsyncSession, data: UserCreate) -> dict:
    """
    Register a new user and return its public dict.

    Email uniqueness is checked up front so the common case gets a clean
    409; the unique constraint still guards concurrent registrations.
    """
    existing = await db.execute(select(User.id).where(User.email == data.email))
    if existing.scalar_one_or_none() is not None:
        raise ConflictException("Email is already registered")

    async with unit_of_work(db):
        user = User(
            email=data.email,
            password=hash_password(data.password),
            full_name=data.full_name,
        )
        db.add(user)
        await db.flush()

    logger.info("User %s registered", user.uuid)
    return await get_user(db, user.uuid)


async def authenticate(db: AsyncSession, email: str, password: str) -> User:
    """Return the active user matching the credentials or raise 401."""
    result = await db.execute(
        select(User)
        .where(User.email == email, User.deleted_at.is_(None))
        .options(undefer(User.password))
    )
    user = result.scalar_one_or_none()
    if user is None or not verify_password(password, user.password):
        raise UnauthorizedException("Invalid email or password")
    return user


async def update_account(db: AsyncSession, user: User, data: AccountUpdate) -> dict:
    """
    Update the signed-in user's profile.

    ``display_picture`` must name a file the user uploaded themselves.
    """
    fields = {}
    if data.full_name:
        fields["full_name"] = data.full_name

    if data.display_picture:
        result = await db.execute(
            select(File).where(File.uuid == data.display_picture, File.user_id == user.id)
        )
        file = result.scalar_one_or_none()
        if file is None:
            raise BadRequestException("File is not found")
        fields["display_picture"] = file.id

    if not fields:
        raise BadRequestException("Some field is required")

    async with unit_of_work(db):
        for field, value in fields.items():
            setattr(user, field, value)
        await db.flush()

    return await get_user(db, user.uuid)
