from __future__ import annotations

from datetime import datetime
from typing import List, Optional
from uuid import UUID, uuid4

from sqlalchemy import (
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    Uuid,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base


# ---------------------------------------------------------------------------
# Mixins
# ---------------------------------------------------------------------------
class PublicIdMixin:
    """Surrogate integer key for joins plus the UUID exposed over the API."""

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    uuid: Mapped[UUID] = mapped_column(
        Uuid, default=uuid4, unique=True, nullable=False, index=True
    )


class TimestampMixin:
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), onupdate=func.now(), nullable=True
    )


class SoftDeleteMixin:
    """Rows with a ``deleted_at`` value are hidden from normal reads."""

    deleted_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True, index=True
    )


# ---------------------------------------------------------------------------
# File
# ---------------------------------------------------------------------------
class File(PublicIdMixin, TimestampMixin, Base):
    __tablename__ = "files"

    # Owner of the upload.  Kept as a plain column: users also point at
    # files (avatar), and a second foreign key would make the pair cyclic.
    user_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    path: Mapped[str] = mapped_column(String(500), nullable=False)
    mime_type: Mapped[Optional[str]] = mapped_column(String(150), nullable=True)
    size: Mapped[int] = mapped_column(Integer, default=0, nullable=False)


# ---------------------------------------------------------------------------
# User
# ---------------------------------------------------------------------------
class User(PublicIdMixin, TimestampMixin, SoftDeleteMixin, Base):
    __tablename__ = "users"

    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    # Deferred: the hash is never part of a default projection; load it
    # explicitly with ``undefer(User.password)`` when authenticating.
    password: Mapped[str] = mapped_column(Text, nullable=False, deferred=True)
    full_name: Mapped[Optional[str]] = mapped_column(String(150), nullable=True)
    display_picture: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("files.id"), nullable=True
    )

    # Relationships: lazy="noload" enforces explicit eager loading in services
    avatar: Mapped[Optional["File"]] = relationship("File", lazy="noload")
    articles: Mapped[List["Article"]] = relationship(
        "Article", back_populates="author", lazy="noload"
    )


# ---------------------------------------------------------------------------
# Category
# ---------------------------------------------------------------------------
class Category(PublicIdMixin, TimestampMixin, Base):
    __tablename__ = "categories"

    name: Mapped[str] = mapped_column(String(100), unique=True, nullable=False, index=True)


# ---------------------------------------------------------------------------
# Association entity: Article <-> Category (many-to-many)
# ---------------------------------------------------------------------------
class ArticleCategory(Base):
    __tablename__ = "articles_categories"

    article_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("articles.id"), primary_key=True
    )
    category_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("categories.id"), primary_key=True
    )

    category: Mapped["Category"] = relationship("Category", lazy="noload")


# ---------------------------------------------------------------------------
# Article
# ---------------------------------------------------------------------------
class Article(PublicIdMixin, TimestampMixin, SoftDeleteMixin, Base):
    __tablename__ = "articles"

    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str] = mapped_column(String(255), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)

    # Foreign keys
    thumbnail_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("files.id"), nullable=False, index=True
    )
    author_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id"), nullable=False, index=True
    )

    # Relationships: all lazy="noload"; the service picks its loaders
    thumbnail: Mapped["File"] = relationship("File", lazy="noload")
    author: Mapped["User"] = relationship("User", back_populates="articles", lazy="noload")
    categories: Mapped[List["ArticleCategory"]] = relationship(
        "ArticleCategory", lazy="noload"
    )
