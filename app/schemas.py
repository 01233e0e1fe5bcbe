from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from app.security import MAX_PASSWORD_BYTES


# --- File ---

class FileResponse(BaseModel):
    uuid: UUID
    name: str
    mime_type: str | None = None
    size: int
    created_at: datetime | None = None
    model_config = ConfigDict(from_attributes=True)


# --- Category ---

class CategoryCreate(BaseModel):
    name: str = Field(min_length=1, max_length=100)


class CategoryResponse(BaseModel):
    uuid: UUID
    name: str
    model_config = ConfigDict(from_attributes=True)


# --- User / auth ---

class UserCreate(BaseModel):
    email: EmailStr
    password: str = Field(min_length=6, max_length=72)
    full_name: str | None = Field(None, max_length=150)

    @field_validator("password")
    @classmethod
    def password_fits_bcrypt(cls, value: str) -> str:
        if len(value.encode("utf-8")) > MAX_PASSWORD_BYTES:
            raise ValueError(f"must be at most {MAX_PASSWORD_BYTES} bytes when UTF-8 encoded")
        return value


class UserLogin(BaseModel):
    email: EmailStr
    password: str


class AccountUpdate(BaseModel):
    full_name: str | None = Field(None, max_length=150)
    display_picture: UUID | None = None


class UserResponse(BaseModel):
    uuid: UUID
    email: str
    full_name: str | None = None
    avatar: UUID | None = None
    created_at: datetime | None = None


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"


# --- Article ---

class ArticleCreate(BaseModel):
    title: str = Field(min_length=1, max_length=255)
    description: str = Field(min_length=1, max_length=255)
    content: str = Field(min_length=1)
    thumbnail: UUID
    categories: list[UUID]


class ArticleUpdate(BaseModel):
    title: str | None = Field(None, max_length=255)
    description: str | None = Field(None, max_length=255)
    content: str | None = None
    thumbnail: UUID | None = None
    categories: list[UUID] | None = None


class AuthorSummary(BaseModel):
    uuid: UUID
    full_name: str | None = None
    avatar: UUID | None = None


class ArticleResponse(BaseModel):
    uuid: UUID
    title: str
    description: str
    content: str
    thumbnail: UUID
    author: AuthorSummary | None = None
    categories: list[str] = []
    created_at: datetime | None = None
    updated_at: datetime | None = None


# --- Errors ---

class ErrorResponse(BaseModel):
    code: int
    status: str = "BAD REQUEST"
    message: str
    errors: list[str] = []
