from datetime import datetime

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from bookwyrm.models import UserTier


class CamelModel(BaseModel):
    # Forms and JSON bodies use camelCase keys (isAdmin, bookId, ...)
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


def _blank_to_none(value):
    if isinstance(value, str) and not value.strip():
        return None
    return value


# Users
class UserLogin(BaseModel):
    email: str = Field(min_length=1, max_length=320)
    password: str = Field(min_length=1, max_length=128)


class UserRegister(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    email: EmailStr
    password: str = Field(min_length=6, max_length=128)


class UserForm(CamelModel):
    id: str | None = Field(default=None, max_length=64)
    name: str = Field(min_length=1, max_length=100)
    email: EmailStr
    tier: UserTier = UserTier.BASIC
    is_admin: bool = False
    password: str | None = Field(default=None, min_length=6, max_length=128)

    @field_validator("id", "password", mode="before")
    @classmethod
    def blank_to_none(cls, value):
        return _blank_to_none(value)


class UserUpdate(CamelModel):
    # Omitted tier or isAdmin keeps the stored value
    id: str | None = Field(default=None, max_length=64)
    name: str = Field(min_length=1, max_length=100)
    email: EmailStr
    tier: UserTier | None = None
    is_admin: bool | None = None
    password: str | None = Field(default=None, min_length=6, max_length=128)

    @field_validator("id", "tier", "is_admin", "password", mode="before")
    @classmethod
    def blank_to_none(cls, value):
        return _blank_to_none(value)


class UserOut(CamelModel):
    id: str
    name: str
    email: str
    tier: UserTier
    is_admin: bool
    created_at: datetime | None = None
    updated_at: datetime | None = None


class CurrentUser(CamelModel):
    id: str
    name: str
    email: str
    tier: UserTier
    is_admin: bool


class UserList(BaseModel):
    users: list[UserOut]


# Books
class BookForm(CamelModel):
    id: str | None = Field(default=None, max_length=64)
    title: str = Field(min_length=1, max_length=255)
    author: str = Field(min_length=1, max_length=255)
    isbn: str | None = Field(default=None, max_length=32)

    @field_validator("id", "isbn", mode="before")
    @classmethod
    def blank_to_none(cls, value):
        return _blank_to_none(value)


class BookOut(CamelModel):
    id: str
    title: str
    author: str
    isbn: str | None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class BookList(BaseModel):
    books: list[BookOut]


class BookDetail(BaseModel):
    book: BookOut


# Reviews
class ReviewCreate(CamelModel):
    book_id: str = Field(min_length=1, max_length=64)
    rating: int = Field(ge=1, le=5)
    review: str = Field(min_length=1, max_length=5000)
    # Only honoured on the admin grid; regular users always review as themselves
    user_id: str | None = Field(default=None, max_length=64)

    @field_validator("user_id", mode="before")
    @classmethod
    def blank_to_none(cls, value):
        return _blank_to_none(value)


class ReviewUpdate(CamelModel):
    rating: int | None = Field(default=None, ge=1, le=5)
    review: str | None = Field(default=None, min_length=1, max_length=5000)

    @field_validator("rating", "review", mode="before")
    @classmethod
    def blank_to_none(cls, value):
        return _blank_to_none(value)

    @model_validator(mode="after")
    def require_a_change(self):
        if self.rating is None and self.review is None:
            raise ValueError("At least one field (rating or review text) is required")
        return self


class ReviewUser(CamelModel):
    id: str
    name: str


class ReviewBook(CamelModel):
    id: str
    title: str


class ReviewOut(CamelModel):
    id: str
    rating: int
    review: str
    user_id: str
    book_id: str
    created_at: datetime | None = None
    updated_at: datetime | None = None
    user: ReviewUser
    book: ReviewBook


class ReviewList(BaseModel):
    reviews: list[ReviewOut]


# Pagination
class PaginationMeta(BaseModel):
    total: int
    page: int
    limit: int
    pages: int


class BookPage(BaseModel):
    data: list[BookOut]
    meta: PaginationMeta


class ReviewPage(BaseModel):
    data: list[ReviewOut]
    meta: PaginationMeta


# Pages
class NavLink(BaseModel):
    label: str
    to: str


class HomePage(CamelModel):
    user: CurrentUser | None
    navigation: list[NavLink]
    featured_books: list[BookOut]
    recent_reviews: list[ReviewOut]


class ActionResult(BaseModel):
    success: bool = True


class AccountPage(BaseModel):
    user: CurrentUser
