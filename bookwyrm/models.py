import enum
import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    Enum,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from bookwyrm.database import Base


def _new_id() -> str:
    return uuid.uuid4().hex


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class UserTier(str, enum.Enum):
    BASIC = "BASIC"
    PREMIER = "PREMIER"


class User(Base):
    __tablename__ = "users"

    id = Column(String(64), primary_key=True, default=_new_id)
    name = Column(String, nullable=False)
    email = Column(String, unique=True, nullable=False, index=True)
    password = Column(String, nullable=False)
    tier = Column(Enum(UserTier, name="user_tier"), nullable=False, default=UserTier.BASIC)
    is_admin = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, default=_utcnow)
    updated_at = Column(DateTime, default=_utcnow, onupdate=_utcnow)

    reviews = relationship("Review", back_populates="user", passive_deletes="all")


class Book(Base):
    __tablename__ = "books"

    id = Column(String(64), primary_key=True, default=_new_id)
    title = Column(String, nullable=False)
    author = Column(String, nullable=False)
    isbn = Column(String(32), nullable=True)
    created_at = Column(DateTime, default=_utcnow)
    updated_at = Column(DateTime, default=_utcnow, onupdate=_utcnow)

    reviews = relationship("Review", back_populates="book", passive_deletes="all")


class Review(Base):
    __tablename__ = "reviews"
    __table_args__ = (
        UniqueConstraint("user_id", "book_id", name="uq_reviews_user_book"),
        CheckConstraint("rating >= 1 AND rating <= 5", name="ck_reviews_rating"),
    )

    id = Column(String(64), primary_key=True, default=_new_id)
    rating = Column(Integer, nullable=False)
    review = Column(Text, nullable=False)
    user_id = Column(String(64), ForeignKey("users.id", ondelete="RESTRICT"), nullable=False, index=True)
    book_id = Column(String(64), ForeignKey("books.id", ondelete="RESTRICT"), nullable=False, index=True)
    created_at = Column(DateTime, default=_utcnow)
    updated_at = Column(DateTime, default=_utcnow, onupdate=_utcnow)

    user = relationship("User", back_populates="reviews")
    book = relationship("Book", back_populates="reviews")
