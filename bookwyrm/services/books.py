import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from bookwyrm import models, schemas
from bookwyrm.errors import Conflict, ForeignKeyConstraint, NotFound

logger = logging.getLogger(__name__)

SORT_COLUMNS = {
    "title": models.Book.title,
    "author": models.Book.author,
    "isbn": models.Book.isbn,
    "createdAt": models.Book.created_at,
    "updatedAt": models.Book.updated_at,
}

BOOK_IN_USE = "Cannot delete book because it has associated reviews. Please delete the reviews first."


def get_book(db: Session, book_id: str) -> models.Book:
    db_book = db.query(models.Book).filter(models.Book.id == book_id).first()
    if not db_book:
        raise NotFound("Book not found")
    return db_book


def create_book(db: Session, book: schemas.BookForm) -> models.Book:
    if book.id and db.query(models.Book).filter(models.Book.id == book.id).first():
        raise Conflict("A book with this ID already exists")

    new_book = models.Book(title=book.title, author=book.author, isbn=book.isbn)
    if book.id:
        new_book.id = book.id

    db.add(new_book)
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise Conflict("A book with this ID already exists") from exc
    db.refresh(new_book)

    logger.info("Created book %s", new_book.id)
    return new_book


def update_book(db: Session, book_id: str, book: schemas.BookForm) -> models.Book:
    db_book = get_book(db, book_id)

    db_book.title = book.title
    db_book.author = book.author
    db_book.isbn = book.isbn

    db.commit()
    db.refresh(db_book)
    return db_book


def delete_book(db: Session, book_id: str) -> None:
    db_book = get_book(db, book_id)

    review_count = db.query(models.Review).filter(models.Review.book_id == db_book.id).count()
    if review_count:
        raise ForeignKeyConstraint(BOOK_IN_USE)

    db.delete(db_book)
    try:
        db.commit()
    except IntegrityError as exc:
        # a review was written between the check and the delete
        db.rollback()
        raise ForeignKeyConstraint(BOOK_IN_USE) from exc

    logger.info("Deleted book %s", book_id)
