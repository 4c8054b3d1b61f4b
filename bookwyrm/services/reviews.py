import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Query, Session, joinedload

from bookwyrm import models, schemas
from bookwyrm.errors import Conflict, NotFound

logger = logging.getLogger(__name__)

SORT_COLUMNS = {
    "createdAt": models.Review.created_at,
    "updatedAt": models.Review.updated_at,
    "rating": models.Review.rating,
}

ALREADY_REVIEWED = "You have already reviewed this book"


def review_query(db: Session) -> Query:
    return db.query(models.Review).options(
        joinedload(models.Review.user),
        joinedload(models.Review.book),
    )


def get_review(db: Session, review_id: str) -> models.Review:
    db_review = review_query(db).filter(models.Review.id == review_id).first()
    if not db_review:
        raise NotFound("Review not found")
    return db_review


def create_review(
    db: Session,
    user_id: str,
    review: schemas.ReviewCreate,
    premier_threshold: int,
) -> models.Review:
    """Write a review and upgrade the author's tier in one transaction.

    A user gets one review per book; the duplicate check runs before anything
    is written. Once the author has ``premier_threshold`` reviews their tier
    becomes PREMIER, and it stays PREMIER for every later review.
    """
    db_user = db.query(models.User).filter(models.User.id == user_id).first()
    if not db_user:
        raise NotFound("User not found")
    db_book = db.query(models.Book).filter(models.Book.id == review.book_id).first()
    if not db_book:
        raise NotFound("Book not found")

    existing = (
        db.query(models.Review)
        .filter(models.Review.user_id == db_user.id, models.Review.book_id == db_book.id)
        .first()
    )
    if existing:
        raise Conflict(ALREADY_REVIEWED)

    new_review = models.Review(
        rating=review.rating,
        review=review.review,
        user_id=db_user.id,
        book_id=db_book.id,
    )
    db.add(new_review)

    try:
        db.flush()
        review_count = db.query(models.Review).filter(models.Review.user_id == db_user.id).count()
        if review_count >= premier_threshold and db_user.tier != models.UserTier.PREMIER:
            db_user.tier = models.UserTier.PREMIER
            logger.info("User %s upgraded to PREMIER after %d reviews", db_user.id, review_count)
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise Conflict(ALREADY_REVIEWED) from exc
    except Exception:
        db.rollback()
        raise

    logger.info("User %s reviewed book %s", db_user.id, db_book.id)
    return get_review(db, new_review.id)


def update_review(db: Session, review_id: str, review: schemas.ReviewUpdate) -> models.Review:
    db_review = get_review(db, review_id)

    if review.rating is not None:
        db_review.rating = review.rating
    if review.review is not None:
        db_review.review = review.review

    db.commit()
    return get_review(db, review_id)


def delete_review(db: Session, review_id: str) -> None:
    db_review = get_review(db, review_id)
    db.delete(db_review)
    db.commit()
    logger.info("Deleted review %s", review_id)
