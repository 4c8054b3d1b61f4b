import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from bookwyrm import auth, models, schemas
from bookwyrm.errors import Conflict, ForeignKeyConstraint, NotFound

logger = logging.getLogger(__name__)

EMAIL_TAKEN = "An account with this email already exists"
USER_IN_USE = "Cannot delete user because they have associated reviews. Please delete their reviews first."


def get_user(db: Session, user_id: str) -> models.User:
    db_user = db.query(models.User).filter(models.User.id == user_id).first()
    if not db_user:
        raise NotFound("User not found")
    return db_user


def _ensure_email_free(db: Session, email: str, user_id: str | None = None) -> None:
    query = db.query(models.User).filter(models.User.email == email)
    if user_id is not None:
        query = query.filter(models.User.id != user_id)
    if query.first():
        raise Conflict(EMAIL_TAKEN)


def _commit_user(db: Session, db_user: models.User) -> models.User:
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise Conflict(EMAIL_TAKEN) from exc
    db.refresh(db_user)
    return db_user


def register_user(db: Session, user: schemas.UserRegister) -> models.User:
    _ensure_email_free(db, user.email)

    new_user = models.User(
        name=user.name,
        email=user.email,
        password=auth.hash_password(user.password),
        tier=models.UserTier.BASIC,
        is_admin=False,
    )
    db.add(new_user)
    _commit_user(db, new_user)

    logger.info("Registered user %s", new_user.id)
    return new_user


def create_user(db: Session, user: schemas.UserForm, default_password: str) -> models.User:
    _ensure_email_free(db, user.email)
    if user.id and db.query(models.User).filter(models.User.id == user.id).first():
        raise Conflict("A user with this ID already exists")

    new_user = models.User(
        name=user.name,
        email=user.email,
        password=auth.hash_password(user.password or default_password),
        tier=user.tier,
        is_admin=user.is_admin,
    )
    if user.id:
        new_user.id = user.id

    db.add(new_user)
    _commit_user(db, new_user)

    logger.info("Admin created user %s (admin=%s)", new_user.id, new_user.is_admin)
    return new_user


def update_user(db: Session, user_id: str, user: schemas.UserUpdate) -> models.User:
    db_user = get_user(db, user_id)
    _ensure_email_free(db, user.email, user_id=db_user.id)

    db_user.name = user.name
    db_user.email = user.email
    if user.tier is not None:
        db_user.tier = user.tier
    if user.is_admin is not None and user.is_admin != db_user.is_admin:
        logger.info("Admin flag for user %s changed to %s", db_user.id, user.is_admin)
        db_user.is_admin = user.is_admin
    if user.password:
        db_user.password = auth.hash_password(user.password)

    return _commit_user(db, db_user)


def delete_user(db: Session, user_id: str) -> None:
    db_user = get_user(db, user_id)

    review_count = db.query(models.Review).filter(models.Review.user_id == db_user.id).count()
    if review_count:
        raise ForeignKeyConstraint(USER_IN_USE)

    db.delete(db_user)
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise ForeignKeyConstraint(USER_IN_USE) from exc

    logger.info("Deleted user %s", user_id)
