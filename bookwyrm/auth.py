import enum
import logging
from dataclasses import dataclass

from fastapi import Depends
from passlib.context import CryptContext
from sqlalchemy.orm import Session

from bookwyrm import models
from bookwyrm.database import get_db
from bookwyrm.errors import Forbidden, InvalidCredentials, Unauthorized
from bookwyrm.sessions import SessionData, get_session

logger = logging.getLogger(__name__)

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


def hash_password(password: str):
    return pwd_context.hash(password)


def verify_password(password, hash):
    return pwd_context.verify(password, hash)


@dataclass(frozen=True)
class Identity:
    """What the app knows about a logged-in user. Never holds the password."""

    id: str
    name: str
    email: str
    is_admin: bool
    tier: models.UserTier

    @classmethod
    def from_user(cls, user: models.User) -> "Identity":
        return cls(
            id=user.id,
            name=user.name,
            email=user.email,
            is_admin=bool(user.is_admin),
            tier=user.tier,
        )


class Capability(str, enum.Enum):
    PUBLIC = "public"
    AUTHENTICATED = "authenticated"
    ADMIN = "admin"


def authenticate_user(db: Session, email: str, password: str) -> Identity:
    db_user = db.query(models.User).filter(models.User.email == email).first()

    if not db_user:
        # Burn the same hashing time as a real check
        pwd_context.dummy_verify()
        raise InvalidCredentials()

    try:
        valid = verify_password(password, db_user.password)
    except ValueError:
        logger.error("Stored password for user %s is not a recognised hash", db_user.id)
        valid = False

    if not valid:
        raise InvalidCredentials()

    return Identity.from_user(db_user)


def authorize(db: Session, session: SessionData | None, capability: Capability) -> Identity | None:
    identity = None
    if session is not None:
        db_user = db.query(models.User).filter(models.User.id == session.user_id).first()
        if db_user is not None:
            identity = Identity.from_user(db_user)

    if capability is Capability.PUBLIC:
        return identity

    if identity is None:
        raise Unauthorized()

    if capability is Capability.ADMIN and not identity.is_admin:
        logger.warning("User %s denied access to an admin route", identity.id)
        raise Forbidden()

    return identity


def _gate(capability: Capability):
    def dependency(
        session: SessionData | None = Depends(get_session),
        db: Session = Depends(get_db),
    ) -> Identity | None:
        return authorize(db, session, capability)

    return dependency


optional_user = _gate(Capability.PUBLIC)
require_user = _gate(Capability.AUTHENTICATED)
require_admin = _gate(Capability.ADMIN)
