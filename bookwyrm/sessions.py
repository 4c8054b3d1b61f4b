"""Cookie-backed sessions.

A session token is a signed JWT carrying an identity pointer
(``{"user": {"id", "name", "email"}}``) plus issue and expiry times. Role and
tier are not stored: authorization decisions re-read them from the
database (see ``bookwyrm.auth.authorize``).
"""
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from fastapi import Request, Response
from jose import JWTError, jwt
from starlette.requests import cookie_parser

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SessionData:
    user_id: str
    name: str
    email: str


class SessionStore:
    def __init__(
        self,
        secret_key: str,
        algorithm: str = "HS256",
        max_age_seconds: int = 60 * 60 * 24 * 7,
        cookie_name: str = "__session",
        secure: bool = False,
    ):
        self.secret_key = secret_key
        self.algorithm = algorithm
        self.max_age_seconds = max_age_seconds
        self.cookie_name = cookie_name
        self.secure = secure

    def create(self, identity) -> str:
        now = datetime.now(timezone.utc)
        payload = {
            "user": {"id": identity.id, "name": identity.name, "email": identity.email},
            "iat": now,
            "exp": now + timedelta(seconds=self.max_age_seconds),
        }
        return jwt.encode(payload, self.secret_key, algorithm=self.algorithm)

    def read(self, token: str | None) -> SessionData | None:
        if not token:
            return None
        try:
            payload = jwt.decode(token, self.secret_key, algorithms=[self.algorithm])
        except JWTError as exc:
            logger.info("Ignoring session cookie: %s", exc)
            return None

        user = payload.get("user")
        if not isinstance(user, dict):
            return None
        user_id = user.get("id")
        if not user_id:
            return None
        return SessionData(
            user_id=str(user_id),
            name=str(user.get("name") or ""),
            email=str(user.get("email") or ""),
        )

    def destroy(self, token: str | None) -> None:
        # Tokens are self-contained; logging out only clears the cookie.
        # There is no server-side revocation list.
        session = self.read(token)
        if session is not None:
            logger.info("Session ended for user %s", session.user_id)

    def set_cookie(self, response: Response, token: str) -> None:
        response.set_cookie(
            key=self.cookie_name,
            value=token,
            max_age=self.max_age_seconds,
            path="/",
            httponly=True,
            secure=self.secure,
            samesite="lax",
        )

    def clear_cookie(self, response: Response) -> None:
        response.delete_cookie(
            key=self.cookie_name,
            path="/",
            httponly=True,
            secure=self.secure,
            samesite="lax",
        )


class SessionReader:
    """Resolves the session from a raw ``Cookie`` header.

    Anything short of a valid, unexpired, correctly signed cookie reads as
    anonymous (``None``).
    """

    def __init__(self, store: SessionStore):
        self.store = store

    def read(self, cookie_header: str | None) -> SessionData | None:
        if not cookie_header:
            return None
        token = cookie_parser(cookie_header).get(self.store.cookie_name)
        return self.store.read(token)


def get_session_store(request: Request) -> SessionStore:
    return request.app.state.session_store


def get_session(request: Request) -> SessionData | None:
    reader: SessionReader = request.app.state.session_reader
    return reader.read(request.headers.get("cookie"))
