"""Error taxonomy shared by services and route boundaries.

Every error carries the HTTP status and the message the client sees; the
handler installed in ``bookwyrm.main`` renders them as ``{"error": message}``.
Access denials are rendered as a redirect to the login page instead.
"""
from fastapi import status


class BookWyrmError(Exception):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    message = "Something went wrong"

    def __init__(self, message: str | None = None):
        self.message = message or self.message
        super().__init__(self.message)


class ValidationError(BookWyrmError):
    status_code = status.HTTP_400_BAD_REQUEST
    message = "Invalid request"


class InvalidCredentials(ValidationError):
    message = "Invalid email or password"


class NotFound(BookWyrmError):
    status_code = status.HTTP_404_NOT_FOUND
    message = "Not found"


class Conflict(BookWyrmError):
    status_code = status.HTTP_400_BAD_REQUEST
    message = "Record already exists"


class ForeignKeyConstraint(BookWyrmError):
    status_code = status.HTTP_400_BAD_REQUEST
    message = "Record is still referenced by other records"


class Unexpected(BookWyrmError):
    pass


class AccessDenied(BookWyrmError):
    status_code = status.HTTP_303_SEE_OTHER
    redirect_to = "/login"


class Unauthorized(AccessDenied):
    message = "Not authenticated"


class Forbidden(AccessDenied):
    message = "Not allowed"
