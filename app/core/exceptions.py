from typing import Optional
from fastapi import Request, status
from fastapi.responses import JSONResponse


class AuthError(Exception):
    """
    Base class for errors raised by the authentication layer.

    Each subclass carries the HTTP status it maps to, so callers can tell
    the error kinds apart by type instead of by message.
    """

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Internal server error"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ConflictError(AuthError):
    status_code = status.HTTP_409_CONFLICT
    default_message = "Resource already exists"


class NotFoundError(AuthError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Not found"


class ForbiddenError(AuthError):
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "Forbidden"


class UnauthorizedError(AuthError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Unauthorized"


class BadRequestError(AuthError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Bad request"


class InternalError(AuthError):
    pass


async def auth_error_handler(request: Request, exc: AuthError) -> JSONResponse:
    """Render an AuthError as the same `{"detail": ...}` body HTTPException uses."""
    headers = None
    if isinstance(exc, UnauthorizedError):
        headers = {"WWW-Authenticate": "Bearer"}
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message},
        headers=headers,
    )
