"""
Application errors and their HTTP mapping

Services raise these; the exception handler registered in main.py turns them
into HTTP responses.
"""
from typing import Any, Dict, Optional

from fastapi import HTTPException, status


class AppError(Exception):
    """Base class for recoverable application errors"""

    code: str = "error"

    def __init__(self, message: str, code: Optional[str] = None):
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code


class InvalidInputError(AppError):
    """A required identifier or field is missing or malformed"""
    code = "invalid_input"


class AuthenticationError(AppError):
    """The caller could not be identified"""
    code = "unauthenticated"


class ForbiddenError(AppError):
    """The caller is not allowed to perform the operation"""
    code = "forbidden"


class NotFoundError(AppError):
    """A referenced resource does not exist"""
    code = "not_found"


class ConflictError(AppError):
    """The operation collides with existing data"""
    code = "conflict"


class DataIntegrityError(AppError):
    """Stored data violates an invariant (e.g. content without departments)"""
    code = "data_integrity_violation"


ERROR_STATUS_MAP: Dict[type, int] = {
    InvalidInputError: status.HTTP_400_BAD_REQUEST,
    AuthenticationError: status.HTTP_401_UNAUTHORIZED,
    ForbiddenError: status.HTTP_403_FORBIDDEN,
    NotFoundError: status.HTTP_404_NOT_FOUND,
    ConflictError: status.HTTP_409_CONFLICT,
    DataIntegrityError: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def map_app_error(error: AppError) -> HTTPException:
    """
    Map an application error to an HTTPException

    Args:
        error: the error raised by a service

    Returns:
        HTTPException: with the matching status code and a {code, message} detail
    """
    detail: Dict[str, Any] = {
        "code": error.code,
        "message": error.message,
    }
    status_code = ERROR_STATUS_MAP.get(type(error), status.HTTP_400_BAD_REQUEST)

    if isinstance(error, AuthenticationError):
        return HTTPException(
            status_code=status_code,
            detail=detail,
            headers={"WWW-Authenticate": "Bearer"},
        )
    return HTTPException(status_code=status_code, detail=detail)
