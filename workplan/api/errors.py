"""
Translation of domain errors to HTTP responses.
"""

from fastapi import HTTPException, status

from workplan.core.exceptions import (
    AuthorizationError,
    BusinessLogicError,
    InsufficientCapacityError,
    NotFoundError,
    ValidationError,
    WorkplanError,
)


def to_http_exception(error: WorkplanError) -> HTTPException:
    """Map a domain error onto its HTTP status."""
    if isinstance(error, NotFoundError):
        code = status.HTTP_404_NOT_FOUND
    elif isinstance(error, AuthorizationError):
        code = status.HTTP_403_FORBIDDEN
    elif isinstance(error, InsufficientCapacityError):
        code = status.HTTP_409_CONFLICT
    elif isinstance(error, (ValidationError, BusinessLogicError)):
        code = status.HTTP_400_BAD_REQUEST
    else:
        code = status.HTTP_500_INTERNAL_SERVER_ERROR

    detail = {"message": error.message}
    if error.details:
        detail["details"] = error.details
    return HTTPException(status_code=code, detail=detail)
