# File: app\core\errors.py
# Project: municipal-complaints-backend
# Auto-added for reference

from fastapi import Request, status
from fastapi.responses import JSONResponse


class ComplaintsError(Exception):
    """Base class for errors raised by the service layer."""
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail


class NotFound(ComplaintsError):
    """Referenced complaint, notification, feedback or user is absent."""
    status_code = status.HTTP_404_NOT_FOUND


class ValidationFailure(ComplaintsError):
    """Missing required fields or an invalid status transition target."""
    status_code = status.HTTP_400_BAD_REQUEST


class BackendFailure(ComplaintsError):
    """The database or object store rejected an operation."""
    status_code = status.HTTP_502_BAD_GATEWAY


def complaints_error_handler(request: Request, exc: ComplaintsError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})
