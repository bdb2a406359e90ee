"""Centralized error handling for snapshot API endpoints."""

from typing import Any

from fastapi import HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse


class SnapshotError:
    """Standard error codes for the snapshot API."""

    VALIDATION_ERROR = "VALIDATION_ERROR"
    MISSING_ASSET_ID = "MISSING_ASSET_ID"


class ErrorResponse:
    """Standardized error response format."""

    def __init__(
        self,
        error_code: str,
        message: str,
        details: dict[str, Any] | None = None,
        status_code: int = status.HTTP_400_BAD_REQUEST,
    ):
        """
        Initialize error response.

        Args:
            error_code: Standard error code from SnapshotError
            message: Human-readable error message
            details: Additional error details (field-specific errors, etc.)
            status_code: HTTP status code
        """
        self.error_code = error_code
        self.message = message
        self.details = details
        self.status_code = status_code

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON response."""
        response = {
            "error": self.error_code,
            "message": self.message,
        }
        if self.details:
            response["details"] = self.details
        return response

    def to_http_exception(self) -> HTTPException:
        """Convert to FastAPI HTTPException."""
        return HTTPException(status_code=self.status_code, detail=self.to_dict())


def create_validation_error_response(errors: list[dict[str, Any]]) -> ErrorResponse:
    """
    Create standardized validation error response from FastAPI validation errors.

    Args:
        errors: List of validation errors as reported by FastAPI

    Returns:
        ErrorResponse with field-specific validation errors
    """
    field_errors = {}
    for error in errors:
        field_path = ".".join(str(loc) for loc in error["loc"])
        field_errors[field_path] = error["msg"]

    return ErrorResponse(
        error_code=SnapshotError.VALIDATION_ERROR,
        message="Validation failed for one or more fields",
        details=field_errors,
    )


def create_missing_asset_error(field: str) -> ErrorResponse:
    """Error for a blank asset id in a path or query parameter."""
    return ErrorResponse(
        error_code=SnapshotError.MISSING_ASSET_ID,
        message="Asset ids must be non-empty",
        details={field: "Asset id cannot be blank"},
    )


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Handle FastAPI validation errors with the standardized format."""
    error_response = create_validation_error_response(exc.errors())
    return JSONResponse(
        status_code=error_response.status_code,
        content=error_response.to_dict(),
    )
