"""Errors raised by the in-memory job store."""

from __future__ import annotations

from enum import StrEnum

from pydantic import Field

from subtl_schemas.base import BaseSchema
from subtl_schemas.responses import ErrorDetails, ErrorResponse


class JobStoreErrorCode(StrEnum):
    """Categorized error codes for job store failures."""

    NOT_FOUND = "not_found"
    INVALID_STATE = "invalid_state"


class JobStoreErrorDetails(BaseSchema):
    """Detailed job store error context."""

    entity: str | None = Field(None, description="Entity kind (file|job)")
    entity_id: str | None = Field(None, description="Entity identifier")
    status: str | None = Field(None, description="Current job status")


class JobStoreErrorInfo(BaseSchema):
    """Structured job store error data."""

    code: JobStoreErrorCode = Field(..., description="Job store error code")
    message: str = Field(..., min_length=1, description="Error message")
    details: JobStoreErrorDetails | None = Field(None, description="Error details")

    def to_error_response(self) -> ErrorResponse:
        """Convert job store error info to the standard error response schema.

        Returns:
            ErrorResponse: Standard response error payload.
        """
        details: ErrorDetails | None = None
        if self.details is not None and self.details.entity is not None:
            details = ErrorDetails(
                field=self.details.entity, provided=self.details.entity_id
            )
        code_value = getattr(self.code, "value", self.code)
        return ErrorResponse(
            code=str(code_value), message=self.message, details=details
        )


class JobStoreError(Exception):
    """Job store error with structured details."""

    def __init__(self, info: JobStoreErrorInfo) -> None:
        """Initialize the job store error.

        Args:
            info: Structured job store error information.
        """
        super().__init__(info.message)
        self.info = info
