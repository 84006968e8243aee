"""Protocol definitions and errors for remote translation clients."""

from __future__ import annotations

from enum import StrEnum
from typing import Protocol, runtime_checkable

from pydantic import Field

from subtl_schemas.base import BaseSchema
from subtl_schemas.llm import LlmPromptRequest, LlmPromptResponse
from subtl_schemas.responses import ErrorDetails, ErrorResponse


class TranslationErrorCode(StrEnum):
    """Categorized error codes for translation failures."""

    TRANSPORT_ERROR = "transport_error"
    BAD_RESPONSE = "bad_response"
    PARSE_ERROR = "parse_error"
    INCOMPLETE_RESULT = "incomplete_result"


class TranslationErrorDetails(BaseSchema):
    """Detailed translation error context."""

    batch_no: int | None = Field(None, ge=0, description="Batch that failed")
    attempts: int | None = Field(None, ge=1, description="Attempts made")
    status_code: int | None = Field(None, description="HTTP status if applicable")
    expected_count: int | None = Field(None, ge=0, description="Expected item count")
    missing_numbers: list[int] | None = Field(
        None, description="Item numbers absent from the response"
    )
    extra_numbers: list[int] | None = Field(
        None, description="Item numbers outside the expected range"
    )
    duplicate_number: int | None = Field(
        None, description="Item number seen more than once"
    )
    sample: str | None = Field(None, description="Truncated raw response sample")


class TranslationErrorInfo(BaseSchema):
    """Structured translation error data."""

    code: TranslationErrorCode = Field(..., description="Translation error code")
    message: str = Field(..., min_length=1, description="Error message")
    details: TranslationErrorDetails | None = Field(
        None, description="Error details"
    )

    def to_error_response(self) -> ErrorResponse:
        """Convert translation error info to the standard error response schema.

        Returns:
            ErrorResponse: Standard response error payload.
        """
        details: ErrorDetails | None = None
        if self.details is not None and self.details.batch_no is not None:
            details = ErrorDetails(
                field="batch_no", provided=str(self.details.batch_no)
            )
        code_value = getattr(self.code, "value", self.code)
        return ErrorResponse(
            code=str(code_value), message=self.message, details=details
        )


class TranslationError(Exception):
    """Translation error with structured details."""

    def __init__(self, info: TranslationErrorInfo) -> None:
        """Initialize the translation error.

        Args:
            info: Structured translation error information.
        """
        super().__init__(info.message)
        self.info = info

    def annotate(self, *, batch_no: int, attempts: int) -> None:
        """Record the failing batch and attempt count on this error.

        Args:
            batch_no: Batch that failed.
            attempts: Attempts made before giving up.
        """
        details = self.info.details or TranslationErrorDetails()
        self.info = self.info.model_copy(
            update={
                "message": f"Batch {batch_no} failed after {attempts} attempt(s): "
                f"{self.info.message}",
                "details": details.model_copy(
                    update={"batch_no": batch_no, "attempts": attempts}
                ),
            }
        )
        self.args = (self.info.message,)


class TransportError(TranslationError):
    """Remote call failed at the network or HTTP layer."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        """Initialize the transport error.

        Args:
            message: Failure description.
            status_code: HTTP status code when available.
        """
        super().__init__(
            TranslationErrorInfo(
                code=TranslationErrorCode.TRANSPORT_ERROR,
                message=message,
                details=TranslationErrorDetails(status_code=status_code),
            )
        )


class BadResponseError(TranslationError):
    """Remote call succeeded but the body was not usable text."""

    def __init__(self, message: str) -> None:
        """Initialize the bad-response error.

        Args:
            message: Failure description.
        """
        super().__init__(
            TranslationErrorInfo(
                code=TranslationErrorCode.BAD_RESPONSE,
                message=message,
                details=None,
            )
        )


class ResponseParseError(TranslationError):
    """Numbered-list response violated the item contract."""

    def __init__(
        self,
        message: str,
        *,
        expected_count: int,
        sample: str,
        missing_numbers: list[int] | None = None,
        extra_numbers: list[int] | None = None,
        duplicate_number: int | None = None,
    ) -> None:
        """Initialize the parse error.

        Args:
            message: Failure description naming the defect.
            expected_count: Number of items the request asked for.
            sample: Truncated raw response content.
            missing_numbers: Expected item numbers that were absent.
            extra_numbers: Item numbers outside ``1..expected_count``.
            duplicate_number: Item number that appeared twice.
        """
        super().__init__(
            TranslationErrorInfo(
                code=TranslationErrorCode.PARSE_ERROR,
                message=message,
                details=TranslationErrorDetails(
                    expected_count=expected_count,
                    missing_numbers=missing_numbers,
                    extra_numbers=extra_numbers,
                    duplicate_number=duplicate_number,
                    sample=sample,
                ),
            )
        )
        self.missing_numbers = missing_numbers or []
        self.extra_numbers = extra_numbers or []
        self.duplicate_number = duplicate_number


@runtime_checkable
class TranslationClientProtocol(Protocol):
    """Protocol for remote translation clients."""

    async def run_prompt(self, request: LlmPromptRequest) -> LlmPromptResponse:
        """Send one prompt and return the raw response text.

        Raises:
            TransportError: If the request fails at the network/HTTP layer.
            BadResponseError: If the response body lacks usable text content.
        """
        raise NotImplementedError
