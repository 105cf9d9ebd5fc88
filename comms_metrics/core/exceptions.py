"""Custom exceptions and FastAPI exception handlers.

Caller errors (`InvalidFilter`, `InvalidDateRange`, `InvalidAggregation`) map
to 400 and are never retried. `StoreUnavailable` is an infrastructure error
and maps to 500; the service itself performs no retry.
"""

from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError

from comms_metrics.core.logging import get_logger
from comms_metrics.core.problem_details import (
    ERROR_TYPES,
    ProblemDetailResponse,
    problem_response,
)

logger = get_logger(__name__)


# =============================================================================
# Exception Classes
# =============================================================================


class CommsMetricsError(Exception):
    """Base exception for CommsMetrics application errors.

    Each subclass maps to an RFC 7807 problem type URI.
    """

    error_type_uri: str = ERROR_TYPES["INTERNAL_ERROR"]

    def __init__(
        self,
        message: str,
        code: str = "INTERNAL_ERROR",
        status_code: int = 500,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize application error.

        Args:
            message: Human-readable error message.
            code: Machine-readable error code.
            status_code: HTTP status code.
            details: Additional error context.
        """
        super().__init__(message)
        self.message = message
        self.code = code
        self.status_code = status_code
        self.details = details or {}

    @property
    def title(self) -> str:
        """RFC 7807 title - short summary of problem type."""
        return self.code.replace("_", " ").title()

    @property
    def is_client_error(self) -> bool:
        """True when the caller must change the request."""
        return 400 <= self.status_code < 500


class InvalidFilter(CommsMetricsError):
    """A required filter dimension is missing, unknown, or contradictory.

    Example: `metric_family=social` without `platform`.
    """

    error_type_uri: str = ERROR_TYPES["INVALID_FILTER"]

    def __init__(
        self,
        message: str = "Invalid filter",
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message=message,
            code="INVALID_FILTER",
            status_code=400,
            details=details,
        )


class InvalidDateRange(CommsMetricsError):
    """A date bound failed to parse, or the range is inverted or too long."""

    error_type_uri: str = ERROR_TYPES["INVALID_DATE_RANGE"]

    def __init__(
        self,
        message: str = "Invalid date range",
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message=message,
            code="INVALID_DATE_RANGE",
            status_code=400,
            details=details,
        )


class InvalidAggregation(CommsMetricsError):
    """An aggregation was asked to sum a ratio, average, or unknown field."""

    error_type_uri: str = ERROR_TYPES["INVALID_AGGREGATION"]

    def __init__(
        self,
        message: str = "Invalid aggregation",
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message=message,
            code="INVALID_AGGREGATION",
            status_code=400,
            details=details,
        )


class StoreUnavailable(CommsMetricsError):
    """The persistence collaborator failed or timed out."""

    error_type_uri: str = ERROR_TYPES["STORE_UNAVAILABLE"]

    def __init__(
        self,
        message: str = "Metric store unavailable",
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message=message,
            code="STORE_UNAVAILABLE",
            status_code=500,
            details=details,
        )


# =============================================================================
# Exception Handlers (RFC 7807)
# =============================================================================


async def comms_metrics_exception_handler(
    request: Request,
    exc: CommsMetricsError,
) -> ProblemDetailResponse:
    """Handle CommsMetricsError exceptions with RFC 7807 Problem Details.

    Args:
        request: FastAPI request object.
        exc: The raised exception.

    Returns:
        RFC 7807 Problem Detail response.
    """
    log = logger.warning if exc.is_client_error else logger.error
    log(
        "app.error_handled",
        error=exc.message,
        error_type=type(exc).__name__,
        error_code=exc.code,
        status_code=exc.status_code,
        details=exc.details,
        path=str(request.url.path),
        exc_info=not exc.is_client_error,
    )

    errors = [{"field": k, "message": str(v)} for k, v in exc.details.items()] or None

    return problem_response(
        status=exc.status_code,
        title=exc.title,
        detail=exc.message,
        error_code=exc.code,
        errors=errors if exc.is_client_error else None,
    )


async def validation_exception_handler(
    request: Request,
    exc: RequestValidationError,
) -> ProblemDetailResponse:
    """Handle Pydantic validation errors with RFC 7807 Problem Details.

    Args:
        request: FastAPI request object.
        exc: Pydantic validation error.

    Returns:
        RFC 7807 Problem Detail response with field-level errors.
    """
    field_errors: list[dict[str, str]] = []
    for error in exc.errors():
        loc = error.get("loc", [])
        field_path = ".".join(str(part) for part in loc if part != "body")
        field_errors.append(
            {
                "field": field_path,
                "message": str(error.get("msg", "Validation failed")),
                "type": str(error.get("type", "unknown")),
            }
        )

    logger.warning(
        "app.validation_error",
        error_count=len(field_errors),
        path=str(request.url.path),
        fields=[e["field"] for e in field_errors],
    )

    return problem_response(
        status=422,
        title="Validation Error",
        detail=f"Request validation failed with {len(field_errors)} error(s). "
        "Check the 'errors' field for details.",
        error_code="VALIDATION_ERROR",
        errors=field_errors,
    )


async def unhandled_exception_handler(
    request: Request,
    exc: Exception,
) -> ProblemDetailResponse:
    """Handle unexpected exceptions with RFC 7807 Problem Details.

    Args:
        request: FastAPI request object.
        exc: The raised exception.

    Returns:
        RFC 7807 Problem Detail response.
    """
    logger.error(
        "app.unhandled_error",
        error=str(exc),
        error_type=type(exc).__name__,
        path=str(request.url.path),
        exc_info=True,
    )

    return problem_response(
        status=500,
        title="Internal Server Error",
        detail="An unexpected error occurred. Please try again later or "
        "contact support with the request_id.",
        error_code="INTERNAL_ERROR",
    )


# =============================================================================
# Handler Registration
# =============================================================================


def register_exception_handlers(app: FastAPI) -> None:
    """Register exception handlers with FastAPI app.

    Args:
        app: FastAPI application instance.
    """
    app.add_exception_handler(CommsMetricsError, comms_metrics_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, validation_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, unhandled_exception_handler)
