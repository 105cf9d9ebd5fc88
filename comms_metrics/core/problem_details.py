"""RFC 7807 Problem Details for HTTP APIs.

Every error response from the service is `application/problem+json` with a
stable `type` URI and a machine-readable `code`, so dashboard clients can
tell a bad filter (fix the request) from a store outage (try again later).

Reference: https://datatracker.ietf.org/doc/html/rfc7807
"""

from typing import Any

from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field

from comms_metrics.core.logging import request_id_ctx

# =============================================================================
# Error Type URIs
# =============================================================================

# Relative URIs for portability
ERROR_TYPE_BASE = "/errors"

ERROR_TYPES = {
    "INVALID_FILTER": f"{ERROR_TYPE_BASE}/invalid-filter",
    "INVALID_DATE_RANGE": f"{ERROR_TYPE_BASE}/invalid-date-range",
    "INVALID_AGGREGATION": f"{ERROR_TYPE_BASE}/invalid-aggregation",
    "STORE_UNAVAILABLE": f"{ERROR_TYPE_BASE}/store-unavailable",
    "VALIDATION_ERROR": f"{ERROR_TYPE_BASE}/validation",
    "INTERNAL_ERROR": f"{ERROR_TYPE_BASE}/internal",
}


# =============================================================================
# Problem Detail Schema
# =============================================================================


class ProblemDetail(BaseModel):
    """RFC 7807 Problem Details body.

    Attributes:
        type: URI identifying the error type.
        title: Short human-readable summary of the problem.
        status: HTTP status code.
        detail: Human-readable explanation specific to this occurrence.
        instance: URI reference for this specific problem occurrence.
        errors: Field-level errors (422 responses) or offending parameters.
        code: Machine-readable error code.
        request_id: Request correlation ID.
    """

    model_config = ConfigDict(extra="allow")  # Allow extensions per RFC 7807

    type: str = Field(
        default="about:blank",
        description="URI reference identifying the problem type.",
    )
    title: str = Field(..., description="Short, human-readable summary of the problem type.")
    status: int = Field(..., ge=400, le=599, description="HTTP status code.")
    detail: str | None = Field(
        None,
        description="Human-readable explanation specific to this occurrence.",
    )
    instance: str | None = Field(
        None,
        description="URI reference for this specific problem occurrence.",
    )
    # Extensions
    errors: list[dict[str, Any]] | None = Field(
        None,
        description="Field-level errors identifying which inputs need correction.",
    )
    code: str | None = Field(None, description="Machine-readable error code.")
    request_id: str | None = Field(
        None,
        description="Request correlation ID. Include in support requests.",
    )


class ProblemDetailResponse(JSONResponse):
    """JSON response with RFC 7807 content type."""

    media_type = "application/problem+json"


# =============================================================================
# Helper Functions
# =============================================================================


def create_problem_detail(
    status: int,
    title: str,
    detail: str | None = None,
    error_code: str = "INTERNAL_ERROR",
    errors: list[dict[str, Any]] | None = None,
) -> ProblemDetail:
    """Create a ProblemDetail with type URI and request-scoped instance.

    Args:
        status: HTTP status code.
        title: Short problem summary.
        detail: Detailed explanation (optional).
        error_code: Internal error code for type URI lookup.
        errors: Field-level errors (optional).

    Returns:
        Configured ProblemDetail instance.
    """
    request_id = request_id_ctx.get()

    return ProblemDetail(
        type=ERROR_TYPES.get(error_code, f"{ERROR_TYPE_BASE}/{error_code.lower()}"),
        title=title,
        status=status,
        detail=detail,
        instance=f"/requests/{request_id}" if request_id else None,
        errors=errors,
        code=error_code,
        request_id=request_id,
    )


def problem_response(
    status: int,
    title: str,
    detail: str | None = None,
    error_code: str = "INTERNAL_ERROR",
    errors: list[dict[str, Any]] | None = None,
) -> ProblemDetailResponse:
    """Create a ProblemDetailResponse with proper content type.

    Args:
        status: HTTP status code.
        title: Short problem summary.
        detail: Detailed explanation (optional).
        error_code: Internal error code for type URI lookup.
        errors: Field-level errors (optional).

    Returns:
        JSONResponse with problem+json content type.
    """
    problem = create_problem_detail(
        status=status,
        title=title,
        detail=detail,
        error_code=error_code,
        errors=errors,
    )

    return ProblemDetailResponse(
        status_code=status,
        content=problem.model_dump(exclude_none=True),
    )
