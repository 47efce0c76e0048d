"""RFC 9457 Problem Details for HTTP APIs.

Exports:
    ErrorDetail: Individual field-specific error
    ProblemDetails: RFC 9457 compliant error response schema
"""

from pydantic import BaseModel, Field


class ErrorDetail(BaseModel):
    """Individual field-specific error.

    Examples:
        >>> ErrorDetail(field="email", code="value_error", message="Invalid email format")
    """

    field: str = Field(..., description="Field name")
    code: str = Field(..., description="Machine-readable error code")
    message: str = Field(..., description="Human-readable error message")


class ProblemDetails(BaseModel):
    """RFC 9457 Problem Details.

    Attributes:
        type: URI reference identifying the problem type
        title: Short, human-readable summary of the problem type
        status: HTTP status code for this occurrence
        detail: Human-readable explanation specific to this occurrence
        instance: Request path of this occurrence
        code: Machine-readable error code
        errors: Optional list of field-specific errors (validation failures)
        trace_id: Request trace ID for debugging

    Examples:
        >>> ProblemDetails(
        ...     type="http://localhost:3000/errors/invalid_credentials",
        ...     title="Authentication Required",
        ...     status=401,
        ...     detail="Email or password is incorrect.",
        ...     instance="/api/auth/login",
        ...     code="invalid_credentials",
        ... )
    """

    type: str = Field(..., description="URI reference identifying the problem type")
    title: str = Field(..., description="Short, human-readable summary")
    status: int = Field(..., description="HTTP status code")
    detail: str = Field(..., description="Human-readable explanation")
    instance: str = Field(..., description="Request path")
    code: str | None = Field(None, description="Machine-readable error code")
    errors: list[ErrorDetail] | None = Field(None, description="Field-specific errors")
    trace_id: str | None = Field(None, description="Request trace ID for debugging")
