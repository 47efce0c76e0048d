"""Global exception handlers for the FastAPI application.

Handlers:
    http_exception_handler: HTTPException -> RFC 9457
    validation_exception_handler: RequestValidationError -> 400 RFC 9457
    generic_exception_handler: anything unhandled -> generic 500

Exports:
    register_exception_handlers: Register all exception handlers with FastAPI app
"""

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from finauth.core.enums import ErrorCode
from finauth.presentation.errors.error_response_builder import ErrorResponseBuilder
from finauth.presentation.errors.problem_details import ErrorDetail, ProblemDetails
from finauth.presentation.middleware.trace_middleware import get_trace_id


def _problem_type(request: Request, slug: str) -> str:
    return f"{request.app.state.settings.app_base_url}/errors/{slug}"


async def http_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Convert HTTPException (e.g. from the bearer dependency) to Problem Details."""
    assert isinstance(exc, HTTPException)

    problem = ProblemDetails(
        type=_problem_type(request, f"http-{exc.status_code}"),
        title=ErrorResponseBuilder.title_for(exc.status_code),
        status=exc.status_code,
        detail=exc.detail if isinstance(exc.detail, str) else str(exc.detail),
        instance=str(request.url.path),
        trace_id=get_trace_id(),
    )

    # Preserve any headers from HTTPException (e.g., WWW-Authenticate)
    return JSONResponse(
        status_code=exc.status_code,
        content=problem.model_dump(exclude_none=True),
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Convert request validation failures to 400 Problem Details with field errors."""
    assert isinstance(exc, RequestValidationError)

    field_errors: list[ErrorDetail] = []
    for error in exc.errors():
        # ["body", "email"] -> "email"
        field_parts = [str(p) for p in error.get("loc", []) if p != "body"]
        field_errors.append(
            ErrorDetail(
                field=".".join(field_parts) if field_parts else "unknown",
                code=error.get("type", "validation_error"),
                message=error.get("msg", "Validation failed"),
            )
        )

    problem = ProblemDetails(
        type=_problem_type(request, ErrorCode.VALIDATION_FAILED.value),
        title="Validation Failed",
        status=status.HTTP_400_BAD_REQUEST,
        detail="Request validation failed. Check 'errors' for details.",
        instance=str(request.url.path),
        code=ErrorCode.VALIDATION_FAILED.value,
        errors=field_errors or None,
        trace_id=get_trace_id(),
    )

    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=problem.model_dump(exclude_none=True),
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Turn any unhandled exception into a generic 500.

    No internal detail reaches the client; the full context is logged.
    """
    trace_id = get_trace_id()

    request.app.state.container.logger.error(
        "unhandled_exception",
        error=exc,
        trace_id=trace_id,
        request_path=request.url.path,
        request_method=request.method,
    )

    problem = ProblemDetails(
        type=_problem_type(request, "internal-server-error"),
        title="Internal Server Error",
        status=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail="An unexpected error occurred. Please contact support with the trace ID.",
        instance=str(request.url.path),
        trace_id=trace_id,
    )

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=problem.model_dump(exclude_none=True),
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Register all exception handlers with the FastAPI application."""
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, generic_exception_handler)
