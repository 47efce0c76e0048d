"""RFC 9457 error responses."""

from finauth.presentation.errors.error_response_builder import ErrorResponseBuilder
from finauth.presentation.errors.exception_handlers import register_exception_handlers
from finauth.presentation.errors.problem_details import ErrorDetail, ProblemDetails

__all__ = [
    "ErrorDetail",
    "ErrorResponseBuilder",
    "ProblemDetails",
    "register_exception_handlers",
]
