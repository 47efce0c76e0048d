"""Error response builder for RFC 9457 Problem Details.

Converts DomainError values returned by the AuthService into JSON responses
with the matching HTTP status.

Exports:
    ErrorResponseBuilder: Utility class for building RFC 9457 responses
"""

from fastapi import Request, status
from fastapi.responses import JSONResponse

from finauth.core.enums import ErrorCode
from finauth.core.errors import DomainError
from finauth.presentation.errors.problem_details import ProblemDetails
from finauth.presentation.middleware.trace_middleware import get_trace_id

_STATUS_BY_CODE: dict[ErrorCode, int] = {
    ErrorCode.VALIDATION_FAILED: status.HTTP_400_BAD_REQUEST,
    ErrorCode.TERMS_NOT_ACCEPTED: status.HTTP_400_BAD_REQUEST,
    ErrorCode.TOKEN_INVALID_OR_EXPIRED: status.HTTP_400_BAD_REQUEST,
    ErrorCode.TWO_FACTOR_NOT_ENROLLED: status.HTTP_400_BAD_REQUEST,
    ErrorCode.INVALID_CREDENTIALS: status.HTTP_401_UNAUTHORIZED,
    ErrorCode.TOKEN_INVALID: status.HTTP_401_UNAUTHORIZED,
    ErrorCode.TWO_FACTOR_INVALID: status.HTTP_401_UNAUTHORIZED,
    ErrorCode.ACCOUNT_SUSPENDED: status.HTTP_403_FORBIDDEN,
    ErrorCode.USER_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCode.EMAIL_ALREADY_EXISTS: status.HTTP_409_CONFLICT,
    ErrorCode.TWO_FACTOR_ALREADY_ENROLLED: status.HTTP_409_CONFLICT,
}

_TITLE_BY_STATUS: dict[int, str] = {
    400: "Bad Request",
    401: "Authentication Required",
    403: "Access Denied",
    404: "Resource Not Found",
    409: "Resource Conflict",
    500: "Internal Server Error",
}


class ErrorResponseBuilder:
    """Build RFC 9457 Problem Details error responses.

    Example:
        >>> match result:
        ...     case Failure(error=error):
        ...         return ErrorResponseBuilder.from_domain_error(error, request)
    """

    @staticmethod
    def status_for(code: ErrorCode) -> int:
        """Map an error code to its HTTP status (500 for unmapped codes)."""
        return _STATUS_BY_CODE.get(code, status.HTTP_500_INTERNAL_SERVER_ERROR)

    @staticmethod
    def title_for(status_code: int) -> str:
        return _TITLE_BY_STATUS.get(status_code, "Error")

    @staticmethod
    def from_domain_error(error: DomainError, request: Request) -> JSONResponse:
        """Convert a DomainError into a Problem Details JSON response.

        Args:
            error: Expected failure returned by the service layer.
            request: Current request (for the instance path and base URL).

        Returns:
            JSONResponse with the mapped status code.
        """
        status_code = ErrorResponseBuilder.status_for(error.code)
        problem = ProblemDetails(
            type=f"{request.app.state.settings.app_base_url}/errors/{error.code.value}",
            title=ErrorResponseBuilder.title_for(status_code),
            status=status_code,
            detail=error.message,
            instance=str(request.url.path),
            code=error.code.value,
            trace_id=get_trace_id(),
        )
        return JSONResponse(
            status_code=status_code,
            content=problem.model_dump(exclude_none=True),
        )
