"""LoggerProtocol definition for structured logging.

Backend-agnostic structured logging port. Implementations MUST keep logs
structured (message + key-value context) and safe.

Security:
    - NEVER log passwords, token secrets, TOTP secrets or backup codes
    - Log at most an 8-character prefix of an identifier-like token

Usage:
    logger.info("login_succeeded", user_id=str(user.id))
    request_logger = logger.bind(trace_id=trace_id)
"""

from __future__ import annotations

from typing import Any, Protocol


class LoggerProtocol(Protocol):
    """Protocol for structured logging adapters."""

    def debug(self, message: str, /, **context: Any) -> None:
        """Log a debug-level message."""
        ...

    def info(self, message: str, /, **context: Any) -> None:
        """Log an info-level message."""
        ...

    def warning(self, message: str, /, **context: Any) -> None:
        """Log a warning-level message."""
        ...

    def error(
        self, message: str, /, *, error: Exception | None = None, **context: Any
    ) -> None:
        """Log an error-level message with optional exception details.

        Args:
            message: Event name.
            error: Exception to summarize as error_type / error_message.
            **context: Structured key-value context fields.
        """
        ...

    def bind(self, **context: Any) -> LoggerProtocol:
        """Return new logger with permanently bound context.

        Original logger instance remains unchanged.

        Example:
            request_logger = logger.bind(trace_id=trace_id)
            request_logger.info("refresh_rotated")  # trace_id included
        """
        ...
