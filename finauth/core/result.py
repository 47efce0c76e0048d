"""Result types for railway-oriented programming.

Auth operations fail in expected ways (wrong password, reused token,
suspended account). Those outcomes are returned as values instead of being
raised, which keeps every failure path explicit at the call site.

Usage:
    result = await auth_service.login(login_input, context)
    match result:
        case Success(value=LoginResult() as login):
            ...
        case Failure(error=error):
            ...
"""

from dataclasses import dataclass
from typing import Generic, TypeVar

T = TypeVar("T")  # Success type
E = TypeVar("E")  # Error type


@dataclass(frozen=True, slots=True, kw_only=True)
class Success(Generic[T]):
    """Successful operation result.

    Attributes:
        value: The successful result value.
    """

    value: T


@dataclass(frozen=True, slots=True, kw_only=True)
class Failure(Generic[E]):
    """Failed operation result.

    Attributes:
        error: The error that occurred.
    """

    error: E


type Result[T, E] = Success[T] | Failure[E]
