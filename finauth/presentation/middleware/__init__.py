"""HTTP middleware."""

from finauth.presentation.middleware.edge_security import (
    EdgeAction,
    EdgeDecision,
    EdgeRequest,
    EdgeSecurityMiddleware,
    EdgeSecurityPolicy,
    is_same_origin_path,
)
from finauth.presentation.middleware.trace_middleware import TraceMiddleware, get_trace_id

__all__ = [
    "EdgeAction",
    "EdgeDecision",
    "EdgeRequest",
    "EdgeSecurityMiddleware",
    "EdgeSecurityPolicy",
    "TraceMiddleware",
    "get_trace_id",
    "is_same_origin_path",
]
