from __future__ import annotations

from .request_id import RequestIdMiddleware, current_request_id, principal_ctx_var, request_id_ctx_var

__all__ = [
    "RequestIdMiddleware",
    "current_request_id",
    "request_id_ctx_var",
    "principal_ctx_var",
]
