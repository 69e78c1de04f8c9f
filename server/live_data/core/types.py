"""
Core Type Definitions and Exceptions

Service-specific exceptions. Every pipeline failure is one of these so the
tick boundary can log it with context and keep serving the last good cache.
"""
from __future__ import annotations

from typing import Any, Optional


class LiveDataError(Exception):
    """Base exception for all live data errors."""

    def __init__(
        self,
        message: str,
        context: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.context = context or {}

    def __str__(self) -> str:
        if self.context:
            ctx_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            return f"{self.message} [{ctx_str}]"
        return self.message


class UpstreamError(LiveDataError):
    """Raised when the upstream source is unreachable or answers non-2xx."""

    def __init__(
        self,
        message: str,
        endpoint: str,
        status: Optional[int] = None,
        context: Optional[dict[str, Any]] = None,
    ) -> None:
        ctx = context or {}
        ctx["endpoint"] = endpoint
        if status is not None:
            ctx["status"] = status
        super().__init__(message, ctx)
        self.endpoint = endpoint
        self.status = status


class PayloadError(LiveDataError):
    """Raised when an upstream payload does not have the expected shape."""

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        value: Any = None,
        context: Optional[dict[str, Any]] = None,
    ) -> None:
        ctx = context or {}
        if field:
            ctx["field"] = field
        if value is not None:
            ctx["value"] = repr(value)[:100]  # Truncate long values
        super().__init__(message, ctx)
        self.field = field
        self.value = value
