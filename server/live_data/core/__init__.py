"""
Live Data Core Utilities
"""
from live_data.core.types import (
    LiveDataError,
    PayloadError,
    UpstreamError,
)

__all__ = [
    "LiveDataError",
    "PayloadError",
    "UpstreamError",
]
