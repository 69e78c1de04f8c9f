"""
live_data.relay — optional Redis relay of live data updates.

Public API:
    LiveDataRelay — forwards bus topics to Redis channels
    RelayError    — raised when connecting or publishing fails
    channels      — channel name constants
"""
from .publisher import LiveDataRelay, RelayError, encode
from . import channels

__all__ = [
    "LiveDataRelay",
    "RelayError",
    "channels",
    "encode",
]
