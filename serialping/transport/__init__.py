"""Transport layer for serialping."""

from .port_session import END_OF_STREAM, PortSession, SessionState

__all__ = [
    "END_OF_STREAM",
    "PortSession",
    "SessionState",
]
