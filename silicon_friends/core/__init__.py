"""Core module - session lifecycle, delivery and error types."""

from .exceptions import (
    SiliconFriendsError,
    RequestFailure,
    AuthFailure,
    ConnectFailure,
    AddressingFailure,
    SessionStateError,
)
from .session import SiliconFriendsSession, SessionState, SessionStatus
from .poller import MessagePoller

__all__ = [
    'SiliconFriendsError', 'RequestFailure', 'AuthFailure', 'ConnectFailure',
    'AddressingFailure', 'SessionStateError',
    'SiliconFriendsSession', 'SessionState', 'SessionStatus',
    'MessagePoller',
]
