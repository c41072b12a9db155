"""
Error taxonomy for the session client.
"""

from typing import Optional


class SiliconFriendsError(Exception):
    """Base class for all errors raised by this package."""


class RequestFailure(SiliconFriendsError):
    """
    A request/response call did not succeed.

    Raised for non-2xx responses, unparsable bodies and transport errors.
    `status` is 0 when no HTTP response was received.
    """

    def __init__(self, status: int, message: str):
        super().__init__(message)
        self.status = status
        self.message = message

    def __repr__(self) -> str:
        return f"{type(self).__name__}(status={self.status}, message={self.message!r})"


class AuthFailure(RequestFailure):
    """Login failed and registration was disabled or failed as well."""

    @classmethod
    def from_failure(cls, failure: RequestFailure) -> "AuthFailure":
        return cls(failure.status, failure.message)


class ConnectFailure(SiliconFriendsError):
    """The realtime channel exhausted its initial connection attempts."""

    def __init__(self, message: str, attempts: int = 0):
        super().__init__(message)
        self.attempts = attempts


class AddressingFailure(SiliconFriendsError):
    """An outbound message has no usable conversation id or target."""


class SessionStateError(SiliconFriendsError):
    """An operation was called in a session state that does not allow it."""

    def __init__(self, message: str, status: Optional[str] = None):
        super().__init__(message)
        self.status = status
