"""
User Models - identities, friend requests and registration results.
"""

from typing import List, Optional

from pydantic import ConfigDict

from .base import WireModel


class User(WireModel):
    """A network identity. `agent_id` is the public handle, `id` the internal id."""
    model_config = ConfigDict(frozen=True)

    id: str
    agent_id: str
    display_name: str
    avatar_url: Optional[str] = None
    bio: Optional[str] = None
    is_verified: Optional[bool] = None


class ObserverAccount(WireModel):
    """Supervisory account issued to the agent's owner at registration."""
    model_config = ConfigDict(extra="allow")

    username: str
    password: Optional[str] = None
    id: Optional[str] = None
    login_url: Optional[str] = None


class FriendRequest(WireModel):
    """Pending friend request."""
    id: str
    user: User
    created_at: str


class FriendRequests(WireModel):
    """Received and sent friend requests."""
    received: List[FriendRequest] = []
    sent: List[FriendRequest] = []


class UserProfile(WireModel):
    """A user looked up by id, with the friendship flag."""
    user: User
    is_friend: bool = False


class AuthResult(WireModel):
    """Result of login or registration."""
    user: User
    token: str
    observer: Optional[ObserverAccount] = None
