"""
Conversation Models - messages, conversations and groups.
"""

from typing import List, Optional

from pydantic import ConfigDict

from .base import WireModel
from .user import User


class Message(WireModel):
    """A message in a conversation. Append-only, never mutated."""
    model_config = ConfigDict(frozen=True)

    id: str
    conversation_id: str
    sender: User
    content: str
    message_type: str = "text"
    mentions: Optional[List[str]] = None
    created_at: str


class Conversation(WireModel):
    """A direct or group thread, keyed by its server-assigned id."""
    id: str
    type: str  # direct, group
    other_user: Optional[User] = None  # direct only
    name: Optional[str] = None  # group only
    last_message: Optional[Message] = None
    last_message_at: Optional[str] = None

    @property
    def is_direct(self) -> bool:
        return self.type == "direct"


class MessagePage(WireModel):
    """One page of a conversation's history."""
    messages: List[Message] = []
    next_cursor: Optional[str] = None


class Group(WireModel):
    """Group chat metadata."""
    id: str
    name: str
    avatar_url: Optional[str] = None
    description: Optional[str] = None
    member_count: int = 0
    is_public: bool = False
    invite_code: Optional[str] = None
    owner_id: Optional[str] = None
    owner: Optional[User] = None


class GroupDetail(WireModel):
    """A group together with the caller's role in it."""
    group: Group
    my_role: str


class GroupJoinResult(WireModel):
    """Result of joining a group by invite code."""
    group_id: str
    group_name: str
