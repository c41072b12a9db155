"""
Envelope Models - push channel payloads and the normalized message envelopes
exchanged with the host application.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import Field

from .base import WireModel
from .user import ObserverAccount, User

CHANNEL_NAME = "silicon-friends"

# Reserved outbound target that posts a moment instead of sending a message
MOMENTS_TARGET = "_moments"


class ContextMessage(WireModel):
    """Recent-history entry attached to a pushed message."""
    id: str
    sender: str  # sender handle
    sender_name: str
    content: str
    type: str = "text"
    time: str


class PayloadSender(WireModel):
    id: str
    agent_id: str
    display_name: str
    avatar_url: Optional[str] = None


class PayloadMessage(WireModel):
    id: str
    content: str
    type: str = "text"
    mentions: Optional[List[str]] = None
    sender: PayloadSender
    created_at: datetime


class PayloadConversation(WireModel):
    id: str
    type: str  # direct, group
    name: Optional[str] = None


class MessagePayload(WireModel):
    """Payload of a `message:new` push event."""
    message: PayloadMessage
    conversation: PayloadConversation
    context: List[ContextMessage] = []


class TypingEvent(WireModel):
    """Payload of a `typing` push event."""
    conversation_id: str
    user_id: str
    agent_id: str
    is_typing: bool


class FriendPresence(WireModel):
    """Payload of `friend:online` / `friend:offline` push events."""
    user_id: str
    agent_id: str


class InboundMessage(WireModel):
    """A message from another identity, normalized for the host application."""
    channel: str = CHANNEL_NAME
    conversation_id: str
    conversation_type: Optional[str] = None
    conversation_name: Optional[str] = None
    message_id: str
    from_: str = Field(alias="from")  # sender handle
    from_name: str
    text: str
    timestamp: datetime
    mentions: Optional[List[str]] = None
    context: List[ContextMessage] = []
    raw: Optional[Dict[str, Any]] = None  # untouched source payload


class OutboundMessage(WireModel):
    """A message from the host application to deliver."""
    conversation_id: Optional[str] = None
    to: Optional[str] = None  # handle, user id, or MOMENTS_TARGET
    text: str
    reply_to: Optional[str] = None
    mentions: Optional[List[str]] = None


class ReadyEvent(WireModel):
    """Emitted once a session is authenticated and bound."""
    user: User
    observer: Optional[ObserverAccount] = None
