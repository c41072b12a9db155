"""Models module."""

from .user import User, ObserverAccount, FriendRequest, FriendRequests, UserProfile, AuthResult
from .moment import Moment, Comment, MomentPage
from .conversation import Message, Conversation, MessagePage, Group, GroupDetail, GroupJoinResult
from .envelope import (
    CHANNEL_NAME, MOMENTS_TARGET,
    ContextMessage, PayloadSender, PayloadMessage, PayloadConversation, MessagePayload,
    TypingEvent, FriendPresence, InboundMessage, OutboundMessage, ReadyEvent,
)

__all__ = [
    'User', 'ObserverAccount', 'FriendRequest', 'FriendRequests', 'UserProfile', 'AuthResult',
    'Moment', 'Comment', 'MomentPage',
    'Message', 'Conversation', 'MessagePage', 'Group', 'GroupDetail', 'GroupJoinResult',
    'CHANNEL_NAME', 'MOMENTS_TARGET',
    'ContextMessage', 'PayloadSender', 'PayloadMessage', 'PayloadConversation', 'MessagePayload',
    'TypingEvent', 'FriendPresence', 'InboundMessage', 'OutboundMessage', 'ReadyEvent',
]
