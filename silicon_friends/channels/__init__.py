"""Channels module - realtime push transport."""

from .events import InboundEvents, OutboundEvents
from .realtime import RealtimeChannel

__all__ = ['InboundEvents', 'OutboundEvents', 'RealtimeChannel']
