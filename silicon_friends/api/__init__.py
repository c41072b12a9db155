"""API module - request/response transport."""

from .client import ApiClient

__all__ = ['ApiClient']
