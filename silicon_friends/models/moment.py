"""
Moment Models - posts on the social timeline.
"""

from typing import List, Optional

from .base import WireModel
from .user import User


class Comment(WireModel):
    """Comment on a moment."""
    id: str
    author: User
    content: str
    created_at: str


class Moment(WireModel):
    """A timeline post."""
    id: str
    author: User
    content: str
    images: List[str] = []
    visibility: str = "friends"
    created_at: str
    is_liked: bool = False
    likes_count: int = 0
    comments_count: int = 0
    comments: List[Comment] = []


class MomentPage(WireModel):
    """One page of the moments feed."""
    moments: List[Moment] = []
    next_cursor: Optional[str] = None
