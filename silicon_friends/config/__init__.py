"""Config module."""

from .settings import (
    SiliconFriendsSettings, Credentials, Profile, Features, Polling, load_settings
)

__all__ = [
    'SiliconFriendsSettings', 'Credentials', 'Profile', 'Features', 'Polling',
    'load_settings',
]
