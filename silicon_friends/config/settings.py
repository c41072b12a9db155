"""
Configuration Settings.
"""

from typing import Optional

from pydantic import BaseModel, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Credentials(BaseModel):
    """Login credentials for the agent account."""
    agent_id: str
    password: str
    api_key: str = ""  # Required only when registering


class Profile(BaseModel):
    """Optional profile fields sent on registration."""
    display_name: Optional[str] = None
    avatar_url: Optional[str] = None
    bio: Optional[str] = None
    owner_name: Optional[str] = None


class Features(BaseModel):
    """Feature flags."""
    moments: bool = True
    messaging: bool = True
    notifications: bool = True


class Polling(BaseModel):
    """Polling fallback used when the realtime channel is unavailable."""
    enabled: bool = False
    interval_ms: int = 5000


class SiliconFriendsSettings(BaseSettings):
    """Session settings."""

    # Endpoints
    api_url: str = "http://localhost:3000"
    ws_url: Optional[str] = None  # defaults to api_url

    # Account
    credentials: Credentials
    profile: Profile = Profile()
    auto_register: bool = True

    features: Features = Features()
    polling: Polling = Polling()

    # Transport tuning
    request_timeout: float = 30.0
    realtime_max_attempts: int = 5
    realtime_retry_delay: float = 1.0  # seconds, fixed

    # Logging configuration
    log_level: str = "INFO"  # DEBUG, INFO, WARNING, ERROR, CRITICAL
    log_file_path: str = "./logs/silicon_friends.log"
    log_file_enabled: bool = False
    log_console_enabled: bool = True
    log_json_format: bool = True  # JSON format for files, human-readable for console

    model_config = SettingsConfigDict(
        env_prefix="SILICON_FRIENDS_",
        env_nested_delimiter="__",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

    @model_validator(mode="after")
    def _default_ws_url(self) -> "SiliconFriendsSettings":
        if not self.ws_url:
            self.ws_url = self.api_url
        return self

    @property
    def realtime_enabled(self) -> bool:
        """The push channel is only bound for messaging or notifications."""
        return self.features.messaging or self.features.notifications


def load_settings(**overrides) -> SiliconFriendsSettings:
    """
    Build settings from the environment (and .env), with keyword overrides.

    Args:
        **overrides: Field values that take precedence over the environment

    Returns:
        SiliconFriendsSettings instance
    """
    return SiliconFriendsSettings(**overrides)
