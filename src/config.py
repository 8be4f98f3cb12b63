"""
Configuration module for the YouTube provider.

Loads configuration from environment variables. The access token is the only
bootstrap credential; an empty token is reported by the provider session as a
fatal diagnostic rather than raised here.
"""

import os
from dataclasses import dataclass, field
from typing import Optional

DEFAULT_API_BASE_URL = "https://www.googleapis.com/youtube/v3"


@dataclass
class YouTubeConfig:
    """YouTube Data API client configuration."""

    access_token: str = field(default="", repr=False)  # Never log token
    api_base_url: str = DEFAULT_API_BASE_URL
    timeout: int = 30  # seconds

    @classmethod
    def from_env(cls):
        """Load from environment variables."""
        return cls(
            access_token=os.getenv("YOUTUBE_ACCESS_TOKEN", ""),
            api_base_url=os.getenv("YOUTUBE_API_URL", DEFAULT_API_BASE_URL),
            timeout=int(os.getenv("YOUTUBE_REQUEST_TIMEOUT", "30")),
        )


@dataclass
class StateConfig:
    """Local state file configuration."""

    path: str = "ytctl-state.json"

    @classmethod
    def from_env(cls):
        """Load from environment variables."""
        return cls(path=os.getenv("YTCTL_STATE_FILE", "ytctl-state.json"))


@dataclass
class LoggingConfig:
    """Logging configuration."""

    level: str = "INFO"
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    @classmethod
    def from_env(cls):
        """Load from environment variables."""
        return cls(
            level=os.getenv("LOG_LEVEL", "INFO").upper(),
            format=os.getenv(
                "LOG_FORMAT", "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
            ),
        )


@dataclass
class Config:
    """Main configuration object."""

    youtube: YouTubeConfig
    state: StateConfig
    logging: LoggingConfig

    @classmethod
    def from_env(cls):
        """Load all configuration from environment variables."""
        return cls(
            youtube=YouTubeConfig.from_env(),
            state=StateConfig.from_env(),
            logging=LoggingConfig.from_env(),
        )

    @classmethod
    def default(cls):
        """Return default configuration."""
        return cls(
            youtube=YouTubeConfig(),
            state=StateConfig(),
            logging=LoggingConfig(),
        )


# Global config instance
config: Optional[Config] = None


def load_config() -> Config:
    """Load configuration (singleton pattern)."""
    global config
    if config is None:
        config = Config.from_env()
    return config


def get_config() -> Config:
    """Get the current configuration."""
    if config is None:
        return load_config()
    return config


def reset_config() -> None:
    """Reset configuration (mainly for testing)."""
    global config
    config = None
