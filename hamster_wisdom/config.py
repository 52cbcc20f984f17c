"""
Runtime configuration for the Hamster Wisdom client.

Settings are read from the environment once and cached for the process.
"""

import os
from functools import lru_cache

from pydantic import BaseModel, Field

DEFAULT_BASE_URL = "http://localhost:8000"
DEFAULT_COMMIT_DELAY = 0.8
DEFAULT_ACK_WINDOW = 4.0


class Settings(BaseModel):
    """Client settings, normally built with :meth:`Settings.from_env`."""

    api_url: str = Field(DEFAULT_BASE_URL, description="Quote Service base URL")
    commit_delay: float = Field(
        DEFAULT_COMMIT_DELAY,
        ge=0,
        description="Seconds a fetched quote waits before display",
    )
    ack_window: float = Field(
        DEFAULT_ACK_WINDOW,
        ge=0,
        description="Seconds the submission form stays acknowledged",
    )
    discard_stale: bool = Field(
        False, description="Drop quote responses superseded by a newer request"
    )

    @classmethod
    def from_env(cls) -> "Settings":
        raw = {
            "api_url": os.getenv("WISDOM_API_URL"),
            "commit_delay": os.getenv("WISDOM_COMMIT_DELAY"),
            "ack_window": os.getenv("WISDOM_ACK_WINDOW"),
            "discard_stale": os.getenv("WISDOM_DISCARD_STALE"),
        }
        return cls.model_validate({k: v for k, v in raw.items() if v})


@lru_cache
def get_settings() -> Settings:
    return Settings.from_env()
