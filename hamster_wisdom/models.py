"""
Shared data models for the Hamster Wisdom client.

This module defines the core domain models used across multiple layers
of the application (service client, session controller, views, CLI).
"""

from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

MAX_QUOTE_LENGTH = 280
MAX_AUTHOR_LENGTH = 50


class Quote(BaseModel):
    """A single wisdom entry as served by the Quote Service."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str | int | None = Field(None, description="Opaque service identifier")
    text: str = Field(
        ...,
        validation_alias=AliasChoices("text", "wisdom"),
        description="The wisdom itself",
    )
    author: str = Field("Anonymous", description="Who said it")

    @field_validator("author", mode="before")
    @classmethod
    def _default_blank_author(cls, value: Any) -> Any:
        if value is None or (isinstance(value, str) and not value.strip()):
            return "Anonymous"
        return value


class Mood(BaseModel):
    """A cosmetic theme, chosen independently of the quote being shown."""

    model_config = ConfigDict(frozen=True)

    symbol: str
    label: str
    accent_color: str


MOODS: tuple[Mood, ...] = (
    Mood(symbol="🐹", label="Pensive Gerald", accent_color="#f59e42"),
    Mood(symbol="😤", label="Furious Gerald", accent_color="#ef4444"),
    Mood(symbol="🥱", label="Sleepy Gerald", accent_color="#8b5cf6"),
    Mood(symbol="🤔", label="Philosophical Gerald", accent_color="#3b82f6"),
    Mood(symbol="😤", label="Sweating Gerald", accent_color="#10b981"),
    Mood(symbol="👑", label="Royal Gerald", accent_color="#f59e0b"),
)


class SessionState(BaseModel):
    """
    Read-only snapshot of everything a session displays.

    Instances handed out by the controller are frozen; views re-render from
    them and never write back.
    """

    model_config = ConfigDict(frozen=True)

    current_quote: Quote | None = None
    mood: Mood = MOODS[0]
    is_fetching_quote: bool = False
    is_spinning: bool = False
    fetch_error: str | None = None
    archive_count: int | None = None
    archive: tuple[Quote, ...] = ()
    archive_visible: bool = False
    is_submitting: bool = False
