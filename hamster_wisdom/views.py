"""
Text views for the Hamster Wisdom client.

The render functions are pure: the same snapshot always produces the same
text. :class:`SubmissionForm` is the one exception, holding the draft the user
is typing and its short-lived "acknowledged" state.
"""

import asyncio
from collections.abc import Awaitable, Callable, Sequence

from .config import DEFAULT_ACK_WINDOW
from .models import MAX_AUTHOR_LENGTH, MAX_QUOTE_LENGTH, Mood, Quote, SessionState

SPIN_GLYPH = "🌀"
IDLE_GLYPH = "🐹"


def _accent(text: str, color: str) -> str:
    """Wrap text in a 24-bit ANSI foreground colour."""
    red, green, blue = (int(color[i : i + 2], 16) for i in (1, 3, 5))
    return f"\x1b[38;2;{red};{green};{blue}m{text}\x1b[0m"


# MARK: - Quote Display


def render_quote_card(quote: Quote, mood: Mood, color: bool = False) -> str:
    body = f"{mood.symbol}  “{quote.text}”\n    — {quote.author}"
    return _accent(body, mood.accent_color) if color else body


def render_quote_display(
    current_quote: Quote | None,
    mood: Mood,
    is_spinning: bool,
    fetch_error: str | None,
    color: bool = False,
) -> str:
    """
    Render the wheel plus whatever belongs under it.

    While spinning only the wheel is shown. Otherwise an error takes the quote
    slot, and with neither an error nor a quote the slot stays empty.
    """
    lines = [f"( {SPIN_GLYPH if is_spinning else IDLE_GLYPH} )"]
    if is_spinning:
        return "\n".join(lines)

    if fetch_error:
        lines.append(f"⚠ {fetch_error}")
    elif current_quote is not None:
        lines.append(render_quote_card(current_quote, mood, color=color))
    return "\n".join(lines)


def render_new_quote_button(is_fetching_quote: bool) -> str:
    return "🌀 Consulting Gerald..." if is_fetching_quote else "🎲 New Wisdom"


# MARK: - Header


def render_header(archive_count: int | None) -> str:
    lines = ["Hamster Wisdom", "Life advice from Gerald, a hamster who has seen things"]
    if archive_count:
        lines.append(f"📚 {archive_count} nuggets of wisdom in the archive")
    return "\n".join(lines)


# MARK: - Archive List


def render_archive_list(archive: Sequence[Quote]) -> str:
    """Render the archive in the order received; empty input renders nothing."""
    if not archive:
        return ""

    lines = ["📜 The Full Scrolls of Gerald"]
    for quote in archive:
        lines.append(f"🐾 “{quote.text}” — {quote.author}")
    return "\n".join(lines)


def render_archive_toggle(archive_visible: bool) -> str:
    return "🙈 Hide the Scrolls" if archive_visible else "📜 View All Wisdom"


# MARK: - Submission Form


class SubmissionForm:
    """
    Draft input for a new quote.

    The draft lives only here and never in the session state. A successful
    submission clears the draft and keeps the form acknowledged for
    ``ack_window`` seconds, during which it accepts no input.
    """

    def __init__(
        self,
        on_submit: Callable[[str, str], Awaitable[bool]],
        *,
        ack_window: float = DEFAULT_ACK_WINDOW,
    ) -> None:
        self._on_submit = on_submit
        self._ack_window = ack_window
        self._text = ""
        self._author = ""
        self._pending = False
        self._ack_handle: asyncio.TimerHandle | None = None

    @property
    def text(self) -> str:
        return self._text

    @property
    def author(self) -> str:
        return self._author

    @property
    def acknowledged(self) -> bool:
        return self._ack_handle is not None

    def is_disabled(self, submitting: bool = False) -> bool:
        return submitting or self._pending or self.acknowledged

    def set_text(self, value: str) -> None:
        if not self.is_disabled():
            self._text = value[:MAX_QUOTE_LENGTH]

    def set_author(self, value: str) -> None:
        if not self.is_disabled():
            self._author = value[:MAX_AUTHOR_LENGTH]

    async def submit(self) -> bool:
        """Hand the draft to the controller. Blank drafts never leave the form."""
        if self.is_disabled() or not self._text.strip():
            return False

        self._pending = True
        try:
            accepted = await self._on_submit(self._text, self._author)
        finally:
            self._pending = False

        if accepted:
            self._text = ""
            self._author = ""
            loop = asyncio.get_running_loop()
            self._ack_handle = loop.call_later(self._ack_window, self._end_acknowledgement)
        return accepted

    def close(self) -> None:
        if self._ack_handle is not None:
            self._ack_handle.cancel()
            self._ack_handle = None

    def render(self, submitting: bool = False) -> str:
        if self.acknowledged:
            button = "✅ Gerald received it!"
        elif submitting or self._pending:
            button = "🐹 Gerald is reading..."
        else:
            button = "📤 Submit to Gerald"

        return "\n".join(
            [
                "📝 Share Your Own Wisdom",
                f"  text:   {self._text}",
                f"  {len(self._text)}/{MAX_QUOTE_LENGTH}",
                f"  author: {self._author}",
                f"[{button}]",
            ]
        )

    def _end_acknowledgement(self) -> None:
        self._ack_handle = None


# MARK: - Whole Session


def render_session(
    state: SessionState, form: SubmissionForm | None = None, color: bool = False
) -> str:
    """Compose every view for one snapshot."""
    sections = [
        render_header(state.archive_count),
        render_quote_display(
            state.current_quote,
            state.mood,
            state.is_spinning,
            state.fetch_error,
            color=color,
        ),
        f"[{render_new_quote_button(state.is_fetching_quote)}]",
    ]
    if form is not None:
        sections.append(form.render(submitting=state.is_submitting))
    sections.append(f"[{render_archive_toggle(state.archive_visible)}]")
    if state.archive_visible:
        archive = render_archive_list(state.archive)
        if archive:
            sections.append(archive)
    return "\n\n".join(sections)
