"""
Session controller for the Hamster Wisdom client.

The controller is the only writer of :class:`SessionState`. Every user action
enters through one of its coroutines, talks to the Quote Service, and replaces
the state with a new frozen snapshot. Views read snapshots and call back into
the controller through :class:`SessionActions`.
"""

import asyncio
import logging
import random
from collections.abc import AsyncGenerator, Awaitable, Callable
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Any

from .client import QuoteServiceClient
from .config import DEFAULT_COMMIT_DELAY
from .models import MAX_QUOTE_LENGTH, MOODS, SessionState

logger = logging.getLogger(__name__)

FETCH_ERROR_MESSAGE = "Gerald's wheel has jammed. He's embarrassed."
DEFAULT_SUBMIT_AUTHOR = "Anonymous Hamster"


@dataclass(frozen=True)
class SessionActions:
    """Callbacks handed to views; the only way a view can change state."""

    request_new_quote: Callable[[], Awaitable[None]]
    submit_quote: Callable[[str, str], Awaitable[bool]]
    toggle_archive_visibility: Callable[[], Awaitable[None]]


class SessionController:
    """
    Single authority over the session state.

    Overlapping quote requests are allowed. By default the request that
    resolves last decides the displayed quote. With ``discard_stale=True``
    each request is tagged with a sequence number and only the most recently
    issued one may commit; older responses are dropped silently.
    """

    def __init__(
        self,
        service: QuoteServiceClient,
        *,
        commit_delay: float = DEFAULT_COMMIT_DELAY,
        discard_stale: bool = False,
        rng: random.Random | None = None,
    ) -> None:
        self._service = service
        self._commit_delay = commit_delay
        self._discard_stale = discard_stale
        self._rng = rng or random.Random()

        self._state = SessionState()
        self._subscribers: set[asyncio.Queue[SessionState | None]] = set()

        self._quote_sequence = 0
        self._pending_commits: dict[int, tuple[asyncio.TimerHandle, asyncio.Future[bool]]] = {}

    # MARK: - Read Side

    @property
    def state(self) -> SessionState:
        """The current snapshot. Frozen, safe to hand to any view."""
        return self._state

    def actions(self) -> SessionActions:
        return SessionActions(
            request_new_quote=self.request_new_quote,
            submit_quote=self.submit_quote,
            toggle_archive_visibility=self.toggle_archive_visibility,
        )

    @asynccontextmanager
    async def stream(self) -> AsyncGenerator[AsyncGenerator[SessionState, None], None]:
        """
        Stream state snapshots to a subscriber.

        Yields an async generator that produces the current snapshot first and
        then exactly one snapshot per state change, in order. Each subscriber
        has its own queue, so a slow reader never loses an intermediate state.
        The generator ends once the session is closed.
        """
        queue: asyncio.Queue[SessionState | None] = asyncio.Queue()
        initial = self._state
        self._subscribers.add(queue)

        async def state_generator() -> AsyncGenerator[SessionState, None]:
            yield initial
            while (state := await queue.get()) is not None:
                yield state

        states = state_generator()
        try:
            yield states
        finally:
            self._subscribers.discard(queue)
            await states.aclose()

    # MARK: - Operations

    async def start(self) -> None:
        """Kick off the first quote and the archive count together."""
        await asyncio.gather(self.request_new_quote(), self.refresh_count())

    async def request_new_quote(self) -> None:
        self._quote_sequence += 1
        sequence = self._quote_sequence
        if self._discard_stale:
            self._dispose_commits(before=sequence)

        self._apply(
            is_fetching_quote=True,
            is_spinning=True,
            fetch_error=None,
            mood=self._rng.choice(MOODS),
        )

        result = await self._service.random_quote()
        if self._is_superseded(sequence):
            logger.debug("Discarding quote response #%d, newer request pending", sequence)
            return

        if not result.ok:
            logger.warning("Random quote fetch failed: %s", result.error)
            self._apply(
                fetch_error=FETCH_ERROR_MESSAGE,
                is_fetching_quote=False,
                is_spinning=False,
            )
            return

        if not await self._schedule_commit(sequence):
            return
        if self._is_superseded(sequence):
            return

        logger.debug("Committing quote response #%d", sequence)
        self._apply(
            current_quote=result.value,
            is_fetching_quote=False,
            is_spinning=False,
        )

    async def refresh_count(self) -> None:
        result = await self._service.count()
        if not result.ok:
            # best-effort: keep the last known count
            logger.debug("Count refresh failed, keeping stale value: %s", result.error)
            return
        self._apply(archive_count=result.value)

    async def refresh_archive(self) -> None:
        result = await self._service.all_quotes()
        if not result.ok:
            # best-effort: keep the last snapshot
            logger.debug("Archive refresh failed, keeping stale value: %s", result.error)
            return
        self._apply(archive=tuple(result.value or ()))

    async def toggle_archive_visibility(self) -> None:
        becoming_visible = not self._state.archive_visible
        self._apply(archive_visible=becoming_visible)
        if becoming_visible:
            await self.refresh_archive()

    async def submit_quote(self, text: str, author: str = "") -> bool:
        """
        Submit a quote and refresh what depends on the archive.

        Service failures never raise; they come back as ``False`` and leave no
        error in the session state. Invalid input is a caller bug and is the
        one case that does raise.

        Args:
            text: The quote, already checked by the caller to be non-blank
                and at most 280 characters
            author: Attribution; blank becomes "Anonymous Hamster"

        Returns:
            Whether the service accepted the quote

        Raises:
            ValueError: If ``text`` is blank or longer than 280 characters
        """
        if not text.strip():
            raise ValueError("quote text must not be blank")
        if len(text) > MAX_QUOTE_LENGTH:
            raise ValueError(f"quote text exceeds {MAX_QUOTE_LENGTH} characters")
        if not author or not author.strip():
            author = DEFAULT_SUBMIT_AUTHOR

        self._apply(is_submitting=True)
        result = await self._service.submit(text, author)
        if not result.ok:
            logger.debug("Submission failed: %s", result.error)
            self._apply(is_submitting=False)
            return False

        refreshes = [self.refresh_count()]
        if self._state.archive_visible:
            refreshes.append(self.refresh_archive())
        self._apply(is_submitting=False)
        await asyncio.gather(*refreshes)
        return True

    async def aclose(self) -> None:
        """End the session: release scheduled commit timers and end all streams."""
        self._dispose_commits()
        for queue in self._subscribers:
            queue.put_nowait(None)

    # MARK: - Private Helpers

    def _apply(self, **changes: Any) -> None:
        self._state = self._state.model_copy(update=changes)
        for queue in self._subscribers:
            queue.put_nowait(self._state)

    def _is_superseded(self, sequence: int) -> bool:
        return self._discard_stale and sequence != self._quote_sequence

    def _schedule_commit(self, sequence: int) -> asyncio.Future[bool]:
        """Resolve to True once the commit delay has passed, False if disposed."""
        loop = asyncio.get_running_loop()
        future: asyncio.Future[bool] = loop.create_future()
        handle = loop.call_later(self._commit_delay, self._fire_commit, sequence, future)
        self._pending_commits[sequence] = (handle, future)
        return future

    def _fire_commit(self, sequence: int, future: asyncio.Future[bool]) -> None:
        self._pending_commits.pop(sequence, None)
        if not future.done():
            future.set_result(True)

    def _dispose_commits(self, before: int | None = None) -> None:
        stale = [s for s in self._pending_commits if before is None or s < before]
        for sequence in stale:
            handle, future = self._pending_commits.pop(sequence)
            handle.cancel()
            if not future.done():
                future.set_result(False)

    @property
    def pending_commits(self) -> int:
        return len(self._pending_commits)
