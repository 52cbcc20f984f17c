"""
Command-line interface for the Hamster Wisdom client.
"""

import asyncio
import logging
from collections.abc import AsyncGenerator, Coroutine
from contextlib import asynccontextmanager
from functools import partial
from typing import Any

import typer

from .client import QuoteServiceClient
from .config import get_settings
from .controller import SessionController
from .models import MAX_QUOTE_LENGTH, SessionState
from .views import (
    SubmissionForm,
    render_archive_list,
    render_header,
    render_quote_display,
    render_session,
)

app = typer.Typer(help="Life advice from Gerald, a hamster who has seen things")

URL_OPTION = typer.Option(
    None, "--url", "-u", help="Base URL of the wisdom service (default: $WISDOM_API_URL)"
)

PROMPT = "[n]ew wisdom, [s]ubmit, [a]rchive, [q]uit"


# MARK: - CLI Entry Points


def main() -> None:
    """Entry point for the wisdom CLI."""
    app()


@app.callback()
def configure(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


# MARK: - Commands


@app.command("random")
def random_quote(base_url: str | None = URL_OPTION) -> None:
    """Ask Gerald for one random piece of wisdom."""

    async def _random() -> None:
        async with _open_session(base_url) as controller:
            await controller.request_new_quote()
            state = controller.state
            print(
                render_quote_display(
                    state.current_quote, state.mood, state.is_spinning, state.fetch_error
                )
            )
            if state.fetch_error:
                raise typer.Exit(1)

    _run_with_error_handling(_random())


@app.command()
def count(base_url: str | None = URL_OPTION) -> None:
    """Show how many quotes are in the archive."""

    async def _count() -> None:
        async with _open_session(base_url) as controller:
            await controller.refresh_count()
            if controller.state.archive_count is None:
                print("Gerald lost count")
                raise typer.Exit(1)
            print(render_header(controller.state.archive_count))

    _run_with_error_handling(_count())


@app.command()
def archive(base_url: str | None = URL_OPTION) -> None:
    """List every quote in the archive."""

    async def _archive() -> None:
        async with _open_session(base_url) as controller:
            await controller.toggle_archive_visibility()
            listing = render_archive_list(controller.state.archive)
            print(listing or "The scrolls are empty")

    _run_with_error_handling(_archive())


@app.command()
def submit(
    text: str = typer.Argument(..., help="The wisdom to share"),
    author: str = typer.Option("", "--author", "-a", help="Your name or hamster alias"),
    base_url: str | None = URL_OPTION,
) -> None:
    """Submit your own wisdom to Gerald."""
    if not text.strip():
        raise typer.BadParameter("wisdom must not be blank", param_hint="TEXT")
    if len(text) > MAX_QUOTE_LENGTH:
        raise typer.BadParameter(
            f"wisdom must be at most {MAX_QUOTE_LENGTH} characters", param_hint="TEXT"
        )

    async def _submit() -> None:
        async with _open_session(base_url) as controller:
            if not await controller.submit_quote(text, author):
                print("Gerald could not take your wisdom right now")
                raise typer.Exit(1)
            print("✅ Gerald received it!")
            if controller.state.archive_count is not None:
                print(render_header(controller.state.archive_count))

    _run_with_error_handling(_submit())


@app.command()
def session(
    base_url: str | None = URL_OPTION,
    color: bool = typer.Option(True, "--color/--no-color", help="Tint quotes by mood"),
) -> None:
    """Run an interactive session."""
    settings = get_settings()

    async def _session() -> None:
        async with _open_session(base_url) as controller:
            form = SubmissionForm(
                controller.actions().submit_quote, ack_window=settings.ack_window
            )
            try:
                await _interact(controller, form, color)
            finally:
                form.close()

    try:
        _run_with_error_handling(_session())
    except typer.Abort:
        print("\nStopped")
        raise typer.Exit(0)


# MARK: - Private Helpers


def _resolve_url(base_url: str | None) -> str:
    return base_url or get_settings().api_url


@asynccontextmanager
async def _open_session(base_url: str | None) -> AsyncGenerator[SessionController, None]:
    """Pair a service client with a controller for one command."""
    settings = get_settings()
    service = QuoteServiceClient(_resolve_url(base_url))
    controller = SessionController(
        service,
        commit_delay=settings.commit_delay,
        discard_stale=settings.discard_stale,
    )
    try:
        yield controller
    finally:
        await controller.aclose()
        await service.aclose()


async def _interact(
    controller: SessionController,
    form: SubmissionForm,
    color: bool,
) -> None:
    """
    Drive a session from the keyboard.

    A renderer task redraws on every snapshot the controller streams. Each key
    press becomes its own task through the controller's actions, so pressing
    "n" twice runs two overlapping quote requests while the prompt is already
    waiting for the next key. Quitting waits for in-flight requests to settle.
    """
    actions = controller.actions()
    loop = asyncio.get_running_loop()
    in_flight: set[asyncio.Task[Any]] = set()

    def spawn(coro: Coroutine[Any, Any, Any]) -> None:
        task = asyncio.create_task(coro)
        in_flight.add(task)
        task.add_done_callback(in_flight.discard)

    async def ask(text: str, **kwargs: Any) -> str:
        # typer.prompt blocks on stdin, keep it off the event loop
        return await loop.run_in_executor(None, partial(typer.prompt, text, **kwargs))

    async with controller.stream() as states:
        renderer = asyncio.create_task(_render_states(states, form, color))
        spawn(controller.start())
        try:
            while True:
                choice = (await ask(PROMPT, default="n")).strip().lower()

                if choice == "q":
                    return
                if choice == "n":
                    spawn(actions.request_new_quote())
                elif choice == "a":
                    spawn(actions.toggle_archive_visibility())
                elif choice == "s":
                    if form.is_disabled(controller.state.is_submitting):
                        print("Gerald is still savouring your last one")
                        continue
                    form.set_text(await ask("Your wisdom"))
                    form.set_author(await ask("Your name", default="", show_default=False))
                    if not form.text.strip():
                        print("Gerald cannot eat silence")
                    else:
                        spawn(_submit_draft(form))
                else:
                    print(f"Unknown choice: {choice}")
        finally:
            await asyncio.gather(*in_flight)
            await controller.aclose()
            await renderer


async def _render_states(
    states: AsyncGenerator[SessionState, None], form: SubmissionForm, color: bool
) -> None:
    """Print the session once per snapshot, skipping redraws that change nothing."""
    last_screen = None
    async for state in states:
        screen = render_session(state, form, color=color)
        if screen != last_screen:
            print(screen)
            last_screen = screen


async def _submit_draft(form: SubmissionForm) -> None:
    if await form.submit():
        print("✅ Gerald received it!")
    else:
        print("Gerald could not take your wisdom right now")


def _run_with_error_handling(coro: Coroutine[Any, Any, Any]) -> None:
    """Run an async coroutine with standardized error handling."""
    try:
        asyncio.run(coro)
    except KeyboardInterrupt:
        print("\nStopped")
        raise typer.Exit(0)


if __name__ == "__main__":
    main()
