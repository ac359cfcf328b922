"""Terminal output helpers for the scale command."""
import logging
from contextlib import contextmanager
from typing import Iterator, Optional

import click

logger = logging.getLogger(__name__)


def elapsed(ms: int) -> str:
    """Dimmed ``[123ms]`` suffix."""
    return click.style(f"[{ms}ms]", fg="bright_black")


def bold(text) -> str:
    return click.style(str(text), bold=True)


def cmd(text: str) -> str:
    return click.style(f"`{text}`", fg="cyan")


class Output:
    """Colorized user-facing messages.

    Messages go to stdout except errors, which go to stderr. Debug lines are
    only printed when debug mode is on.
    """

    def __init__(self, debug: bool = False):
        self.debug_enabled = debug

    def log(self, message: str) -> None:
        click.echo(f"> {message}")

    def success(self, message: str) -> None:
        click.echo(f"{click.style('> Success!', fg='cyan')} {message}")

    def error(self, message: str, slug: Optional[str] = None) -> None:
        line = f"{click.style('> Error!', fg='red', bold=True)} {message}"
        if slug:
            line += f"\n> More details: https://err.sh/now-cli/{slug}"
        click.echo(line, err=True)

    def debug(self, message: str) -> None:
        if self.debug_enabled:
            click.echo(click.style(f"> [debug] {message}", fg="bright_black"))

    @contextmanager
    def wait(self, message: str) -> Iterator[None]:
        """Show a pending message for a blocking call."""
        click.echo(click.style(f"> {message}...", fg="bright_black"))
        try:
            yield
        finally:
            logger.debug(f"Finished: {message}")
