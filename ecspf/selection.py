"""
Interactive list selection with keyword narrowing.

The operator sees a numbered list. Typing a number picks that entry; typing
anything else narrows the list with the given filter function; an empty
answer on a single-entry list picks it. Ctrl+C aborts.
"""

import logging
from typing import Callable, List, Optional, Sequence, TypeVar

import click

from .errors import NotFoundError, ValidationError
from .validation import parse_port

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_PAGE_SIZE = 20


def select_item(items: Sequence[T], message: str,
                filter_fn: Callable[[Sequence[T], str], List[T]],
                format_fn: Callable[[T], str] = str,
                page_size: int = DEFAULT_PAGE_SIZE,
                disabled: Optional[Callable[[T], Optional[str]]] = None) -> T:
    """
    Let the operator pick one item.

    Args:
        items: Candidates, already ordered
        message: Prompt heading
        filter_fn: Narrowing function, e.g. ``filter_matches``
        format_fn: One-line rendering of an item
        page_size: Number of entries shown at once
        disabled: Returns a reason when an item cannot be picked

    Returns:
        The chosen item

    Raises:
        NotFoundError: If ``items`` is empty
        click.Abort: If the operator interrupts
    """
    if not items:
        raise NotFoundError(f"Nothing to select for: {message}", suggestion="Broaden the search")

    query = ""
    while True:
        shown = filter_fn(items, query)[:page_size]
        click.echo(click.style(f"? {message}", fg="cyan", bold=True) + (f" [filter: {query}]" if query else ""))
        if not shown:
            click.echo(click.style("  No matches. Enter new keywords, or an empty line to reset.", fg="yellow"))
        for index, item in enumerate(shown, start=1):
            line = f"  {index:>2}. {format_fn(item)}"
            reason = disabled(item) if disabled else None
            click.echo(click.style(f"{line} ({reason})", dim=True) if reason else line)

        answer = click.prompt("Number or keywords", default="", show_default=False).strip()

        chosen = None
        if answer.isdigit() and shown and 1 <= int(answer) <= len(shown):
            chosen = shown[int(answer) - 1]
        elif not answer and len(shown) == 1:
            chosen = shown[0]
        if chosen is not None:
            reason = disabled(chosen) if disabled else None
            if reason:
                click.echo(click.style(f"Cannot select: {reason}", fg="red"))
                continue
            logger.debug(f"Selected {format_fn(chosen)}")
            return chosen
        query = answer


def prompt_port(message: str, default: int) -> int:
    """Ask for a port until a valid one is given."""
    while True:
        raw = click.prompt(message, default=str(default))
        try:
            return parse_port(raw, "local_port")
        except ValidationError as e:
            click.echo(click.style(f"❌ {e.reason}", fg="red"))


def ask_retry() -> bool:
    return click.confirm("Retry?", default=True)
