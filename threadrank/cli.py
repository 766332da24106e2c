"""Command-line interface for rendering front pages and discussions from a fixture."""

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional

import typer
import yaml
from pydantic import ValidationError
from typing_extensions import Annotated

from threadrank.config.settings import Settings
from threadrank.core.discussion import DiscussionService
from threadrank.core.errors import ThreadRankError
from threadrank.core.presenters import CommentPresenter
from threadrank.models import Viewer
from threadrank.storage.memory_store import InMemoryStore, load_fixture
from threadrank.utils.clock import Clock, FixedClock, SystemClock
from threadrank.utils.logging_utils import setup_logging

app = typer.Typer(help="threadrank - rank stories and thread discussions")

logger = logging.getLogger(__name__)


def parse_now(now: Optional[str]) -> Clock:
    """
    Build the reference clock from an ISO-8601 string.

    Raises:
        typer.BadParameter: If the string is not ISO-8601
    """
    if not now:
        return SystemClock()
    try:
        instant = datetime.fromisoformat(now)
    except ValueError:
        raise typer.BadParameter(f"Invalid time: {now}. Expected ISO-8601, e.g. 2024-01-31T12:00:00+00:00")
    if instant.tzinfo is None:
        instant = instant.replace(tzinfo=timezone.utc)
    return FixedClock(instant)


def resolve_viewer(store: InMemoryStore, viewer_id: Optional[int]) -> Optional[Viewer]:
    if viewer_id is None:
        return None
    if viewer_id not in store.users:
        raise typer.BadParameter(f"Unknown user id {viewer_id}", param_hint="--viewer")
    return Viewer(id=viewer_id, name=store.users[viewer_id])


def _build_service(fixture: Path, now: Optional[str], loglevel: str, **overrides) -> DiscussionService:
    setup_logging(log_level=loglevel)
    clock = parse_now(now)
    try:
        settings = Settings.load_from_yaml(**{k: v for k, v in overrides.items() if v is not None})
        store = load_fixture(fixture, clock=clock)
    except (ThreadRankError, ValidationError, yaml.YAMLError, OSError) as e:
        logger.error(f"Cannot load fixture {fixture}: {e}")
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1)
    return DiscussionService(store, clock, settings)


def render_comments(comments: List[CommentPresenter]) -> List[str]:
    lines = []
    stack = [(c, 0) for c in reversed(comments)]
    while stack:
        c, depth = stack.pop()
        marks = "".join([" *" if c.upvoted else "", " (editable)" if c.editable else ""])
        lines.append(f"{'  ' * depth}[{c.score}] {c.author}, {c.days_ago}: {c.body}{marks}")
        stack.extend((child, depth + 1) for child in reversed(c.children))
    return lines


@app.command("front-page")
def front_page(
    fixture: Annotated[Path, typer.Argument(exists=True, dir_okay=False, help="Path to a YAML or JSON fixture")],
    page: Annotated[int, typer.Option("--page", "-p", help="0-based page index")] = 0,
    viewer: Annotated[Optional[int], typer.Option("--viewer", "-u", help="Id of the user viewing the page")] = None,
    order: Annotated[Optional[str], typer.Option("--order", help="Story order within the page (created or rank)")] = None,
    now: Annotated[Optional[str], typer.Option("--now", help="Reference time (ISO-8601), defaults to the system clock")] = None,
    as_json: Annotated[bool, typer.Option("--json", help="Print JSON instead of text")] = False,
    loglevel: Annotated[str, typer.Option("--loglevel", "-l", help="Logging level")] = "WARNING",
) -> None:
    """
    List one page of stories.
    """
    if order is not None and order not in ("created", "rank"):
        raise typer.BadParameter(f"Unknown order {order!r}", param_hint="--order")
    service = _build_service(fixture, now, loglevel, FRONT_PAGE_ORDER=order)
    try:
        result = service.front_page(page, resolve_viewer(service.store, viewer))
    except ThreadRankError as e:
        logger.error(f"Cannot list page {page}: {e}")
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1)

    if as_json:
        typer.echo(json.dumps({
            "stories": [s.model_dump(mode="json") for s in result.stories],
            "next_page": result.next_page,
            "prev_page": result.prev_page,
        }, indent=2))
        return

    for s in result.stories:
        vote = " *" if s.upvoted else ""
        link = f" ({s.url})" if s.url else ""
        typer.echo(f"{s.position:>3}. {s.title}{link}{vote}")
        typer.echo(f"     {s.score} points by {s.author} {s.days_ago} | {s.comments_count} comments")
    typer.echo(f"prev: {result.prev_page}  next: {result.next_page}")


@app.command("discussion")
def discussion(
    fixture: Annotated[Path, typer.Argument(exists=True, dir_okay=False, help="Path to a YAML or JSON fixture")],
    item_id: Annotated[int, typer.Argument(help="Id of the story")],
    viewer: Annotated[Optional[int], typer.Option("--viewer", "-u", help="Id of the user viewing the discussion")] = None,
    order: Annotated[Optional[str], typer.Option("--order", help="Sibling order of comments (input or rank)")] = None,
    now: Annotated[Optional[str], typer.Option("--now", help="Reference time (ISO-8601), defaults to the system clock")] = None,
    as_json: Annotated[bool, typer.Option("--json", help="Print JSON instead of text")] = False,
    loglevel: Annotated[str, typer.Option("--loglevel", "-l", help="Logging level")] = "WARNING",
) -> None:
    """
    Show a story and its threaded comments.
    """
    if order is not None and order not in ("input", "rank"):
        raise typer.BadParameter(f"Unknown order {order!r}", param_hint="--order")
    service = _build_service(fixture, now, loglevel, COMMENT_ORDER=order)
    try:
        result = service.discussion(item_id, resolve_viewer(service.store, viewer))
    except ThreadRankError as e:
        logger.error(f"Cannot show discussion {item_id}: {e}")
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1)

    if as_json:
        typer.echo(json.dumps({
            "story": result.story.model_dump(mode="json"),
            "comments": [c.model_dump(mode="json") for c in result.comments],
            "orphans": [n.comment.id for n in result.forest.orphans()],
        }, indent=2))
        return

    story = result.story
    typer.echo(f"{story.title} ({story.score} points by {story.author} {story.days_ago})")
    if story.url:
        typer.echo(story.url)
    if story.body:
        typer.echo(story.body)
    typer.echo("")
    for line in render_comments(result.comments):
        typer.echo(line)
    orphans = result.forest.orphans()
    if orphans:
        typer.echo(f"({len(orphans)} replies to missing comments not shown)")


def main() -> None:
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
