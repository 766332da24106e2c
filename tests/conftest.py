"""Shared fixtures: a frozen clock, settings and a seeded in-memory store."""

from datetime import datetime, timedelta, timezone

import pytest

from threadrank.config.settings import Settings
from threadrank.core.discussion import DiscussionService
from threadrank.models import Comment, Item, Viewer
from threadrank.storage.memory_store import InMemoryStore
from threadrank.utils.clock import FixedClock

NOW = datetime(2024, 1, 10, 12, 0, tzinfo=timezone.utc)


def hours_ago(hours: float) -> datetime:
    return NOW - timedelta(hours=hours)


def seed_document() -> dict:
    """
    Three stories and a small discussion on story 1.

    Story order by creation (newest first): 2, 3, 1.
    Story order by rank at NOW: 1, 2, 3.
    """
    return {
        "users": [
            {"id": 1, "name": "alice"},
            {"id": 2, "name": "bob"},
            {"id": 3, "name": "carol"},
        ],
        "items": [
            {"id": 1, "title": "Old but popular", "url": "https://example.com/old",
             "score": 20, "author_id": 1, "created_at": hours_ago(52).isoformat()},
            {"id": 2, "title": "Fresh", "url": "https://example.com/fresh",
             "score": 10, "author_id": 2, "created_at": hours_ago(4).isoformat()},
            {"id": 3, "title": "Ask: middling", "body": "What do you think?",
             "score": 5, "author_id": 3, "created_at": hours_ago(6).isoformat()},
        ],
        "comments": [
            {"id": 1, "item_id": 1, "body": "First!", "author_id": 1,
             "created_at": hours_ago(3).isoformat()},
            {"id": 2, "item_id": 1, "parent_id": 1, "body": "Not quite", "author_id": 2,
             "created_at": hours_ago(2).isoformat()},
            {"id": 3, "item_id": 1, "parent_id": 1, "body": "ping @bob", "author_id": 3,
             "upvotes": 4, "created_at": hours_ago(1.5).isoformat()},
            {"id": 4, "item_id": 1, "body": "Late to the party", "author_id": 2,
             "created_at": hours_ago(0.5).isoformat()},
        ],
        "votes": [
            {"voter_id": 2, "item_id": 1, "up": True},
            {"voter_id": 1, "comment_id": 2, "up": False},
        ],
    }


@pytest.fixture
def clock():
    return FixedClock(NOW)


@pytest.fixture
def settings():
    return Settings(_env_file=None)


@pytest.fixture
def store(clock):
    return InMemoryStore.from_fixture(seed_document(), clock=clock)


@pytest.fixture
def service(store, clock, settings):
    return DiscussionService(store, clock, settings)


@pytest.fixture
def alice():
    return Viewer(id=1, name="alice")


@pytest.fixture
def bob():
    return Viewer(id=2, name="bob")


@pytest.fixture
def make_comment():
    """Factory for comments on item 1; ``score`` becomes the upvote count."""
    def factory(comment_id, parent_id=None, score=1, author_id=42, created_at=NOW, item_id=1):
        return Comment(
            id=comment_id,
            parent_id=parent_id,
            item_id=item_id,
            body=f"comment {comment_id}",
            upvotes=score,
            downvotes=0,
            author_id=author_id,
            created_at=created_at,
        )
    return factory


@pytest.fixture
def make_item():
    def factory(item_id, score, age_hours, author_id=1):
        return Item(
            id=item_id,
            title=f"story {item_id}",
            url="https://example.com",
            score=score,
            author_id=author_id,
            created_at=hours_ago(age_hours),
        )
    return factory
