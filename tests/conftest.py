"""Shared test fixtures."""

import json
from datetime import datetime, timezone
from pathlib import Path

import pytest

from bsky_archive.models import (
    Author,
    ExternalLink,
    ImageItem,
    Post,
    ThreadData,
)

FIXTURES_DIR = Path(__file__).parent / "fixtures"

ALICE = Author(did="did:plc:xyz", handle="alice.test", display_name="Alice")


@pytest.fixture
def thread_response() -> dict:
    """Load the sample getPostThread response."""
    with open(FIXTURES_DIR / "thread_response.json") as f:
        return json.load(f)


@pytest.fixture
def sample_thread() -> ThreadData:
    """A three-post main thread with an image, a link card and a png."""
    return ThreadData(
        handle="alice.test",
        url="https://bsky.app/profile/alice.test/post/abc123",
        posts=(
            Post(
                uri="at://did:plc:xyz/app.bsky.feed.post/abc123",
                author=ALICE,
                text="Thread start\nsecond line",
                created_at=datetime(2025, 3, 1, 12, 0, tzinfo=timezone.utc),
                images=(
                    ImageItem(
                        url="https://cdn.bsky.app/img/feed_fullsize/plain/did:plc:xyz/bafkreicat@jpeg",
                        alt="A cat",
                    ),
                ),
                like_count=10,
                repost_count=2,
                reply_count=3,
            ),
            Post(
                uri="at://did:plc:xyz/app.bsky.feed.post/def456",
                author=ALICE,
                text="Part two",
                created_at=datetime(2025, 3, 1, 12, 5, tzinfo=timezone.utc),
                external=ExternalLink(
                    uri="https://example.com/article", title="An article"
                ),
                like_count=4,
                repost_count=0,
                reply_count=1,
            ),
            Post(
                uri="at://did:plc:xyz/app.bsky.feed.post/ghi789",
                author=ALICE,
                text="Part three",
                created_at=datetime(2025, 3, 1, 12, 10, tzinfo=timezone.utc),
                images=(
                    ImageItem(
                        url="https://cdn.bsky.app/img/feed_fullsize/plain/did:plc:xyz/bafkreichart@png",
                    ),
                ),
            ),
        ),
    )
