"""Parse post URLs and public AppView responses into model objects.

getPostThread returns a tree of tagged nodes:
    thread -> {"$type": "...#threadViewPost", "post": {...}, "replies": [...]}

Each reply is itself a node and may be a notFoundPost or blockedPost
instead of a visible post.
"""

import logging
import re
from datetime import datetime, timezone

from .errors import InvalidInputError, ProtocolError
from .models import (
    Author,
    BlockedPost,
    ExternalLink,
    ImageItem,
    NotFoundPost,
    Post,
    PostRef,
    ThreadNode,
    ThreadPost,
)

logger = logging.getLogger(__name__)

THREAD_VIEW_POST = "app.bsky.feed.defs#threadViewPost"
NOT_FOUND_POST = "app.bsky.feed.defs#notFoundPost"
BLOCKED_POST = "app.bsky.feed.defs#blockedPost"

EMBED_IMAGES = "app.bsky.embed.images#view"
EMBED_EXTERNAL = "app.bsky.embed.external#view"
EMBED_RECORD_WITH_MEDIA = "app.bsky.embed.recordWithMedia#view"

POST_URL_RE = re.compile(r"^https?://bsky\.app/profile/([^/]+)/post/([^/?#]+)")
EXPECTED_URL_FORMAT = "https://bsky.app/profile/handle/post/rkey"


def parse_post_url(url: str) -> PostRef:
    """Extract the handle and record key from a bsky.app post URL."""
    match = POST_URL_RE.match(url.strip())
    if not match:
        raise InvalidInputError(
            f"Invalid Bluesky URL. Expected: {EXPECTED_URL_FORMAT}"
        )
    return PostRef(handle=match.group(1), rkey=match.group(2))


def parse_thread_node(raw: dict) -> ThreadNode:
    """Parse a getPostThread tree, including all nested replies.

    Walks the JSON with an explicit stack, so deeply nested pages do not
    hit the recursion limit.
    """
    root = _parse_node(raw)
    stack = [(raw, root)] if isinstance(root, ThreadPost) else []

    while stack:
        raw_node, node = stack.pop()
        for raw_reply in raw_node.get("replies") or []:
            reply = _parse_node(raw_reply)
            node.replies.append(reply)
            if isinstance(reply, ThreadPost):
                stack.append((raw_reply, reply))

    return root


def _parse_node(raw: dict) -> ThreadNode:
    """Parse a single node, leaving its replies empty."""
    if not isinstance(raw, dict):
        raise ProtocolError(f"Unexpected thread node: {raw!r}")

    node_type = raw.get("$type")

    if node_type == THREAD_VIEW_POST:
        return ThreadPost(post=parse_post(raw.get("post")))

    if node_type == NOT_FOUND_POST:
        return NotFoundPost(uri=raw.get("uri", ""))

    if node_type == BLOCKED_POST:
        return BlockedPost(
            uri=raw.get("uri", ""),
            author_did=(raw.get("author") or {}).get("did", ""),
        )

    raise ProtocolError(f"Unknown thread node type: {node_type!r}")


def parse_post(raw: dict | None) -> Post:
    """Parse a postView into a Post."""
    if not isinstance(raw, dict) or not raw.get("uri"):
        raise ProtocolError("Unexpected API response: post without uri")

    author_data = raw.get("author") or {}
    record = raw.get("record") or {}
    images, external = _parse_embed(raw.get("embed"))

    return Post(
        uri=raw["uri"],
        author=Author(
            did=author_data.get("did", ""),
            handle=author_data.get("handle", "unknown"),
            display_name=author_data.get("displayName", ""),
        ),
        text=record.get("text", ""),
        created_at=_parse_datetime(record.get("createdAt", "")),
        images=images,
        external=external,
        like_count=raw.get("likeCount"),
        repost_count=raw.get("repostCount"),
        reply_count=raw.get("replyCount") or 0,
    )


def _parse_embed(
    embed: dict | None,
) -> tuple[tuple[ImageItem, ...], ExternalLink | None]:
    """Pull images and an external link card out of an embed view."""
    if not embed:
        return (), None

    embed_type = embed.get("$type")

    if embed_type == EMBED_IMAGES:
        return _parse_images(embed.get("images")), None

    if embed_type == EMBED_EXTERNAL:
        ext = embed.get("external") or {}
        if ext.get("uri"):
            return (), ExternalLink(uri=ext["uri"], title=ext.get("title", ""))
        return (), None

    # Quote post with attached images
    if embed_type == EMBED_RECORD_WITH_MEDIA:
        media = embed.get("media") or {}
        if media.get("$type") == EMBED_IMAGES:
            return _parse_images(media.get("images")), None

    return (), None


def _parse_images(raw_images: list[dict] | None) -> tuple[ImageItem, ...]:
    images = []
    for img in raw_images or []:
        url = img.get("fullsize") or img.get("thumb") or ""
        if url:
            images.append(ImageItem(url=url, alt=img.get("alt", "")))
    return tuple(images)


def _parse_datetime(value: str) -> datetime | None:
    """Parse an ISO 8601 createdAt value as an aware UTC datetime."""
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value)
    except ValueError:
        logger.debug("Unparseable createdAt value: %s", value)
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)
