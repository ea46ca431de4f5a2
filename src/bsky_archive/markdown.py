"""Render an archived thread as a markdown document.

Each post becomes a blockquote ending in an attribution line. Posts are
separated by ---. In rich format the document starts with YAML front matter
and attributions carry the post time and like/repost counts.
"""

from dataclasses import dataclass
from datetime import datetime, timezone

from .models import Post, ThreadData

MEDIA_NONE = "none"
MEDIA_INLINE = "inline"
MEDIA_DOWNLOAD = "download"
MEDIA_OPTIONS = (MEDIA_NONE, MEDIA_INLINE, MEDIA_DOWNLOAD)

FORMAT_MINIMAL = "minimal"
FORMAT_RICH = "rich"
FORMAT_OPTIONS = (FORMAT_MINIMAL, FORMAT_RICH)

QUOTE = "> "


@dataclass
class RenderOptions:
    media: str = MEDIA_INLINE
    format: str = FORMAT_RICH


def render_thread(
    thread: ThreadData,
    options: RenderOptions,
    image_map: dict[str, str] | None = None,
) -> str:
    """Render the full markdown document for a thread.

    image_map maps image URLs to local paths and is only consulted in
    download mode.
    """
    today = datetime.now(timezone.utc).strftime("%Y-%m-%d")
    first = thread.posts[0] if thread.posts else None
    post_date = (
        first.created_at.strftime("%Y-%m-%d")
        if first and first.created_at
        else today
    )

    lines: list[str] = []

    if options.format == FORMAT_RICH:
        lines.append("---")
        lines.append(f'title: "Thread by @{thread.handle}"')
        lines.append(f"author: {thread.handle}")
        lines.append(f"date: {post_date}")
        lines.append(f"source: {thread.url}")
        lines.append(f"archived: {today}")
        lines.append("tags: [bluesky-archive]")
        lines.append("---")
        lines.append("")

    lines.append(f"# Thread by @{thread.handle}")
    lines.append("")
    if options.format == FORMAT_MINIMAL:
        lines.append(f"Source: {thread.url}")
        lines.append("")

    blocks = [render_post(post, options, image_map) for post in thread.posts]
    lines.append("\n\n---\n\n".join(blocks))

    return "\n".join(lines).rstrip("\n")


def render_post(
    post: Post,
    options: RenderOptions,
    image_map: dict[str, str] | None = None,
) -> str:
    """Render a single post as a blockquote block."""
    lines = [f"{QUOTE}{line}" for line in post.text.split("\n")]

    for media_line in _media_lines(post, options.media, image_map):
        lines.append(QUOTE.rstrip())
        lines.append(f"{QUOTE}{media_line}")

    lines.append(QUOTE.rstrip())
    handle = post.author.handle or "unknown"
    if options.format == FORMAT_RICH and post.created_at:
        stats = ""
        if post.like_count is not None and post.repost_count is not None:
            stats = f" · ♡ {post.like_count} · ↻ {post.repost_count}"
        lines.append(
            f"{QUOTE}— @{handle} · "
            f"{post.created_at.strftime('%Y-%m-%d %H:%M')}{stats}"
        )
    else:
        lines.append(f"{QUOTE}— @{handle}")

    return "\n".join(lines)


def _media_lines(
    post: Post, media: str, image_map: dict[str, str] | None
) -> list[str]:
    if media == MEDIA_NONE:
        return []

    lines: list[str] = []
    for image in post.images:
        url = image.url
        if media == MEDIA_DOWNLOAD and image_map:
            url = image_map.get(url, url)
        lines.append(f"![{image.alt}]({url})")

    if post.external:
        title = post.external.title or post.external.uri
        lines.append(f"[{title}]({post.external.uri})")

    return lines
