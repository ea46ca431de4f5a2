"""Data models for parsed thread data."""

from dataclasses import dataclass, field
from datetime import datetime


@dataclass(frozen=True)
class Author:
    did: str
    handle: str  # without the leading @
    display_name: str = ""


@dataclass(frozen=True)
class ImageItem:
    url: str  # fullsize CDN URL, thumbnail if fullsize is missing
    alt: str = ""


@dataclass(frozen=True)
class ExternalLink:
    uri: str
    title: str = ""


@dataclass(frozen=True)
class Post:
    uri: str  # at://{did}/app.bsky.feed.post/{rkey}
    author: Author
    text: str
    created_at: datetime | None = None
    images: tuple[ImageItem, ...] = ()
    external: ExternalLink | None = None
    like_count: int | None = None
    repost_count: int | None = None
    reply_count: int = 0  # as reported by the server, may exceed len(replies)


@dataclass
class ThreadPost:
    """A visible post and its direct replies, in server order."""

    post: Post
    replies: list["ThreadNode"] = field(default_factory=list)


@dataclass(frozen=True)
class NotFoundPost:
    uri: str


@dataclass(frozen=True)
class BlockedPost:
    uri: str
    author_did: str = ""


ThreadNode = ThreadPost | NotFoundPost | BlockedPost


@dataclass(frozen=True)
class PostRef:
    handle: str  # handle or DID, as it appeared in the URL
    rkey: str


@dataclass(frozen=True)
class ThreadData:
    handle: str
    url: str
    posts: tuple[Post, ...] = ()
