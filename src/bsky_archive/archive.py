"""Fetch everything needed to archive one thread from its URL."""

import logging

from .client import BlueskyClient, post_uri
from .models import ThreadData
from .parser import parse_post_url
from .thread import expand_thread, walk_main_thread

logger = logging.getLogger(__name__)


def archive_thread(url: str, client: BlueskyClient) -> ThreadData:
    """Resolve, fetch, expand and walk the thread behind a bsky.app URL.

    Any failure is raised unchanged; there is no partial result.
    """
    ref = parse_post_url(url)

    if ref.handle.startswith("did:"):
        did = ref.handle
    else:
        did = client.resolve_handle(ref.handle)
    logger.info("Fetching thread %s by %s", ref.rkey, did)

    root = client.fetch_thread_page(post_uri(did, ref.rkey))
    thread = expand_thread(root, client.fetch_thread_page)
    posts = walk_main_thread(thread)
    logger.info("Main thread has %d posts", len(posts))

    return ThreadData(handle=ref.handle, url=url.strip(), posts=tuple(posts))
