"""Rebuild complete reply trees and extract the author's main thread.

getPostThread stops returning replies below its internal depth limit, but
the cut-off posts still report a non-zero replyCount. expand_thread walks the
tree and re-fetches every such branch from its own URI, so the result holds
every reply regardless of how deep the thread goes.
"""

import logging
from collections.abc import Callable

from .models import Post, ThreadNode, ThreadPost

logger = logging.getLogger(__name__)

FetchPage = Callable[[str], ThreadNode]


def is_truncated(node: ThreadNode) -> bool:
    """True if the server reports replies for this post but returned none."""
    return (
        isinstance(node, ThreadPost)
        and node.post.reply_count > 0
        and not node.replies
    )


def expand_thread(root: ThreadNode, fetch_page: FetchPage) -> ThreadNode:
    """Return a copy of the tree with every truncated branch re-fetched.

    fetch_page is called once per truncated post with that post's URI; only
    the children of the returned page are kept. Re-fetched branches can be
    truncated again further down and are expanded in turn. Uses an explicit
    stack, so thread depth is not limited by the recursion limit.

    The input tree is left untouched. Errors from fetch_page propagate.
    """
    if not isinstance(root, ThreadPost):
        return root

    new_root = ThreadPost(post=root.post)
    stack: list[tuple[ThreadPost, ThreadPost]] = [(root, new_root)]
    refetches = 0

    while stack:
        source, target = stack.pop()

        replies = source.replies
        if is_truncated(source):
            logger.debug(
                "Re-fetching truncated branch %s (%d replies reported)",
                source.post.uri,
                source.post.reply_count,
            )
            replies = _fetch_replies(source.post.uri, fetch_page)
            refetches += 1

        for reply in replies:
            if isinstance(reply, ThreadPost):
                copy = ThreadPost(post=reply.post)
                target.replies.append(copy)
                stack.append((reply, copy))
            else:
                target.replies.append(reply)

    if refetches:
        logger.info("Re-fetched %d truncated branches", refetches)
    return new_root


def _fetch_replies(uri: str, fetch_page: FetchPage) -> list[ThreadNode]:
    page = fetch_page(uri)
    if isinstance(page, ThreadPost):
        return page.replies
    # Post was deleted or blocked between the two requests
    return []


def walk_main_thread(root: ThreadNode) -> list[Post]:
    """Follow the root author's own replies down from the root.

    At each level the first reply (in server order) written by the root
    author continues the chain. Other replies are ignored.
    """
    if not isinstance(root, ThreadPost):
        return []
    root_did = root.post.author.did
    if not root_did:
        return []

    posts: list[Post] = []
    node: ThreadNode | None = root
    while isinstance(node, ThreadPost):
        posts.append(node.post)
        node = next(
            (
                reply
                for reply in node.replies
                if isinstance(reply, ThreadPost)
                and reply.post.author.did == root_did
            ),
            None,
        )
    return posts
