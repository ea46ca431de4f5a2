"""Client for the public Bluesky AppView (unauthenticated XRPC).

Only two read endpoints are used:
    com.atproto.identity.resolveHandle  - handle -> DID
    app.bsky.feed.getPostThread         - one page of a thread tree

getPostThread caps reply depth server-side (around 10 levels) no matter what
depth is requested. The expander in thread.py re-fetches the branches that
were cut off.

Override the AppView host with the BSKY_API_URL environment variable or the
[api] base_url config key.
"""

import logging
import os
import time

import httpx

from .errors import ArchiveTimeoutError, FetchError, ProtocolError, ResolutionError
from .models import ThreadNode
from .parser import parse_thread_node

logger = logging.getLogger(__name__)

DEFAULT_API_URL = os.environ.get("BSKY_API_URL", "https://public.api.bsky.app/xrpc")

# Largest values getPostThread accepts
MAX_DEPTH = 1000
MAX_PARENT_HEIGHT = 1000


def post_uri(did: str, rkey: str) -> str:
    """Build the AT-URI of a post record."""
    return f"at://{did}/app.bsky.feed.post/{rkey}"


class BlueskyClient:
    """Read-only client for the public Bluesky API.

    total_timeout bounds the whole archive run: once that many seconds have
    passed since the client was created, the next request raises
    ArchiveTimeoutError.
    """

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float = 30.0,
        total_timeout: float | None = None,
    ):
        self._base_url = (base_url or DEFAULT_API_URL).rstrip("/")
        self._total_timeout = total_timeout
        self._started = time.monotonic()
        self.request_count = 0
        self._client = httpx.Client(
            headers={
                "Accept": "application/json",
                "User-Agent": "bsky-archive (+https://bsky.app)",
            },
            timeout=timeout,
            follow_redirects=True,
        )

    def resolve_handle(self, handle: str) -> str:
        """Resolve a handle (e.g. "alice.bsky.social") to a DID."""
        try:
            response = self._get(
                "com.atproto.identity.resolveHandle", {"handle": handle}
            )
        except httpx.HTTPError as e:
            raise ResolutionError(
                f'Could not resolve handle "{handle}": {e}'
            ) from e

        if response.status_code != 200:
            raise ResolutionError(
                f'Could not resolve handle "{handle}": {response.status_code}',
                status_code=response.status_code,
            )

        did = _json_or_empty(response).get("did")
        if not did:
            raise ResolutionError(
                f'Could not resolve handle "{handle}": no DID in response',
                status_code=response.status_code,
            )

        logger.debug("Resolved %s to %s", handle, did)
        return did

    def fetch_thread_page(self, uri: str) -> ThreadNode:
        """Fetch one page of the thread rooted at an AT-URI."""
        params = {
            "uri": uri,
            "depth": MAX_DEPTH,
            "parentHeight": MAX_PARENT_HEIGHT,
        }
        try:
            response = self._get("app.bsky.feed.getPostThread", params)
        except httpx.HTTPError as e:
            raise FetchError(f"Could not fetch thread: {e}") from e

        if response.status_code != 200:
            raise FetchError(
                f"Could not fetch thread: {response.status_code}",
                status_code=response.status_code,
            )

        thread = _json_or_empty(response).get("thread")
        if not thread:
            raise ProtocolError("Unexpected API response: no thread field")

        return parse_thread_node(thread)

    def download_image(self, url: str) -> bytes:
        """Download an image from the Bluesky CDN."""
        self._check_deadline()
        response = self._client.get(url)
        response.raise_for_status()
        return response.content

    def _get(self, method: str, params: dict) -> httpx.Response:
        self._check_deadline()
        self.request_count += 1
        logger.debug("GET %s %s", method, params)
        return self._client.get(f"{self._base_url}/{method}", params=params)

    def _check_deadline(self) -> None:
        if self._total_timeout is None:
            return
        elapsed = time.monotonic() - self._started
        if elapsed > self._total_timeout:
            raise ArchiveTimeoutError(
                f"Archive timed out after {self._total_timeout:g}s"
            )

    def close(self) -> None:
        self._client.close()

    def __enter__(self):
        return self

    def __exit__(self, *args):
        self.close()


def _json_or_empty(response: httpx.Response) -> dict:
    try:
        data = response.json()
    except ValueError:
        return {}
    return data if isinstance(data, dict) else {}
