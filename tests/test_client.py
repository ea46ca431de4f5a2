"""Tests for the Bluesky API client."""

from itertools import chain, repeat
from unittest.mock import patch

import httpx
import pytest
import respx

from bsky_archive.client import DEFAULT_API_URL, BlueskyClient, post_uri
from bsky_archive.errors import (
    ArchiveTimeoutError,
    FetchError,
    ProtocolError,
    ResolutionError,
)
from bsky_archive.models import ThreadPost

RESOLVE_URL = f"{DEFAULT_API_URL}/com.atproto.identity.resolveHandle"
THREAD_URL = f"{DEFAULT_API_URL}/app.bsky.feed.getPostThread"
ROOT_URI = "at://did:plc:xyz/app.bsky.feed.post/abc123"


class TestPostUri:
    def test_builds_at_uri(self):
        assert post_uri("did:plc:xyz", "abc123") == ROOT_URI


class TestResolveHandle:
    @respx.mock
    def test_returns_did(self):
        route = respx.get(RESOLVE_URL).mock(
            return_value=httpx.Response(200, json={"did": "did:plc:xyz"})
        )

        with BlueskyClient() as client:
            did = client.resolve_handle("alice.test")

        assert did == "did:plc:xyz"
        assert route.calls.last.request.url.params["handle"] == "alice.test"

    @respx.mock
    def test_non_200_raises_with_status(self):
        respx.get(RESOLVE_URL).mock(
            return_value=httpx.Response(400, json={"error": "InvalidRequest"})
        )

        with BlueskyClient() as client:
            with pytest.raises(ResolutionError, match="alice.test") as exc_info:
                client.resolve_handle("alice.test")

        assert exc_info.value.status_code == 400

    @respx.mock
    def test_missing_did_raises(self):
        respx.get(RESOLVE_URL).mock(return_value=httpx.Response(200, json={}))

        with BlueskyClient() as client:
            with pytest.raises(ResolutionError, match="no DID"):
                client.resolve_handle("alice.test")

    @respx.mock
    def test_network_error_raises(self):
        respx.get(RESOLVE_URL).mock(side_effect=httpx.ConnectError("refused"))

        with BlueskyClient() as client:
            with pytest.raises(ResolutionError) as exc_info:
                client.resolve_handle("alice.test")

        assert exc_info.value.status_code is None


class TestFetchThreadPage:
    @respx.mock
    def test_requests_maximum_depth(self, thread_response):
        route = respx.get(THREAD_URL).mock(
            return_value=httpx.Response(200, json=thread_response)
        )

        with BlueskyClient() as client:
            root = client.fetch_thread_page(ROOT_URI)

        params = route.calls.last.request.url.params
        assert params["uri"] == ROOT_URI
        assert params["depth"] == "1000"
        assert params["parentHeight"] == "1000"
        assert isinstance(root, ThreadPost)
        assert root.post.uri == ROOT_URI
        assert len(root.replies) == 3

    @respx.mock
    def test_non_200_raises_with_status(self):
        respx.get(THREAD_URL).mock(
            return_value=httpx.Response(500, json={"error": "InternalServerError"})
        )

        with BlueskyClient() as client:
            with pytest.raises(FetchError, match="500") as exc_info:
                client.fetch_thread_page(ROOT_URI)

        assert exc_info.value.status_code == 500

    @respx.mock
    def test_missing_thread_raises_protocol_error(self):
        respx.get(THREAD_URL).mock(
            return_value=httpx.Response(200, json={"threadgate": None})
        )

        with BlueskyClient() as client:
            with pytest.raises(ProtocolError, match="no thread field"):
                client.fetch_thread_page(ROOT_URI)

    @respx.mock
    def test_non_json_body_raises_protocol_error(self):
        respx.get(THREAD_URL).mock(
            return_value=httpx.Response(200, text="<html>maintenance</html>")
        )

        with BlueskyClient() as client:
            with pytest.raises(ProtocolError):
                client.fetch_thread_page(ROOT_URI)

    @respx.mock
    def test_timeout_raises_fetch_error(self):
        respx.get(THREAD_URL).mock(side_effect=httpx.ReadTimeout("slow"))

        with BlueskyClient() as client:
            with pytest.raises(FetchError) as exc_info:
                client.fetch_thread_page(ROOT_URI)

        assert exc_info.value.status_code is None

    @respx.mock
    def test_custom_base_url(self, thread_response):
        custom = "https://appview.example/xrpc"
        route = respx.get(f"{custom}/app.bsky.feed.getPostThread").mock(
            return_value=httpx.Response(200, json=thread_response)
        )

        with BlueskyClient(base_url=custom + "/") as client:
            client.fetch_thread_page(ROOT_URI)

        assert route.call_count == 1

    @respx.mock
    def test_counts_requests(self, thread_response):
        respx.get(THREAD_URL).mock(
            return_value=httpx.Response(200, json=thread_response)
        )

        with BlueskyClient() as client:
            client.fetch_thread_page(ROOT_URI)
            client.fetch_thread_page(ROOT_URI)

        assert client.request_count == 2


class TestTotalTimeout:
    @respx.mock
    @patch("bsky_archive.client.time.monotonic")
    def test_request_after_budget_raises(self, mock_monotonic):
        route = respx.get(THREAD_URL).mock(return_value=httpx.Response(200))
        mock_monotonic.side_effect = chain([0.0], repeat(61.0))

        with BlueskyClient(total_timeout=60) as client:
            with pytest.raises(ArchiveTimeoutError, match="60s"):
                client.fetch_thread_page(ROOT_URI)

        assert route.call_count == 0

    @respx.mock
    @patch("bsky_archive.client.time.monotonic")
    def test_request_within_budget_proceeds(self, mock_monotonic, thread_response):
        respx.get(THREAD_URL).mock(
            return_value=httpx.Response(200, json=thread_response)
        )
        mock_monotonic.side_effect = chain([0.0], repeat(5.0))

        with BlueskyClient(total_timeout=60) as client:
            root = client.fetch_thread_page(ROOT_URI)

        assert isinstance(root, ThreadPost)


class TestDownloadImage:
    @respx.mock
    def test_returns_bytes(self):
        url = "https://cdn.bsky.app/img/feed_fullsize/plain/did:plc:xyz/cat@jpeg"
        respx.get(url).mock(return_value=httpx.Response(200, content=b"\xff\xd8"))

        with BlueskyClient() as client:
            assert client.download_image(url) == b"\xff\xd8"

    @respx.mock
    def test_http_error_raises(self):
        url = "https://cdn.bsky.app/img/feed_fullsize/plain/did:plc:xyz/cat@jpeg"
        respx.get(url).mock(return_value=httpx.Response(404))

        with BlueskyClient() as client:
            with pytest.raises(httpx.HTTPStatusError):
                client.download_image(url)
