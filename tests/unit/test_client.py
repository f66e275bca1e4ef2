"""Unit tests for the Lemmy HTTP client."""

import httpx
import pytest
from tenacity import wait_none

from lemmy_service.collectors.lemmy.client import LemmyHttp
from lemmy_service.core.exceptions import (
    PermanentError,
    RetryableError,
    UpstreamAuthError,
    UpstreamError,
    UpstreamNotFoundError,
    UpstreamRateLimitError,
    UpstreamTimeoutError,
    UpstreamUnavailableError,
)
from tests.factories import community


class Recorder:
    """MockTransport handler replaying canned responses in order."""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        response = self.responses.pop(0) if len(self.responses) > 1 else self.responses[0]
        if isinstance(response, Exception):
            raise response
        return response


def _client(handler: Recorder, max_retries: int = 3) -> LemmyHttp:
    return LemmyHttp(
        "https://lemmy.world/",
        max_retries=max_retries,
        wait=wait_none(),
        transport=httpx.MockTransport(handler),
    )


class TestRequests:
    """Tests for request building and response parsing."""

    @pytest.mark.asyncio
    async def test_get_community(self):
        """Requests go to /api/v3 and parse into views."""
        handler = Recorder(
            httpx.Response(200, json={"community_view": {"community": community(), "counts": {"subscribers": 5}}})
        )

        async with _client(handler) as client:
            response = await client.get_community(name="technology@lemmy.world")

        request = handler.requests[0]
        assert request.url.path == "/api/v3/community"
        assert request.url.params["name"] == "technology@lemmy.world"
        assert "id" not in request.url.params
        assert response.community_view.community.name == "technology"
        assert response.community_view.counts.subscribers == 5

    @pytest.mark.asyncio
    async def test_none_params_dropped(self):
        """Unset parameters are not sent."""
        handler = Recorder(httpx.Response(200, json={"posts": []}))

        async with _client(handler) as client:
            response = await client.get_posts(sort="TopWeek", page=2, limit=10)

        params = handler.requests[0].url.params
        assert dict(params) == {"type_": "All", "sort": "TopWeek", "page": "2", "limit": "10"}
        assert response.posts == []

    @pytest.mark.asyncio
    async def test_unknown_fields_ignored(self):
        """Fields newer instances add do not break parsing."""
        handler = Recorder(httpx.Response(200, json={"comments": [], "next_page": "abc"}))

        async with _client(handler) as client:
            response = await client.get_comments(post_id=1)

        assert response.comments == []

    def test_instance(self):
        assert LemmyHttp("https://lemmy.ml").instance == "lemmy.ml"


class TestErrors:
    """Tests for status mapping and retries."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "response,error",
        [
            (httpx.Response(404, json={"error": "not_found"}), UpstreamNotFoundError),
            (httpx.Response(400, json={"error": "couldnt_find_community"}), UpstreamNotFoundError),
            (httpx.Response(401, json={"error": "not_logged_in"}), UpstreamAuthError),
            (httpx.Response(403, text="forbidden"), UpstreamAuthError),
            (httpx.Response(400, json={"error": "invalid_query"}), UpstreamError),
        ],
    )
    async def test_permanent_errors_not_retried(self, response, error):
        """Client errors fail on the first attempt."""
        handler = Recorder(response)

        async with _client(handler) as client:
            with pytest.raises(error) as exc_info:
                await client.get_community(name="nope")

        assert len(handler.requests) == 1
        assert exc_info.value.instance == "lemmy.world"
        assert not isinstance(exc_info.value, RetryableError)

    @pytest.mark.asyncio
    async def test_not_found_is_permanent(self):
        handler = Recorder(httpx.Response(400, json={"error": "couldnt_find_post"}))

        async with _client(handler) as client:
            with pytest.raises(PermanentError):
                await client.get_post(id=1)

    @pytest.mark.asyncio
    async def test_server_error_retried_then_succeeds(self):
        """A transient 5xx is retried."""
        handler = Recorder(
            httpx.Response(502, text="bad gateway"),
            httpx.Response(200, json={"posts": []}),
        )

        async with _client(handler) as client:
            response = await client.get_posts()

        assert len(handler.requests) == 2
        assert response.posts == []

    @pytest.mark.asyncio
    async def test_rate_limit_exhausts_retries(self):
        """Rate limiting is retried up to max_retries, then raised."""
        handler = Recorder(httpx.Response(400, json={"error": "rate_limit_error"}))

        async with _client(handler, max_retries=3) as client:
            with pytest.raises(UpstreamRateLimitError):
                await client.search(q="x")

        assert len(handler.requests) == 3

    @pytest.mark.asyncio
    async def test_429(self):
        handler = Recorder(httpx.Response(429))

        async with _client(handler, max_retries=1) as client:
            with pytest.raises(UpstreamRateLimitError):
                await client.search(q="x")

    @pytest.mark.asyncio
    async def test_timeout(self):
        """Timeouts are mapped and retried."""
        handler = Recorder(httpx.ReadTimeout("timed out"))

        async with _client(handler, max_retries=2) as client:
            with pytest.raises(UpstreamTimeoutError):
                await client.get_post(id=1)

        assert len(handler.requests) == 2

    @pytest.mark.asyncio
    async def test_connection_error(self):
        handler = Recorder(httpx.ConnectError("refused"))

        async with _client(handler, max_retries=1) as client:
            with pytest.raises(UpstreamUnavailableError):
                await client.get_post(id=1)

    @pytest.mark.asyncio
    async def test_empty_body_is_malformed(self):
        """A 2xx without the expected payload is an upstream error, not a parsing crash."""
        handler = Recorder(httpx.Response(200))

        async with _client(handler) as client:
            with pytest.raises(UpstreamError) as exc_info:
                await client.get_post(id=1)

        assert "Malformed response" in str(exc_info.value)
        assert not isinstance(exc_info.value, RetryableError)
        assert len(handler.requests) == 1

    @pytest.mark.asyncio
    async def test_non_json_body_is_malformed(self):
        handler = Recorder(httpx.Response(200, text="<html>maintenance</html>"))

        async with _client(handler) as client:
            with pytest.raises(UpstreamError, match="Malformed response"):
                await client.get_comments(post_id=1)

    @pytest.mark.asyncio
    async def test_retry_budget_is_per_client(self):
        """Each client retries up to its own max_retries."""
        first = Recorder(httpx.Response(503))
        second = Recorder(httpx.Response(503))

        async with _client(first, max_retries=2) as client:
            with pytest.raises(UpstreamUnavailableError):
                await client.get_posts()
        async with _client(second, max_retries=4) as client:
            with pytest.raises(UpstreamUnavailableError):
                await client.get_posts()

        assert len(first.requests) == 2
        assert len(second.requests) == 4
