"""Async client for the Lemmy HTTP API (v3).

One ``LemmyHttp`` is opened per call, against the instance that call resolved
to, and closed when the call finishes.

API Reference: https://join-lemmy.org/api/
"""

from typing import Any, Optional, TypeVar

import httpx
import structlog
from pydantic import BaseModel, ValidationError
from tenacity import (
    RetryCallState,
    retry,
    retry_if_exception_type,
    wait_exponential,
)
from tenacity.wait import wait_base

from lemmy_service.collectors.lemmy.views import (
    GetCommentsResponse,
    GetCommunityResponse,
    GetPersonDetailsResponse,
    GetPostResponse,
    GetPostsResponse,
    SearchResponse,
)
from lemmy_service.core.exceptions import (
    RetryableError,
    UpstreamAuthError,
    UpstreamError,
    UpstreamNotFoundError,
    UpstreamRateLimitError,
    UpstreamTimeoutError,
    UpstreamUnavailableError,
)

logger = structlog.get_logger(__name__)

ResponseT = TypeVar("ResponseT", bound=BaseModel)


# =============================================================================
# Constants
# =============================================================================

API_PATH = "/api/v3"

# Lemmy reports most failures as a 400 with an error key
NOT_FOUND_ERRORS = ("couldnt_find", "not_found")
RATE_LIMIT_ERRORS = ("rate_limit_error",)


# =============================================================================
# Retry policy (read from the client the decorated method is bound to)
# =============================================================================


def _stop_after_max_retries(retry_state: RetryCallState) -> bool:
    client = retry_state.args[0]
    return retry_state.attempt_number >= client._max_retries


def _client_wait(retry_state: RetryCallState) -> float:
    client = retry_state.args[0]
    return client._wait(retry_state)


def _log_retry(retry_state: RetryCallState) -> None:
    client, endpoint = retry_state.args[0], retry_state.args[1]
    logger.warning(
        "lemmy_request_retry",
        instance=client.instance,
        endpoint=endpoint,
        attempt=retry_state.attempt_number,
        error=str(retry_state.outcome.exception()),
    )


class LemmyHttp:
    """Async Lemmy API client with retries on transient failures.

    Example:
        async with LemmyHttp("https://lemmy.world") as client:
            response = await client.get_posts(community_name="technology", limit=10)
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 30.0,
        max_retries: int = 3,
        *,
        wait: Optional[wait_base] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """Initialize the client.

        Args:
            base_url: Instance URL, e.g. ``https://lemmy.world``.
            timeout: Request timeout in seconds.
            max_retries: Attempts for rate limited, timed out or 5xx requests.
            wait: Backoff between attempts.
            transport: Optional httpx transport (used by tests).
        """
        self.base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._max_retries = max_retries
        self._wait = wait or wait_exponential(multiplier=1, min=2, max=10)
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    @property
    def instance(self) -> str:
        return httpx.URL(self.base_url).host

    async def __aenter__(self) -> "LemmyHttp":
        """Enter async context manager."""
        await self._ensure_client()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Exit async context manager."""
        if self._client:
            await self._client.aclose()
            self._client = None

    async def _ensure_client(self) -> httpx.AsyncClient:
        """Ensure HTTP client is initialized."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=f"{self.base_url}{API_PATH}",
                timeout=httpx.Timeout(self._timeout),
                headers={"Accept": "application/json"},
                transport=self._transport,
            )
        return self._client

    async def _request(
        self,
        endpoint: str,
        params: dict[str, Any],
        response_model: type[ResponseT],
    ) -> ResponseT:
        """GET an endpoint and parse the answer into ``response_model``.

        Raises:
            UpstreamRateLimitError: When rate limited after all attempts.
            UpstreamTimeoutError: When the request keeps timing out.
            UpstreamUnavailableError: When the instance keeps failing.
            UpstreamAuthError: When the instance refuses the request.
            UpstreamNotFoundError: When the entity does not exist.
            UpstreamError: On other API errors or a malformed response.
        """
        query = {key: value for key, value in params.items() if value is not None}
        data = await self._send(endpoint, query)

        try:
            return response_model.model_validate(data)
        except ValidationError as e:
            logger.error(
                "lemmy_malformed_response",
                instance=self.instance,
                endpoint=endpoint,
                errors=e.error_count(),
            )
            raise UpstreamError(
                self.instance,
                "Malformed response",
                {"endpoint": endpoint, "errors": e.error_count()},
            ) from e

    @retry(
        retry=retry_if_exception_type(RetryableError),
        stop=_stop_after_max_retries,
        wait=_client_wait,
        reraise=True,
        before_sleep=_log_retry,
    )
    async def _send(self, endpoint: str, query: dict[str, Any]) -> Any:
        client = await self._ensure_client()
        instance = self.instance

        try:
            response = await client.get(endpoint, params=query)
        except httpx.TimeoutException as e:
            logger.error("lemmy_timeout", instance=instance, endpoint=endpoint, error=str(e))
            raise UpstreamTimeoutError(
                instance,
                f"Request timeout: {e}",
                {"endpoint": endpoint},
            )
        except httpx.RequestError as e:
            logger.error("lemmy_request_error", instance=instance, endpoint=endpoint, error=str(e))
            raise UpstreamUnavailableError(
                instance,
                f"Request failed: {e}",
                {"endpoint": endpoint, "original_error": str(e)},
            )

        if response.status_code < 400:
            if not response.content:
                return {}
            try:
                return response.json()
            except ValueError:
                raise UpstreamError(
                    instance,
                    "Malformed response",
                    {"endpoint": endpoint, "status_code": response.status_code},
                )

        error = _error_key(response)
        details = {"endpoint": endpoint, "status_code": response.status_code, "error": error}

        if response.status_code == 429 or error in RATE_LIMIT_ERRORS:
            logger.warning("lemmy_rate_limited", instance=instance, endpoint=endpoint)
            raise UpstreamRateLimitError(instance, "Rate limited", details)
        if response.status_code in (401, 403):
            raise UpstreamAuthError(instance, f"Request refused: {error}", details)
        if response.status_code == 404 or any(marker in error for marker in NOT_FOUND_ERRORS):
            raise UpstreamNotFoundError(instance, f"Not found: {error}", details)
        if response.status_code >= 500:
            logger.error("lemmy_server_error", instance=instance, **details)
            raise UpstreamUnavailableError(instance, f"Server error {response.status_code}", details)

        logger.error("lemmy_api_error", instance=instance, **details)
        raise UpstreamError(instance, f"API error {response.status_code}: {error}", details)

    # -------------------------------------------------------------------------
    # Public API Methods
    # -------------------------------------------------------------------------

    async def get_community(self, *, name: str) -> GetCommunityResponse:
        return await self._request("/community", {"name": name}, GetCommunityResponse)

    async def get_posts(
        self,
        *,
        community_name: Optional[str] = None,
        type_: str = "All",
        sort: Optional[str] = None,
        page: Optional[int] = None,
        limit: Optional[int] = None,
    ) -> GetPostsResponse:
        return await self._request(
            "/post/list",
            {"community_name": community_name, "type_": type_, "sort": sort, "page": page, "limit": limit},
            GetPostsResponse,
        )

    async def get_post(self, *, id: int) -> GetPostResponse:
        return await self._request("/post", {"id": id}, GetPostResponse)

    async def get_comments(
        self,
        *,
        post_id: Optional[int] = None,
        parent_id: Optional[int] = None,
        type_: str = "All",
        max_depth: Optional[int] = None,
        sort: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> GetCommentsResponse:
        return await self._request(
            "/comment/list",
            {
                "post_id": post_id,
                "parent_id": parent_id,
                "type_": type_,
                "max_depth": max_depth,
                "sort": sort,
                "limit": limit,
            },
            GetCommentsResponse,
        )

    async def get_person_details(
        self,
        *,
        username: str,
        sort: Optional[str] = None,
        page: Optional[int] = None,
        limit: Optional[int] = None,
    ) -> GetPersonDetailsResponse:
        return await self._request(
            "/user",
            {"username": username, "sort": sort, "page": page, "limit": limit},
            GetPersonDetailsResponse,
        )

    async def search(
        self,
        *,
        q: str,
        type_: str = "All",
        listing_type: Optional[str] = None,
        community_name: Optional[str] = None,
        sort: Optional[str] = None,
        page: Optional[int] = None,
        limit: Optional[int] = None,
    ) -> SearchResponse:
        return await self._request(
            "/search",
            {
                "q": q,
                "type_": type_,
                "listing_type": listing_type,
                "community_name": community_name,
                "sort": sort,
                "page": page,
                "limit": limit,
            },
            SearchResponse,
        )


def _error_key(response: httpx.Response) -> str:
    try:
        payload = response.json()
    except ValueError:
        return response.text[:200]
    if isinstance(payload, dict):
        return str(payload.get("error", ""))
    return ""
