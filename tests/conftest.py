"""
Pytest Configuration and Shared Fixtures.

This module provides common fixtures for all tests:

- settings: Settings with lemmy.world as the default instance
- upstream: Fake Lemmy connection factory recording every call
- service: LemmyService wired to the fake upstream
"""

import inspect
from typing import Any, Callable, Union

import pytest

from lemmy_service.collectors.lemmy.collector import LemmyService
from lemmy_service.collectors.lemmy.connection import InputContext
from lemmy_service.config.settings import Settings
from tests.factories import make_settings

Response = Union[Any, Callable[[dict], Any]]


class FakeLemmyClient:
    """Stands in for LemmyHttp; answers from canned responses.

    A response may be a value, an exception to raise, or a callable taking
    the request kwargs (sync or async).
    """

    def __init__(self, upstream: "FakeUpstream", context: InputContext):
        self.upstream = upstream
        self.context = context
        self.closed = False

    async def __aenter__(self) -> "FakeLemmyClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        self.closed = True

    async def _respond(self, method: str, kwargs: dict) -> Any:
        self.upstream.calls.append((method, self.context.connection_instance, kwargs))
        response = self.upstream.responses[method]
        if isinstance(response, Exception):
            raise response
        if callable(response):
            response = response(kwargs)
        if inspect.isawaitable(response):
            response = await response
        return response

    async def get_community(self, **kwargs):
        return await self._respond("get_community", kwargs)

    async def get_posts(self, **kwargs):
        return await self._respond("get_posts", kwargs)

    async def get_post(self, **kwargs):
        return await self._respond("get_post", kwargs)

    async def get_comments(self, **kwargs):
        return await self._respond("get_comments", kwargs)

    async def get_person_details(self, **kwargs):
        return await self._respond("get_person_details", kwargs)

    async def search(self, **kwargs):
        return await self._respond("search", kwargs)


class FakeUpstream:
    """Connection factory handing out FakeLemmyClient instances."""

    def __init__(self):
        self.responses: dict[str, Response] = {}
        self.calls: list[tuple[str, str, dict]] = []
        self.clients: list[FakeLemmyClient] = []

    def __call__(self, context: InputContext) -> FakeLemmyClient:
        client = FakeLemmyClient(self, context)
        self.clients.append(client)
        return client

    def calls_to(self, method: str) -> list[dict]:
        return [kwargs for name, _, kwargs in self.calls if name == method]


@pytest.fixture
def settings() -> Settings:
    """Settings with lemmy.world as the default instance."""
    return make_settings()


@pytest.fixture
def upstream() -> FakeUpstream:
    """Fresh fake upstream for each test."""
    return FakeUpstream()


@pytest.fixture
def service(settings, upstream) -> LemmyService:
    """LemmyService talking to the fake upstream."""
    return LemmyService(settings, client_factory=upstream)
