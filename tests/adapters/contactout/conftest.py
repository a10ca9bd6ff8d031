"""Shared fixtures for ContactOut adapter tests."""

from __future__ import annotations

import json
from collections.abc import Callable
from pathlib import Path

import httpx
import pytest
from aiolimiter import AsyncLimiter

from signalsmith.adapters.http_resilience import ResilientClient
from signalsmith.config.directory import DirectoryConfig
from signalsmith.config.http_resilience import ResilienceConfig, RetryPolicy

ContactOutPayload = dict[str, object]
FIXTURES = Path("tests/data/contactout")
BASE_URL = "https://contactout.test/v1"

Handler = Callable[[httpx.Request], httpx.Response]
ClientFactoryBuilder = Callable[[Handler], Callable[..., ResilientClient]]


def _load_fixture(name: str) -> ContactOutPayload:
    return json.loads((FIXTURES / name).read_text())


def _make_client_factory(handler: Handler) -> Callable[..., ResilientClient]:
    async def async_handler(request: httpx.Request) -> httpx.Response:
        return handler(request)

    def factory(
        resilience: ResilienceConfig, *, limiter: AsyncLimiter | None = None
    ) -> ResilientClient:
        return ResilientClient(
            resilience, limiter=limiter, transport=httpx.MockTransport(async_handler)
        )

    return factory


@pytest.fixture
def mock_client_factory() -> ClientFactoryBuilder:
    """Build a client factory that answers every request with ``handler``."""

    return _make_client_factory


@pytest.fixture
def search_payload() -> ContactOutPayload:
    return _load_fixture("search_people.json")


@pytest.fixture
def directory_config() -> DirectoryConfig:
    return DirectoryConfig(
        api_key="test-token",
        resilience=ResilienceConfig(
            name="contactout-test",
            base_url=BASE_URL,
            retry=RetryPolicy(total=0),
            cache=None,
            default_headers={"token": "test-token"},
        ),
    )
