"""HTTP client for the ContactOut people-search API."""

from __future__ import annotations

import asyncio
from logging import getLogger
from typing import TYPE_CHECKING

import httpx
from pydantic import ValidationError

from signalsmith.adapters.http_resilience import ResilientClient, build_limiter

from .schema import ContactOutSearchResponse

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence

    from aiolimiter import AsyncLimiter

    from signalsmith.config.directory import DirectoryConfig
    from signalsmith.config.http_resilience import ResilienceConfig

log = getLogger(__name__)

SEARCH_PATH = "/people/search"


class ContactOutAPIError(RuntimeError):
    """Raised when ContactOut fails or returns an unexpected payload."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class ContactOutClient:
    """Low-level client for ``POST /people/search``.

    Every request of this client shares one rate limiter, even though each call runs
    in its own event loop.
    """

    def __init__(
        self,
        *,
        config: DirectoryConfig,
        client_factory: Callable[..., ResilientClient] | None = None,
    ) -> None:
        self._config = config
        self._resilience = config.resilience
        self._client_factory = client_factory or ResilientClient
        self._limiter: AsyncLimiter | None = build_limiter(self._resilience.ratelimit)

    def search_people(
        self,
        *,
        name: str | None = None,
        companies: Sequence[str] = (),
        seniority: Sequence[str] = (),
        reveal_info: bool = True,
        page: int = 1,
    ) -> ContactOutSearchResponse:
        body: dict[str, object] = {"reveal_info": reveal_info, "page": page}
        if name:
            body["name"] = name
        if companies:
            body["company"] = list(companies)
        if seniority:
            body["seniority"] = list(seniority)
        return asyncio.run(self._search_async(body))

    async def _search_async(self, body: dict[str, object]) -> ContactOutSearchResponse:
        async with self._client_factory(self._resilience, limiter=self._limiter) as client:
            return await self._perform_request(client=client, body=body)

    async def _perform_request(
        self,
        *,
        client: ResilientClient,
        body: dict[str, object],
    ) -> ContactOutSearchResponse:
        try:
            response = await client.post_json(SEARCH_PATH, body)
        except httpx.HTTPError as exc:
            raise ContactOutAPIError(f"ContactOut request failed: {exc}") from exc

        if response.status_code == httpx.codes.NOT_FOUND:
            log.debug("ContactOut: no match (404) for %s", body.get("name") or body.get("company"))
            return ContactOutSearchResponse()
        try:
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise ContactOutAPIError(
                f"ContactOut API error: {response.status_code}",
                status_code=response.status_code,
            ) from exc

        try:
            payload = response.json()
            if not isinstance(payload, dict):
                raise ContactOutAPIError(
                    "Unexpected ContactOut response payload",
                    status_code=response.status_code,
                )
            return ContactOutSearchResponse.model_validate(payload)
        except (ValueError, ValidationError) as exc:
            raise ContactOutAPIError(
                f"Unreadable ContactOut response: {exc}",
                status_code=response.status_code,
            ) from exc
