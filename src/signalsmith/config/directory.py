"""People directory (ContactOut) configuration values."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Final

from .env import env_float, env_int, require_env_var
from .http_resilience import CacheConfig, RateLimit, ResilienceConfig, RetryPolicy

DEFAULT_DIRECTORY_BASE_URL: Final[str] = "https://api.contactout.com/v1"
# lookups are paid; cached responses are reused for a month
DIRECTORY_CACHE_TTL_SECONDS: Final[float] = 30 * 24 * 60 * 60


def _has_profiles(payload: object) -> bool:
    if not isinstance(payload, dict):
        return False
    return bool(payload.get("profiles"))  # pyright: ignore[reportUnknownMemberType]


@dataclass(frozen=True, slots=True)
class DirectoryConfig:
    api_key: str
    resilience: ResilienceConfig
    max_name_variations: int = 3
    max_company_variations: int = 5


def get_directory_config() -> DirectoryConfig:
    api_key = require_env_var("DIRECTORY_API_KEY")
    base_url = os.getenv("DIRECTORY_BASE_URL") or DEFAULT_DIRECTORY_BASE_URL

    resilience = ResilienceConfig(
        name="contactout",
        base_url=base_url,
        timeout_seconds=env_float("DIRECTORY_TIMEOUT_SECONDS", 30.0),
        ratelimit=RateLimit(
            max_calls=env_int("DIRECTORY_RATE_LIMIT_CALLS", 10),
            per_seconds=env_float("DIRECTORY_RATE_LIMIT_SECONDS", 1.0),
        ),
        retry=RetryPolicy(total=3),
        cache=CacheConfig(
            default_ttl_seconds=DIRECTORY_CACHE_TTL_SECONDS,
            should_cache=_has_profiles,
        ),
        default_headers={
            "token": api_key,
            "Accept": "application/json",
            "Content-Type": "application/json",
        },
    )
    return DirectoryConfig(api_key=api_key, resilience=resilience)
