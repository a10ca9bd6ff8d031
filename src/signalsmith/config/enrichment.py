"""Resolution and enrichment thresholds loaded from the environment."""

from __future__ import annotations

import os

from signalsmith.domain.model import MatchConfidence
from signalsmith.domain.settings import (
    DEFAULT_BATCH_DELAY_SECONDS,
    DEFAULT_BATCH_SIZE,
    DEFAULT_CONTENT_HASH_SCAN_LIMIT,
    DEFAULT_CONTENT_HASH_WINDOW_DAYS,
    DEFAULT_DATE_WINDOW_DAYS,
    DEFAULT_HIGH_VALUE_SCORE,
    DEFAULT_MIN_QUALITY_SCORE,
    DEFAULT_SIMILARITY_THRESHOLD,
    ResolutionSettings,
)

from .env import env_float, env_int
from .errors import ConfigurationError


def get_enrichment_settings() -> ResolutionSettings:
    similarity = env_float("SIGNALSMITH_SIMILARITY_THRESHOLD", DEFAULT_SIMILARITY_THRESHOLD)
    if not 0.0 < similarity <= 1.0:
        raise ConfigurationError("SIGNALSMITH_SIMILARITY_THRESHOLD must be in (0, 1]")

    confidence = os.getenv("SIGNALSMITH_MIN_LINK_CONFIDENCE", MatchConfidence.LOW.value)
    try:
        min_confidence = MatchConfidence(confidence.strip().lower())
    except ValueError as exc:
        raise ConfigurationError(f"Unknown match confidence: {confidence!r}") from exc
    if min_confidence is MatchConfidence.NONE:
        raise ConfigurationError("SIGNALSMITH_MIN_LINK_CONFIDENCE cannot be 'none'")

    hash_types = os.getenv("SIGNALSMITH_CONTENT_HASH_TYPES", "ma-event")
    filing_types = frozenset(
        part.strip().lower() for part in hash_types.split(",") if part.strip()
    )

    return ResolutionSettings(
        similarity_threshold=similarity,
        date_window_days=env_int("SIGNALSMITH_DATE_WINDOW_DAYS", DEFAULT_DATE_WINDOW_DAYS),
        content_hash_window_days=env_int(
            "SIGNALSMITH_CONTENT_HASH_WINDOW_DAYS", DEFAULT_CONTENT_HASH_WINDOW_DAYS
        ),
        content_hash_scan_limit=env_int(
            "SIGNALSMITH_CONTENT_HASH_SCAN_LIMIT", DEFAULT_CONTENT_HASH_SCAN_LIMIT
        ),
        content_hash_filing_types=filing_types,
        min_quality_score=env_int("SIGNALSMITH_MIN_QUALITY_SCORE", DEFAULT_MIN_QUALITY_SCORE),
        high_value_score=env_int("SIGNALSMITH_HIGH_VALUE_SCORE", DEFAULT_HIGH_VALUE_SCORE),
        discovery_cxo_limit=env_int("SIGNALSMITH_DISCOVERY_CXO_LIMIT", 2),
        discovery_vp_limit=env_int("SIGNALSMITH_DISCOVERY_VP_LIMIT", 2),
        min_link_confidence=min_confidence.value,
        batch_delay_seconds=env_float(
            "SIGNALSMITH_BATCH_DELAY_SECONDS", DEFAULT_BATCH_DELAY_SECONDS
        ),
        default_batch_size=env_int("SIGNALSMITH_BATCH_SIZE", DEFAULT_BATCH_SIZE),
    )
