"""Tunable thresholds for resolution and enrichment."""

from __future__ import annotations

from dataclasses import dataclass, field

DEFAULT_SIMILARITY_THRESHOLD = 0.8
DEFAULT_DATE_WINDOW_DAYS = 7
DEFAULT_CONTENT_HASH_WINDOW_DAYS = 30
DEFAULT_CONTENT_HASH_SCAN_LIMIT = 100
DEFAULT_MIN_QUALITY_SCORE = 40
DEFAULT_HIGH_VALUE_SCORE = 70
DEFAULT_BATCH_DELAY_SECONDS = 0.2
DEFAULT_BATCH_SIZE = 20


@dataclass(frozen=True, slots=True, kw_only=True)
class ResolutionSettings:
    """Thresholds used by deduplication, matching and enrichment.

    The similarity threshold and both windows are heuristics without a measured
    false-positive rate; keep them configurable rather than treating them as fixed.
    """

    similarity_threshold: float = DEFAULT_SIMILARITY_THRESHOLD
    date_window_days: int = DEFAULT_DATE_WINDOW_DAYS
    content_hash_window_days: int = DEFAULT_CONTENT_HASH_WINDOW_DAYS
    content_hash_scan_limit: int = DEFAULT_CONTENT_HASH_SCAN_LIMIT
    content_hash_filing_types: frozenset[str] = field(
        default_factory=lambda: frozenset({"ma-event"})
    )
    min_quality_score: int = DEFAULT_MIN_QUALITY_SCORE
    high_value_score: int = DEFAULT_HIGH_VALUE_SCORE
    discovery_cxo_limit: int = 2
    discovery_vp_limit: int = 2
    min_link_confidence: str = "low"
    batch_delay_seconds: float = DEFAULT_BATCH_DELAY_SECONDS
    default_batch_size: int = DEFAULT_BATCH_SIZE
