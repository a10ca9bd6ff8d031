"""Quality scoring and logical validation of candidate signals.

Both run before persistence so that noisy signals never reach deduplication or the
paid enrichment path.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import TYPE_CHECKING

from signalsmith.domain.model import KNOWN_FILING_TYPES, QualityTier, Signal, as_utc, utcnow
from signalsmith.domain.normalization import normalize_company_name
from signalsmith.domain.settings import DEFAULT_HIGH_VALUE_SCORE, DEFAULT_MIN_QUALITY_SCORE

if TYPE_CHECKING:
    from collections.abc import Iterable

log = logging.getLogger(__name__)

POINTS_SUBJECT_NAME = 20
POINTS_FILING_DATE = 20
POINTS_LOCATION = 10
POINTS_SOURCE_LINK = 15
POINTS_DEAL_VALUE = 10
POINTS_KEY_PEOPLE = 10
POINTS_INSIGHTS = 15

HIGH_TIER_SCORE = 70
MEDIUM_TIER_SCORE = 40
MIN_INSIGHT_LENGTH = 50
MIN_SUBJECT_LENGTH = 3
STALE_AFTER = timedelta(days=3650)

PLACEHOLDER_NAMES = frozenset({"unknown", "n/a", "na", "tbd", "test", "example", "none"})
UNDISCLOSED_VALUES = frozenset({"undisclosed", "unknown", "n/a", "tbd", "not disclosed"})

_AMOUNT_RE = re.compile(
    r"(?P<number>\d+(?:[.,]\d+)*)\s*(?P<unit>thousand|million|billion|trillion|k|m|mm|bn|b|t)?\b",
    re.IGNORECASE,
)
# multipliers expressed in millions
_UNIT_MILLIONS = {
    "k": 0.001,
    "thousand": 0.001,
    "m": 1.0,
    "mm": 1.0,
    "million": 1.0,
    "b": 1_000.0,
    "bn": 1_000.0,
    "billion": 1_000.0,
    "t": 1_000_000.0,
    "trillion": 1_000_000.0,
}
LOW_DEAL_VALUE_MILLIONS = 0.01
HIGH_DEAL_VALUE_MILLIONS = 1_000_000.0


@dataclass(slots=True)
class QualityBreakdown:
    has_subject_name: bool = False
    has_valid_date: bool = False
    has_location: bool = False
    has_source_link: bool = False
    has_deal_value: bool = False
    has_key_people: bool = False
    has_detailed_insights: bool = False


@dataclass(slots=True, frozen=True)
class QualityScore:
    total: int
    breakdown: QualityBreakdown
    tier: QualityTier


@dataclass(slots=True, frozen=True)
class ValidationResult:
    is_valid: bool
    errors: tuple[str, ...] = ()
    warnings: tuple[str, ...] = ()


@dataclass(slots=True)
class FilterReport:
    accepted: list[Signal] = field(default_factory=list[Signal])
    rejected: list[tuple[Signal, tuple[str, ...]]] = field(
        default_factory=list[tuple[Signal, tuple[str, ...]]]
    )


@dataclass(slots=True, frozen=True)
class QualityStats:
    total: int
    high: int
    medium: int
    low: int
    average_score: float
    valid: int
    invalid: int


def tier_for(total: int) -> QualityTier:
    if total >= HIGH_TIER_SCORE:
        return QualityTier.HIGH
    if total >= MEDIUM_TIER_SCORE:
        return QualityTier.MEDIUM
    return QualityTier.LOW


def _has_concrete_value(value: str | None) -> bool:
    if not value or not value.strip():
        return False
    return value.strip().lower() not in UNDISCLOSED_VALUES


def parse_deal_value_millions(value: str | None) -> float | None:
    """Parse "$50M", "2.5 billion", "$750k" into millions. Bare numbers are millions."""

    if not value:
        return None
    match = _AMOUNT_RE.search(value.replace(",", ""))
    if match is None:
        return None
    number = float(match.group("number"))
    unit = (match.group("unit") or "m").lower()
    return number * _UNIT_MILLIONS[unit]


def score(signal: Signal, *, now: datetime | None = None) -> QualityScore:
    """Sum quality points for ``signal``; the total is always within [0, 100]."""

    current = as_utc(now) or utcnow()
    filing_date = as_utc(signal.filing_date)
    breakdown = QualityBreakdown(
        has_subject_name=len((signal.subject_name or "").strip()) >= MIN_SUBJECT_LENGTH,
        has_valid_date=filing_date is not None and filing_date <= current,
        has_location=bool(signal.location and signal.location.strip()),
        has_source_link=bool(signal.links),
        has_deal_value=_has_concrete_value(signal.deal_value),
        has_key_people=bool(signal.people_names),
        has_detailed_insights=len((signal.insights or "").strip()) >= MIN_INSIGHT_LENGTH,
    )
    total = sum(
        points
        for met, points in (
            (breakdown.has_subject_name, POINTS_SUBJECT_NAME),
            (breakdown.has_valid_date, POINTS_FILING_DATE),
            (breakdown.has_location, POINTS_LOCATION),
            (breakdown.has_source_link, POINTS_SOURCE_LINK),
            (breakdown.has_deal_value, POINTS_DEAL_VALUE),
            (breakdown.has_key_people, POINTS_KEY_PEOPLE),
            (breakdown.has_detailed_insights, POINTS_INSIGHTS),
        )
        if met
    )
    return QualityScore(total=total, breakdown=breakdown, tier=tier_for(total))


def validate(signal: Signal, *, now: datetime | None = None) -> ValidationResult:
    current = as_utc(now) or utcnow()
    filing_date = as_utc(signal.filing_date)
    errors: list[str] = []
    warnings: list[str] = []

    name = (signal.subject_name or "").strip()
    if not name:
        errors.append("Missing subject name")
    elif name.lower() in PLACEHOLDER_NAMES:
        errors.append(f"Invalid subject name: {name}")
    elif len(normalize_company_name(name)) < 2:
        errors.append("Subject name too short or invalid")

    if filing_date is None:
        errors.append("Missing or unparseable filing date")
    elif filing_date > current:
        errors.append("Filing date is in the future")
    elif current - filing_date > STALE_AFTER:
        warnings.append("Filing date is more than 10 years old")

    if (signal.event_type or "").strip().lower() == "acquisition":
        target = normalize_company_name(signal.target_name)
        acquirer = normalize_company_name(signal.acquirer_name)
        if target and acquirer and target == acquirer:
            errors.append("Target and acquirer are the same company")
        if not acquirer:
            warnings.append("Acquisition event missing acquirer")

    if _has_concrete_value(signal.deal_value):
        millions = parse_deal_value_millions(signal.deal_value)
        if millions is not None and 0 < millions < LOW_DEAL_VALUE_MILLIONS:
            warnings.append("Deal value seems unrealistically low")
        if millions is not None and millions >= HIGH_DEAL_VALUE_MILLIONS:
            warnings.append("Deal value seems unrealistically high")

    if not signal.links:
        warnings.append("No source URL provided")

    if signal.filing_type.strip().lower() not in KNOWN_FILING_TYPES:
        warnings.append(f"Unknown signal type: {signal.filing_type}")

    return ValidationResult(is_valid=not errors, errors=tuple(errors), warnings=tuple(warnings))


def filter_by_quality(
    signals: Iterable[Signal],
    min_quality_score: int = DEFAULT_MIN_QUALITY_SCORE,
    *,
    now: datetime | None = None,
) -> FilterReport:
    report = FilterReport()
    for signal in signals:
        result = score(signal, now=now)
        if result.total >= min_quality_score:
            report.accepted.append(signal)
        else:
            report.rejected.append(
                (signal, (f"Quality score {result.total} below {min_quality_score}",))
            )
    return report


def filter_by_validation(
    signals: Iterable[Signal],
    *,
    now: datetime | None = None,
) -> FilterReport:
    report = FilterReport()
    for signal in signals:
        result = validate(signal, now=now)
        if result.is_valid:
            if result.warnings:
                log.debug("%s: %s", signal.subject_name, ", ".join(result.warnings))
            report.accepted.append(signal)
        else:
            report.rejected.append((signal, result.errors))
    return report


def filter_signals(
    signals: Iterable[Signal],
    *,
    min_quality_score: int = DEFAULT_MIN_QUALITY_SCORE,
    validate_logic: bool = True,
    now: datetime | None = None,
) -> FilterReport:
    """Pre-persistence gate: keep signals that meet the score and, optionally, validate."""

    report = filter_by_quality(signals, min_quality_score, now=now)
    if validate_logic:
        validated = filter_by_validation(report.accepted, now=now)
        report = FilterReport(
            accepted=validated.accepted,
            rejected=[*report.rejected, *validated.rejected],
        )
    for signal, reasons in report.rejected:
        log.info("Rejected signal %r: %s", signal.subject_name, "; ".join(reasons))
    return report


def quality_stats(signals: Iterable[Signal], *, now: datetime | None = None) -> QualityStats:
    materialized = list(signals)
    scores = [score(signal, now=now) for signal in materialized]
    valid = sum(1 for signal in materialized if validate(signal, now=now).is_valid)
    total_points = sum(result.total for result in scores)
    return QualityStats(
        total=len(materialized),
        high=sum(1 for result in scores if result.tier is QualityTier.HIGH),
        medium=sum(1 for result in scores if result.tier is QualityTier.MEDIUM),
        low=sum(1 for result in scores if result.tier is QualityTier.LOW),
        average_score=round(total_points / len(scores), 2) if scores else 0.0,
        valid=valid,
        invalid=len(materialized) - valid,
    )


def identify_high_value_signals(
    signals: Iterable[Signal],
    threshold: int = DEFAULT_HIGH_VALUE_SCORE,
    *,
    now: datetime | None = None,
) -> list[Signal]:
    return [signal for signal in signals if score(signal, now=now).total >= threshold]
