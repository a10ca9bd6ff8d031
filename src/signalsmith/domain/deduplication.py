"""Multi-layer duplicate detection for incoming signals.

Layers run cheapest first and stop at the first positive:

1. link: the candidate's filing link or any secondary URL is already stored
2. accession: same registry accession id (scoped by subject name when known)
3. name/date window: similar subject name, same filing type, dates within a window
4. content hash: identical fingerprint among recent signals of a noisy category

Every verdict names the layer that fired so callers can log and count it.
"""

from __future__ import annotations

import hashlib
import json
import logging
from collections import Counter
from dataclasses import dataclass, field
from datetime import timedelta
from typing import TYPE_CHECKING

from signalsmith.domain.model import DuplicateLayer, PersonSignal, Signal, as_utc, utcnow
from signalsmith.domain.normalization import (
    normalize_company_name,
    normalize_person_name,
    similarity,
)
from signalsmith.domain.settings import ResolutionSettings

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable, Sequence
    from datetime import datetime
    from uuid import UUID

    from signalsmith.domain.ports.persistence import SignalRepository

log = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class DuplicateVerdict:
    is_duplicate: bool
    layer: DuplicateLayer | None = None
    matched_signal_id: UUID | None = None
    reason: str | None = None
    in_batch: bool = False


NOT_DUPLICATE = DuplicateVerdict(is_duplicate=False)


@dataclass(slots=True)
class DeduplicationReport:
    survivors: list[Signal] = field(default_factory=list[Signal])
    duplicates: list[tuple[Signal, DuplicateVerdict]] = field(
        default_factory=list[tuple[Signal, DuplicateVerdict]]
    )

    @property
    def removed(self) -> int:
        return len(self.duplicates)

    @property
    def by_layer(self) -> dict[DuplicateLayer, int]:
        counts: Counter[DuplicateLayer] = Counter()
        for _, verdict in self.duplicates:
            if verdict.layer is not None:
                counts[verdict.layer] += 1
        return dict(counts)


@dataclass(slots=True, frozen=True)
class DuplicateStats:
    timeframe_days: int
    total_signals: int
    subjects_with_multiple_signals: int
    estimated_duplicates: int

    @property
    def duplicate_rate(self) -> float:
        if self.total_signals == 0:
            return 0.0
        return self.estimated_duplicates / self.total_signals


def content_fingerprint(signal: Signal) -> str:
    """md5 over normalized name, filing type, filing day and amount."""

    payload = {
        "name": normalize_company_name(signal.subject_name),
        "type": signal.filing_type,
        "date": signal.filing_date.date().isoformat() if signal.filing_date else None,
        "amount": (signal.deal_value or "").strip().lower() or None,
    }
    canonical = json.dumps(payload, sort_keys=True, separators=(",", ":"))
    return hashlib.md5(canonical.encode("utf-8"), usedforsecurity=False).hexdigest()


def _comparison_names(signal: Signal) -> tuple[str, str]:
    """(subject, organization) in comparison form.

    Person signals compare the person and their organization separately so that two
    insiders of one company are not collapsed into one event.
    """

    if isinstance(signal, PersonSignal):
        return (
            normalize_person_name(signal.full_name),
            normalize_company_name(signal.company_name),
        )
    return normalize_company_name(signal.subject_name), ""


def _links_overlap(candidate: Signal, stored: Signal) -> bool:
    return not set(candidate.links).isdisjoint(stored.links)


def _same_accession(candidate: Signal, stored: Signal) -> bool:
    if not candidate.accession or not stored.accession:
        return False
    if candidate.accession.strip().lower() != stored.accession.strip().lower():
        return False
    candidate_subject, _ = _comparison_names(candidate)
    if not candidate_subject:
        return True
    stored_subject, _ = _comparison_names(stored)
    return candidate_subject == stored_subject


def _name_similarity(candidate: Signal, stored: Signal) -> float:
    candidate_subject, candidate_org = _comparison_names(candidate)
    stored_subject, stored_org = _comparison_names(stored)
    if not candidate_subject or not stored_subject:
        return 0.0
    score = similarity(candidate_subject, stored_subject)
    if candidate_org and stored_org:
        score = min(score, similarity(candidate_org, stored_org))
    return score


def _within_window(candidate: Signal, stored: Signal, window: timedelta) -> bool:
    candidate_date = as_utc(candidate.filing_date)
    stored_date = as_utc(stored.filing_date)
    if candidate_date is None or stored_date is None:
        return False
    return abs(candidate_date - stored_date) <= window


class DeduplicationEngine:
    """Decides whether a candidate signal describes an already stored event."""

    def __init__(
        self,
        signals: SignalRepository,
        *,
        settings: ResolutionSettings | None = None,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._signals = signals
        self._settings = settings or ResolutionSettings()
        self._clock = clock

    @property
    def _window(self) -> timedelta:
        return timedelta(days=self._settings.date_window_days)

    def is_duplicate(self, candidate: Signal) -> bool:
        return self.check(candidate).is_duplicate

    def check(self, candidate: Signal) -> DuplicateVerdict:
        for layer_check in (
            self.check_link,
            self.check_accession,
            self.check_name_date_window,
            self.check_content_hash,
        ):
            verdict = layer_check(candidate)
            if verdict.is_duplicate:
                log.info(
                    "Duplicate signal %r via %s (matches %s)",
                    candidate.subject_name,
                    verdict.layer,
                    verdict.matched_signal_id,
                )
                return verdict
        return NOT_DUPLICATE

    def check_link(self, candidate: Signal) -> DuplicateVerdict:
        if not candidate.links:
            return NOT_DUPLICATE
        stored = self._signals.find_by_links(candidate.links)
        if stored is None or stored.id == candidate.id:
            return NOT_DUPLICATE
        return DuplicateVerdict(
            is_duplicate=True,
            layer=DuplicateLayer.LINK,
            matched_signal_id=stored.id,
            reason="source link already stored",
        )

    def check_accession(self, candidate: Signal) -> DuplicateVerdict:
        if not candidate.accession:
            return NOT_DUPLICATE
        for stored in self._signals.find_by_accession(candidate.accession):
            if stored.id != candidate.id and _same_accession(candidate, stored):
                return DuplicateVerdict(
                    is_duplicate=True,
                    layer=DuplicateLayer.ACCESSION,
                    matched_signal_id=stored.id,
                    reason=f"accession {candidate.accession} already stored",
                )
        return NOT_DUPLICATE

    def check_name_date_window(self, candidate: Signal) -> DuplicateVerdict:
        filing_date = as_utc(candidate.filing_date)
        if filing_date is None or not candidate.subject_name:
            return NOT_DUPLICATE
        stored_signals = self._signals.list_in_window(
            candidate.filing_type,
            filing_date - self._window,
            filing_date + self._window,
        )
        return self._best_name_match(candidate, stored_signals)

    def check_content_hash(self, candidate: Signal) -> DuplicateVerdict:
        if candidate.filing_type not in self._settings.content_hash_filing_types:
            return NOT_DUPLICATE
        since = self._clock() - timedelta(days=self._settings.content_hash_window_days)
        recent = self._signals.list_created_since(
            candidate.filing_type,
            since,
            limit=self._settings.content_hash_scan_limit,
        )
        return self._hash_match(candidate, recent)

    def filter_duplicates(self, candidates: Iterable[Signal]) -> DeduplicationReport:
        """Drop duplicates from ``candidates``; survivors keep their input order.

        Candidates are checked against the store and against earlier survivors of
        the same batch.
        """

        report = DeduplicationReport()
        for candidate in candidates:
            verdict = self.check(candidate)
            if not verdict.is_duplicate:
                verdict = self._check_batch(candidate, report.survivors)
            if verdict.is_duplicate:
                report.duplicates.append((candidate, verdict))
                continue
            report.survivors.append(candidate)

        if report.removed:
            log.info(
                "Removed %s duplicate signal(s) of %s: %s",
                report.removed,
                report.removed + len(report.survivors),
                {str(layer): count for layer, count in report.by_layer.items()},
            )
        return report

    def duplicate_stats(self, timeframe_days: int = 7) -> DuplicateStats:
        since = self._clock() - timedelta(days=timeframe_days)
        recent = self._signals.list_created_after(since)
        per_subject = Counter(
            normalize_company_name(signal.company_name or signal.subject_name)
            for signal in recent
        )
        repeated = {subject: count for subject, count in per_subject.items() if count > 1}
        return DuplicateStats(
            timeframe_days=timeframe_days,
            total_signals=len(recent),
            subjects_with_multiple_signals=len(repeated),
            estimated_duplicates=sum(count - 1 for count in repeated.values()),
        )

    def _best_name_match(
        self,
        candidate: Signal,
        stored_signals: Sequence[Signal],
        *,
        in_batch: bool = False,
    ) -> DuplicateVerdict:
        threshold = self._settings.similarity_threshold
        best: tuple[float, Signal] | None = None
        for stored in stored_signals:
            if stored.id == candidate.id or stored.filing_type != candidate.filing_type:
                continue
            if not _within_window(candidate, stored, self._window):
                continue
            score = _name_similarity(candidate, stored)
            if score > threshold and (best is None or score > best[0]):
                best = (score, stored)
        if best is None:
            return NOT_DUPLICATE
        score, stored = best
        return DuplicateVerdict(
            is_duplicate=True,
            layer=DuplicateLayer.NAME_DATE_WINDOW,
            matched_signal_id=stored.id,
            reason=f"similar name ({score:.2f}) within {self._settings.date_window_days} days",
            in_batch=in_batch,
        )

    def _hash_match(
        self,
        candidate: Signal,
        stored_signals: Sequence[Signal],
        *,
        in_batch: bool = False,
    ) -> DuplicateVerdict:
        fingerprint = content_fingerprint(candidate)
        for stored in stored_signals:
            if stored.id == candidate.id or stored.filing_type != candidate.filing_type:
                continue
            if content_fingerprint(stored) == fingerprint:
                return DuplicateVerdict(
                    is_duplicate=True,
                    layer=DuplicateLayer.CONTENT_HASH,
                    matched_signal_id=stored.id,
                    reason="identical content fingerprint",
                    in_batch=in_batch,
                )
        return NOT_DUPLICATE

    def _check_batch(self, candidate: Signal, survivors: Sequence[Signal]) -> DuplicateVerdict:
        for survivor in survivors:
            if _links_overlap(candidate, survivor):
                return DuplicateVerdict(
                    is_duplicate=True,
                    layer=DuplicateLayer.LINK,
                    matched_signal_id=survivor.id,
                    reason="source link repeated in batch",
                    in_batch=True,
                )
            if _same_accession(candidate, survivor):
                return DuplicateVerdict(
                    is_duplicate=True,
                    layer=DuplicateLayer.ACCESSION,
                    matched_signal_id=survivor.id,
                    reason="accession repeated in batch",
                    in_batch=True,
                )
        verdict = self._best_name_match(candidate, survivors, in_batch=True)
        if verdict.is_duplicate:
            return verdict
        if candidate.filing_type in self._settings.content_hash_filing_types:
            return self._hash_match(candidate, survivors, in_batch=True)
        return NOT_DUPLICATE
