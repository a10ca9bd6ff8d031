"""Batch processing over pending signals, plus status queries and retry."""

from __future__ import annotations

import logging
import time
from typing import TYPE_CHECKING

from signalsmith.domain.model import EnrichmentStatus, SignalSource
from signalsmith.domain.settings import ResolutionSettings

from .results import BatchResult, EnrichmentOutcome, EnrichmentResult, EnrichmentStats

if TYPE_CHECKING:
    from collections.abc import Callable, Collection, Iterable, Mapping
    from uuid import UUID

    from signalsmith.domain.ports.unit_of_work import EnrichmentUnitOfWork

    from .orchestrator import SignalEnricher

log = logging.getLogger(__name__)


class BatchController:
    """Run enrichers sequentially over many signals.

    One signal's failure never aborts the batch: it is recorded and the loop
    continues. Between signals the controller sleeps ``batch_delay_seconds`` to stay
    under the directory's rate limit alongside the client-side limiter.
    """

    def __init__(
        self,
        *,
        enrichers: Mapping[SignalSource, SignalEnricher],
        unit_of_work_factory: Callable[[], EnrichmentUnitOfWork],
        settings: ResolutionSettings | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._enrichers = dict(enrichers)
        self._unit_of_work_factory = unit_of_work_factory
        self._settings = settings or ResolutionSettings()
        self._sleep = sleep

    def enrich(self, signal_id: UUID) -> EnrichmentResult:
        """Dispatch one signal to the enricher for its source."""

        with self._unit_of_work_factory() as uow:
            signal = uow.repositories.signals.get(signal_id)
        if signal is None:
            return EnrichmentResult(
                signal_id=signal_id,
                success=False,
                outcome=EnrichmentOutcome.NOT_FOUND,
                error=f"Signal {signal_id} not found",
            )
        enricher = self._enrichers.get(signal.source)
        if enricher is None:
            return EnrichmentResult(
                signal_id=signal_id,
                success=False,
                outcome=EnrichmentOutcome.VALIDATION_ERROR,
                status=signal.enrichment_status,
                error=f"No enricher configured for {signal.source} signals",
            )
        return enricher.enrich(signal_id)

    def enrich_batch(
        self, signal_ids: Iterable[UUID], *, max_batch_size: int | None = None
    ) -> BatchResult:
        ids = list(signal_ids)
        if max_batch_size is not None and len(ids) > max_batch_size:
            log.warning("Batch of %d capped at %d signal(s)", len(ids), max_batch_size)
            ids = ids[:max_batch_size]
        batch = BatchResult()
        log.info("Enriching batch of %d signal(s)", len(ids))
        for index, signal_id in enumerate(ids):
            try:
                result = self.enrich(signal_id)
            except Exception as exc:
                log.exception("Signal %s raised during batch enrichment", signal_id)
                result = EnrichmentResult(
                    signal_id=signal_id,
                    success=False,
                    outcome=EnrichmentOutcome.FAILED,
                    error=str(exc),
                )
            batch.record(result)
            if index < len(ids) - 1 and self._settings.batch_delay_seconds > 0:
                self._sleep(self._settings.batch_delay_seconds)
        log.info(
            "Batch finished: %d successful, %d failed, %d already processed",
            batch.successful,
            batch.failed,
            batch.already_processed,
        )
        return batch

    def enrich_pending(
        self,
        *,
        limit: int | None = None,
        filing_types: Collection[str] | None = None,
        source: SignalSource | None = None,
    ) -> BatchResult:
        return self.enrich_batch(
            self.get_pending(limit=limit, filing_types=filing_types, source=source)
        )

    def get_pending(
        self,
        *,
        limit: int | None = None,
        filing_types: Collection[str] | None = None,
        source: SignalSource | None = None,
    ) -> list[UUID]:
        with self._unit_of_work_factory() as uow:
            return uow.repositories.signals.list_ids_by_status(
                EnrichmentStatus.PENDING,
                limit=limit or self._settings.default_batch_size,
                filing_types=filing_types,
                source=source,
            )

    def retry_failed(
        self,
        *,
        limit: int | None = None,
        source: SignalSource | None = None,
    ) -> BatchResult:
        """Reset failed signals to pending and run them again."""

        with self._unit_of_work_factory() as uow:
            signals = uow.repositories.signals
            failed = signals.list_ids_by_status(
                EnrichmentStatus.FAILED,
                limit=limit or self._settings.default_batch_size,
                source=source,
            )
            reset = [
                signal_id
                for signal_id in failed
                if signals.transition_status(signal_id, EnrichmentStatus.PENDING)
            ]
            uow.commit()
        log.info("Reset %d failed signal(s) to pending", len(reset))
        return self.enrich_batch(reset)

    def get_stats(self, *, source: SignalSource | None = None) -> EnrichmentStats:
        with self._unit_of_work_factory() as uow:
            signals = uow.repositories.signals
            counts = signals.count_by_status(source=source)
            with_people = without_people = None
            if source in (None, SignalSource.COMPANY):
                with_people, without_people = signals.count_key_people_coverage()
        return EnrichmentStats(
            pending=counts.get(EnrichmentStatus.PENDING, 0),
            processing=counts.get(EnrichmentStatus.PROCESSING, 0),
            completed=counts.get(EnrichmentStatus.COMPLETED, 0),
            failed=counts.get(EnrichmentStatus.FAILED, 0),
            total=sum(counts.values()),
            with_key_people=with_people,
            without_key_people=without_people,
        )
