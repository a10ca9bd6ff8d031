"""Application orchestration entry points."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING

from signalsmith.adapters.contactout import ContactOutDirectoryLookup
from signalsmith.adapters.ingest import translate_payloads
from signalsmith.adapters.sqlalchemy.migrations import upgrade_head
from signalsmith.adapters.sqlalchemy.unit_of_work import (
    SqlAlchemyUnitOfWork,
    is_started,
    startup,
)
from signalsmith.config import get_enrichment_settings
from signalsmith.domain.deduplication import DeduplicationEngine
from signalsmith.domain.enrichment import (
    BatchController,
    CompanySignalEnricher,
    PersonSignalEnricher,
)
from signalsmith.domain.model import SignalSource
from signalsmith.domain.ports.unit_of_work import EnrichmentUnitOfWork
from signalsmith.domain.quality import filter_signals

if TYPE_CHECKING:
    from collections.abc import Collection, Iterable, Mapping, Sequence
    from uuid import UUID

    from signalsmith.domain.deduplication import DuplicateVerdict
    from signalsmith.domain.enrichment import BatchResult, EnrichmentResult, EnrichmentStats
    from signalsmith.domain.model import Signal
    from signalsmith.domain.ports.directory import DirectoryLookup
    from signalsmith.domain.settings import ResolutionSettings

UnitOfWorkFactory = Callable[[], EnrichmentUnitOfWork]


log = getLogger(__name__)


@dataclass(slots=True)
class IngestResult:
    received: int = 0
    stored_ids: list[UUID] = field(default_factory=list["UUID"])
    invalid: list[tuple[int, str]] = field(default_factory=list[tuple[int, str]])
    low_quality: list[tuple[Signal, tuple[str, ...]]] = field(
        default_factory=list[tuple["Signal", tuple[str, ...]]]
    )
    duplicates: list[tuple[Signal, DuplicateVerdict]] = field(
        default_factory=list[tuple["Signal", "DuplicateVerdict"]]
    )

    @property
    def stored(self) -> int:
        return len(self.stored_ids)


def _ensure_started() -> None:
    if not is_started():
        startup()


def build_batch_controller(
    *,
    directory: DirectoryLookup | None = None,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
    settings: ResolutionSettings | None = None,
    with_enrichers: bool = True,
) -> BatchController:
    """Wire enrichers for both signal sources around one directory and store.

    ``with_enrichers=False`` builds a controller for status queries only, which needs
    no directory credentials.
    """

    _ensure_started()
    effective_uow = unit_of_work_factory or SqlAlchemyUnitOfWork
    effective_settings = settings or get_enrichment_settings()
    enrichers: dict[SignalSource, CompanySignalEnricher | PersonSignalEnricher] = {}
    if with_enrichers:
        effective_directory = directory or ContactOutDirectoryLookup()
        enrichers = {
            SignalSource.COMPANY: CompanySignalEnricher(
                unit_of_work_factory=effective_uow,
                directory=effective_directory,
                settings=effective_settings,
            ),
            SignalSource.PERSON: PersonSignalEnricher(
                unit_of_work_factory=effective_uow,
                directory=effective_directory,
                settings=effective_settings,
            ),
        }
    return BatchController(
        enrichers=enrichers,
        unit_of_work_factory=effective_uow,
        settings=effective_settings,
    )


def enrich_signal(
    signal_id: UUID,
    *,
    directory: DirectoryLookup | None = None,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
    settings: ResolutionSettings | None = None,
) -> EnrichmentResult:
    controller = build_batch_controller(
        directory=directory, unit_of_work_factory=unit_of_work_factory, settings=settings
    )
    result = controller.enrich(signal_id)
    log.info(
        "Enriched signal %s: outcome=%s, success=%s", signal_id, result.outcome, result.success
    )
    return result


def enrich_batch(
    signal_ids: Sequence[UUID],
    *,
    max_batch_size: int | None = None,
    directory: DirectoryLookup | None = None,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
    settings: ResolutionSettings | None = None,
) -> BatchResult:
    controller = build_batch_controller(
        directory=directory, unit_of_work_factory=unit_of_work_factory, settings=settings
    )
    return controller.enrich_batch(signal_ids, max_batch_size=max_batch_size)


def enrich_pending(
    *,
    limit: int | None = None,
    filing_types: Collection[str] | None = None,
    source: SignalSource | None = None,
    directory: DirectoryLookup | None = None,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
    settings: ResolutionSettings | None = None,
) -> BatchResult:
    controller = build_batch_controller(
        directory=directory, unit_of_work_factory=unit_of_work_factory, settings=settings
    )
    return controller.enrich_pending(limit=limit, filing_types=filing_types, source=source)


def get_pending(
    *,
    limit: int | None = None,
    filing_types: Collection[str] | None = None,
    source: SignalSource | None = None,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
) -> list[UUID]:
    controller = build_batch_controller(
        unit_of_work_factory=unit_of_work_factory, with_enrichers=False
    )
    return controller.get_pending(limit=limit, filing_types=filing_types, source=source)


def get_stats(
    *,
    source: SignalSource | None = None,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
) -> EnrichmentStats:
    controller = build_batch_controller(
        unit_of_work_factory=unit_of_work_factory, with_enrichers=False
    )
    return controller.get_stats(source=source)


def retry_failed(
    *,
    limit: int | None = None,
    source: SignalSource | None = None,
    directory: DirectoryLookup | None = None,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
    settings: ResolutionSettings | None = None,
) -> BatchResult:
    controller = build_batch_controller(
        directory=directory, unit_of_work_factory=unit_of_work_factory, settings=settings
    )
    return controller.retry_failed(limit=limit, source=source)


def ingest_signals(
    payloads: Iterable[Mapping[str, object]],
    *,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
    settings: ResolutionSettings | None = None,
    validate_logic: bool = True,
) -> IngestResult:
    """Validate, score and de-duplicate raw payloads, then store survivors as pending."""

    _ensure_started()
    effective_uow = unit_of_work_factory or SqlAlchemyUnitOfWork
    effective_settings = settings or get_enrichment_settings()

    raw = list(payloads)
    result = IngestResult(received=len(raw))
    signals, result.invalid = translate_payloads(raw)

    report = filter_signals(
        signals,
        min_quality_score=effective_settings.min_quality_score,
        validate_logic=validate_logic,
    )
    result.low_quality = report.rejected

    with effective_uow() as uow:
        engine = DeduplicationEngine(uow.repositories.signals, settings=effective_settings)
        dedup = engine.filter_duplicates(report.accepted)
        result.duplicates = dedup.duplicates
        for signal in dedup.survivors:
            uow.repositories.signals.add(signal)
        uow.commit()
    result.stored_ids = [signal.id for signal in dedup.survivors]

    log.info(
        f"Ingested signals: received={result.received}, stored={result.stored}, "
        f"invalid={len(result.invalid)}, low_quality={len(result.low_quality)}, "
        f"duplicates={len(result.duplicates)}"
    )
    return result


def upgrade_database(*, database_uri: str | None = None) -> None:
    log.info("Upgrading database schema to head")
    upgrade_head(database_uri=database_uri)
