"""Builders and an in-memory store for signal-related tests."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import TYPE_CHECKING

from signalsmith.domain.model import (
    CompanySignal,
    EnrichmentStatus,
    KeyPerson,
    PersonSignal,
    Signal,
    allowed_previous_statuses,
)

if TYPE_CHECKING:
    from collections.abc import Callable, Collection, Iterable, Sequence
    from uuid import UUID

    from signalsmith.domain.model import SignalSource
    from signalsmith.domain.ports.unit_of_work import EnrichmentUnitOfWork

FILING_DATE = datetime(2025, 3, 14, tzinfo=UTC)


def make_company_signal(
    company_name: str | None = "Acme Holdings Inc",
    *,
    filing_type: str = "form-8k",
    filing_link: str | None = "https://filings.example.org/acme/8k-1",
    filing_date: datetime | None = FILING_DATE,
    people: Iterable[tuple[str | None, str | None]] = (),
    **kwargs: object,
) -> CompanySignal:
    signal = CompanySignal(
        filing_type=filing_type,
        filing_link=filing_link,
        filing_date=filing_date,
        company_name=company_name,
        **kwargs,  # type: ignore[arg-type]
    )
    for full_name, designation in people:
        signal.add_key_person(KeyPerson(full_name=full_name, designation=designation))
    return signal


def make_person_signal(
    full_name: str | None = "Jane Smith",
    *,
    company_name: str | None = "Acme Holdings Inc",
    filing_type: str = "form-4",
    filing_link: str | None = "https://filings.example.org/acme/form4-1",
    filing_date: datetime | None = FILING_DATE,
    **kwargs: object,
) -> PersonSignal:
    return PersonSignal(
        full_name=full_name,
        company_name=company_name,
        filing_type=filing_type,
        filing_link=filing_link,
        filing_date=filing_date,
        **kwargs,  # type: ignore[arg-type]
    )


def store_signals(
    unit_of_work_factory: Callable[[], EnrichmentUnitOfWork], *signals: Signal
) -> list[UUID]:
    with unit_of_work_factory() as uow:
        for signal in signals:
            uow.repositories.signals.add(signal)
        uow.commit()
    return [signal.id for signal in signals]


class InMemorySignalRepository:
    """List-backed ``SignalRepository`` for domain tests."""

    def __init__(self, signals: Iterable[Signal] = ()) -> None:
        self.signals: list[Signal] = list(signals)

    def add(self, entity: Signal) -> None:
        self.signals.append(entity)

    def get(self, entity_id: UUID) -> Signal | None:
        return next((signal for signal in self.signals if signal.id == entity_id), None)

    def find_by_links(self, links: Sequence[str]) -> Signal | None:
        wanted = set(links)
        return next((s for s in self.signals if wanted.intersection(s.links)), None)

    def find_by_accession(self, accession: str) -> list[Signal]:
        return [signal for signal in self.signals if signal.accession == accession]

    def list_in_window(self, filing_type: str, start: datetime, end: datetime) -> list[Signal]:
        return [
            signal
            for signal in self.signals
            if signal.filing_type == filing_type
            and signal.filing_date is not None
            and start <= signal.filing_date <= end
        ]

    def list_created_since(self, filing_type: str, since: datetime, *, limit: int) -> list[Signal]:
        recent = [
            signal
            for signal in self.signals
            if signal.filing_type == filing_type and signal.created_at >= since
        ]
        return sorted(recent, key=lambda signal: signal.created_at, reverse=True)[:limit]

    def list_created_after(self, since: datetime) -> list[Signal]:
        return [signal for signal in self.signals if signal.created_at >= since]

    def transition_status(
        self,
        signal_id: UUID,
        target: EnrichmentStatus,
        *,
        error: str | None = None,
        note: str | None = None,
        company_id: UUID | None = None,
        contact_id: UUID | None = None,
    ) -> bool:
        signal = self.get(signal_id)
        if signal is None or signal.enrichment_status not in allowed_previous_statuses(target):
            return False
        signal.transition(target, error=error)
        if note is not None:
            signal.enrichment_note = note
        signal.company_id = company_id or signal.company_id
        signal.contact_id = contact_id or signal.contact_id
        return True

    def list_ids_by_status(
        self,
        status: EnrichmentStatus,
        *,
        limit: int,
        filing_types: Collection[str] | None = None,
        source: SignalSource | None = None,
    ) -> list[UUID]:
        matching = [
            signal
            for signal in self.signals
            if signal.enrichment_status is status
            and (not filing_types or signal.filing_type in filing_types)
            and (source is None or signal.source is source)
        ]
        matching.sort(key=lambda signal: signal.created_at, reverse=True)
        return [signal.id for signal in matching[:limit]]

    def count_by_status(
        self, *, source: SignalSource | None = None
    ) -> dict[EnrichmentStatus, int]:
        counts: dict[EnrichmentStatus, int] = {}
        for signal in self.signals:
            if source is None or signal.source is source:
                counts[signal.enrichment_status] = counts.get(signal.enrichment_status, 0) + 1
        return counts

    def count_key_people_coverage(self) -> tuple[int, int]:
        company = [s for s in self.signals if isinstance(s, CompanySignal)]
        covered = sum(1 for signal in company if signal.key_people)
        return covered, len(company) - covered
