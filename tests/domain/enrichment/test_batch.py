from __future__ import annotations

from typing import TYPE_CHECKING
from uuid import uuid4

import pytest

from signalsmith.domain.enrichment import (
    BatchController,
    BatchResult,
    CompanySignalEnricher,
    EnrichmentOutcome,
    EnrichmentResult,
    PersonSignalEnricher,
)
from signalsmith.domain.model import EnrichmentStatus, SignalSource
from signalsmith.domain.settings import ResolutionSettings
from tests.helpers.directory import make_record
from tests.helpers.signals import make_company_signal, make_person_signal, store_signals

if TYPE_CHECKING:
    from collections.abc import Callable

    from signalsmith.adapters.sqlalchemy.unit_of_work import SqlAlchemyUnitOfWork
    from signalsmith.domain.model import Signal
    from tests.helpers.directory import FakeDirectoryLookup

    UowFactory = Callable[[], SqlAlchemyUnitOfWork]


def _controller(
    factory: UowFactory,
    directory: FakeDirectoryLookup,
    settings: ResolutionSettings,
    sleeps: list[float] | None = None,
) -> BatchController:
    return BatchController(
        enrichers={
            SignalSource.COMPANY: CompanySignalEnricher(
                unit_of_work_factory=factory, directory=directory, settings=settings
            ),
            SignalSource.PERSON: PersonSignalEnricher(
                unit_of_work_factory=factory, directory=directory, settings=settings
            ),
        },
        unit_of_work_factory=factory,
        settings=settings,
        sleep=(sleeps.append if sleeps is not None else lambda _seconds: None),
    )


@pytest.fixture
def mixed_signals(
    sqlite_unit_of_work: UowFactory, directory: FakeDirectoryLookup
) -> list[Signal]:
    directory.add_person(make_record("Jane Smith"))
    directory.add_person(make_record("Ann Lee", company_name="Globex"))
    signals = [
        make_company_signal(people=[("Jane Smith", "CEO")]),
        make_person_signal(
            "Ann Lee",
            company_name="Globex",
            filing_link="https://filings.example.org/globex/form4-1",
        ),
        make_person_signal(
            "Nobody Known",
            company_name="Initech",
            filing_link="https://filings.example.org/initech/form4-1",
        ),
        make_company_signal(
            "Acme Holdings",
            filing_link="https://filings.example.org/acme/8k-2",
            enrichment_status=EnrichmentStatus.COMPLETED,
        ),
    ]
    store_signals(sqlite_unit_of_work, *signals)
    return signals


def test_batch_counts_outcomes(
    sqlite_unit_of_work: UowFactory,
    directory: FakeDirectoryLookup,
    mixed_signals: list[Signal],
) -> None:
    sleeps: list[float] = []
    settings = ResolutionSettings(batch_delay_seconds=0.5)
    controller = _controller(sqlite_unit_of_work, directory, settings, sleeps)
    missing = make_person_signal().id

    batch = controller.enrich_batch([*(signal.id for signal in mixed_signals), missing])

    assert batch.total == 5
    assert batch.successful == 4
    assert batch.failed == 1
    assert batch.already_processed == 1
    assert batch.created == 2
    assert batch.companies_created == 2
    assert sleeps == [0.5] * 4
    assert batch.results[-1].outcome is EnrichmentOutcome.NOT_FOUND


def test_already_processed_results_do_not_count_companies_again() -> None:
    company_id = uuid4()
    batch = BatchResult()

    batch.record(
        EnrichmentResult(
            signal_id=uuid4(),
            success=True,
            outcome=EnrichmentOutcome.ALREADY_PROCESSED,
            status=EnrichmentStatus.COMPLETED,
            company_id=company_id,
        )
    )

    assert batch.successful == 1
    assert batch.already_processed == 1
    assert batch.companies_matched == 0
    assert batch.companies_created == 0


def test_batch_is_capped(
    sqlite_unit_of_work: UowFactory,
    directory: FakeDirectoryLookup,
    settings: ResolutionSettings,
    mixed_signals: list[Signal],
) -> None:
    controller = _controller(sqlite_unit_of_work, directory, settings)

    batch = controller.enrich_batch([s.id for s in mixed_signals], max_batch_size=2)

    assert batch.total == 2
    assert [result.signal_id for result in batch.results] == [s.id for s in mixed_signals[:2]]


def test_pending_queries_and_stats(
    sqlite_unit_of_work: UowFactory,
    directory: FakeDirectoryLookup,
    settings: ResolutionSettings,
    mixed_signals: list[Signal],
) -> None:
    controller = _controller(sqlite_unit_of_work, directory, settings)

    pending = controller.get_pending()
    people = controller.get_pending(source=SignalSource.PERSON)
    forms = controller.get_pending(filing_types=["form-8k"])
    stats = controller.get_stats()

    assert set(pending) == {signal.id for signal in mixed_signals[:3]}
    assert set(people) == {mixed_signals[1].id, mixed_signals[2].id}
    assert forms == [mixed_signals[0].id]
    assert (stats.pending, stats.completed, stats.total) == (3, 1, 4)
    assert (stats.with_key_people, stats.without_key_people) == (1, 1)
    assert controller.get_stats(source=SignalSource.PERSON).with_key_people is None


def test_enrich_pending_then_retry_failed(
    sqlite_unit_of_work: UowFactory,
    directory: FakeDirectoryLookup,
    settings: ResolutionSettings,
    mixed_signals: list[Signal],
) -> None:
    controller = _controller(sqlite_unit_of_work, directory, settings)

    first = controller.enrich_pending()
    assert first.total == 3
    assert controller.get_stats().failed == 1

    directory.add_person(make_record("Nobody Known", company_name="Initech"))
    retried = controller.retry_failed()

    assert retried.total == 1
    assert retried.results[0].signal_id == mixed_signals[2].id
    assert retried.results[0].outcome is EnrichmentOutcome.CONTACT_CREATED
    assert controller.get_stats().failed == 0


def test_source_without_enricher_is_rejected(
    sqlite_unit_of_work: UowFactory,
    settings: ResolutionSettings,
) -> None:
    signal = make_person_signal()
    store_signals(sqlite_unit_of_work, signal)
    controller = BatchController(
        enrichers={}, unit_of_work_factory=sqlite_unit_of_work, settings=settings
    )

    result = controller.enrich(signal.id)

    assert result.outcome is EnrichmentOutcome.VALIDATION_ERROR
    assert not result.success
