from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from signalsmith.adapters.sqlalchemy.repositories import (
    SqlAlchemyContactRepository,
    SqlAlchemySignalRepository,
)
from signalsmith.domain.company_resolution import CompanyResolver
from signalsmith.domain.enrichment import (
    NO_CONTACTS_ERROR,
    CompanySignalEnricher,
    EnrichmentOutcome,
)
from signalsmith.domain.model import Contact, EnrichmentStatus, MatchConfidence, PersonOutcome
from tests.helpers.directory import make_record
from tests.helpers.signals import make_company_signal, make_person_signal, store_signals

if TYPE_CHECKING:
    from collections.abc import Callable
    from uuid import UUID

    from signalsmith.adapters.sqlalchemy.unit_of_work import SqlAlchemyUnitOfWork
    from signalsmith.domain.settings import ResolutionSettings
    from tests.helpers.directory import FakeDirectoryLookup

    UowFactory = Callable[[], SqlAlchemyUnitOfWork]


@pytest.fixture
def enricher(
    sqlite_unit_of_work: UowFactory,
    directory: FakeDirectoryLookup,
    settings: ResolutionSettings,
) -> CompanySignalEnricher:
    return CompanySignalEnricher(
        unit_of_work_factory=sqlite_unit_of_work,
        directory=directory,
        settings=settings,
    )


def _status(factory: UowFactory, signal_id: UUID) -> EnrichmentStatus:
    with factory() as uow:
        signal = uow.repositories.signals.get(signal_id)
        assert signal is not None
        return signal.enrichment_status


def test_acme_signal_creates_company_and_contacts(
    enricher: CompanySignalEnricher,
    directory: FakeDirectoryLookup,
    sqlite_unit_of_work: UowFactory,
) -> None:
    directory.add_person(make_record("Jane Smith", email="jane@acme.example"))
    directory.add_person(make_record("John Doe", title="Chief Financial Officer"))
    signal = make_company_signal(people=[("Jane Smith", "CEO"), ("John Doe", "CFO")])
    store_signals(sqlite_unit_of_work, signal)

    result = enricher.enrich(signal.id)

    assert result.success
    assert result.outcome is EnrichmentOutcome.COMPANY_CREATED
    assert result.company_created
    assert result.contacts_created == 2
    assert not result.partial_failure
    with sqlite_unit_of_work() as uow:
        stored = uow.repositories.signals.get(signal.id)
        assert stored is not None
        assert stored.enrichment_status is EnrichmentStatus.COMPLETED
        assert stored.company_id == result.company_id
        assert result.company_id is not None
        company = uow.repositories.companies.get(result.company_id)
        assert company is not None
        assert set(company.contact_ids) == set(result.contact_ids)
        jane = uow.repositories.contacts.find_by_email("jane@acme.example")
        assert jane is not None
        assert jane.signal_ids == (signal.id,)
        assert jane.company_links[0].role == "Chief Executive Officer"


def test_no_contacts_fails_the_signal(
    enricher: CompanySignalEnricher,
    sqlite_unit_of_work: UowFactory,
) -> None:
    signal = make_company_signal(people=[("Jane Smith", "CEO"), ("John Doe", "CFO")])
    store_signals(sqlite_unit_of_work, signal)

    result = enricher.enrich(signal.id)

    assert not result.success
    assert result.outcome is EnrichmentOutcome.FAILED
    assert result.error == NO_CONTACTS_ERROR
    assert result.company_created
    assert [detail.outcome for detail in result.details] == [PersonOutcome.NOT_FOUND] * 2
    assert _status(sqlite_unit_of_work, signal.id) is EnrichmentStatus.FAILED


def test_completed_signal_is_not_reprocessed(
    enricher: CompanySignalEnricher,
    directory: FakeDirectoryLookup,
    sqlite_unit_of_work: UowFactory,
) -> None:
    signal = make_company_signal(
        people=[("Jane Smith", "CEO")], enrichment_status=EnrichmentStatus.COMPLETED
    )
    store_signals(sqlite_unit_of_work, signal)

    result = enricher.enrich(signal.id)

    assert result.success
    assert result.outcome is EnrichmentOutcome.ALREADY_PROCESSED
    assert directory.name_calls == []


def test_processing_signal_reports_concurrent_run(
    enricher: CompanySignalEnricher,
    sqlite_unit_of_work: UowFactory,
) -> None:
    signal = make_company_signal(enrichment_status=EnrichmentStatus.PROCESSING)
    store_signals(sqlite_unit_of_work, signal)

    result = enricher.enrich(signal.id)

    assert not result.success
    assert result.outcome is EnrichmentOutcome.ALREADY_PROCESSING


def test_lost_claim_leaves_no_side_effects(
    enricher: CompanySignalEnricher,
    directory: FakeDirectoryLookup,
    sqlite_unit_of_work: UowFactory,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    signal = make_company_signal(people=[("Jane Smith", "CEO")])
    store_signals(sqlite_unit_of_work, signal)
    monkeypatch.setattr(
        SqlAlchemySignalRepository, "transition_status", lambda *_args, **_kwargs: False
    )

    result = enricher.enrich(signal.id)

    assert result.outcome is EnrichmentOutcome.ALREADY_PROCESSING
    assert directory.name_calls == []
    assert directory.organization_calls == []
    assert _status(sqlite_unit_of_work, signal.id) is EnrichmentStatus.PENDING


def test_known_company_short_circuits(
    enricher: CompanySignalEnricher,
    directory: FakeDirectoryLookup,
    sqlite_unit_of_work: UowFactory,
) -> None:
    earlier = CompanyResolver(sqlite_unit_of_work).find_or_create(
        make_person_signal(company_name="Acme Holdings")
    )
    signal = make_company_signal(people=[("Jane Smith", "CEO")])
    store_signals(sqlite_unit_of_work, signal)

    result = enricher.enrich(signal.id)

    assert result.success
    assert result.outcome is EnrichmentOutcome.EXISTING_COMPANY
    assert result.company_id == earlier.company_id
    assert not result.company_created
    assert directory.name_calls == []
    assert _status(sqlite_unit_of_work, signal.id) is EnrichmentStatus.COMPLETED


def test_missing_company_name_is_rejected_before_claim(
    enricher: CompanySignalEnricher,
    sqlite_unit_of_work: UowFactory,
) -> None:
    signal = make_company_signal(None, people=[("Jane Smith", "CEO")])
    store_signals(sqlite_unit_of_work, signal)

    result = enricher.enrich(signal.id)

    assert result.outcome is EnrichmentOutcome.VALIDATION_ERROR
    assert _status(sqlite_unit_of_work, signal.id) is EnrichmentStatus.PENDING


def test_person_signal_is_rejected(
    enricher: CompanySignalEnricher,
    sqlite_unit_of_work: UowFactory,
) -> None:
    signal = make_person_signal()
    store_signals(sqlite_unit_of_work, signal)

    assert enricher.enrich(signal.id).outcome is EnrichmentOutcome.VALIDATION_ERROR


def test_unknown_signal_is_not_found(enricher: CompanySignalEnricher) -> None:
    result = enricher.enrich(make_company_signal().id)

    assert result.outcome is EnrichmentOutcome.NOT_FOUND
    assert not result.success


def test_discovers_executives_without_key_people(
    enricher: CompanySignalEnricher,
    directory: FakeDirectoryLookup,
    sqlite_unit_of_work: UowFactory,
) -> None:
    directory.executives = [
        make_record("Jane Smith"),
        make_record("John Doe", title="VP Finance"),
    ]
    signal = make_company_signal()
    store_signals(sqlite_unit_of_work, signal)

    result = enricher.enrich(signal.id)

    assert result.outcome is EnrichmentOutcome.COMPANY_CREATED
    assert result.contacts_created == 2
    assert directory.organization_calls == [("Acme Holdings Inc", (("CXO", 2), ("VP", 2)))]
    # discovered records are reused instead of searched again by name
    assert directory.name_calls == []


def test_no_key_people_and_no_executives_completes_with_note(
    enricher: CompanySignalEnricher,
    sqlite_unit_of_work: UowFactory,
) -> None:
    signal = make_company_signal()
    store_signals(sqlite_unit_of_work, signal)

    result = enricher.enrich(signal.id)

    assert result.success
    assert result.outcome is EnrichmentOutcome.NO_KEY_PEOPLE
    with sqlite_unit_of_work() as uow:
        stored = uow.repositories.signals.get(signal.id)
        assert stored is not None
        assert stored.enrichment_status is EnrichmentStatus.COMPLETED
        assert stored.enrichment_note == (
            "No key people in signal. Directory search attempted: "
            "1 company variants, 0 results found."
        )


def test_failed_lookup_counts_as_not_found(
    enricher: CompanySignalEnricher,
    directory: FakeDirectoryLookup,
    sqlite_unit_of_work: UowFactory,
) -> None:
    directory.add_person(make_record("Jane Smith"))
    directory.failing.add("John Doe")
    signal = make_company_signal(people=[("Jane Smith", "CEO"), ("John Doe", "CFO")])
    store_signals(sqlite_unit_of_work, signal)

    result = enricher.enrich(signal.id)

    assert result.success
    assert result.partial_failure
    outcomes = {detail.full_name: detail.outcome for detail in result.details}
    assert outcomes == {"Jane Smith": PersonOutcome.CREATED, "John Doe": PersonOutcome.NOT_FOUND}


def test_existing_contact_is_matched_not_duplicated(
    enricher: CompanySignalEnricher,
    directory: FakeDirectoryLookup,
    sqlite_unit_of_work: UowFactory,
) -> None:
    jane = Contact(full_name="Jane Smith", company_name="Acme Holdings")
    with sqlite_unit_of_work() as uow:
        uow.repositories.contacts.add(jane)
        uow.commit()
    signal = make_company_signal(people=[("Jane Smith", "CEO")])
    store_signals(sqlite_unit_of_work, signal)

    result = enricher.enrich(signal.id)

    assert result.contacts_matched == 1
    assert result.contact_ids == [jane.id]
    assert directory.name_calls == []


def test_profile_clash_links_the_stored_contact(
    enricher: CompanySignalEnricher,
    directory: FakeDirectoryLookup,
    sqlite_unit_of_work: UowFactory,
) -> None:
    stored = Contact(
        full_name="Janet Smythe-Jones",
        linkedin_url="https://www.linkedin.com/in/jane-smith",
    )
    with sqlite_unit_of_work() as uow:
        uow.repositories.contacts.add(stored)
        uow.commit()
    directory.add_person(make_record("Jane Smith", email="jane@acme.example"))
    signal = make_company_signal(people=[("Jane Smith", "CEO")])
    store_signals(sqlite_unit_of_work, signal)

    result = enricher.enrich(signal.id)

    assert result.success
    assert result.contact_ids == [stored.id]
    assert result.details[0].outcome is PersonOutcome.MATCHED
    with sqlite_unit_of_work() as uow:
        contact = uow.repositories.contacts.get(stored.id)
        assert contact is not None
        assert contact.business_emails == ["jane@acme.example"]
        assert contact.signal_ids == (signal.id,)


def test_failing_person_is_rolled_back_and_the_next_is_processed(
    enricher: CompanySignalEnricher,
    directory: FakeDirectoryLookup,
    sqlite_unit_of_work: UowFactory,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    directory.add_person(make_record("Jane Smith", email="jane@acme.example"))
    directory.add_person(make_record("John Doe", email="john@acme.example"))
    signal = make_company_signal(people=[("Jane Smith", "CEO"), ("John Doe", "CFO")])
    store_signals(sqlite_unit_of_work, signal)

    original_add = SqlAlchemyContactRepository.add

    def add_then_fail_for_jane(repository: SqlAlchemyContactRepository, entity: Contact) -> None:
        original_add(repository, entity)
        if entity.full_name == "Jane Smith":
            raise RuntimeError("disk full")

    monkeypatch.setattr(SqlAlchemyContactRepository, "add", add_then_fail_for_jane)

    result = enricher.enrich(signal.id)

    assert result.success
    assert result.partial_failure
    assert result.contacts_created == 1
    jane_detail, john_detail = result.details
    assert jane_detail.outcome is PersonOutcome.ERROR
    assert jane_detail.message == "disk full"
    assert jane_detail.contact_id is None
    assert john_detail.outcome is PersonOutcome.CREATED
    assert _status(sqlite_unit_of_work, signal.id) is EnrichmentStatus.COMPLETED
    with sqlite_unit_of_work() as uow:
        assert uow.repositories.contacts.find_by_email("jane@acme.example") is None
        john = uow.repositories.contacts.find_by_email("john@acme.example")
        assert john is not None
        assert result.company_id is not None
        company = uow.repositories.companies.get(result.company_id)
        assert company is not None
        assert list(company.contact_ids) == [john.id]


def test_unknown_person_and_matched_person_complete_with_partial_failure(
    enricher: CompanySignalEnricher,
    directory: FakeDirectoryLookup,
    sqlite_unit_of_work: UowFactory,
) -> None:
    jane = Contact(full_name="Jane Smith", company_name="Acme Holdings")
    with sqlite_unit_of_work() as uow:
        uow.repositories.contacts.add(jane)
        uow.commit()
    signal = make_company_signal(people=[("Nobody Known", "COO"), ("Jane Smith", "CEO")])
    store_signals(sqlite_unit_of_work, signal)

    result = enricher.enrich(signal.id)

    assert result.success
    assert result.status is EnrichmentStatus.COMPLETED
    assert result.contacts_created == 0
    assert result.contacts_matched == 1
    assert result.partial_failure
    assert [detail.outcome for detail in result.details] == [
        PersonOutcome.NOT_FOUND,
        PersonOutcome.MATCHED,
    ]
    assert result.details[1].confidence is MatchConfidence.HIGH
    assert directory.name_calls == [("Nobody Known", "Acme Holdings Inc")]
    assert _status(sqlite_unit_of_work, signal.id) is EnrichmentStatus.COMPLETED
    with sqlite_unit_of_work() as uow:
        assert result.company_id is not None
        company = uow.repositories.companies.get(result.company_id)
        assert company is not None
        assert list(company.contact_ids) == [jane.id]
