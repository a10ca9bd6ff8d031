"""Enrichment state machine: claim a signal, resolve its people, record the outcome.

A signal moves ``pending -> processing -> completed | failed``. The claim into
``processing`` is a conditional write, so two runs racing on the same pending signal
cannot both proceed; the loser reports ``already_processing`` without side effects.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, ClassVar

from signalsmith.domain.company_resolution import CompanyResolver
from signalsmith.domain.contact_matching import ContactMatcher
from signalsmith.domain.errors import (
    AlreadyProcessingError,
    DuplicatePersistenceError,
    ExternalLookupError,
    SignalNotFoundError,
    SignalValidationError,
    TotalEnrichmentFailure,
)
from signalsmith.domain.model import (
    CompanySignal,
    Contact,
    EnrichmentStatus,
    KeyPerson,
    MatchConfidence,
    MatchMethod,
    PersonOutcome,
    SignalSource,
)
from signalsmith.domain.normalization import canonical_profile_url
from signalsmith.domain.settings import ResolutionSettings

from .context import EnrichmentRun
from .results import EnrichmentOutcome, EnrichmentResult, PersonEnrichmentDetail

if TYPE_CHECKING:
    from collections.abc import Callable
    from uuid import UUID

    from signalsmith.domain.errors import EnrichmentError
    from signalsmith.domain.model import Signal
    from signalsmith.domain.ports.directory import DirectoryLookup, PersonRecord
    from signalsmith.domain.ports.unit_of_work import EnrichmentUnitOfWork

log = logging.getLogger(__name__)

NO_CONTACTS_ERROR = "no contacts could be created or matched"
CONCURRENT_PROCESSING_ERROR = "Concurrent processing detected"
DISCOVERED_RELATIONSHIP = "Auto-discovered Executive"
DISCOVERED_SOURCE = "Directory organization search"


class SignalEnricher(ABC):
    """Shared lifecycle for one signal category.

    Subclasses implement ``_validate`` (checked before the claim, never mutates
    state) and ``_run`` (after the claim; must finish the signal itself). Any
    exception out of ``_run``, ``TotalEnrichmentFailure`` included, marks the signal
    failed with its message.
    """

    source: ClassVar[SignalSource]

    def __init__(
        self,
        *,
        unit_of_work_factory: Callable[[], EnrichmentUnitOfWork],
        directory: DirectoryLookup,
        settings: ResolutionSettings | None = None,
        company_resolver: CompanyResolver | None = None,
    ) -> None:
        self._unit_of_work_factory = unit_of_work_factory
        self._directory = directory
        self._settings = settings or ResolutionSettings()
        self._companies = company_resolver or CompanyResolver(unit_of_work_factory)
        self._min_confidence = MatchConfidence(self._settings.min_link_confidence)

    def enrich(self, signal_id: UUID) -> EnrichmentResult:
        signal: Signal | None = None
        try:
            with self._unit_of_work_factory() as uow:
                signals = uow.repositories.signals
                signal = signals.get(signal_id)
                if signal is None:
                    raise SignalNotFoundError(f"Signal {signal_id} not found")
                if signal.enrichment_status is EnrichmentStatus.COMPLETED:
                    return self._already_processed(signal)
                if signal.enrichment_status is EnrichmentStatus.PROCESSING:
                    raise AlreadyProcessingError(CONCURRENT_PROCESSING_ERROR)
                self._check_source(signal)
                self._validate(signal)
                if not signals.transition_status(signal_id, EnrichmentStatus.PROCESSING):
                    log.info("Signal %s was claimed by another run", signal_id)
                    raise AlreadyProcessingError(CONCURRENT_PROCESSING_ERROR)
                uow.commit()
        except (SignalNotFoundError, AlreadyProcessingError, SignalValidationError) as exc:
            return self._rejected(signal_id, signal, exc)

        log.info("Enriching %s signal %s (%r)", self.source, signal_id, signal.subject_name)
        run = EnrichmentRun(signal_id=signal_id)
        try:
            return self._run(signal, run)
        except Exception as exc:
            if isinstance(exc, TotalEnrichmentFailure):
                log.warning("Signal %s failed: %s", signal_id, exc)
            else:
                log.exception("Enrichment of signal %s failed", signal_id)
            self._finish(
                signal_id,
                EnrichmentStatus.FAILED,
                error=str(exc),
                company_id=run.company_id,
            )
            return EnrichmentResult(
                signal_id=signal_id,
                success=False,
                outcome=EnrichmentOutcome.FAILED,
                status=EnrichmentStatus.FAILED,
                company_id=run.company_id,
                company_created=run.company_created,
                contacts_created=run.contacts_created,
                contacts_matched=run.contacts_matched,
                contact_ids=list(run.linked_contact_ids),
                details=list(run.details),
                error=str(exc),
            )

    @abstractmethod
    def _validate(self, signal: Signal) -> None: ...

    @abstractmethod
    def _run(self, signal: Signal, run: EnrichmentRun) -> EnrichmentResult: ...

    def _already_processed(self, signal: Signal) -> EnrichmentResult:
        return EnrichmentResult(
            signal_id=signal.id,
            success=True,
            outcome=EnrichmentOutcome.ALREADY_PROCESSED,
            status=EnrichmentStatus.COMPLETED,
            company_id=signal.company_id,
            contact_id=signal.contact_id,
            message="Signal already enriched",
        )

    def _rejected(
        self, signal_id: UUID, signal: Signal | None, exc: EnrichmentError
    ) -> EnrichmentResult:
        """Result for a signal turned away before the claim; nothing was written."""

        if isinstance(exc, SignalValidationError):
            log.warning("Signal %s rejected: %s", signal_id, exc)
        status = EnrichmentStatus.PROCESSING if isinstance(exc, AlreadyProcessingError) else None
        if status is None and signal is not None:
            status = signal.enrichment_status
        return EnrichmentResult(
            signal_id=signal_id,
            success=False,
            outcome=EnrichmentOutcome(exc.outcome),
            status=status,
            error=str(exc),
        )

    def _check_source(self, signal: Signal) -> None:
        if signal.source is not self.source:
            raise SignalValidationError(
                f"{signal.source} signals cannot be enriched by the {self.source} enricher"
            )

    def _finish(
        self,
        signal_id: UUID,
        status: EnrichmentStatus,
        *,
        error: str | None = None,
        note: str | None = None,
        company_id: UUID | None = None,
        contact_id: UUID | None = None,
    ) -> None:
        with self._unit_of_work_factory() as uow:
            moved = uow.repositories.signals.transition_status(
                signal_id,
                status,
                error=error,
                note=note,
                company_id=company_id,
                contact_id=contact_id,
            )
            uow.commit()
        if not moved:
            log.warning("Signal %s left processing before being marked %s", signal_id, status)

    # -- person level -------------------------------------------------------------------

    def _lookup(
        self,
        full_name: str,
        company_name: str | None,
        run: EnrichmentRun,
    ) -> PersonRecord | None:
        if run.has_lookup(full_name):
            return run.cached_lookup(full_name)
        run.external_calls += 1
        try:
            result = self._directory.search_by_name(full_name, company_name)
        except ExternalLookupError as exc:
            log.warning("Directory lookup for %r failed: %s", full_name, exc)
            run.lookup_failures += 1
            return None
        record = result.record if result.found else None
        run.remember_lookup(full_name, record)
        return record

    def _link_contact(
        self,
        uow: EnrichmentUnitOfWork,
        contact: Contact,
        signal: Signal,
        company_id: UUID | None,
        role: str | None,
    ) -> None:
        contact.link_signal(signal.id, signal.signal_type)
        if company_id is None:
            return
        contact.link_company(company_id, role)
        company = uow.repositories.companies.get(company_id)
        if company is not None:
            company.link_contact(contact.id)

    def _create_contact(
        self,
        uow: EnrichmentUnitOfWork,
        record: PersonRecord,
        *,
        signal: Signal,
        company_id: UUID | None,
        fallback: KeyPerson | None = None,
    ) -> tuple[Contact, bool]:
        """Persist a contact for ``record``; link the existing one on a uniqueness clash.

        Returns the contact and whether it was newly created.
        """

        role = record.title or (fallback.designation if fallback else None)
        contact = Contact(
            full_name=record.full_name,
            personal_emails=list(record.personal_emails),
            business_emails=list(record.business_emails),
            personal_phones=list(record.personal_phones),
            business_phones=list(record.business_phones),
            linkedin_url=canonical_profile_url(record.linkedin_url),
            company_name=signal.company_name or record.company_name,
            occupation_title=role,
            location=record.location or (fallback.location if fallback else None),
            source_of_information=record.source,
        )
        self._link_contact(uow, contact, signal, company_id, role)
        uow.repositories.contacts.add(contact)
        try:
            uow.commit()
        except DuplicatePersistenceError:
            log.warning("Contact %r already stored, linking it", contact.full_name)
        else:
            log.info("Created contact %s (%r)", contact.id, contact.full_name)
            return contact, True

        existing = self._existing_contact(uow, contact, signal.company_name)
        if existing is None:
            raise DuplicatePersistenceError(
                f"Contact {contact.full_name!r} clashed with a record that cannot be found"
            )
        existing.merge_details(
            personal_emails=contact.personal_emails,
            business_emails=contact.business_emails,
            personal_phones=contact.personal_phones,
            business_phones=contact.business_phones,
            occupation_title=contact.occupation_title,
            location=contact.location,
        )
        self._link_contact(uow, existing, signal, company_id, role)
        uow.commit()
        return existing, False

    def _existing_contact(
        self,
        uow: EnrichmentUnitOfWork,
        contact: Contact,
        company_name: str | None,
    ) -> Contact | None:
        contacts = uow.repositories.contacts
        if contact.linkedin_url:
            existing = contacts.find_by_linkedin_url(contact.linkedin_url)
            if existing is not None:
                return existing
        matcher = ContactMatcher(contacts, uow.repositories.companies, settings=self._settings)
        match = matcher.match(contact.full_name, company_name)
        if match.method is MatchMethod.NAME_COMPANY_EXACT:
            return match.contact
        return None


class CompanySignalEnricher(SignalEnricher):
    """Resolve the company on a signal, then match or create a contact per key person.

    An already known company ends the run (``existing_company``): person-level work
    only happens for a company this run created. Signals without key people fall
    back to an organization search for executives.
    """

    source = SignalSource.COMPANY

    def _validate(self, signal: Signal) -> None:
        if not (signal.company_name or "").strip():
            raise SignalValidationError(f"Signal {signal.id} is missing a company name")

    def _run(self, signal: Signal, run: EnrichmentRun) -> EnrichmentResult:
        resolution = self._companies.find_or_create(signal)
        run.company_id = resolution.company_id
        run.company_created = resolution.is_new

        if not resolution.is_new:
            self._finish(signal.id, EnrichmentStatus.COMPLETED, company_id=resolution.company_id)
            return EnrichmentResult(
                signal_id=signal.id,
                success=True,
                outcome=EnrichmentOutcome.EXISTING_COMPANY,
                status=EnrichmentStatus.COMPLETED,
                company_id=resolution.company_id,
                message="Company already exists; signal linked",
            )

        people = list(signal.key_people) if isinstance(signal, CompanySignal) else []
        if not people:
            people, attempted = self._discover(signal, run)
            if not people:
                note = (
                    "No key people in signal. Directory search attempted: "
                    f"{attempted} company variants, 0 results found."
                )
                self._finish(
                    signal.id,
                    EnrichmentStatus.COMPLETED,
                    note=note,
                    company_id=resolution.company_id,
                )
                return EnrichmentResult(
                    signal_id=signal.id,
                    success=True,
                    outcome=EnrichmentOutcome.NO_KEY_PEOPLE,
                    status=EnrichmentStatus.COMPLETED,
                    company_id=resolution.company_id,
                    company_created=True,
                    message=note,
                )

        for person in people:
            run.record(self._process_person(signal, person, run))

        if not run.linked_contact_ids:
            raise TotalEnrichmentFailure(NO_CONTACTS_ERROR)

        self._finish(signal.id, EnrichmentStatus.COMPLETED, company_id=resolution.company_id)
        log.info(
            "Signal %s: %d contact(s) created, %d matched, %d lookup call(s)",
            signal.id,
            run.contacts_created,
            run.contacts_matched,
            run.external_calls,
        )
        result = EnrichmentResult(
            signal_id=signal.id,
            success=True,
            outcome=EnrichmentOutcome.COMPANY_CREATED,
            status=EnrichmentStatus.COMPLETED,
            company_id=resolution.company_id,
            company_created=True,
            contacts_created=run.contacts_created,
            contacts_matched=run.contacts_matched,
            contact_ids=list(run.linked_contact_ids),
            details=list(run.details),
        )
        if result.partial_failure:
            log.warning(
                "Signal %s completed with %d of %d people unlinked",
                signal.id,
                sum(1 for detail in run.details if detail.contact_id is None),
                len(run.details),
            )
        return result

    def _discover(self, signal: Signal, run: EnrichmentRun) -> tuple[list[KeyPerson], int]:
        company_name = signal.company_name or ""
        variants = signal.name_variants if isinstance(signal, CompanySignal) else []
        seniority_limits = (
            ("CXO", self._settings.discovery_cxo_limit),
            ("VP", self._settings.discovery_vp_limit),
        )
        run.external_calls += 1
        try:
            result = self._directory.search_by_organization(
                company_name,
                name_variants=variants,
                seniority_limits=seniority_limits,
            )
        except ExternalLookupError as exc:
            log.warning("Executive discovery for %r failed: %s", company_name, exc)
            run.lookup_failures += 1
            return [], 0

        people: list[KeyPerson] = []
        for position, record in enumerate(result.executives):
            run.remember_lookup(record.full_name, record)
            people.append(
                KeyPerson(
                    full_name=record.full_name,
                    designation=record.title,
                    location=record.location,
                    relationship=DISCOVERED_RELATIONSHIP,
                    email=next(iter(record.emails), None),
                    source_of_information=DISCOVERED_SOURCE,
                    position=position,
                )
            )
        log.info("Discovered %d executive(s) for %r", len(people), company_name)
        return people, len(result.company_variations)

    def _process_person(
        self,
        signal: Signal,
        person: KeyPerson,
        run: EnrichmentRun,
    ) -> PersonEnrichmentDetail:
        name = (person.full_name or "").strip()
        if not name:
            return PersonEnrichmentDetail(
                full_name=person.full_name,
                outcome=PersonOutcome.ERROR,
                designation=person.designation,
                message="Missing required field: full name",
            )
        try:
            return self._resolve_person(signal, person, name, run)
        except Exception as exc:
            log.exception("Enrichment of %r on signal %s failed", name, signal.id)
            return PersonEnrichmentDetail(
                full_name=name,
                outcome=PersonOutcome.ERROR,
                designation=person.designation,
                message=str(exc),
            )

    def _resolve_person(
        self,
        signal: Signal,
        person: KeyPerson,
        name: str,
        run: EnrichmentRun,
    ) -> PersonEnrichmentDetail:
        cached = run.cached_lookup(name)
        with self._unit_of_work_factory() as uow:
            matcher = ContactMatcher(
                uow.repositories.contacts,
                uow.repositories.companies,
                settings=self._settings,
            )
            match = matcher.match(
                name,
                signal.company_name,
                profile_url=cached.linkedin_url if cached else None,
                email=person.email,
            )
            if match.contact is not None and match.confidence.at_least(self._min_confidence):
                self._link_contact(uow, match.contact, signal, run.company_id, person.designation)
                uow.commit()
                return PersonEnrichmentDetail(
                    full_name=name,
                    outcome=PersonOutcome.MATCHED,
                    designation=person.designation,
                    contact_id=match.contact.id,
                    confidence=match.confidence,
                )

            record = self._lookup(name, signal.company_name, run)
            if record is None:
                return PersonEnrichmentDetail(
                    full_name=name,
                    outcome=PersonOutcome.NOT_FOUND,
                    designation=person.designation,
                    message="No directory profile found",
                )
            contact, created = self._create_contact(
                uow,
                record,
                signal=signal,
                company_id=run.company_id,
                fallback=person,
            )
        return PersonEnrichmentDetail(
            full_name=name,
            outcome=PersonOutcome.CREATED if created else PersonOutcome.MATCHED,
            designation=person.designation,
            contact_id=contact.id,
            confidence=None if created else MatchConfidence.EXACT,
        )
