"""Enrichment of person signals: one named individual per signal."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from signalsmith.domain.contact_matching import ContactMatcher
from signalsmith.domain.errors import SignalValidationError
from signalsmith.domain.model import EnrichmentStatus, PersonOutcome, PersonSignal, SignalSource

from .orchestrator import SignalEnricher
from .results import EnrichmentOutcome, EnrichmentResult, PersonEnrichmentDetail

if TYPE_CHECKING:
    from uuid import UUID

    from signalsmith.domain.model import Signal

    from .context import EnrichmentRun

log = logging.getLogger(__name__)


class PersonSignalEnricher(SignalEnricher):
    """Match the subject of a person signal to a contact, or create one from the directory."""

    source = SignalSource.PERSON

    def _validate(self, signal: Signal) -> None:
        if not isinstance(signal, PersonSignal) or not (signal.full_name or "").strip():
            raise SignalValidationError(f"Signal {signal.id} is missing the person's name")

    def _run(self, signal: Signal, run: EnrichmentRun) -> EnrichmentResult:
        name = (signal.subject_name or "").strip()
        role = signal.designation if isinstance(signal, PersonSignal) else None

        with self._unit_of_work_factory() as uow:
            matcher = ContactMatcher(
                uow.repositories.contacts,
                uow.repositories.companies,
                settings=self._settings,
            )
            match = matcher.match(name, signal.company_name)
            contact = match.contact
            if (
                contact is not None
                and match.confidence.at_least(self._min_confidence)
                and matcher.same_company(contact, signal.company_name)
            ):
                self._link_contact(uow, contact, signal, None, role)
                uow.commit()
                run.record(
                    PersonEnrichmentDetail(
                        full_name=name,
                        outcome=PersonOutcome.MATCHED,
                        designation=role,
                        contact_id=contact.id,
                        confidence=match.confidence,
                    )
                )
                return self._complete(signal, run, contact.id, EnrichmentOutcome.CONTACT_MATCHED)

        record = self._lookup(name, signal.company_name, run)
        if record is None:
            message = f"No contact found for {name} at {signal.company_name or 'unknown company'}"
            run.record(
                PersonEnrichmentDetail(
                    full_name=name,
                    outcome=PersonOutcome.NOT_FOUND,
                    designation=role,
                    message=message,
                )
            )
            self._finish(signal.id, EnrichmentStatus.FAILED, error=message)
            return EnrichmentResult(
                signal_id=signal.id,
                success=True,
                outcome=EnrichmentOutcome.NO_CONTACT_FOUND,
                status=EnrichmentStatus.FAILED,
                details=list(run.details),
                message=message,
            )

        if (signal.company_name or "").strip():
            resolution = self._companies.find_or_create(signal)
            run.company_id = resolution.company_id
            run.company_created = resolution.is_new

        with self._unit_of_work_factory() as uow:
            contact, created = self._create_contact(
                uow,
                record,
                signal=signal,
                company_id=run.company_id,
            )
        run.record(
            PersonEnrichmentDetail(
                full_name=name,
                outcome=PersonOutcome.CREATED if created else PersonOutcome.MATCHED,
                designation=role,
                contact_id=contact.id,
            )
        )
        outcome = (
            EnrichmentOutcome.CONTACT_CREATED if created else EnrichmentOutcome.CONTACT_MATCHED
        )
        return self._complete(signal, run, contact.id, outcome)

    def _complete(
        self,
        signal: Signal,
        run: EnrichmentRun,
        contact_id: UUID,
        outcome: EnrichmentOutcome,
    ) -> EnrichmentResult:
        self._finish(
            signal.id,
            EnrichmentStatus.COMPLETED,
            company_id=run.company_id,
            contact_id=contact_id,
        )
        log.info("Signal %s linked to contact %s (%s)", signal.id, contact_id, outcome)
        return EnrichmentResult(
            signal_id=signal.id,
            success=True,
            outcome=outcome,
            status=EnrichmentStatus.COMPLETED,
            company_id=run.company_id,
            contact_id=contact_id,
            company_created=run.company_created,
            contacts_created=run.contacts_created,
            contacts_matched=run.contacts_matched,
            contact_ids=list(run.linked_contact_ids),
            details=list(run.details),
        )
