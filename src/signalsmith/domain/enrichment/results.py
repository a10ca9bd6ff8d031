"""Result records returned by the enrichment orchestrators and the batch controller."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING

from signalsmith.domain.model import PersonOutcome

if TYPE_CHECKING:
    from uuid import UUID

    from signalsmith.domain.model import EnrichmentStatus, MatchConfidence


class EnrichmentOutcome(StrEnum):
    ALREADY_PROCESSED = "already_processed"
    ALREADY_PROCESSING = "already_processing"
    NOT_FOUND = "not_found"
    VALIDATION_ERROR = "validation_error"
    EXISTING_COMPANY = "existing_company"
    NO_KEY_PEOPLE = "no_key_people"
    COMPANY_CREATED = "company_created"
    CONTACT_MATCHED = "contact_matched"
    CONTACT_CREATED = "contact_created"
    NO_CONTACT_FOUND = "no_contact_found"
    FAILED = "failed"


@dataclass(slots=True, frozen=True)
class PersonEnrichmentDetail:
    full_name: str | None
    outcome: PersonOutcome
    designation: str | None = None
    contact_id: UUID | None = None
    confidence: MatchConfidence | None = None
    message: str | None = None


@dataclass(slots=True)
class EnrichmentResult:
    signal_id: UUID
    success: bool
    outcome: EnrichmentOutcome
    status: EnrichmentStatus | None = None
    company_id: UUID | None = None
    contact_id: UUID | None = None
    company_created: bool = False
    contacts_created: int = 0
    contacts_matched: int = 0
    contact_ids: list[UUID] = field(default_factory=list["UUID"])
    details: list[PersonEnrichmentDetail] = field(default_factory=list[PersonEnrichmentDetail])
    message: str | None = None
    error: str | None = None

    @property
    def partial_failure(self) -> bool:
        """Completed, but at least one person could not be linked."""
        return self.success and any(
            detail.outcome in (PersonOutcome.NOT_FOUND, PersonOutcome.ERROR)
            for detail in self.details
        )


@dataclass(slots=True)
class BatchResult:
    total: int = 0
    successful: int = 0
    failed: int = 0
    already_processed: int = 0
    created: int = 0
    matched: int = 0
    no_key_people: int = 0
    existing_entity: int = 0
    companies_created: int = 0
    companies_matched: int = 0
    results: list[EnrichmentResult] = field(default_factory=list[EnrichmentResult])

    def record(self, result: EnrichmentResult) -> None:
        self.total += 1
        self.results.append(result)
        if not result.success:
            self.failed += 1
            return
        self.successful += 1
        if result.outcome is EnrichmentOutcome.ALREADY_PROCESSED:
            # counted when the signal was first enriched
            self.already_processed += 1
            return
        self.created += result.contacts_created
        self.matched += result.contacts_matched
        if result.company_created:
            self.companies_created += 1
        elif result.company_id is not None:
            self.companies_matched += 1
        match result.outcome:
            case EnrichmentOutcome.NO_KEY_PEOPLE:
                self.no_key_people += 1
            case EnrichmentOutcome.EXISTING_COMPANY | EnrichmentOutcome.CONTACT_MATCHED:
                self.existing_entity += 1
            case _:
                pass


@dataclass(slots=True, frozen=True)
class EnrichmentStats:
    pending: int
    processing: int
    completed: int
    failed: int
    total: int
    with_key_people: int | None = None
    without_key_people: int | None = None
