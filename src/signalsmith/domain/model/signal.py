"""Signals: the unit of work, as tagged person/company variants."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, ClassVar

from signalsmith.domain.model.base import Entity, as_utc, utcnow
from signalsmith.domain.model.enums import EnrichmentStatus, SignalSource

if TYPE_CHECKING:
    from datetime import datetime
    from uuid import UUID


# Status a signal must currently hold for a transition into the key status.
# A retry resets failed -> pending; a direct re-run may claim a failed signal.
_ALLOWED_PREVIOUS: dict[EnrichmentStatus, frozenset[EnrichmentStatus]] = {
    EnrichmentStatus.PENDING: frozenset({EnrichmentStatus.FAILED}),
    EnrichmentStatus.PROCESSING: frozenset({EnrichmentStatus.PENDING, EnrichmentStatus.FAILED}),
    EnrichmentStatus.COMPLETED: frozenset({EnrichmentStatus.PROCESSING}),
    EnrichmentStatus.FAILED: frozenset({EnrichmentStatus.PROCESSING}),
}


class InvalidStatusTransitionError(RuntimeError):
    """Raised when a signal is moved along an edge the lifecycle does not allow."""


def allowed_previous_statuses(target: EnrichmentStatus) -> frozenset[EnrichmentStatus]:
    return _ALLOWED_PREVIOUS[target]


_FILING_TO_SIGNAL_TYPE: dict[str, str] = {
    "form-4": "form_4",
    "form-13d": "13d_13g",
    "form-13g": "13d_13g",
    "form-13d-a": "13d_13g",
    "form-13g-a": "13d_13g",
    "def-14a": "def_14a",
    "form-10k": "10k",
    "10-k": "10k",
    "form-10q": "10q",
    "10-q": "10q",
    "form-8k": "8k",
    "form-8ka": "8k",
    "s-1": "s1_s3",
    "s-3": "s1_s3",
    "form-s3": "s1_s3",
    "form-s3a": "s1_s3",
    "form-d": "form_d",
    "10b5-1": "10b5_1",
    "ma-event": "ma_private",
    "hiring-event": "hiring",
}


def map_filing_type_to_signal_type(filing_type: str | None) -> str:
    """Signal type recorded on contact/company back-references for a filing type."""

    if not filing_type:
        return "unknown"
    key = filing_type.strip().lower()
    return _FILING_TO_SIGNAL_TYPE.get(key, key.replace("-", "_"))


@dataclass(eq=False, kw_only=True)
class KeyPerson(Entity):
    """A person named on a company signal. Owned by that signal."""

    full_name: str | None
    designation: str | None = None
    location: str | None = None
    relationship: str | None = None
    email: str | None = None
    phone_number: str | None = None
    address: str | None = None
    source_of_information: str | None = None
    position: int = 0


@dataclass(eq=False, kw_only=True)
class Signal(Entity):
    """Common signal attributes shared by the two variants.

    The base only carries the shared columns; constructing it directly raises
    ``TypeError``. A naive ``filing_date`` is read as UTC.
    """

    SOURCE: ClassVar[SignalSource]

    filing_type: str
    filing_link: str | None = None
    source_urls: list[str] = field(default_factory=list[str])
    accession: str | None = None
    filing_date: datetime | None = None
    insights: str | None = None
    location: str | None = None
    company_name: str | None = None

    # M&A style attributes
    deal_value: str | None = None
    event_type: str | None = None
    acquirer_name: str | None = None
    target_name: str | None = None

    enrichment_status: EnrichmentStatus = EnrichmentStatus.PENDING
    enrichment_error: str | None = None
    enrichment_note: str | None = None
    enriched_at: datetime | None = None
    contact_id: UUID | None = None
    company_id: UUID | None = None

    def __post_init__(self) -> None:
        if type(self) is Signal:
            raise TypeError("Signal is abstract; build a PersonSignal or CompanySignal")
        self.filing_date = as_utc(self.filing_date)

    @property
    def source(self) -> SignalSource:
        return self.SOURCE

    @property
    def subject_name(self) -> str | None:
        """Person name or organization name, depending on the variant."""

        raise NotImplementedError(f"{type(self).__name__} does not name a subject")

    @property
    def signal_type(self) -> str:
        return map_filing_type_to_signal_type(self.filing_type)

    @property
    def links(self) -> tuple[str, ...]:
        """Primary filing link followed by secondary source URLs, without blanks."""

        candidates = [self.filing_link, *self.source_urls]
        return tuple(dict.fromkeys(url.strip() for url in candidates if url and url.strip()))

    @property
    def people_names(self) -> tuple[str, ...]:
        return ()

    def transition(self, target: EnrichmentStatus, *, error: str | None = None) -> None:
        if self.enrichment_status not in allowed_previous_statuses(target):
            raise InvalidStatusTransitionError(
                f"Signal {self.id}: {self.enrichment_status} -> {target} is not allowed"
            )
        self.enrichment_status = target
        self.enrichment_error = error
        if target in (EnrichmentStatus.COMPLETED, EnrichmentStatus.FAILED):
            self.enriched_at = utcnow()
        self.touch()

    def mark_processing(self) -> None:
        self.transition(EnrichmentStatus.PROCESSING)

    def mark_completed(self) -> None:
        self.transition(EnrichmentStatus.COMPLETED)

    def mark_failed(self, error: str) -> None:
        self.transition(EnrichmentStatus.FAILED, error=error)

    def reset_for_retry(self) -> None:
        self.transition(EnrichmentStatus.PENDING)
        self.enrichment_note = None


@dataclass(eq=False, kw_only=True)
class PersonSignal(Signal):
    """Signal about a named individual (e.g. an insider filing)."""

    SOURCE: ClassVar[SignalSource] = SignalSource.PERSON

    full_name: str | None = None
    designation: str | None = None

    @property
    def subject_name(self) -> str | None:
        return self.full_name

    @property
    def people_names(self) -> tuple[str, ...]:
        return (self.full_name,) if self.full_name else ()


@dataclass(eq=False, kw_only=True)
class CompanySignal(Signal):
    """Signal about an organization, optionally naming its key people."""

    SOURCE: ClassVar[SignalSource] = SignalSource.COMPANY

    name_variants: list[str] = field(default_factory=list[str])
    ticker: str | None = None
    cik: str | None = None
    company_address: str | None = None

    _key_people: list[KeyPerson] = field(default_factory=list["KeyPerson"], repr=False)

    @property
    def subject_name(self) -> str | None:
        return self.company_name

    @property
    def key_people(self) -> tuple[KeyPerson, ...]:
        return tuple(sorted(self._key_people, key=lambda person: person.position))

    @property
    def people_names(self) -> tuple[str, ...]:
        return tuple(person.full_name for person in self.key_people if person.full_name)

    def add_key_person(self, person: KeyPerson) -> KeyPerson:
        person.position = len(self._key_people)
        self._key_people.append(person)
        return person
