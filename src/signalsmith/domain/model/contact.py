"""Canonical person entity, shared by reference between signals and companies."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from signalsmith.domain.model.base import Entity, utcnow
from signalsmith.domain.normalization import normalize_person_name

if TYPE_CHECKING:
    from collections.abc import Iterable
    from datetime import datetime
    from uuid import UUID


@dataclass(eq=False, kw_only=True)
class ContactSignalLink:
    signal_id: UUID
    signal_type: str
    linked_at: datetime = field(default_factory=utcnow)


@dataclass(eq=False, kw_only=True)
class ContactCompanyLink:
    company_id: UUID
    role: str | None = None
    linked_at: datetime = field(default_factory=utcnow)


def _merge(existing: list[str], incoming: Iterable[str]) -> list[str]:
    seen = {value.casefold() for value in existing}
    merged = list(existing)
    for value in incoming:
        cleaned = value.strip()
        if cleaned and cleaned.casefold() not in seen:
            seen.add(cleaned.casefold())
            merged.append(cleaned)
    return merged


@dataclass(eq=False, kw_only=True)
class Contact(Entity):
    full_name: str
    normalized_name: str = ""
    personal_emails: list[str] = field(default_factory=list[str])
    business_emails: list[str] = field(default_factory=list[str])
    personal_phones: list[str] = field(default_factory=list[str])
    business_phones: list[str] = field(default_factory=list[str])
    linkedin_url: str | None = None
    company_name: str | None = None
    occupation_title: str | None = None
    location: str | None = None
    source_of_information: str | None = None

    _signal_links: list[ContactSignalLink] = field(
        default_factory=list["ContactSignalLink"], repr=False
    )
    _company_links: list[ContactCompanyLink] = field(
        default_factory=list["ContactCompanyLink"], repr=False
    )

    def __post_init__(self) -> None:
        if not self.normalized_name:
            self.normalized_name = normalize_person_name(self.full_name)

    @property
    def emails(self) -> tuple[str, ...]:
        return (*self.business_emails, *self.personal_emails)

    @property
    def signal_links(self) -> tuple[ContactSignalLink, ...]:
        return tuple(self._signal_links)

    @property
    def company_links(self) -> tuple[ContactCompanyLink, ...]:
        return tuple(self._company_links)

    @property
    def signal_ids(self) -> tuple[UUID, ...]:
        return tuple(link.signal_id for link in self._signal_links)

    @property
    def company_ids(self) -> tuple[UUID, ...]:
        return tuple(link.company_id for link in self._company_links)

    def link_signal(self, signal_id: UUID, signal_type: str) -> bool:
        if signal_id in self.signal_ids:
            return False
        self._signal_links.append(ContactSignalLink(signal_id=signal_id, signal_type=signal_type))
        self.touch()
        return True

    def link_company(self, company_id: UUID, role: str | None = None) -> bool:
        for link in self._company_links:
            if link.company_id == company_id:
                if role and not link.role:
                    link.role = role
                return False
        self._company_links.append(ContactCompanyLink(company_id=company_id, role=role))
        self.touch()
        return True

    def merge_details(
        self,
        *,
        personal_emails: Iterable[str] = (),
        business_emails: Iterable[str] = (),
        personal_phones: Iterable[str] = (),
        business_phones: Iterable[str] = (),
        linkedin_url: str | None = None,
        occupation_title: str | None = None,
        location: str | None = None,
    ) -> None:
        """Add new contact details; values already present are kept as they are."""

        # lists are reassigned so the change is picked up by persistence
        self.personal_emails = _merge(self.personal_emails, personal_emails)
        self.business_emails = _merge(self.business_emails, business_emails)
        self.personal_phones = _merge(self.personal_phones, personal_phones)
        self.business_phones = _merge(self.business_phones, business_phones)
        if linkedin_url and not self.linkedin_url:
            self.linkedin_url = linkedin_url
        if occupation_title and not self.occupation_title:
            self.occupation_title = occupation_title
        if location and not self.location:
            self.location = location
        self.touch()
