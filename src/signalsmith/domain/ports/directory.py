"""Port for the external people directory used during enrichment."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Sequence


@dataclass(slots=True, frozen=True, kw_only=True)
class PersonRecord:
    """A person as returned by the directory."""

    full_name: str
    title: str | None = None
    company_name: str | None = None
    location: str | None = None
    personal_emails: tuple[str, ...] = ()
    business_emails: tuple[str, ...] = ()
    personal_phones: tuple[str, ...] = ()
    business_phones: tuple[str, ...] = ()
    linkedin_url: str | None = None
    source: str = "directory"

    @property
    def emails(self) -> tuple[str, ...]:
        return (*self.business_emails, *self.personal_emails)


@dataclass(slots=True, frozen=True, kw_only=True)
class PersonLookupResult:
    found: bool
    record: PersonRecord | None = None
    source: str = "directory"
    search_attempts: tuple[str, ...] = ()


@dataclass(slots=True, frozen=True, kw_only=True)
class OrganizationLookupResult:
    found: bool
    executives: tuple[PersonRecord, ...] = ()
    company_variations: tuple[str, ...] = ()


@runtime_checkable
class DirectoryLookup(Protocol):
    """Lookup of people by name or by organization.

    Implementations raise ``ExternalLookupError`` on transport or API failures;
    callers treat that as "not found" for the attempt.
    """

    def search_by_name(self, full_name: str, company_name: str | None) -> PersonLookupResult: ...

    def search_by_organization(
        self,
        company_name: str,
        *,
        name_variants: Sequence[str] = (),
        seniority_limits: Sequence[tuple[str, int]] = (),
    ) -> OrganizationLookupResult:
        """Executives at the organization, searched once per ``(seniority, limit)`` pair."""
        ...
