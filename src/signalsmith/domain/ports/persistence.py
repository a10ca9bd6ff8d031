"""Ports for persisting signals, companies and contacts."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, TypeVar, runtime_checkable

from signalsmith.domain.model import Company, Contact, Signal

if TYPE_CHECKING:
    from collections.abc import Collection, Sequence
    from datetime import datetime
    from uuid import UUID

    from signalsmith.domain.model import EnrichmentStatus, SignalSource

TEntity = TypeVar("TEntity")


@runtime_checkable
class Repository(Protocol[TEntity]):
    """Minimal repository contract for a persistent aggregate store."""

    def add(self, entity: TEntity) -> None: ...

    def get(self, entity_id: UUID) -> TEntity | None: ...


@runtime_checkable
class SignalRepository(Repository[Signal], Protocol):
    """Persistence contract for signals, including the atomic status guard."""

    def find_by_links(self, links: Sequence[str]) -> Signal | None: ...

    def find_by_accession(self, accession: str) -> list[Signal]: ...

    def list_in_window(
        self, filing_type: str, start: datetime, end: datetime
    ) -> list[Signal]: ...

    def list_created_since(
        self, filing_type: str, since: datetime, *, limit: int
    ) -> list[Signal]: ...

    def list_created_after(self, since: datetime) -> list[Signal]: ...

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
        """Conditionally move a signal to ``target``.

        The write only happens when the stored status is one the lifecycle allows
        before ``target``; the check and write are a single statement. Returns whether
        a row changed.
        """
        ...

    def list_ids_by_status(
        self,
        status: EnrichmentStatus,
        *,
        limit: int,
        filing_types: Collection[str] | None = None,
        source: SignalSource | None = None,
    ) -> list[UUID]:
        """Ids in ``status``, newest first."""
        ...

    def count_by_status(
        self, *, source: SignalSource | None = None
    ) -> dict[EnrichmentStatus, int]: ...

    def count_key_people_coverage(self) -> tuple[int, int]: ...


@runtime_checkable
class CompanyRepository(Repository[Company], Protocol):
    def find_by_keys(self, keys: Sequence[str]) -> dict[str, Company]: ...


@runtime_checkable
class ContactRepository(Repository[Contact], Protocol):
    def find_by_linkedin_url(self, url: str) -> Contact | None: ...

    def find_by_email(self, email: str) -> Contact | None: ...

    def find_by_normalized_name(
        self, normalized_name: str, *, limit: int = 20
    ) -> list[Contact]: ...

    def list_for_companies(self, company_ids: Collection[UUID]) -> list[Contact]: ...
