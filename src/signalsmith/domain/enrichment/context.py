"""Per-run state of one signal's enrichment."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from signalsmith.domain.model import PersonOutcome
from signalsmith.domain.normalization import normalize_person_name

if TYPE_CHECKING:
    from uuid import UUID

    from signalsmith.domain.enrichment.results import PersonEnrichmentDetail
    from signalsmith.domain.ports.directory import PersonRecord


@dataclass(slots=True)
class EnrichmentRun:
    """Mutable state scoped to a single ``enrich`` call.

    The lookup cache holds directory answers (including misses) for this run only,
    so a person found during discovery is never looked up a second time.
    """

    signal_id: UUID
    company_id: UUID | None = None
    company_created: bool = False
    lookup_cache: dict[str, PersonRecord | None] = field(
        default_factory=dict[str, "PersonRecord | None"]
    )
    details: list[PersonEnrichmentDetail] = field(default_factory=list["PersonEnrichmentDetail"])
    linked_contact_ids: list[UUID] = field(default_factory=list["UUID"])
    external_calls: int = 0
    lookup_failures: int = 0

    @staticmethod
    def _key(full_name: str) -> str:
        return normalize_person_name(full_name) or full_name.strip()

    def has_lookup(self, full_name: str) -> bool:
        return self._key(full_name) in self.lookup_cache

    def cached_lookup(self, full_name: str) -> PersonRecord | None:
        return self.lookup_cache.get(self._key(full_name))

    def remember_lookup(self, full_name: str, record: PersonRecord | None) -> None:
        self.lookup_cache[self._key(full_name)] = record

    def record(self, detail: PersonEnrichmentDetail) -> None:
        self.details.append(detail)
        if detail.contact_id is not None and detail.outcome in (
            PersonOutcome.CREATED,
            PersonOutcome.MATCHED,
        ):
            if detail.contact_id not in self.linked_contact_ids:
                self.linked_contact_ids.append(detail.contact_id)

    @property
    def contacts_created(self) -> int:
        return sum(1 for detail in self.details if detail.outcome is PersonOutcome.CREATED)

    @property
    def contacts_matched(self) -> int:
        return sum(1 for detail in self.details if detail.outcome is PersonOutcome.MATCHED)
