"""Canonical organization entity."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from signalsmith.domain.model.base import Entity, utcnow

if TYPE_CHECKING:
    from datetime import datetime
    from uuid import UUID


@dataclass(eq=False, kw_only=True)
class CompanyKey:
    """A normalized lookup key ("name:acme holdings", "ticker:ACME") owned by one company."""

    value: str


@dataclass(eq=False, kw_only=True)
class CompanySignalLink:
    signal_id: UUID
    signal_type: str
    linked_at: datetime = field(default_factory=utcnow)


@dataclass(eq=False, kw_only=True)
class CompanyContactLink:
    contact_id: UUID
    linked_at: datetime = field(default_factory=utcnow)


def name_key(normalized_name: str) -> str:
    return f"name:{normalized_name}"


def ticker_key(ticker: str) -> str:
    return f"ticker:{ticker.strip().upper()}"


@dataclass(eq=False, kw_only=True)
class Company(Entity):
    name: str
    name_variants: list[str] = field(default_factory=list[str])
    ticker: str | None = None
    cik: str | None = None
    address: str | None = None

    _keys: list[CompanyKey] = field(default_factory=list["CompanyKey"], repr=False)
    _signal_links: list[CompanySignalLink] = field(
        default_factory=list["CompanySignalLink"], repr=False
    )
    _contact_links: list[CompanyContactLink] = field(
        default_factory=list["CompanyContactLink"], repr=False
    )

    @property
    def keys(self) -> tuple[str, ...]:
        return tuple(key.value for key in self._keys)

    @property
    def signal_ids(self) -> tuple[UUID, ...]:
        return tuple(link.signal_id for link in self._signal_links)

    @property
    def contact_ids(self) -> tuple[UUID, ...]:
        return tuple(link.contact_id for link in self._contact_links)

    def add_key(self, value: str) -> bool:
        if value in self.keys:
            return False
        self._keys.append(CompanyKey(value=value))
        return True

    def link_signal(self, signal_id: UUID, signal_type: str) -> bool:
        """Add-to-set: linking the same signal twice is a no-op."""
        if signal_id in self.signal_ids:
            return False
        self._signal_links.append(CompanySignalLink(signal_id=signal_id, signal_type=signal_type))
        self.touch()
        return True

    def link_contact(self, contact_id: UUID) -> bool:
        if contact_id in self.contact_ids:
            return False
        self._contact_links.append(CompanyContactLink(contact_id=contact_id))
        self.touch()
        return True

    def merge_variants(self, variants: list[str]) -> list[str]:
        """Append unseen spellings. Existing values are never replaced."""

        known = {self.name.casefold(), *(variant.casefold() for variant in self.name_variants)}
        added = [variant for variant in variants if variant and variant.casefold() not in known]
        if added:
            self.name_variants = [*self.name_variants, *dict.fromkeys(added)]
            self.touch()
        return added

    def fill_missing(
        self,
        *,
        ticker: str | None = None,
        cik: str | None = None,
        address: str | None = None,
    ) -> None:
        if ticker and not self.ticker:
            self.ticker = ticker
        if cik and not self.cik:
            self.cik = cik
        if address and not self.address:
            self.address = address
