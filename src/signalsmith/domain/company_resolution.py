"""Find-or-create resolution of canonical companies."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from signalsmith.domain.errors import (
    DuplicatePersistenceError,
    EntityNotFoundError,
    SignalValidationError,
)
from signalsmith.domain.model import Company, CompanySignal, name_key, ticker_key
from signalsmith.domain.normalization import normalize_company_name

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable, Sequence
    from uuid import UUID

    from signalsmith.domain.model import Signal
    from signalsmith.domain.ports.unit_of_work import EnrichmentUnitOfWork

log = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class CompanyResolution:
    company_id: UUID
    is_new: bool


def company_lookup_keys(
    name: str,
    variants: Iterable[str] = (),
    ticker: str | None = None,
) -> list[str]:
    """Lookup keys in priority order: name, variants, ticker."""

    keys: list[str] = []
    for candidate in (name, *variants):
        normalized = normalize_company_name(candidate)
        if normalized:
            keys.append(name_key(normalized))
    if ticker and ticker.strip():
        keys.append(ticker_key(ticker))
    return list(dict.fromkeys(keys))


class CompanyResolver:
    """Resolves the organization named on a signal to exactly one ``Company``.

    An existing company short-circuits enrichment: the signal is linked to it and
    ``is_new`` is false. Only a newly created company permits person-level work.
    """

    def __init__(self, unit_of_work_factory: Callable[[], EnrichmentUnitOfWork]) -> None:
        self._unit_of_work_factory = unit_of_work_factory

    def find_or_create(self, signal: Signal) -> CompanyResolution:
        try:
            return self._resolve(signal)
        except DuplicatePersistenceError:
            # another run created the company between our read and our write
            log.warning("Company %r created concurrently, resolving again", signal.company_name)
            return self._resolve(signal)

    def link_contacts(
        self,
        company_id: UUID,
        contact_ids: Sequence[UUID],
        role: str | None = None,
    ) -> int:
        """Link contacts to a company on both sides. Returns the number of new links."""

        linked = 0
        with self._unit_of_work_factory() as uow:
            company = uow.repositories.companies.get(company_id)
            if company is None:
                raise EntityNotFoundError(f"Company {company_id} not found")
            for contact_id in contact_ids:
                contact = uow.repositories.contacts.get(contact_id)
                if contact is None:
                    log.warning(
                        "Skipping unknown contact %s for company %s", contact_id, company_id
                    )
                    continue
                added = company.link_contact(contact_id)
                contact.link_company(company_id, role)
                linked += int(added)
            uow.commit()
        return linked

    def _resolve(self, signal: Signal) -> CompanyResolution:
        name = (signal.company_name or "").strip()
        if not normalize_company_name(name):
            raise SignalValidationError(f"Signal {signal.id} carries no company name")

        variants: list[str] = []
        ticker = cik = address = None
        if isinstance(signal, CompanySignal):
            variants = list(signal.name_variants)
            ticker, cik, address = signal.ticker, signal.cik, signal.company_address
        keys = company_lookup_keys(name, variants, ticker)

        with self._unit_of_work_factory() as uow:
            companies = uow.repositories.companies
            found = companies.find_by_keys(keys)
            existing = next((found[key] for key in keys if key in found), None)

            if existing is not None:
                existing.link_signal(signal.id, signal.signal_type)
                existing.merge_variants([name, *variants])
                existing.fill_missing(ticker=ticker, cik=cik, address=address)
                for key in keys:
                    if key not in found:
                        existing.add_key(key)
                uow.commit()
                log.info("Signal %s resolved to existing company %s", signal.id, existing.id)
                return CompanyResolution(company_id=existing.id, is_new=False)

            company = Company(
                name=name,
                name_variants=variants,
                ticker=ticker,
                cik=cik,
                address=address,
            )
            for key in keys:
                company.add_key(key)
            company.link_signal(signal.id, signal.signal_type)
            companies.add(company)
            uow.commit()
            log.info("Created company %s (%r) for signal %s", company.id, name, signal.id)
            return CompanyResolution(company_id=company.id, is_new=True)
