"""Repository implementations backed by SQLAlchemy sessions."""

from __future__ import annotations

from typing import TYPE_CHECKING, TypeVar, cast

from sqlalchemy import String, func, or_, select, type_coerce, update

from signalsmith.adapters.sqlalchemy.mappings import (
    company_key_table,
    contact_company_table,
    contact_table,
    key_person_table,
    signal_table,
)
from signalsmith.domain.model import (
    Company,
    CompanySignal,
    Contact,
    EnrichmentStatus,
    Signal,
    SignalSource,
    allowed_previous_statuses,
    utcnow,
)

if TYPE_CHECKING:
    from collections.abc import Collection, Iterable, Sequence
    from datetime import datetime
    from typing import Any
    from uuid import UUID

    from sqlalchemy import CursorResult
    from sqlalchemy.orm import Session


TSignal = TypeVar("TSignal", bound=Signal)


def _hydrate(signals: Iterable[TSignal]) -> list[TSignal]:
    """Load owned collections while the session is open so signals survive detaching."""

    loaded = list(signals)
    for signal in loaded:
        if isinstance(signal, CompanySignal):
            _ = signal.key_people
    return loaded


class SqlAlchemySignalRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def add(self, entity: Signal) -> None:
        self.session.add(entity)

    def get(self, entity_id: UUID) -> Signal | None:
        signal = self.session.get(Signal, entity_id)
        if signal is None:
            return None
        return _hydrate([signal])[0]

    def find_by_links(self, links: Sequence[str]) -> Signal | None:
        wanted = {link for link in links if link}
        if not wanted:
            return None
        conditions = [signal_table.c.filing_link.in_(sorted(wanted))]
        conditions.extend(
            type_coerce(signal_table.c.source_urls, String).contains(f'"{link}"')
            for link in sorted(wanted)
        )
        stmt = select(Signal).where(or_(*conditions)).order_by(signal_table.c.created_at)
        for signal in self.session.execute(stmt).scalars():
            # the JSON substring match is coarse; confirm on the parsed values
            if wanted.intersection(signal.links):
                return _hydrate([signal])[0]
        return None

    def find_by_accession(self, accession: str) -> list[Signal]:
        stmt = (
            select(Signal)
            .where(signal_table.c.accession == accession)
            .order_by(signal_table.c.created_at)
        )
        return _hydrate(self.session.execute(stmt).scalars())

    def list_in_window(self, filing_type: str, start: datetime, end: datetime) -> list[Signal]:
        stmt = (
            select(Signal)
            .where(signal_table.c.filing_type == filing_type)
            .where(signal_table.c.filing_date >= start)
            .where(signal_table.c.filing_date <= end)
            .order_by(signal_table.c.filing_date)
        )
        return _hydrate(self.session.execute(stmt).scalars())

    def list_created_since(self, filing_type: str, since: datetime, *, limit: int) -> list[Signal]:
        stmt = (
            select(Signal)
            .where(signal_table.c.filing_type == filing_type)
            .where(signal_table.c.created_at >= since)
            .order_by(signal_table.c.created_at.desc())
            .limit(limit)
        )
        return _hydrate(self.session.execute(stmt).scalars())

    def list_created_after(self, since: datetime) -> list[Signal]:
        stmt = (
            select(Signal)
            .where(signal_table.c.created_at >= since)
            .order_by(signal_table.c.created_at)
        )
        return _hydrate(self.session.execute(stmt).scalars())

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
        now = utcnow()
        values: dict[str, object] = {
            "enrichment_status": target,
            "enrichment_error": error,
            "updated_at": now,
        }
        if target in (EnrichmentStatus.PROCESSING, EnrichmentStatus.PENDING):
            values["enrichment_note"] = None
        else:
            values["enriched_at"] = now
            if note is not None:
                values["enrichment_note"] = note
        if company_id is not None:
            values["company_id"] = company_id
        if contact_id is not None:
            values["contact_id"] = contact_id

        stmt = (
            update(signal_table)
            .where(signal_table.c.id == signal_id)
            .where(signal_table.c.enrichment_status.in_(allowed_previous_statuses(target)))
            .values(**values)
        )
        result = cast("CursorResult[Any]", self.session.execute(stmt))
        return result.rowcount > 0

    def list_ids_by_status(
        self,
        status: EnrichmentStatus,
        *,
        limit: int,
        filing_types: Collection[str] | None = None,
        source: SignalSource | None = None,
    ) -> list[UUID]:
        stmt = select(signal_table.c.id).where(signal_table.c.enrichment_status == status)
        if filing_types:
            stmt = stmt.where(signal_table.c.filing_type.in_(list(filing_types)))
        if source is not None:
            stmt = stmt.where(signal_table.c.signal_source == source)
        stmt = stmt.order_by(signal_table.c.created_at.desc()).limit(limit)
        return list(self.session.execute(stmt).scalars())

    def count_by_status(
        self, *, source: SignalSource | None = None
    ) -> dict[EnrichmentStatus, int]:
        stmt = select(signal_table.c.enrichment_status, func.count()).group_by(
            signal_table.c.enrichment_status
        )
        if source is not None:
            stmt = stmt.where(signal_table.c.signal_source == source)
        return {EnrichmentStatus(status): count for status, count in self.session.execute(stmt)}

    def count_key_people_coverage(self) -> tuple[int, int]:
        with_people = select(key_person_table.c.signal_id).distinct().scalar_subquery()
        base = select(func.count()).where(signal_table.c.signal_source == SignalSource.COMPANY)
        covered = self.session.scalar(base.where(signal_table.c.id.in_(with_people)))
        missing = self.session.scalar(base.where(signal_table.c.id.not_in(with_people)))
        return covered or 0, missing or 0


class SqlAlchemyCompanyRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def add(self, entity: Company) -> None:
        self.session.add(entity)

    def get(self, entity_id: UUID) -> Company | None:
        return self.session.get(Company, entity_id)

    def find_by_keys(self, keys: Sequence[str]) -> dict[str, Company]:
        if not keys:
            return {}
        stmt = select(company_key_table.c.value, company_key_table.c.company_id).where(
            company_key_table.c.value.in_(list(keys))
        )
        found: dict[str, Company] = {}
        for value, company_id in self.session.execute(stmt):
            company = self.session.get(Company, company_id)
            if company is not None:
                found[value] = company
        return found


class SqlAlchemyContactRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def add(self, entity: Contact) -> None:
        self.session.add(entity)

    def get(self, entity_id: UUID) -> Contact | None:
        return self.session.get(Contact, entity_id)

    def find_by_linkedin_url(self, url: str) -> Contact | None:
        stmt = select(Contact).where(contact_table.c.linkedin_url == url).limit(1)
        return self.session.execute(stmt).scalar_one_or_none()

    def find_by_email(self, email: str) -> Contact | None:
        wanted = email.strip().lower()
        if not wanted:
            return None
        columns = (contact_table.c.business_emails, contact_table.c.personal_emails)
        stmt = select(Contact).where(
            or_(
                *(
                    func.lower(type_coerce(column, String)).contains(f'"{wanted}"')
                    for column in columns
                )
            )
        )
        for contact in self.session.execute(stmt).scalars():
            if wanted in {value.lower() for value in contact.emails}:
                return contact
        return None

    def find_by_normalized_name(self, normalized_name: str, *, limit: int = 20) -> list[Contact]:
        stmt = (
            select(Contact)
            .where(contact_table.c.normalized_name == normalized_name)
            .order_by(contact_table.c.created_at)
            .limit(limit)
        )
        return list(self.session.execute(stmt).scalars())

    def list_for_companies(self, company_ids: Collection[UUID]) -> list[Contact]:
        if not company_ids:
            return []
        linked = select(contact_company_table.c.contact_id).where(
            contact_company_table.c.company_id.in_(list(company_ids))
        )
        stmt = select(Contact).where(contact_table.c.id.in_(linked)).order_by(
            contact_table.c.created_at
        )
        return list(self.session.execute(stmt).scalars())


if TYPE_CHECKING:
    from signalsmith.domain.ports.persistence import (
        CompanyRepository,
        ContactRepository,
        SignalRepository,
    )

    _session_stub = cast("Session", object())
    _signal_repo: SignalRepository = SqlAlchemySignalRepository(_session_stub)
    _company_repo: CompanyRepository = SqlAlchemyCompanyRepository(_session_stub)
    _contact_repo: ContactRepository = SqlAlchemyContactRepository(_session_stub)
