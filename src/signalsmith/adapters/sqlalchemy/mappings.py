"""SQLAlchemy mapping metadata for the signalsmith domain model."""

from __future__ import annotations

import json
import logging
import uuid
from datetime import UTC, datetime
from functools import cache
from typing import Any, cast

from sqlalchemy import (
    Column,
    DateTime,
    Dialect,
    Enum,
    ForeignKey,
    Index,
    Integer,
    String,
    Table,
    Text,
    TypeDecorator,
    UniqueConstraint,
    Uuid,
    orm,
)
from sqlalchemy.orm import configure_mappers, relationship

from signalsmith.domain.model import (
    Company,
    CompanyContactLink,
    CompanyKey,
    CompanySignal,
    CompanySignalLink,
    Contact,
    ContactCompanyLink,
    ContactSignalLink,
    EnrichmentStatus,
    KeyPerson,
    PersonSignal,
    Signal,
    SignalSource,
)

log = logging.getLogger(__name__)

UUIDColumnType = Uuid[uuid.UUID]


class UTCDateTime(TypeDecorator[datetime]):
    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        if value.tzinfo is None:
            value = value.replace(tzinfo=UTC)
        return value.astimezone(UTC)

    def process_result_value(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        return value if value.tzinfo else value.replace(tzinfo=UTC)


class StringListType(TypeDecorator[list[str]]):
    """Ordered list of strings stored as a JSON array."""

    impl = Text
    cache_ok = True

    def process_bind_param(self, value: list[str] | None, dialect: Dialect) -> str:
        _ = dialect
        return json.dumps(list(value or []))

    def process_result_value(self, value: str | None, dialect: Dialect) -> list[str]:
        _ = dialect
        if not value:
            return []
        loaded = json.loads(value)
        if not isinstance(loaded, list):
            return []
        items = cast(list[Any], loaded)
        return [item for item in items if isinstance(item, str)]


mapper_registry = orm.registry()
mapper_registry.metadata.naming_convention = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_label)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_label)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}

# Signals ----------------------------------------------------------------------

PERSON_SIGNAL_COLUMNS = frozenset({"full_name", "designation"})
COMPANY_SIGNAL_COLUMNS = frozenset({"name_variants", "ticker", "cik", "company_address"})

signal_table = Table(
    "signal",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column("signal_source", Enum(SignalSource, native_enum=False), nullable=False),
    Column("filing_type", String, nullable=False),
    Column("filing_link", String, nullable=True),
    Column("source_urls", StringListType(), nullable=False, default=list),
    Column("accession", String, nullable=True),
    Column("filing_date", UTCDateTime(), nullable=True),
    Column("insights", Text, nullable=True),
    Column("location", String, nullable=True),
    Column("company_name", String, nullable=True),
    Column("deal_value", String, nullable=True),
    Column("event_type", String, nullable=True),
    Column("acquirer_name", String, nullable=True),
    Column("target_name", String, nullable=True),
    # person variant
    Column("full_name", String, nullable=True),
    Column("designation", String, nullable=True),
    # company variant
    Column("name_variants", StringListType(), nullable=True),
    Column("ticker", String, nullable=True),
    Column("cik", String, nullable=True),
    Column("company_address", String, nullable=True),
    # enrichment lifecycle
    Column(
        "enrichment_status",
        Enum(EnrichmentStatus, native_enum=False),
        nullable=False,
        default=EnrichmentStatus.PENDING,
    ),
    Column("enrichment_error", Text, nullable=True),
    Column("enrichment_note", Text, nullable=True),
    Column("enriched_at", UTCDateTime(), nullable=True),
    Column("contact_id", UUIDColumnType, nullable=True),
    Column("company_id", UUIDColumnType, nullable=True),
    Column("created_at", UTCDateTime(), nullable=False),
    Column("updated_at", UTCDateTime(), nullable=True),
    Index("ix_signal_filing_link", "filing_link"),
    Index("ix_signal_accession", "accession"),
    Index("ix_signal_type_date", "filing_type", "filing_date"),
    Index("ix_signal_status", "enrichment_status", "created_at"),
)

key_person_table = Table(
    "key_person",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column(
        "signal_id",
        UUIDColumnType,
        ForeignKey("signal.id", ondelete="CASCADE"),
        nullable=False,
    ),
    Column("position", Integer, nullable=False, default=0),
    Column("full_name", String, nullable=True),
    Column("designation", String, nullable=True),
    Column("location", String, nullable=True),
    Column("relationship", String, nullable=True),
    Column("email", String, nullable=True),
    Column("phone_number", String, nullable=True),
    Column("address", String, nullable=True),
    Column("source_of_information", String, nullable=True),
    Column("created_at", UTCDateTime(), nullable=False),
    Column("updated_at", UTCDateTime(), nullable=True),
)

# Companies --------------------------------------------------------------------

company_table = Table(
    "company",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column("name", String, nullable=False),
    Column("name_variants", StringListType(), nullable=False, default=list),
    Column("ticker", String, nullable=True),
    Column("cik", String, nullable=True),
    Column("address", String, nullable=True),
    Column("created_at", UTCDateTime(), nullable=False),
    Column("updated_at", UTCDateTime(), nullable=True),
)

# one row per lookup key; the primary key makes a key resolve to a single company
company_key_table = Table(
    "company_key",
    mapper_registry.metadata,
    Column("value", String, primary_key=True),
    Column(
        "company_id",
        UUIDColumnType,
        ForeignKey("company.id", ondelete="CASCADE"),
        nullable=False,
    ),
    Index("ix_company_key_company", "company_id"),
)

company_signal_table = Table(
    "company_signal",
    mapper_registry.metadata,
    Column(
        "company_id",
        UUIDColumnType,
        ForeignKey("company.id", ondelete="CASCADE"),
        primary_key=True,
    ),
    Column("signal_id", UUIDColumnType, primary_key=True),
    Column("signal_type", String, nullable=False),
    Column("linked_at", UTCDateTime(), nullable=False),
)

company_contact_table = Table(
    "company_contact",
    mapper_registry.metadata,
    Column(
        "company_id",
        UUIDColumnType,
        ForeignKey("company.id", ondelete="CASCADE"),
        primary_key=True,
    ),
    Column("contact_id", UUIDColumnType, primary_key=True),
    Column("linked_at", UTCDateTime(), nullable=False),
)

# Contacts ---------------------------------------------------------------------

contact_table = Table(
    "contact",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column("full_name", String, nullable=False),
    Column("normalized_name", String, nullable=False),
    Column("personal_emails", StringListType(), nullable=False, default=list),
    Column("business_emails", StringListType(), nullable=False, default=list),
    Column("personal_phones", StringListType(), nullable=False, default=list),
    Column("business_phones", StringListType(), nullable=False, default=list),
    Column("linkedin_url", String, nullable=True),
    Column("company_name", String, nullable=True),
    Column("occupation_title", String, nullable=True),
    Column("location", String, nullable=True),
    Column("source_of_information", String, nullable=True),
    Column("created_at", UTCDateTime(), nullable=False),
    Column("updated_at", UTCDateTime(), nullable=True),
    UniqueConstraint("linkedin_url", name="uq_contact_linkedin_url"),
    Index("ix_contact_normalized_name", "normalized_name"),
)

contact_signal_table = Table(
    "contact_signal",
    mapper_registry.metadata,
    Column(
        "contact_id",
        UUIDColumnType,
        ForeignKey("contact.id", ondelete="CASCADE"),
        primary_key=True,
    ),
    Column("signal_id", UUIDColumnType, primary_key=True),
    Column("signal_type", String, nullable=False),
    Column("linked_at", UTCDateTime(), nullable=False),
)

contact_company_table = Table(
    "contact_company",
    mapper_registry.metadata,
    Column(
        "contact_id",
        UUIDColumnType,
        ForeignKey("contact.id", ondelete="CASCADE"),
        primary_key=True,
    ),
    Column("company_id", UUIDColumnType, primary_key=True),
    Column("role", String, nullable=True),
    Column("linked_at", UTCDateTime(), nullable=False),
)


def _owned(target: type[object], **kwargs: Any) -> orm.RelationshipProperty[Any]:
    return relationship(target, cascade="all, delete-orphan", lazy="selectin", **kwargs)


@cache
def start_mappers() -> orm.registry:
    """Configure SQLAlchemy mappers for the domain model."""

    log.info("Starting SQLAlchemy mappers")

    mapper_registry.map_imperatively(
        Signal,
        signal_table,
        polymorphic_on=signal_table.c.signal_source,
        exclude_properties=PERSON_SIGNAL_COLUMNS | COMPANY_SIGNAL_COLUMNS,
    )

    mapper_registry.map_imperatively(
        PersonSignal,
        None,
        inherits=Signal,
        polymorphic_identity=SignalSource.PERSON,
        properties={
            "full_name": signal_table.c.full_name,
            "designation": signal_table.c.designation,
        },
        exclude_properties=COMPANY_SIGNAL_COLUMNS,
    )

    mapper_registry.map_imperatively(
        CompanySignal,
        None,
        inherits=Signal,
        polymorphic_identity=SignalSource.COMPANY,
        properties={
            "name_variants": signal_table.c.name_variants,
            "ticker": signal_table.c.ticker,
            "cik": signal_table.c.cik,
            "company_address": signal_table.c.company_address,
            "_key_people": _owned(KeyPerson, order_by=key_person_table.c.position),
        },
        exclude_properties=PERSON_SIGNAL_COLUMNS,
    )

    mapper_registry.map_imperatively(KeyPerson, key_person_table)

    mapper_registry.map_imperatively(
        Company,
        company_table,
        properties={
            "_keys": _owned(CompanyKey),
            "_signal_links": _owned(
                CompanySignalLink,
                order_by=company_signal_table.c.linked_at,
            ),
            "_contact_links": _owned(
                CompanyContactLink,
                order_by=company_contact_table.c.linked_at,
            ),
        },
    )
    mapper_registry.map_imperatively(CompanyKey, company_key_table)
    mapper_registry.map_imperatively(CompanySignalLink, company_signal_table)
    mapper_registry.map_imperatively(CompanyContactLink, company_contact_table)

    mapper_registry.map_imperatively(
        Contact,
        contact_table,
        properties={
            "_signal_links": _owned(
                ContactSignalLink,
                order_by=contact_signal_table.c.linked_at,
            ),
            "_company_links": _owned(
                ContactCompanyLink,
                order_by=contact_company_table.c.linked_at,
            ),
        },
    )
    mapper_registry.map_imperatively(ContactSignalLink, contact_signal_table)
    mapper_registry.map_imperatively(ContactCompanyLink, contact_company_table)

    configure_mappers()
    return mapper_registry
