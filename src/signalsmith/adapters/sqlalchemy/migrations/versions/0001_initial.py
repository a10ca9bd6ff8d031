"""Initial schema: signals, key people, companies, contacts and their links.

Revision ID: 0001_initial
Revises:
Create Date: 2026-09-28 10:12:00
"""

from __future__ import annotations

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op

revision: str = "0001_initial"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def _timestamps() -> list[sa.Column[object]]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    ]


def upgrade() -> None:
    op.create_table(
        "signal",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("signal_source", sa.String(length=7), nullable=False),
        sa.Column("filing_type", sa.String(), nullable=False),
        sa.Column("filing_link", sa.String(), nullable=True),
        sa.Column("source_urls", sa.Text(), nullable=False),
        sa.Column("accession", sa.String(), nullable=True),
        sa.Column("filing_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("insights", sa.Text(), nullable=True),
        sa.Column("location", sa.String(), nullable=True),
        sa.Column("company_name", sa.String(), nullable=True),
        sa.Column("deal_value", sa.String(), nullable=True),
        sa.Column("event_type", sa.String(), nullable=True),
        sa.Column("acquirer_name", sa.String(), nullable=True),
        sa.Column("target_name", sa.String(), nullable=True),
        sa.Column("full_name", sa.String(), nullable=True),
        sa.Column("designation", sa.String(), nullable=True),
        sa.Column("name_variants", sa.Text(), nullable=True),
        sa.Column("ticker", sa.String(), nullable=True),
        sa.Column("cik", sa.String(), nullable=True),
        sa.Column("company_address", sa.String(), nullable=True),
        sa.Column("enrichment_status", sa.String(length=10), nullable=False),
        sa.Column("enrichment_error", sa.Text(), nullable=True),
        sa.Column("enrichment_note", sa.Text(), nullable=True),
        sa.Column("enriched_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("contact_id", sa.Uuid(), nullable=True),
        sa.Column("company_id", sa.Uuid(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_signal")),
    )
    op.create_index("ix_signal_filing_link", "signal", ["filing_link"])
    op.create_index("ix_signal_accession", "signal", ["accession"])
    op.create_index("ix_signal_type_date", "signal", ["filing_type", "filing_date"])
    op.create_index("ix_signal_status", "signal", ["enrichment_status", "created_at"])

    op.create_table(
        "key_person",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("signal_id", sa.Uuid(), nullable=False),
        sa.Column("position", sa.Integer(), nullable=False),
        sa.Column("full_name", sa.String(), nullable=True),
        sa.Column("designation", sa.String(), nullable=True),
        sa.Column("location", sa.String(), nullable=True),
        sa.Column("relationship", sa.String(), nullable=True),
        sa.Column("email", sa.String(), nullable=True),
        sa.Column("phone_number", sa.String(), nullable=True),
        sa.Column("address", sa.String(), nullable=True),
        sa.Column("source_of_information", sa.String(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(
            ["signal_id"],
            ["signal.id"],
            name=op.f("fk_key_person_signal_id_signal"),
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_key_person")),
    )

    op.create_table(
        "company",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("name_variants", sa.Text(), nullable=False),
        sa.Column("ticker", sa.String(), nullable=True),
        sa.Column("cik", sa.String(), nullable=True),
        sa.Column("address", sa.String(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_company")),
    )
    op.create_table(
        "company_key",
        sa.Column("value", sa.String(), nullable=False),
        sa.Column("company_id", sa.Uuid(), nullable=False),
        sa.ForeignKeyConstraint(
            ["company_id"],
            ["company.id"],
            name=op.f("fk_company_key_company_id_company"),
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("value", name=op.f("pk_company_key")),
    )
    op.create_index("ix_company_key_company", "company_key", ["company_id"])
    op.create_table(
        "company_signal",
        sa.Column("company_id", sa.Uuid(), nullable=False),
        sa.Column("signal_id", sa.Uuid(), nullable=False),
        sa.Column("signal_type", sa.String(), nullable=False),
        sa.Column("linked_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(
            ["company_id"],
            ["company.id"],
            name=op.f("fk_company_signal_company_id_company"),
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("company_id", "signal_id", name=op.f("pk_company_signal")),
    )
    op.create_table(
        "company_contact",
        sa.Column("company_id", sa.Uuid(), nullable=False),
        sa.Column("contact_id", sa.Uuid(), nullable=False),
        sa.Column("linked_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(
            ["company_id"],
            ["company.id"],
            name=op.f("fk_company_contact_company_id_company"),
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("company_id", "contact_id", name=op.f("pk_company_contact")),
    )

    op.create_table(
        "contact",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("full_name", sa.String(), nullable=False),
        sa.Column("normalized_name", sa.String(), nullable=False),
        sa.Column("personal_emails", sa.Text(), nullable=False),
        sa.Column("business_emails", sa.Text(), nullable=False),
        sa.Column("personal_phones", sa.Text(), nullable=False),
        sa.Column("business_phones", sa.Text(), nullable=False),
        sa.Column("linkedin_url", sa.String(), nullable=True),
        sa.Column("company_name", sa.String(), nullable=True),
        sa.Column("occupation_title", sa.String(), nullable=True),
        sa.Column("location", sa.String(), nullable=True),
        sa.Column("source_of_information", sa.String(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_contact")),
        sa.UniqueConstraint("linkedin_url", name="uq_contact_linkedin_url"),
    )
    op.create_index("ix_contact_normalized_name", "contact", ["normalized_name"])
    op.create_table(
        "contact_signal",
        sa.Column("contact_id", sa.Uuid(), nullable=False),
        sa.Column("signal_id", sa.Uuid(), nullable=False),
        sa.Column("signal_type", sa.String(), nullable=False),
        sa.Column("linked_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(
            ["contact_id"],
            ["contact.id"],
            name=op.f("fk_contact_signal_contact_id_contact"),
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("contact_id", "signal_id", name=op.f("pk_contact_signal")),
    )
    op.create_table(
        "contact_company",
        sa.Column("contact_id", sa.Uuid(), nullable=False),
        sa.Column("company_id", sa.Uuid(), nullable=False),
        sa.Column("role", sa.String(), nullable=True),
        sa.Column("linked_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(
            ["contact_id"],
            ["contact.id"],
            name=op.f("fk_contact_company_contact_id_contact"),
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("contact_id", "company_id", name=op.f("pk_contact_company")),
    )


def downgrade() -> None:
    for table in (
        "contact_company",
        "contact_signal",
        "contact",
        "company_contact",
        "company_signal",
        "company_key",
        "company",
        "key_person",
        "signal",
    ):
        op.drop_table(table)
