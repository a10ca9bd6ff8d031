from __future__ import annotations

from uuid import uuid4

from signalsmith.domain.model import Company, Contact


def test_company_links_are_idempotent() -> None:
    company = Company(name="Acme Holdings")
    signal_id, contact_id = uuid4(), uuid4()

    assert company.link_signal(signal_id, "8k")
    assert not company.link_signal(signal_id, "8k")
    assert company.link_contact(contact_id)
    assert not company.link_contact(contact_id)
    assert company.signal_ids == (signal_id,)
    assert company.contact_ids == (contact_id,)


def test_company_merges_variants_without_replacing() -> None:
    company = Company(name="Acme Holdings", name_variants=["ACME"], ticker="ACME")

    added = company.merge_variants(["acme", "Acme Holdings Group", "Acme Holdings"])
    company.fill_missing(ticker="OTHER", cik="0000123")

    assert added == ["Acme Holdings Group"]
    assert company.name_variants == ["ACME", "Acme Holdings Group"]
    assert company.ticker == "ACME"
    assert company.cik == "0000123"


def test_contact_normalizes_name_and_merges_details() -> None:
    contact = Contact(full_name="Dr. Jane Smith", business_emails=["jane@acme.example"])

    contact.merge_details(
        business_emails=["JANE@acme.example", "j.smith@acme.example"],
        personal_phones=["+1 555 0100"],
        occupation_title="CEO",
    )
    contact.merge_details(occupation_title="Chair")

    assert contact.normalized_name == "jane smith"
    assert contact.business_emails == ["jane@acme.example", "j.smith@acme.example"]
    assert contact.personal_phones == ["+1 555 0100"]
    assert contact.occupation_title == "CEO"


def test_contact_company_link_fills_missing_role() -> None:
    contact = Contact(full_name="Jane Smith")
    company_id = uuid4()

    assert contact.link_company(company_id)
    assert not contact.link_company(company_id, "CEO")

    assert contact.company_ids == (company_id,)
    assert contact.company_links[0].role == "CEO"
