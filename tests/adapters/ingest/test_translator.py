from __future__ import annotations

from datetime import UTC, datetime

import pytest

from signalsmith.adapters.ingest import (
    PayloadRejectedError,
    parse_filing_date,
    parse_payload,
    to_signal,
    translate_payloads,
)
from signalsmith.domain.model import CompanySignal, PersonSignal, SignalSource


def _company_payload(**overrides: object) -> dict[str, object]:
    payload: dict[str, object] = {
        "signalSource": "Company",
        "filingType": "form-8k",
        "filingLink": "https://filings.example.org/acme/8k-1",
        "sourceUrls": "https://mirror.example.org/acme/8k-1",
        "filingDate": "2025-03-14",
        "companyName": "Acme Holdings Inc",
        "nameVariants": ["Acme Holdings"],
        "ticker": " ",
        "dealValue": 2500000,
        "keyPeople": [
            {"fullName": "Jane Smith", "designation": "CEO", "email": ""},
            {"fullName": "  ", "designation": "CFO"},
        ],
        "unknownField": {"kept": False},
    }
    payload.update(overrides)
    return payload


@pytest.mark.parametrize(
    "raw",
    [
        "2025-03-14",
        "2025-03-14T00:00:00Z",
        "03/14/2025",
        "March 14, 2025",
        "Mar 14, 2025",
        "14 March 2025",
    ],
)
def test_parse_filing_date_accepts_common_formats(raw: str) -> None:
    assert parse_filing_date(raw) == datetime(2025, 3, 14, tzinfo=UTC)


@pytest.mark.parametrize("raw", [None, "", "   ", "sometime in March", 20250314])
def test_parse_filing_date_drops_unusable_values(raw: object) -> None:
    assert parse_filing_date(raw) is None


def test_company_payload_becomes_company_signal() -> None:
    signal = to_signal(parse_payload(_company_payload()))

    assert isinstance(signal, CompanySignal)
    assert signal.source is SignalSource.COMPANY
    assert signal.links == (
        "https://filings.example.org/acme/8k-1",
        "https://mirror.example.org/acme/8k-1",
    )
    assert signal.filing_date == datetime(2025, 3, 14, tzinfo=UTC)
    assert signal.ticker is None
    assert signal.deal_value == "2500000"
    assert signal.name_variants == ["Acme Holdings"]
    assert [(p.full_name, p.designation, p.email) for p in signal.key_people] == [
        ("Jane Smith", "CEO", None)
    ]


def test_person_payload_becomes_person_signal() -> None:
    signal = to_signal(
        parse_payload(
            {
                "signalSource": "Person",
                "filingType": "form-4",
                "fullName": "Jane Smith",
                "designation": "Director",
                "companyName": "Acme Holdings Inc",
                "filingDate": "not a date",
            }
        )
    )

    assert isinstance(signal, PersonSignal)
    assert signal.full_name == "Jane Smith"
    assert signal.designation == "Director"
    assert signal.filing_date is None
    assert signal.source_urls == []


def test_unknown_source_is_rejected() -> None:
    with pytest.raises(PayloadRejectedError):
        parse_payload({"signalSource": "Fund", "filingType": "form-4"})


def test_translate_payloads_reports_rejections_by_index() -> None:
    signals, rejected = translate_payloads(
        [
            _company_payload(),
            {"signalSource": "Person"},
            _company_payload(filingLink="https://filings.example.org/acme/8k-2"),
        ]
    )

    assert len(signals) == 2
    assert [index for index, _reason in rejected] == [1]
    assert "filingType" in rejected[0][1]
