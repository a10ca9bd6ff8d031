"""Pydantic models for incoming signal payloads (camelCase JSON)."""

from __future__ import annotations

from datetime import UTC, datetime
from logging import getLogger
from typing import Annotated, Literal, TypeAlias

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_validator
from pydantic.alias_generators import to_camel

log = getLogger(__name__)

_DATE_FORMATS = ("%Y-%m-%d", "%m/%d/%Y", "%B %d, %Y", "%b %d, %Y", "%d %B %Y")


def _blank_to_none(value: object) -> object:
    if isinstance(value, str):
        stripped = value.strip()
        return stripped or None
    return value


def parse_filing_date(value: object) -> datetime | None:
    """Lenient date parsing; anything unparseable becomes ``None``."""

    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=UTC)
    if value is None:
        return None
    if not isinstance(value, str):
        log.info("Dropping non-string filing date %r", value)
        return None
    raw = value.strip()
    if not raw:
        return None
    try:
        parsed = datetime.fromisoformat(raw.replace("Z", "+00:00"))
    except ValueError:
        parsed = None
        for fmt in _DATE_FORMATS:
            try:
                parsed = datetime.strptime(raw, fmt)  # noqa: DTZ007
                break
            except ValueError:
                continue
    if parsed is None:
        log.info("Dropping unparseable filing date %r", raw)
        return None
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=UTC)


class IngestBaseModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True, alias_generator=to_camel)


class KeyPersonPayload(IngestBaseModel):
    full_name: str | None = None
    designation: str | None = None
    location: str | None = None
    relationship: str | None = None
    email: str | None = None
    phone_number: str | None = None
    address: str | None = None
    source_of_information: str | None = None

    _normalize_blank = field_validator("*", mode="before")(_blank_to_none)


class SignalPayloadBase(IngestBaseModel):
    filing_type: str
    filing_link: str | None = None
    source_urls: list[str] = Field(default_factory=list)
    accession: str | None = None
    filing_date: datetime | None = None
    insights: str | None = None
    location: str | None = None
    company_name: str | None = None
    deal_value: str | None = None
    event_type: str | None = None
    acquirer_name: str | None = None
    target_name: str | None = None

    @field_validator("filing_date", mode="before")
    @classmethod
    def _lenient_date(cls, value: object) -> datetime | None:
        return parse_filing_date(value)

    @field_validator("source_urls", mode="before")
    @classmethod
    def _urls_as_list(cls, value: object) -> object:
        if value is None:
            return []
        if isinstance(value, str):
            return [value]
        return value

    @field_validator("deal_value", mode="before")
    @classmethod
    def _deal_value_as_text(cls, value: object) -> object:
        if isinstance(value, int | float) and not isinstance(value, bool):
            return str(value)
        return _blank_to_none(value)

    _normalize_blank = field_validator(
        "filing_link",
        "accession",
        "insights",
        "location",
        "company_name",
        "event_type",
        "acquirer_name",
        "target_name",
        mode="before",
    )(_blank_to_none)


class PersonSignalPayload(SignalPayloadBase):
    signal_source: Literal["Person"]
    full_name: str | None = None
    designation: str | None = None

    _normalize_person = field_validator("full_name", "designation", mode="before")(
        _blank_to_none
    )


class CompanySignalPayload(SignalPayloadBase):
    signal_source: Literal["Company"]
    name_variants: list[str] = Field(default_factory=list)
    ticker: str | None = None
    cik: str | None = None
    company_address: str | None = None
    key_people: list[KeyPersonPayload] = Field(default_factory=list)

    _normalize_company = field_validator("ticker", "cik", "company_address", mode="before")(
        _blank_to_none
    )


SignalPayload: TypeAlias = Annotated[
    PersonSignalPayload | CompanySignalPayload,
    Field(discriminator="signal_source"),
]

signal_payload_adapter: TypeAdapter[PersonSignalPayload | CompanySignalPayload] = TypeAdapter(
    SignalPayload
)
