"""Pydantic models describing the ContactOut people-search payloads."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any, ClassVar, cast

from pydantic import BaseModel, ConfigDict, Field, field_validator

log = logging.getLogger(__name__)


class ContactOutBaseModel(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)
    _logged_extra_keys: ClassVar[set[str]] = set()

    def model_post_init(self, _context: object, /) -> None:
        extras = self.__pydantic_extra__
        if not extras:
            return
        new_keys = set(extras).difference(self._logged_extra_keys)
        if not new_keys:
            return
        self._logged_extra_keys.update(new_keys)
        log.debug(
            "ContactOut %s: unmodeled keys: %s",
            type(self).__name__,
            ", ".join(sorted(new_keys)),
        )


class ContactOutCompany(ContactOutBaseModel):
    name: str | None = None
    domain: str | None = None
    url: str | None = None


class ContactOutContactInfo(ContactOutBaseModel):
    emails: list[str] = Field(default_factory=list)
    work_emails: list[str] = Field(default_factory=list)
    personal_emails: list[str] = Field(default_factory=list)
    phones: list[str] = Field(default_factory=list)

    @field_validator("emails", "work_emails", "personal_emails", "phones", mode="before")
    @classmethod
    def _none_to_empty(cls, value: object) -> object:
        return [] if value is None else value


class ContactOutProfile(ContactOutBaseModel):
    full_name: str | None = None
    name: str | None = None
    title: str | None = None
    headline: str | None = None
    location: str | None = None
    country: str | None = None
    li_vanity: str | None = None
    linkedin_url: str | None = None
    company: ContactOutCompany | None = None
    current_company: str | None = None
    contact_info: ContactOutContactInfo | None = None

    @field_validator("company", mode="before")
    @classmethod
    def _company_from_string(cls, value: object) -> object:
        if isinstance(value, str):
            return {"name": value}
        return value

    @property
    def display_name(self) -> str | None:
        return self.full_name or self.name

    @property
    def company_name(self) -> str | None:
        if self.company is not None and self.company.name:
            return self.company.name
        return self.current_company


class ContactOutSearchResponse(ContactOutBaseModel):
    """Search response; ``profiles`` arrives keyed by profile URL or as a plain list."""

    status_code: int | None = None
    metadata: dict[str, Any] | None = None
    profiles: list[ContactOutProfile] = Field(default_factory=list)

    @field_validator("profiles", mode="before")
    @classmethod
    def _profiles_as_list(cls, value: object) -> object:
        if value is None:
            return []
        if isinstance(value, Mapping):
            return list(cast(Mapping[str, object], value).values())
        return value
