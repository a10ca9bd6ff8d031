"""Translate ContactOut profiles into directory person records."""

from __future__ import annotations

from typing import TYPE_CHECKING, Final

from signalsmith.domain.ports.directory import PersonRecord

if TYPE_CHECKING:
    from collections.abc import Iterable

    from .schema import ContactOutProfile

SOURCE: Final[str] = "contactout"
PROFILE_URL_TEMPLATE: Final[str] = "https://www.linkedin.com/in/{vanity}"
FREE_MAIL_DOMAINS: Final[frozenset[str]] = frozenset(
    {"gmail.com", "yahoo.com", "hotmail.com", "outlook.com", "icloud.com", "aol.com"}
)


def is_free_mail(email: str) -> bool:
    _, _, domain = email.strip().lower().rpartition("@")
    return domain in FREE_MAIL_DOMAINS


def _clean(values: Iterable[str]) -> tuple[str, ...]:
    seen: set[str] = set()
    cleaned: list[str] = []
    for value in values:
        stripped = value.strip()
        if stripped and stripped.lower() not in seen:
            seen.add(stripped.lower())
            cleaned.append(stripped)
    return tuple(cleaned)


def profile_url(profile: ContactOutProfile) -> str | None:
    if profile.li_vanity:
        return PROFILE_URL_TEMPLATE.format(vanity=profile.li_vanity.strip("/"))
    return profile.linkedin_url or None


def translate_profile(profile: ContactOutProfile) -> PersonRecord | None:
    """Return ``None`` for profiles without a usable name."""

    full_name = (profile.display_name or "").strip()
    if not full_name:
        return None

    info = profile.contact_info
    business_emails: list[str] = []
    personal_emails: list[str] = []
    phones: list[str] = []
    if info is not None:
        business_emails.extend(info.work_emails)
        personal_emails.extend(info.personal_emails)
        # the untyped list is split by domain
        for email in info.emails:
            (personal_emails if is_free_mail(email) else business_emails).append(email)
        phones.extend(info.phones)

    return PersonRecord(
        full_name=full_name,
        title=profile.title or profile.headline,
        company_name=profile.company_name,
        location=profile.location or profile.country,
        personal_emails=_clean(personal_emails),
        business_emails=_clean(business_emails),
        business_phones=_clean(phones),
        linkedin_url=profile_url(profile),
        source=SOURCE,
    )
