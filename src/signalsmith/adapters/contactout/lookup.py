"""Directory lookup port backed by ContactOut people search."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

from signalsmith.config.directory import get_directory_config
from signalsmith.domain.errors import ExternalLookupError
from signalsmith.domain.normalization import (
    canonical_profile_url,
    company_name_variations,
    normalize_person_name,
    person_name_variations,
)
from signalsmith.domain.ports.directory import OrganizationLookupResult, PersonLookupResult

from .client import ContactOutAPIError, ContactOutClient
from .translator import SOURCE, translate_profile

if TYPE_CHECKING:
    from collections.abc import Sequence

    from signalsmith.config.directory import DirectoryConfig
    from signalsmith.domain.ports.directory import PersonRecord

    from .schema import ContactOutProfile

log = getLogger(__name__)

SKIPPED_NO_COMPANY = "skipped-no-company-name"


def pick_match(profiles: Sequence[ContactOutProfile]) -> ContactOutProfile | None:
    """Single result, or several at one company; results spread over companies are ambiguous."""

    if not profiles:
        return None
    if len(profiles) == 1:
        return profiles[0]
    companies = {(profile.company_name or "").strip().lower() for profile in profiles}
    if len(companies) > 1:
        return None
    return profiles[0]


class ContactOutDirectoryLookup:
    def __init__(
        self,
        *,
        config: DirectoryConfig | None = None,
        client: ContactOutClient | None = None,
    ) -> None:
        self._config = config or get_directory_config()
        self._client = client or ContactOutClient(config=self._config)

    def search_by_name(self, full_name: str, company_name: str | None) -> PersonLookupResult:
        if not company_name or not company_name.strip():
            log.debug("Skipping directory search for %r: no company name", full_name)
            return PersonLookupResult(
                found=False, source=SOURCE, search_attempts=(SKIPPED_NO_COMPANY,)
            )

        companies = company_name_variations(
            company_name, limit=self._config.max_company_variations
        )
        # the name as given first, then normalized forms
        names = [full_name]
        for variant in person_name_variations(
            full_name, limit=self._config.max_name_variations
        ):
            if variant not in names:
                names.append(variant)

        attempts: list[str] = []
        for name in names:
            attempts.append(f"{name} @ {' | '.join(companies)}")
            response = self._search(name=name, companies=companies)
            profile = pick_match(response)
            if profile is None:
                if len(response) > 1:
                    log.info(
                        "Directory returned %d people at different companies for %r",
                        len(response),
                        name,
                    )
                continue
            record = translate_profile(profile)
            if record is not None:
                return PersonLookupResult(
                    found=True, record=record, source=SOURCE, search_attempts=tuple(attempts)
                )
        return PersonLookupResult(found=False, source=SOURCE, search_attempts=tuple(attempts))

    def search_by_organization(
        self,
        company_name: str,
        *,
        name_variants: Sequence[str] = (),
        seniority_limits: Sequence[tuple[str, int]] = (),
    ) -> OrganizationLookupResult:
        companies = company_name_variations(
            company_name, name_variants, limit=self._config.max_company_variations
        )
        if not companies:
            return OrganizationLookupResult(found=False)

        executives: list[PersonRecord] = []
        seen: set[str] = set()
        for seniority, limit in seniority_limits:
            try:
                profiles = self._search(companies=companies, seniority=(seniority,))
            except ExternalLookupError as exc:
                log.warning("%s search at %r failed: %s", seniority, company_name, exc)
                continue
            taken = 0
            for profile in profiles:
                if taken >= limit:
                    break
                record = translate_profile(profile)
                if record is None:
                    continue
                key = canonical_profile_url(record.linkedin_url) or normalize_person_name(
                    record.full_name
                )
                if key in seen:
                    continue
                seen.add(key)
                executives.append(record)
                taken += 1

        return OrganizationLookupResult(
            found=bool(executives),
            executives=tuple(executives),
            company_variations=tuple(companies),
        )

    def _search(
        self,
        *,
        name: str | None = None,
        companies: Sequence[str] = (),
        seniority: Sequence[str] = (),
    ) -> list[ContactOutProfile]:
        try:
            response = self._client.search_people(
                name=name, companies=companies, seniority=seniority
            )
        except ContactOutAPIError as exc:
            raise ExternalLookupError(str(exc)) from exc
        return response.profiles


if TYPE_CHECKING:
    from signalsmith.domain.ports.directory import DirectoryLookup

    _lookup_check: DirectoryLookup = ContactOutDirectoryLookup()
