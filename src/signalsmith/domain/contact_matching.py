"""Decide whether a named person already has a ``Contact``."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from signalsmith.domain.company_resolution import company_lookup_keys
from signalsmith.domain.model import Contact, MatchConfidence, MatchMethod
from signalsmith.domain.normalization import (
    canonical_profile_url,
    company_similarity,
    normalize_company_name,
    normalize_person_name,
    similarity,
)
from signalsmith.domain.settings import ResolutionSettings

if TYPE_CHECKING:
    from collections.abc import Collection
    from uuid import UUID

    from signalsmith.domain.ports.persistence import CompanyRepository, ContactRepository

log = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class MatchResult:
    contact: Contact | None
    method: MatchMethod
    confidence: MatchConfidence
    potential_matches: tuple[Contact, ...] = ()
    score: float | None = None

    @property
    def matched(self) -> bool:
        return self.contact is not None and self.confidence is not MatchConfidence.NONE


NO_MATCH = MatchResult(contact=None, method=MatchMethod.NONE, confidence=MatchConfidence.NONE)


class ContactMatcher:
    """Cascade of increasingly loose lookups against stored contacts.

    1. profile URL or email, when already known: ``exact``
    2. normalized name at the normalized company: ``high``
    3. similar name at the same company: ``medium``
    4. unique normalized name anywhere: ``low``

    ``none`` tells the caller to fall back to the external directory.
    """

    def __init__(
        self,
        contacts: ContactRepository,
        companies: CompanyRepository,
        *,
        settings: ResolutionSettings | None = None,
    ) -> None:
        self._contacts = contacts
        self._companies = companies
        self._settings = settings or ResolutionSettings()

    def match(
        self,
        person_name: str,
        company_name: str | None,
        *,
        profile_url: str | None = None,
        email: str | None = None,
    ) -> MatchResult:
        result = self._match(person_name, company_name, profile_url=profile_url, email=email)
        log.debug(
            "Match %r @ %r: %s via %s",
            person_name,
            company_name,
            result.confidence,
            result.method,
        )
        return result

    def same_company(self, contact: Contact, company_name: str | None) -> bool:
        """Whether ``contact`` works for ``company_name`` (by link or employer name)."""

        if not normalize_company_name(company_name):
            return False
        if not set(contact.company_ids).isdisjoint(self._company_ids(company_name)):
            return True
        score = company_similarity(contact.company_name, company_name)
        return score >= self._settings.similarity_threshold

    def _match(
        self,
        person_name: str,
        company_name: str | None,
        *,
        profile_url: str | None,
        email: str | None,
    ) -> MatchResult:
        canonical_url = canonical_profile_url(profile_url)
        if canonical_url:
            contact = self._contacts.find_by_linkedin_url(canonical_url)
            if contact is not None:
                return MatchResult(
                    contact, MatchMethod.PROFILE_URL, MatchConfidence.EXACT, score=1.0
                )
        if email and email.strip():
            contact = self._contacts.find_by_email(email.strip())
            if contact is not None:
                return MatchResult(contact, MatchMethod.EMAIL, MatchConfidence.EXACT, score=1.0)

        normalized_name = normalize_person_name(person_name)
        if not normalized_name:
            return NO_MATCH

        same_name = self._contacts.find_by_normalized_name(normalized_name)
        normalized_company = normalize_company_name(company_name)
        if normalized_company:
            company_ids = self._company_ids(company_name)
            at_company = [
                contact
                for contact in same_name
                if self._works_at(contact, company_ids, normalized_company)
            ]
            if at_company:
                return MatchResult(
                    at_company[0],
                    MatchMethod.NAME_COMPANY_EXACT,
                    MatchConfidence.HIGH,
                    score=1.0,
                )
            fuzzy = self._fuzzy_at_company(normalized_name, company_ids)
            if fuzzy is not None:
                return fuzzy

        if len(same_name) == 1:
            return MatchResult(
                same_name[0],
                MatchMethod.NAME_ONLY,
                MatchConfidence.LOW,
                score=1.0,
            )
        if len(same_name) > 1:
            # ambiguous: several people share the name, none at this company
            return MatchResult(
                None,
                MatchMethod.NAME_ONLY,
                MatchConfidence.NONE,
                potential_matches=tuple(same_name),
            )
        return NO_MATCH

    def _company_ids(self, company_name: str | None) -> set[UUID]:
        if not company_name:
            return set()
        keys = company_lookup_keys(company_name)
        return {company.id for company in self._companies.find_by_keys(keys).values()}

    @staticmethod
    def _works_at(
        contact: Contact,
        company_ids: Collection[UUID],
        normalized_company: str,
    ) -> bool:
        if company_ids and not set(contact.company_ids).isdisjoint(company_ids):
            return True
        return normalize_company_name(contact.company_name) == normalized_company

    def _fuzzy_at_company(
        self,
        normalized_name: str,
        company_ids: Collection[UUID],
    ) -> MatchResult | None:
        if not company_ids:
            return None
        best: tuple[float, Contact] | None = None
        for contact in self._contacts.list_for_companies(company_ids):
            score = similarity(normalized_name, contact.normalized_name)
            if score >= self._settings.similarity_threshold and (best is None or score > best[0]):
                best = (score, contact)
        if best is None:
            return None
        score, contact = best
        return MatchResult(
            contact,
            MatchMethod.NAME_COMPANY_FUZZY,
            MatchConfidence.MEDIUM,
            score=score,
        )
