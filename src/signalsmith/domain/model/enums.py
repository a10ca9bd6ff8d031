"""Domain enums (pure, dependency-light)."""

from __future__ import annotations

from enum import StrEnum


class SignalSource(StrEnum):
    """Discriminator for the tagged signal variants."""

    PERSON = "Person"
    COMPANY = "Company"


class EnrichmentStatus(StrEnum):
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


class FilingType(StrEnum):
    """Known signal categories. Unknown categories are stored as plain strings."""

    FORM_4 = "form-4"
    FORM_13D = "form-13d"
    FORM_13F = "form-13f"
    FORM_13G = "form-13g"
    DEF_14A = "def-14a"
    FORM_10K = "form-10k"
    FORM_10Q = "form-10q"
    FORM_8K = "form-8k"
    FORM_D = "form-d"
    FORM_S3 = "form-s3"
    MA_EVENT = "ma-event"


KNOWN_FILING_TYPES: frozenset[str] = frozenset(member.value for member in FilingType)


class MatchConfidence(StrEnum):
    NONE = "none"
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    EXACT = "exact"

    @property
    def rank(self) -> int:
        return _CONFIDENCE_RANK[self]

    def at_least(self, other: MatchConfidence) -> bool:
        return self.rank >= other.rank


_CONFIDENCE_RANK: dict[MatchConfidence, int] = {
    MatchConfidence.NONE: 0,
    MatchConfidence.LOW: 1,
    MatchConfidence.MEDIUM: 2,
    MatchConfidence.HIGH: 3,
    MatchConfidence.EXACT: 4,
}


class MatchMethod(StrEnum):
    PROFILE_URL = "profile_url"
    EMAIL = "email"
    NAME_COMPANY_EXACT = "name_company_exact"
    NAME_COMPANY_FUZZY = "name_company_fuzzy"
    NAME_ONLY = "name_only"
    NONE = "none"


class QualityTier(StrEnum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class DuplicateLayer(StrEnum):
    """Deduplication layers in evaluation order."""

    LINK = "link"
    ACCESSION = "accession"
    NAME_DATE_WINDOW = "name_date_window"
    CONTENT_HASH = "content_hash"


class PersonOutcome(StrEnum):
    CREATED = "created"
    MATCHED = "matched"
    NOT_FOUND = "not_found"
    ERROR = "error"
