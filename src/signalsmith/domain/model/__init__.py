"""Domain model package: signals, companies, contacts and their enums."""

from __future__ import annotations

from .base import Entity, as_utc, new_id, utcnow
from .company import (
    Company,
    CompanyContactLink,
    CompanyKey,
    CompanySignalLink,
    name_key,
    ticker_key,
)
from .contact import Contact, ContactCompanyLink, ContactSignalLink
from .enums import (
    KNOWN_FILING_TYPES,
    DuplicateLayer,
    EnrichmentStatus,
    FilingType,
    MatchConfidence,
    MatchMethod,
    PersonOutcome,
    QualityTier,
    SignalSource,
)
from .signal import (
    CompanySignal,
    InvalidStatusTransitionError,
    KeyPerson,
    PersonSignal,
    Signal,
    allowed_previous_statuses,
    map_filing_type_to_signal_type,
)

__all__ = [
    "KNOWN_FILING_TYPES",
    "Company",
    "CompanyContactLink",
    "CompanyKey",
    "CompanySignal",
    "CompanySignalLink",
    "Contact",
    "ContactCompanyLink",
    "ContactSignalLink",
    "DuplicateLayer",
    "EnrichmentStatus",
    "Entity",
    "FilingType",
    "InvalidStatusTransitionError",
    "KeyPerson",
    "MatchConfidence",
    "MatchMethod",
    "PersonOutcome",
    "PersonSignal",
    "QualityTier",
    "Signal",
    "SignalSource",
    "allowed_previous_statuses",
    "as_utc",
    "map_filing_type_to_signal_type",
    "name_key",
    "new_id",
    "ticker_key",
    "utcnow",
]
