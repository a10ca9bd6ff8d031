"""Domain port definitions for adapters."""

from __future__ import annotations

from .directory import (
    DirectoryLookup,
    OrganizationLookupResult,
    PersonLookupResult,
    PersonRecord,
)
from .persistence import (
    CompanyRepository,
    ContactRepository,
    Repository,
    SignalRepository,
)
from .unit_of_work import (
    EnrichmentRepositories,
    EnrichmentUnitOfWork,
    RepositoryCollection,
    UnitOfWork,
)

__all__ = [
    "CompanyRepository",
    "ContactRepository",
    "DirectoryLookup",
    "EnrichmentRepositories",
    "EnrichmentUnitOfWork",
    "OrganizationLookupResult",
    "PersonLookupResult",
    "PersonRecord",
    "Repository",
    "RepositoryCollection",
    "SignalRepository",
    "UnitOfWork",
]
