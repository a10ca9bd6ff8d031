"""Unit-of-work abstractions for coordinating repositories."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol, TypeAlias, TypeVar, runtime_checkable

if TYPE_CHECKING:
    from types import TracebackType

    from signalsmith.domain.ports.persistence import (
        CompanyRepository,
        ContactRepository,
        SignalRepository,
    )


@runtime_checkable
class RepositoryCollection(Protocol):
    """Marker protocol for groups of repositories managed together."""


TRepositories = TypeVar("TRepositories", bound=RepositoryCollection)


@runtime_checkable
class UnitOfWork(Protocol[TRepositories]):
    """Generic unit-of-work boundary around a repository collection.

    ``commit`` raises ``DuplicatePersistenceError`` when the store rejects a write on
    a uniqueness constraint. The unit stays usable after the implied rollback, so a
    caller can re-query and link the existing record inside the same boundary.
    """

    @property
    def repositories(self) -> TRepositories: ...

    def __enter__(self) -> UnitOfWork[TRepositories]: ...

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> bool: ...

    def commit(self) -> None: ...

    def rollback(self) -> None: ...


@dataclass(slots=True)
class EnrichmentRepositories(RepositoryCollection):
    """Repositories touched by resolution and enrichment."""

    signals: SignalRepository
    companies: CompanyRepository
    contacts: ContactRepository


EnrichmentUnitOfWork: TypeAlias = UnitOfWork[EnrichmentRepositories]
