"""SQLAlchemy unit of work over the signal, company and contact repositories.

The engine is process-wide: ``startup()`` binds it once (migrating the schema on the
way), and every ``SqlAlchemyUnitOfWork`` opens its own short session from it.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Literal

from sqlalchemy import create_engine
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, sessionmaker

from signalsmith.adapters.sqlalchemy.mappings import start_mappers
from signalsmith.adapters.sqlalchemy.migrations import upgrade_head
from signalsmith.adapters.sqlalchemy.repositories import (
    SqlAlchemyCompanyRepository,
    SqlAlchemyContactRepository,
    SqlAlchemySignalRepository,
)
from signalsmith.config.storage import get_database_config
from signalsmith.domain.errors import DuplicatePersistenceError
from signalsmith.domain.ports.unit_of_work import EnrichmentRepositories

if TYPE_CHECKING:
    from types import TracebackType

    from sqlalchemy.engine import Engine

log = logging.getLogger(__name__)


class StartupError(RuntimeError):
    """Raised when the SQLAlchemy adapter is used before ``startup()`` or misconfigured."""


class _Binding:
    """The engine in use and the session factory derived from it."""

    def __init__(self) -> None:
        self.engine: Engine | None = None
        self._sessions: sessionmaker[Session] | None = None

    def bind(self, engine: Engine | None) -> None:
        self.engine = engine
        self._sessions = None

    def sessions(self) -> sessionmaker[Session]:
        if self.engine is None:
            raise StartupError(
                "Signal store not initialised; call "
                "signalsmith.adapters.sqlalchemy.unit_of_work.startup() first"
            )
        if self._sessions is None:
            # entities stay readable after commit; results are built from them
            self._sessions = sessionmaker(bind=self.engine, expire_on_commit=False)
        return self._sessions


_BINDING = _Binding()


def startup(
    *,
    engine: Engine | None = None,
    database_uri: str | None = None,
    force: bool = False,
) -> None:
    """Map the domain model, migrate the schema to head and bind the engine."""

    if _BINDING.engine is not None and not force:
        raise StartupError("Signal store already initialised; pass force=True to rebind")

    bound = engine or create_engine(database_uri or get_database_config().uri)
    start_mappers()
    upgrade_head(engine=bound)
    _BINDING.bind(bound)
    log.debug("Signal store bound to %s", bound.url)


def configured_engine() -> Engine | None:
    return _BINDING.engine


def is_started() -> bool:
    return _BINDING.engine is not None


def shutdown() -> None:
    """Dispose the engine and forget it; the next unit of work needs ``startup()``."""

    if _BINDING.engine is not None:
        _BINDING.engine.dispose()
    _BINDING.bind(None)


class SqlAlchemyUnitOfWork:
    """One session, used as a context manager.

    Leaving the block after an exception rolls back. ``commit`` turns a uniqueness
    violation into ``DuplicatePersistenceError`` after rolling back, and the session
    stays open for the caller to re-query.
    """

    def __init__(self) -> None:
        self._sessions = _BINDING.sessions()
        self._session: Session | None = None
        self._repositories: EnrichmentRepositories | None = None

    def __enter__(self) -> SqlAlchemyUnitOfWork:
        if self._session is not None:
            raise StartupError("Unit of work already entered")
        self._session = self._sessions()
        self._repositories = EnrichmentRepositories(
            signals=SqlAlchemySignalRepository(self._session),
            companies=SqlAlchemyCompanyRepository(self._session),
            contacts=SqlAlchemyContactRepository(self._session),
        )
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> Literal[False]:
        session = self.session
        if exc_type is not None:
            log.debug("Rolling back unit of work after %s", exc_type.__name__)
            session.rollback()
        session.close()
        self._session = None
        self._repositories = None
        return False

    @property
    def session(self) -> Session:
        if self._session is None:
            raise StartupError("Unit of work session not open")
        return self._session

    @property
    def repositories(self) -> EnrichmentRepositories:
        if self._repositories is None:
            raise StartupError("Unit of work session not open")
        return self._repositories

    def commit(self) -> None:
        try:
            self.session.commit()
        except IntegrityError as exc:
            self.session.rollback()
            raise DuplicatePersistenceError(str(exc.orig)) from exc

    def rollback(self) -> None:
        self.session.rollback()


if TYPE_CHECKING:
    from signalsmith.domain.ports.unit_of_work import EnrichmentUnitOfWork

    _uow_check: EnrichmentUnitOfWork = SqlAlchemyUnitOfWork()
