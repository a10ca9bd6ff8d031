"""SQLAlchemy adapter package for signalsmith."""

from __future__ import annotations

from .mappings import mapper_registry, start_mappers
from .repositories import (
    SqlAlchemyCompanyRepository,
    SqlAlchemyContactRepository,
    SqlAlchemySignalRepository,
)
from .unit_of_work import SqlAlchemyUnitOfWork, shutdown, startup

__all__ = [
    "SqlAlchemyCompanyRepository",
    "SqlAlchemyContactRepository",
    "SqlAlchemySignalRepository",
    "SqlAlchemyUnitOfWork",
    "mapper_registry",
    "shutdown",
    "start_mappers",
    "startup",
]
