"""Alembic migrations for the signal store.

The revisions ship inside the package, so an installed ``signalsmith`` can upgrade
a database without the source checkout. ``[tool.alembic]`` in ``pyproject.toml``
points the ``alembic`` command line at the same directory for authoring revisions.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING, Final

from alembic import command
from alembic.config import Config

from signalsmith.config.storage import get_database_config

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine

MIGRATIONS_PATH: Final[Path] = Path(__file__).resolve().parent

log = logging.getLogger(__name__)


def build_config(*, database_uri: str | None = None) -> Config:
    config = Config()
    config.set_main_option("script_location", str(MIGRATIONS_PATH))
    if database_uri is not None:
        config.set_main_option("sqlalchemy.url", database_uri)
    return config


def upgrade_head(*, engine: Engine | None = None, database_uri: str | None = None) -> None:
    """Upgrade the schema to the latest revision.

    With ``engine`` the upgrade runs on one of its connections, which keeps an
    in-memory SQLite database visible to the caller afterwards.
    """

    if engine is not None:
        config = build_config()
        with engine.begin() as connection:
            config.attributes["connection"] = connection
            command.upgrade(config, "head")
        return

    uri = database_uri or get_database_config().uri
    log.debug("Running migrations against %s", uri)
    command.upgrade(build_config(database_uri=uri), "head")
