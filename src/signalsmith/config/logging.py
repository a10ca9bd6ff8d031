"""Root logger setup for the command line."""

from __future__ import annotations

import logging

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(*, level: int = logging.INFO, force: bool = False) -> None:
    """Send records to stderr so command output on stdout stays machine readable.

    ``force=True`` replaces handlers installed by an earlier call, which the CLI
    uses for ``--verbose``.
    """

    logging.basicConfig(level=level, format=LOG_FORMAT, datefmt="%H:%M:%S", force=force)
    # per-request lines from httpx drown out the enrichment log at INFO
    logging.getLogger("httpx").setLevel(max(level, logging.WARNING))
