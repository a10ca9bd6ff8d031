"""Signal enrichment: the per-signal state machine and the batch controller.

``CompanySignalEnricher`` and ``PersonSignalEnricher`` share the lifecycle in
``SignalEnricher``; ``BatchController`` dispatches signals to them by source.
"""

from __future__ import annotations

from .batch import BatchController
from .context import EnrichmentRun
from .orchestrator import NO_CONTACTS_ERROR, CompanySignalEnricher, SignalEnricher
from .person import PersonSignalEnricher
from .results import (
    BatchResult,
    EnrichmentOutcome,
    EnrichmentResult,
    EnrichmentStats,
    PersonEnrichmentDetail,
)

__all__ = [
    "NO_CONTACTS_ERROR",
    "BatchController",
    "BatchResult",
    "CompanySignalEnricher",
    "EnrichmentOutcome",
    "EnrichmentResult",
    "EnrichmentRun",
    "EnrichmentStats",
    "PersonEnrichmentDetail",
    "PersonSignalEnricher",
    "SignalEnricher",
]
