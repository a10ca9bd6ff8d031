"""Error taxonomy for resolution and enrichment.

Each error carries an ``outcome`` code that ends up on the result records returned
to callers, so batch consumers can branch on it without catching anything.
"""

from __future__ import annotations

from typing import ClassVar


class EnrichmentError(RuntimeError):
    outcome: ClassVar[str] = "error"


class EntityNotFoundError(EnrichmentError):
    """A signal, company or contact id does not exist."""

    outcome = "not_found"


class SignalNotFoundError(EntityNotFoundError):
    """The signal id does not exist."""


class AlreadyProcessingError(EnrichmentError):
    """Another run holds the signal in ``processing``."""

    outcome = "already_processing"


class SignalValidationError(EnrichmentError):
    """The signal does not fit the enricher (wrong category or missing subject)."""

    outcome = "validation_error"


class ExternalLookupError(EnrichmentError):
    """The directory lookup failed or timed out. Treated as not found."""

    outcome = "lookup_failed"


class DuplicatePersistenceError(EnrichmentError):
    """A uniqueness constraint rejected a write; the caller re-queries and links."""

    outcome = "duplicate"


class TotalEnrichmentFailure(EnrichmentError):
    """No person could be linked.

    Some-but-not-all failures are not an error: the signal completes and the
    result reports ``partial_failure`` with per-person details.
    """

    outcome = "failed"
