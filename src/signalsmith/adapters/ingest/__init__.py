"""Boundary validation for signals arriving from extraction agents."""

from __future__ import annotations

from .schema import (
    CompanySignalPayload,
    KeyPersonPayload,
    PersonSignalPayload,
    parse_filing_date,
)
from .translator import PayloadRejectedError, parse_payload, to_signal, translate_payloads

__all__ = [
    "CompanySignalPayload",
    "KeyPersonPayload",
    "PayloadRejectedError",
    "PersonSignalPayload",
    "parse_filing_date",
    "parse_payload",
    "to_signal",
    "translate_payloads",
]
