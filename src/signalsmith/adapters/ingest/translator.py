"""Translate validated ingest payloads into domain signals."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

from pydantic import ValidationError

from signalsmith.domain.model import CompanySignal, KeyPerson, PersonSignal

from .schema import CompanySignalPayload, PersonSignalPayload, signal_payload_adapter

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

    from signalsmith.domain.model import Signal

log = getLogger(__name__)


class PayloadRejectedError(ValueError):
    """Raised when a payload does not validate against either signal variant."""


def parse_payload(raw: Mapping[str, object]) -> PersonSignalPayload | CompanySignalPayload:
    try:
        return signal_payload_adapter.validate_python(raw)
    except ValidationError as exc:
        raise PayloadRejectedError(str(exc)) from exc


def to_signal(payload: PersonSignalPayload | CompanySignalPayload) -> Signal:
    common = payload.model_dump(
        exclude={
            "signal_source",
            "full_name",
            "designation",
            "name_variants",
            "ticker",
            "cik",
            "company_address",
            "key_people",
        }
    )
    if isinstance(payload, PersonSignalPayload):
        return PersonSignal(
            full_name=payload.full_name,
            designation=payload.designation,
            **common,
        )

    signal = CompanySignal(
        name_variants=list(payload.name_variants),
        ticker=payload.ticker,
        cik=payload.cik,
        company_address=payload.company_address,
        **common,
    )
    for person in payload.key_people:
        if not person.full_name:
            log.debug("Skipping unnamed key person on %s", payload.filing_link)
            continue
        signal.add_key_person(KeyPerson(**person.model_dump()))
    return signal


def translate_payloads(
    payloads: Iterable[Mapping[str, object]],
) -> tuple[list[Signal], list[tuple[int, str]]]:
    """Return translated signals plus ``(index, reason)`` for every rejected payload."""

    signals: list[Signal] = []
    rejected: list[tuple[int, str]] = []
    for index, raw in enumerate(payloads):
        try:
            signals.append(to_signal(parse_payload(raw)))
        except PayloadRejectedError as exc:
            log.warning("Rejected payload #%d: %s", index, exc)
            rejected.append((index, str(exc)))
    return signals, rejected
