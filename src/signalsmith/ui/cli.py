# ruff: noqa: T201

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from signal import SIGINT, signal
from typing import TYPE_CHECKING
from uuid import UUID

from dotenv import load_dotenv

from signalsmith.app import (
    enrich_batch,
    enrich_pending,
    enrich_signal,
    get_pending,
    get_stats,
    ingest_signals,
    retry_failed,
    upgrade_database,
)
from signalsmith.config import configure_logging
from signalsmith.domain.model import SignalSource

if TYPE_CHECKING:
    from collections.abc import Iterator, Sequence
    from types import FrameType

    from signalsmith.domain.enrichment import BatchResult

log = logging.getLogger(__name__)


def _add_selection_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--limit",
        type=int,
        default=None,
        help="Maximum number of signals to select (defaults to config)",
    )
    parser.add_argument(
        "--source",
        choices=[source.value for source in SignalSource],
        help="Restrict to person or company signals",
    )


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Resolve and enrich filing signals")
    parser.add_argument("--verbose", action="store_true", help="Log at DEBUG level")
    subparsers = parser.add_subparsers(dest="command", required=True)

    ingest = subparsers.add_parser("ingest", help="Store signals from a JSON-lines file")
    ingest.add_argument("path", type=str, help="JSON-lines file with one payload per line")
    ingest.add_argument(
        "--skip-validation",
        action="store_true",
        help="Apply the quality score only, without the logical validation rules",
    )

    enrich = subparsers.add_parser("enrich", help="Enrich a single signal")
    enrich.add_argument("signal_id", type=str, help="Signal id")

    batch = subparsers.add_parser(
        "batch",
        help="Enrich the given signals, or pending signals when no ids are given",
    )
    batch.add_argument("signal_ids", nargs="*", help="Signal ids to enrich in order")
    batch.add_argument(
        "--max-batch-size",
        type=int,
        default=None,
        help="Cap on the number of ids processed from the command line",
    )
    batch.add_argument(
        "--filing-type",
        action="append",
        dest="filing_types",
        help="Restrict pending selection to a filing type (repeatable)",
    )
    _add_selection_args(batch)

    pending = subparsers.add_parser("pending", help="List pending signal ids")
    pending.add_argument(
        "--filing-type",
        action="append",
        dest="filing_types",
        help="Restrict to a filing type (repeatable)",
    )
    _add_selection_args(pending)

    stats = subparsers.add_parser("stats", help="Show enrichment status counts")
    stats.add_argument(
        "--source",
        choices=[source.value for source in SignalSource],
        help="Restrict to person or company signals",
    )

    retry = subparsers.add_parser("retry-failed", help="Reset failed signals and run them again")
    _add_selection_args(retry)

    db = subparsers.add_parser("db", help="Database maintenance commands")
    db_sub = db.add_subparsers(dest="db_command", required=True)
    db_sub.add_parser("upgrade", help="Apply migrations up to the latest revision")

    return parser.parse_args(list(argv))


def _parse_uuid(value: str) -> UUID:
    try:
        return UUID(value)
    except ValueError as exc:
        raise ValueError(f"Invalid UUID: {value}") from exc


def _parse_source(value: str | None) -> SignalSource | None:
    return SignalSource(value) if value else None


def _read_payloads(path: Path) -> Iterator[dict[str, object]]:
    with path.open(encoding="utf-8") as handle:
        for number, line in enumerate(handle, start=1):
            if not line.strip():
                continue
            payload = json.loads(line)
            if not isinstance(payload, dict):
                raise ValueError(f"{path}:{number}: expected a JSON object")
            yield payload


def _log_batch(result: BatchResult) -> None:
    log.info(
        "Batch: total=%s, successful=%s, failed=%s, already_processed=%s, created=%s, "
        "matched=%s, no_key_people=%s, existing_entity=%s",
        result.total,
        result.successful,
        result.failed,
        result.already_processed,
        result.created,
        result.matched,
        result.no_key_people,
        result.existing_entity,
    )


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    configure_logging()
    parsed_args: argparse.Namespace
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    try:
        parsed_args = _parse_args(args_list)
        if parsed_args.verbose:
            configure_logging(level=logging.DEBUG, force=True)
        signal_ids: list[UUID] = []
        if parsed_args.command == "enrich":
            signal_ids = [_parse_uuid(parsed_args.signal_id)]
        elif parsed_args.command == "batch":
            signal_ids = [_parse_uuid(value) for value in parsed_args.signal_ids]
        source = _parse_source(getattr(parsed_args, "source", None))
    except ValueError:
        log.exception("CLI validation error")
        sys.exit(2)

    try:
        if parsed_args.command == "ingest":
            result = ingest_signals(
                list(_read_payloads(Path(parsed_args.path))),
                validate_logic=not parsed_args.skip_validation,
            )
            for signal_id in result.stored_ids:
                print(signal_id)
        elif parsed_args.command == "enrich":
            enriched = enrich_signal(signal_ids[0])
            print(json.dumps({"outcome": enriched.outcome, "success": enriched.success}))
            if not enriched.success:
                sys.exit(1)
        elif parsed_args.command == "batch":
            if signal_ids:
                batch = enrich_batch(signal_ids, max_batch_size=parsed_args.max_batch_size)
            else:
                batch = enrich_pending(
                    limit=parsed_args.limit,
                    filing_types=parsed_args.filing_types,
                    source=source,
                )
            _log_batch(batch)
        elif parsed_args.command == "pending":
            for signal_id in get_pending(
                limit=parsed_args.limit,
                filing_types=parsed_args.filing_types,
                source=source,
            ):
                print(signal_id)
        elif parsed_args.command == "stats":
            stats = get_stats(source=source)
            print(
                json.dumps(
                    {
                        "pending": stats.pending,
                        "processing": stats.processing,
                        "completed": stats.completed,
                        "failed": stats.failed,
                        "total": stats.total,
                        "with_key_people": stats.with_key_people,
                        "without_key_people": stats.without_key_people,
                    }
                )
            )
        elif parsed_args.command == "retry-failed":
            _log_batch(retry_failed(limit=parsed_args.limit, source=source))
        elif parsed_args.command == "db" and parsed_args.db_command == "upgrade":
            upgrade_database()
        else:
            raise ValueError(f"Unsupported command: {parsed_args.command}")  # noqa: TRY301

    except Exception:
        log.exception("Fatal error during %s", parsed_args.command)
        sys.exit(1)


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Handle SIGINT (Ctrl+C) gracefully."""
    log.info("Closed by user (Ctrl+C)")
    sys.exit(0)


if __name__ == "__main__":
    load_dotenv()
    signal(SIGINT, sigint_handler)
    main()
