from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from signal import SIGINT, signal
from typing import TYPE_CHECKING

from dotenv import load_dotenv

from quizbank.app import export_records, import_file
from quizbank.config import ConfigurationError, configure_logging
from quizbank.domain.bulk_import import (
    ResolutionAction,
    SourceFormat,
    UnknownConflictError,
    UnsupportedFormatError,
)
from quizbank.domain.model import QuestionPool, RecordType

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import FrameType

    from quizbank.app import ImportRunResult
    from quizbank.domain.bulk_import import ApplyProgress

log = logging.getLogger(__name__)

_RECORD_TYPES = {
    "questions": RecordType.QUESTION,
    "glossary": RecordType.GLOSSARY_TERM,
}
_EXPORT_FORMATS = {
    "csv": SourceFormat.DELIMITED,
    "json": SourceFormat.STRUCTURED,
}
_ACTIONS = [action.value for action in ResolutionAction]
_POOLS = [pool.value for pool in QuestionPool]


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Bulk import and export of quiz content")
    subparsers = parser.add_subparsers(dest="command", required=True)

    pool_parent = argparse.ArgumentParser(add_help=False)
    pool_parent.add_argument(
        "--pool",
        choices=_POOLS,
        help="Exam pool of the questions (required for questions)",
    )

    importer = subparsers.add_parser("import", help="Import questions or glossary terms")
    import_sub = importer.add_subparsers(dest="record_type", required=True)
    for name in _RECORD_TYPES:
        command = import_sub.add_parser(name, parents=[pool_parent], help=f"Import {name}")
        command.add_argument("file", type=Path, help="CSV or JSON file to import")
        command.add_argument(
            "--resolve-all",
            choices=_ACTIONS,
            help="Resolution applied to every conflict (default: keep)",
        )
        command.add_argument(
            "--resolve",
            action="append",
            default=[],
            metavar="KEY=ACTION",
            help="Resolution for one conflicting key; repeatable, overrides --resolve-all",
        )
        command.add_argument(
            "--batch-size",
            type=int,
            default=None,
            help="Number of writes per committed batch (defaults to config)",
        )
        command.add_argument(
            "--dry-run",
            action="store_true",
            help="Report what would change without writing anything",
        )

    exporter = subparsers.add_parser("export", help="Export stored questions or glossary terms")
    export_sub = exporter.add_subparsers(dest="record_type", required=True)
    for name in _RECORD_TYPES:
        command = export_sub.add_parser(name, parents=[pool_parent], help=f"Export {name}")
        command.add_argument(
            "--format",
            choices=list(_EXPORT_FORMATS),
            required=True,
            help="Output format",
        )
        command.add_argument(
            "--output",
            type=Path,
            help="File to write (defaults to standard output)",
        )

    return parser.parse_args(list(argv))


def _parse_resolutions(values: Sequence[str]) -> dict[str, ResolutionAction]:
    resolutions: dict[str, ResolutionAction] = {}
    for value in values:
        key, separator, action = value.partition("=")
        if not separator or not key.strip():
            raise ValueError(f"Invalid --resolve value (expected KEY=ACTION): {value}")
        try:
            resolutions[key.strip()] = ResolutionAction(action.strip().lower())
        except ValueError as exc:
            raise ValueError(
                f"Invalid resolution {action!r} for {key.strip()}; choose from {_ACTIONS}"
            ) from exc
    return resolutions


def _validate_args(args: argparse.Namespace) -> None:
    record_type = _RECORD_TYPES[args.record_type]
    if record_type is RecordType.QUESTION and args.pool is None:
        raise ValueError("Missing --pool for questions")
    if args.command == "import":
        if args.batch_size is not None and args.batch_size <= 0:
            raise ValueError("Batch size must be positive")
        args.resolutions = _parse_resolutions(args.resolve)


def _log_progress(progress: ApplyProgress) -> None:
    log.info(
        "Progress: %s%% (%s/%s written, %s failed)",
        progress.percent,
        progress.processed,
        progress.total,
        progress.failed,
    )


def _report_import(result: ImportRunResult) -> int:
    preview = result.preview
    for parse_error in preview.parse_errors:
        log.warning("Row %s: %s", parse_error.position, parse_error.message)
    for validation_error in preview.validation_errors:
        log.warning("Row %s: %s", validation_error.position, "; ".join(validation_error.messages))

    summary = result.summary
    log.info(
        "Rows=%s, valid=%s, invalid=%s, new=%s, conflicting=%s "
        "(keep=%s, replace=%s, merge=%s)",
        summary.rows,
        summary.valid,
        summary.invalid,
        summary.new,
        summary.conflicting,
        summary.keep,
        summary.replace,
        summary.merge,
    )
    if result.outcome is not None:
        outcome = result.outcome
        for failure in outcome.failures:
            log.error("Failed to write %s: %s", failure.natural_key, failure.reason)
        log.info(
            "Import finished: inserted=%s, updated=%s, kept=%s, failed=%s",
            outcome.inserted,
            outcome.updated,
            outcome.kept,
            outcome.failed,
        )
        if outcome.failed:
            return 1
    return 2 if result.has_errors else 0


def _run_import(args: argparse.Namespace) -> int:
    result = import_file(
        args.file,
        record_type=_RECORD_TYPES[args.record_type],
        pool=QuestionPool(args.pool) if args.pool else None,
        resolve_all=args.resolve_all,
        resolutions=args.resolutions,
        batch_size=args.batch_size,
        dry_run=args.dry_run,
        on_progress=_log_progress,
    )
    return _report_import(result)


def _run_export(args: argparse.Namespace) -> int:
    payload = export_records(
        record_type=_RECORD_TYPES[args.record_type],
        fmt=_EXPORT_FORMATS[args.format],
        pool=QuestionPool(args.pool) if args.pool else None,
        output=args.output,
    )
    if args.output is None:
        sys.stdout.buffer.write(payload)
        sys.stdout.flush()
    return 0


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    try:
        configure_logging()
    except ConfigurationError as exc:
        configure_logging(level=logging.INFO)
        log.error("Invalid logging configuration: %s", exc)  # noqa: TRY400
        sys.exit(2)
    parsed_args: argparse.Namespace
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    try:
        parsed_args = _parse_args(args_list)
        _validate_args(parsed_args)
    except ValueError:
        log.exception("CLI validation error")
        sys.exit(2)

    try:
        if parsed_args.command == "import":
            exit_code = _run_import(parsed_args)
        elif parsed_args.command == "export":
            exit_code = _run_export(parsed_args)
        else:
            raise ValueError(f"Unsupported command: {parsed_args.command}")  # noqa: TRY301
    except (UnsupportedFormatError, UnknownConflictError) as exc:
        log.error("Import rejected: %s", exc)  # noqa: TRY400
        sys.exit(2)
    except Exception:
        log.exception("Fatal error during %s", parsed_args.command)
        sys.exit(1)

    if exit_code:
        sys.exit(exit_code)


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Handle SIGINT (Ctrl+C) gracefully."""
    log.info("Closed by user (Ctrl+C)")
    sys.exit(0)


def run() -> None:
    """Console script entry point: load ``.env`` and install the SIGINT handler first."""
    load_dotenv()
    signal(SIGINT, sigint_handler)
    main()


if __name__ == "__main__":
    run()
