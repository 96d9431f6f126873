"""Application orchestration entry points."""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass
from logging import getLogger
from pathlib import Path
from typing import TYPE_CHECKING

from quizbank.adapters.sqlalchemy.unit_of_work import (
    SqlAlchemyImportUnitOfWork,
    is_started,
    startup,
)
from quizbank.config import get_import_config
from quizbank.domain.bulk_import import ImportEngine, SourceFormat, schema_for
from quizbank.domain.bulk_import.export import export_records as encode_records
from quizbank.domain.model import Question, QuestionPool, RecordType
from quizbank.domain.ports.unit_of_work import ImportUnitOfWork

if TYPE_CHECKING:
    from quizbank.domain.bulk_import import (
        ImportOutcome,
        ImportPreview,
        ImportSummary,
        ResolutionAction,
    )
    from quizbank.domain.bulk_import.apply import ProgressCallback
    from quizbank.domain.model import ImportRecord

UnitOfWorkFactory = Callable[[], ImportUnitOfWork]


log = getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ImportRunResult:
    """Preview of an import plus the outcome of writing it (``None`` on a dry run)."""

    preview: ImportPreview
    outcome: ImportOutcome | None = None

    @property
    def summary(self) -> ImportSummary:
        return self.preview.summary()

    @property
    def dry_run(self) -> bool:
        return self.outcome is None

    @property
    def has_errors(self) -> bool:
        return bool(self.preview.parse_errors or self.preview.validation_errors)


def _resolve_unit_of_work(factory: UnitOfWorkFactory | None) -> UnitOfWorkFactory:
    if factory is not None:
        return factory
    if not is_started():
        startup()
    return SqlAlchemyImportUnitOfWork


def import_payload(  # noqa: PLR0913
    payload: bytes | str,
    fmt: SourceFormat,
    *,
    record_type: RecordType,
    pool: QuestionPool | None = None,
    resolve_all: ResolutionAction | str | None = None,
    resolutions: Mapping[str, ResolutionAction | str] | None = None,
    batch_size: int | None = None,
    dry_run: bool = False,
    delimiter: str = ",",
    on_progress: ProgressCallback | None = None,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
) -> ImportRunResult:
    """Import ``payload`` into storage, committing after every batch.

    ``resolve_all`` is applied first so per-key ``resolutions`` can override it.
    A dry run stops after reconciliation and writes nothing.
    """

    schema = schema_for(record_type, pool=pool)
    effective_batch_size = batch_size or get_import_config().batch_size
    effective_uow = _resolve_unit_of_work(unit_of_work_factory)
    log.info(
        "Starting %s import: format=%s, batch_size=%s, dry_run=%s",
        schema.display_name,
        fmt,
        effective_batch_size,
        dry_run,
    )

    with effective_uow() as uow:
        store = uow.repositories.store_for(record_type)
        engine = ImportEngine(schema=schema, store=store, batch_size=effective_batch_size)
        preview = engine.prepare(payload, fmt, delimiter=delimiter)
        if resolve_all is not None:
            preview.apply_to_all(resolve_all)
        for natural_key, action in (resolutions or {}).items():
            preview.set_resolution(natural_key, action)

        if dry_run:
            uow.rollback()
            log.info("Dry run: nothing written")
            return ImportRunResult(preview=preview)

        outcome = engine.commit(
            preview,
            on_progress=on_progress,
            on_batch_complete=uow.commit,
        )
        uow.commit()

    log.info(
        f"Finished {schema.display_name} import: inserted={outcome.inserted}, "
        f"updated={outcome.updated}, kept={outcome.kept}, failed={outcome.failed}"
    )
    return ImportRunResult(preview=preview, outcome=outcome)


def import_file(
    path: Path | str,
    *,
    record_type: RecordType,
    fmt: SourceFormat | None = None,
    **kwargs: object,
) -> ImportRunResult:
    """Import a ``.csv`` or ``.json`` file; the format follows the file extension."""

    source = Path(path)
    effective_fmt = fmt or SourceFormat.from_filename(source.name)
    payload = source.read_bytes()
    return import_payload(
        payload,
        effective_fmt,
        record_type=record_type,
        **kwargs,  # pyright: ignore[reportArgumentType]
    )


def load_records(
    *,
    record_type: RecordType,
    pool: QuestionPool | None = None,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
) -> list[ImportRecord]:
    """Return stored records of one type; questions are narrowed to ``pool`` when given."""

    effective_uow = _resolve_unit_of_work(unit_of_work_factory)
    with effective_uow() as uow:
        records = list(uow.repositories.store_for(record_type).list_records())
    if record_type is RecordType.QUESTION and pool is not None:
        records = [
            record for record in records if isinstance(record, Question) and record.pool is pool
        ]
    return records


def export_records(
    *,
    record_type: RecordType,
    fmt: SourceFormat,
    pool: QuestionPool | None = None,
    output: Path | str | None = None,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
) -> bytes:
    """Export stored records as CSV or JSON, optionally writing them to ``output``."""

    schema = schema_for(record_type, pool=pool)
    records = load_records(
        record_type=record_type,
        pool=pool,
        unit_of_work_factory=unit_of_work_factory,
    )
    payload = encode_records(records, fmt, schema=schema)
    if output is not None:
        Path(output).write_bytes(payload)
        log.info("Exported %s %s to %s", len(records), schema.display_name, output)
    else:
        log.info("Exported %s %s", len(records), schema.display_name)
    return payload
