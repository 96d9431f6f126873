"""Orchestrator for the bulk-import subsystem.

The engine composes the stages for one record schema and one store. It does
not prescribe concrete adapters, so question and glossary imports share one
code path while the SQLAlchemy unit of work (or a fake in tests) supplies the
store.

Two calls make an import:
1) ``prepare`` parses, validates, deduplicates, performs the single batched
   lookup and reconciles; the returned preview carries the conflicts the
   operator resolves
2) ``commit`` applies the preview through the batch applier
"""

from __future__ import annotations

from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING

from .apply import DEFAULT_BATCH_SIZE, BatchApplier
from .contracts import ALL_CONFLICTS, BulkImportError, ResolutionAction
from .deduplicate import deduplicate
from .parse import parse
from .policy import resolution_counts, set_resolution
from .reconcile import natural_keys, reconcile
from .validate import validate

if TYPE_CHECKING:
    from collections.abc import Sequence

    from quizbank.domain.model import ImportRecord, NaturalKey
    from quizbank.domain.ports.persistence import RecordStore

    from .apply import BatchHook, ProgressCallback
    from .contracts import (
        ConflictItem,
        ImportOutcome,
        ParseError,
        SourceFormat,
        ValidationError,
    )
    from .schema import RecordSchema

log = getLogger(__name__)


class ExistingLookupError(BulkImportError):
    """Raised when the batched existing-record lookup fails; nothing has been written."""


@dataclass(frozen=True, slots=True, kw_only=True)
class ImportSummary:
    """Counts shown to the operator before committing."""

    rows: int
    valid: int
    invalid: int
    new: int
    conflicting: int
    keep: int
    replace: int
    merge: int

    @property
    def writes(self) -> int:
        return self.new + self.replace + self.merge


@dataclass(slots=True, kw_only=True)
class ImportPreview:
    """Everything known about a payload before anything is written."""

    schema: RecordSchema
    row_count: int
    parse_errors: list[ParseError] = field(default_factory=list["ParseError"])
    validation_errors: list[ValidationError] = field(default_factory=list["ValidationError"])
    new_records: list[ImportRecord] = field(default_factory=list["ImportRecord"])
    conflicts: list[ConflictItem] = field(default_factory=list["ConflictItem"])

    def set_resolution(self, natural_key: str, action: ResolutionAction | str) -> int:
        if natural_key == ALL_CONFLICTS:
            return self.apply_to_all(action)
        return set_resolution(self.conflicts, self.schema.normalize_key(natural_key), action)

    def apply_to_all(self, action: ResolutionAction | str) -> int:
        return set_resolution(self.conflicts, ALL_CONFLICTS, action)

    def summary(self) -> ImportSummary:
        counts = resolution_counts(self.conflicts)
        valid = len(self.new_records) + len(self.conflicts)
        return ImportSummary(
            rows=self.row_count,
            valid=valid,
            invalid=len(self.parse_errors) + len(self.validation_errors),
            new=len(self.new_records),
            conflicting=len(self.conflicts),
            keep=counts[ResolutionAction.KEEP],
            replace=counts[ResolutionAction.REPLACE],
            merge=counts[ResolutionAction.MERGE],
        )


@dataclass(slots=True)
class ImportEngine:
    """Run the bulk-import pipeline for one record schema against one store."""

    schema: RecordSchema
    store: RecordStore
    batch_size: int = DEFAULT_BATCH_SIZE

    def prepare(
        self,
        payload: bytes | str,
        fmt: SourceFormat,
        *,
        delimiter: str = ",",
    ) -> ImportPreview:
        """Run every stage up to reconciliation; raises ``ExistingLookupError``."""

        parsed = parse(payload, fmt, schema=self.schema, delimiter=delimiter)
        validated = validate(parsed.rows, self.schema)
        deduplicated = deduplicate(validated.valid, self.schema)
        records = [row.record for row in deduplicated.unique]
        reconciled = reconcile(records, self._fetch_existing(records))

        errors = sorted(
            [*validated.errors, *deduplicated.duplicates],
            key=lambda error: error.position,
        )
        preview = ImportPreview(
            schema=self.schema,
            row_count=len(parsed.rows) + len(parsed.errors),
            parse_errors=parsed.errors,
            validation_errors=errors,
            new_records=reconciled.new_records,
            conflicts=reconciled.conflicts,
        )
        summary = preview.summary()
        log.info(
            "Prepared %s import: valid=%s, invalid=%s, new=%s, conflicting=%s",
            self.schema.display_name,
            summary.valid,
            summary.invalid,
            summary.new,
            summary.conflicting,
        )
        return preview

    def commit(
        self,
        preview: ImportPreview,
        *,
        on_progress: ProgressCallback | None = None,
        on_batch_complete: BatchHook | None = None,
    ) -> ImportOutcome:
        """Apply ``preview`` with its current resolutions."""

        applier = BatchApplier(store=self.store, batch_size=self.batch_size)
        return applier.apply(
            preview.new_records,
            preview.conflicts,
            on_progress=on_progress,
            on_batch_complete=on_batch_complete,
        )

    def _fetch_existing(self, records: Sequence[ImportRecord]) -> dict[NaturalKey, ImportRecord]:
        if not records:
            return {}
        keys = natural_keys(records)
        try:
            existing = self.store.fetch_existing(keys)
        except Exception as exc:
            raise ExistingLookupError(
                f"Could not load existing {self.schema.display_name}: {exc}"
            ) from exc
        log.debug("Fetched %s existing records for %s keys", len(existing), len(keys))
        return existing
