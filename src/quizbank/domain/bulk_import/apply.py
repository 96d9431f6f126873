"""Write resolved imports back to storage in fixed-size batches.

Responsibilities of this stage:
- build the work list: inserts for new records, then upserts for conflicts
  resolved as replace or merge (keep conflicts are only counted)
- write items one by one, recording failures without stopping the run
- report progress and run the caller's batch hook after every batch

Batches run strictly sequentially. There is no rollback: items written in
completed batches stay written, and re-running the same work list is the retry
mechanism since every write is keyed by natural key.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from enum import StrEnum
from logging import getLogger
from typing import TYPE_CHECKING

from .contracts import ApplyProgress, ImportOutcome, ResolutionAction
from .policy import apply_resolution

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from quizbank.domain.model import ImportRecord, NaturalKey
    from quizbank.domain.ports.persistence import RecordStore

    from .contracts import ConflictItem

DEFAULT_BATCH_SIZE = 10

type ProgressCallback = Callable[[ApplyProgress], None]
type BatchHook = Callable[[], None]

log = getLogger(__name__)


class WriteKind(StrEnum):
    INSERT = "insert"
    UPSERT = "upsert"


@dataclass(frozen=True, slots=True)
class WorkItem:
    kind: WriteKind
    record: ImportRecord

    @property
    def natural_key(self) -> NaturalKey:
        return self.record.natural_key


def build_work_list(
    new_records: Iterable[ImportRecord],
    conflicts: Iterable[ConflictItem],
) -> tuple[list[WorkItem], int]:
    """Return the ordered work list and the number of conflicts kept as stored."""

    work = [WorkItem(WriteKind.INSERT, record) for record in new_records]
    kept = 0
    for conflict in conflicts:
        if conflict.resolution is ResolutionAction.KEEP:
            kept += 1
            continue
        work.append(WorkItem(WriteKind.UPSERT, apply_resolution(conflict)))
    return work, kept


@dataclass(slots=True)
class BatchApplier:
    """Sole writer of an import run."""

    store: RecordStore
    batch_size: int = DEFAULT_BATCH_SIZE

    def __post_init__(self) -> None:
        if self.batch_size <= 0:
            raise ValueError(f"batch_size must be positive, got {self.batch_size}")

    def apply(
        self,
        new_records: Sequence[ImportRecord],
        conflicts: Sequence[ConflictItem],
        *,
        on_progress: ProgressCallback | None = None,
        on_batch_complete: BatchHook | None = None,
    ) -> ImportOutcome:
        work, kept = build_work_list(new_records, conflicts)
        outcome = ImportOutcome(kept=kept)
        total = len(work)
        if total == 0:
            log.info("Nothing to write: %s conflicts kept as stored", kept)
            return outcome

        log.info(
            "Applying %s writes in batches of %s (%s inserts, %s kept)",
            total,
            self.batch_size,
            len(new_records),
            kept,
        )
        processed = 0
        for start in range(0, total, self.batch_size):
            batch = work[start : start + self.batch_size]
            for item in batch:
                self._write(item, outcome)
            processed += len(batch)
            if on_batch_complete is not None:
                on_batch_complete()
            if on_progress is not None:
                on_progress(
                    ApplyProgress(
                        processed=processed,
                        total=total,
                        inserted=outcome.inserted,
                        updated=outcome.updated,
                        failed=outcome.failed,
                    )
                )

        log.info(
            "Finished applying: inserted=%s, updated=%s, kept=%s, failed=%s",
            outcome.inserted,
            outcome.updated,
            outcome.kept,
            outcome.failed,
        )
        return outcome

    def _write(self, item: WorkItem, outcome: ImportOutcome) -> None:
        try:
            if item.kind is WriteKind.INSERT:
                self.store.insert(item.record)
            else:
                self.store.upsert(item.record)
        except Exception as exc:  # noqa: BLE001
            log.warning("Failed to %s %s: %s", item.kind, item.natural_key, exc)
            outcome.record_failure(item.natural_key, _failure_reason(exc))
            return
        if item.kind is WriteKind.INSERT:
            outcome.inserted += 1
        else:
            outcome.updated += 1


def _failure_reason(exc: Exception) -> str:
    message = str(exc).strip()
    return message or type(exc).__name__
