"""Partition validated records into new records and conflicts.

Responsibilities of this stage:
- look up every record's natural key in a pre-fetched snapshot
- emit records without a stored counterpart as new
- emit a ``ConflictItem`` (defaulting to keep) for every stored match

Out of scope for this stage:
- fetching the snapshot (callers perform one batched read, see ``natural_keys``)
- choosing resolutions beyond the default
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from .contracts import ConflictItem, ResolutionAction

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

    from quizbank.domain.model import ImportRecord, NaturalKey


@dataclass(slots=True)
class ReconcileResult:
    new_records: list[ImportRecord] = field(default_factory=list["ImportRecord"])
    conflicts: list[ConflictItem] = field(default_factory=list["ConflictItem"])


def natural_keys(records: Iterable[ImportRecord]) -> set[NaturalKey]:
    """Key set for the single batched existing-record lookup."""

    return {record.natural_key for record in records}


def reconcile(
    valid: Iterable[ImportRecord],
    existing_lookup: Mapping[NaturalKey, ImportRecord],
) -> ReconcileResult:
    """Single pass over ``valid``; input order is preserved in both partitions."""

    result = ReconcileResult()
    for record in valid:
        key = record.natural_key
        existing = existing_lookup.get(key)
        if existing is None:
            result.new_records.append(record)
            continue
        result.conflicts.append(
            ConflictItem(
                natural_key=key,
                existing=existing,
                incoming=record,
                resolution=ResolutionAction.KEEP,
            )
        )
    return result
