"""Conflict resolution state and merge policy.

Responsibilities of this stage:
- record operator decisions (per item or for every item at once)
- materialise the record each decision implies
- merge ``(existing, incoming)`` field by field using a static policy table

Materialisation is deterministic given the two records: no clock, no I/O and
no mutation of the inputs.
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Mapping
from dataclasses import fields
from types import MappingProxyType
from typing import TYPE_CHECKING, cast

from quizbank.domain.model import RecordType

from .contracts import ALL_CONFLICTS, BulkImportError, MergeFieldPolicy, ResolutionAction

if TYPE_CHECKING:
    from collections.abc import Iterable, Sized

    from quizbank.domain.model import ImportRecord, NaturalKey

    from .contracts import ConflictItem


MERGE_FIELD_POLICIES: Mapping[tuple[RecordType, str], MergeFieldPolicy] = MappingProxyType(
    {
        (RecordType.QUESTION, "question"): MergeFieldPolicy.PREFER_INCOMING_ALWAYS,
        (RecordType.QUESTION, "options"): MergeFieldPolicy.PREFER_INCOMING_ALWAYS,
        (RecordType.QUESTION, "correct_answer"): MergeFieldPolicy.PREFER_INCOMING_ALWAYS,
        (RecordType.QUESTION, "subelement"): MergeFieldPolicy.PREFER_INCOMING_ALWAYS,
        (RecordType.QUESTION, "question_group"): MergeFieldPolicy.PREFER_INCOMING_ALWAYS,
        (RecordType.QUESTION, "explanation"): MergeFieldPolicy.PREFER_EXISTING_IF_NON_EMPTY,
        (RecordType.QUESTION, "links"): MergeFieldPolicy.PREFER_EXISTING_COLLECTION_IF_NON_EMPTY,
        (RecordType.GLOSSARY_TERM, "term"): MergeFieldPolicy.PREFER_EXISTING_IF_NON_EMPTY,
        (RecordType.GLOSSARY_TERM, "definition"): MergeFieldPolicy.PREFER_INCOMING_ALWAYS,
    }
)


class UnknownConflictError(BulkImportError, KeyError):
    """Raised when a resolution targets a natural key with no conflict."""

    def __init__(self, natural_key: str) -> None:
        self.natural_key = natural_key
        super().__init__(f"No conflict for key {natural_key!r}")

    def __str__(self) -> str:
        return str(self.args[0])


class RecordTypeMismatchError(BulkImportError, TypeError):
    """Raised when merging records of different record types."""


def set_resolution(
    conflicts: Iterable[ConflictItem],
    natural_key: NaturalKey,
    action: ResolutionAction | str,
) -> int:
    """Set ``action`` on the conflict keyed ``natural_key``, or on all of them for ``"*"``.

    A bulk update overwrites earlier per-item choices; the most recent call wins.
    Returns the number of items updated.
    """

    resolved_action = ResolutionAction(action)
    updated = 0
    for conflict in conflicts:
        if natural_key == ALL_CONFLICTS or conflict.natural_key == natural_key:
            conflict.resolution = resolved_action
            updated += 1
    if natural_key != ALL_CONFLICTS and updated == 0:
        raise UnknownConflictError(natural_key)
    return updated


def apply_resolution(conflict: ConflictItem) -> ImportRecord:
    """Return the record that ``conflict.resolution`` would leave in storage."""

    match conflict.resolution:
        case ResolutionAction.KEEP:
            return conflict.existing
        case ResolutionAction.REPLACE:
            return conflict.incoming
        case ResolutionAction.MERGE:
            return merge_records(conflict.existing, conflict.incoming)


def merge_records(existing: ImportRecord, incoming: ImportRecord) -> ImportRecord:
    """Merge two records of one type using ``MERGE_FIELD_POLICIES``.

    Fields without a declared policy (the natural key) keep the existing value.
    """

    if type(existing) is not type(incoming):
        raise RecordTypeMismatchError(
            f"Cannot merge {type(existing).__name__} with {type(incoming).__name__}"
        )
    record_type = incoming.record_type
    values: dict[str, object] = {}
    for record_field in fields(incoming):
        name = record_field.name
        current = getattr(existing, name)
        candidate = getattr(incoming, name)
        policy = MERGE_FIELD_POLICIES.get((record_type, name))
        values[name] = current if policy is None else _pick(policy, current, candidate)
    return type(incoming)(**values)  # pyright: ignore[reportArgumentType]


def _pick(policy: MergeFieldPolicy, existing: object, incoming: object) -> object:
    match policy:
        case MergeFieldPolicy.PREFER_INCOMING_ALWAYS:
            return incoming
        case MergeFieldPolicy.PREFER_EXISTING_IF_NON_EMPTY:
            return existing if _has_text(existing) else incoming
        case MergeFieldPolicy.PREFER_EXISTING_COLLECTION_IF_NON_EMPTY:
            return existing if len(cast("Sized", existing)) > 0 else incoming


def _has_text(value: object) -> bool:
    if value is None:
        return False
    if isinstance(value, str):
        return bool(value.strip())
    return True


def resolution_counts(conflicts: Iterable[ConflictItem]) -> dict[ResolutionAction, int]:
    counts = Counter(conflict.resolution for conflict in conflicts)
    return {action: counts.get(action, 0) for action in ResolutionAction}
