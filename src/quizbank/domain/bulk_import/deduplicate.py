"""Intra-payload deduplication of validated rows.

Responsibilities of this stage:
- keep the first valid row for every natural key
- report later rows sharing that key as validation errors
- avoid persistence/database lookups
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from .contracts import ValidationError

if TYPE_CHECKING:
    from collections.abc import Iterable

    from quizbank.domain.model import NaturalKey

    from .contracts import ValidatedRow
    from .schema import RecordSchema


@dataclass(slots=True)
class DeduplicationResult:
    """Result of intra-payload deduplication."""

    unique: list[ValidatedRow] = field(default_factory=list["ValidatedRow"])
    duplicates: list[ValidationError] = field(default_factory=list["ValidationError"])
    first_position_by_key: dict[NaturalKey, int] = field(
        default_factory=dict["NaturalKey", "int"]
    )


def deduplicate(rows: Iterable[ValidatedRow], schema: RecordSchema) -> DeduplicationResult:
    """Drop repeated natural keys, keeping the earliest row of each."""

    result = DeduplicationResult()
    label = schema.key_spec.label
    for row in rows:
        key = row.natural_key
        first_position = result.first_position_by_key.get(key)
        if first_position is None:
            result.first_position_by_key[key] = row.position
            result.unique.append(row)
            continue
        result.duplicates.append(
            ValidationError(
                position=row.position,
                natural_key=key,
                messages=(f"Duplicate {label} (first seen at row {first_position})",),
            )
        )
    return result
