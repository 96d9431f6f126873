"""Shared bulk-import contract components.

This module intentionally holds only:
- stage input/output dataclasses passed between pipeline stages
- enums describing formats, resolution actions and merge policies
- the exception root for the package
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from pathlib import PurePath
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from quizbank.domain.model import ImportRecord, NaturalKey


ALL_CONFLICTS = "*"


class BulkImportError(Exception):
    """Base class for errors raised by the bulk-import engine."""


class UnsupportedFormatError(BulkImportError, ValueError):
    """Raised when a payload's format cannot be determined or is not supported."""


class SourceFormat(StrEnum):
    DELIMITED = "delimited"
    STRUCTURED = "structured"

    @classmethod
    def from_filename(cls, filename: str) -> SourceFormat:
        suffix = PurePath(filename).suffix.lower()
        if suffix == ".csv":
            return cls.DELIMITED
        if suffix == ".json":
            return cls.STRUCTURED
        raise UnsupportedFormatError(f"Please upload a CSV or JSON file (got {filename!r})")


class ResolutionAction(StrEnum):
    """Operator decision for one conflicting record."""

    KEEP = "keep"
    REPLACE = "replace"
    MERGE = "merge"


class MergeFieldPolicy(StrEnum):
    """How a merge picks one field's value from ``(existing, incoming)``."""

    PREFER_INCOMING_ALWAYS = "prefer_incoming_always"
    PREFER_EXISTING_IF_NON_EMPTY = "prefer_existing_if_non_empty"
    PREFER_EXISTING_COLLECTION_IF_NON_EMPTY = "prefer_existing_collection_if_non_empty"


@dataclass(frozen=True, slots=True)
class RawRow:
    """Untyped row as read from the payload.

    ``position`` is 1-based: for delimited input the header is row 1, for
    structured input the first element is 1.
    """

    position: int
    fields: dict[str, object] = field(default_factory=dict["str", "object"])

    def get(self, name: str) -> object:
        return self.fields.get(name)


@dataclass(frozen=True, slots=True)
class ParseError:
    """Structural problem with one row. Position 0 marks a document-level problem."""

    position: int
    message: str


@dataclass(frozen=True, slots=True)
class ValidationError:
    """All rule violations found for one row."""

    position: int
    natural_key: NaturalKey | None
    messages: tuple[str, ...]


@dataclass(slots=True)
class ParseResult:
    rows: list[RawRow] = field(default_factory=list["RawRow"])
    errors: list[ParseError] = field(default_factory=list["ParseError"])


@dataclass(frozen=True, slots=True)
class ValidatedRow:
    """A validated record together with the row it came from."""

    position: int
    record: ImportRecord

    @property
    def natural_key(self) -> NaturalKey:
        return self.record.natural_key


@dataclass(slots=True)
class ValidationResult:
    valid: list[ValidatedRow] = field(default_factory=list["ValidatedRow"])
    errors: list[ValidationError] = field(default_factory=list["ValidationError"])


@dataclass(slots=True, kw_only=True)
class ConflictItem:
    """An incoming record whose natural key already exists in storage."""

    natural_key: NaturalKey
    existing: ImportRecord
    incoming: ImportRecord
    resolution: ResolutionAction = ResolutionAction.KEEP


@dataclass(frozen=True, slots=True)
class ImportFailure:
    natural_key: NaturalKey
    reason: str


@dataclass(slots=True)
class ImportOutcome:
    """Summary of one apply run."""

    inserted: int = 0
    updated: int = 0
    kept: int = 0
    failed: int = 0
    failures: list[ImportFailure] = field(default_factory=list["ImportFailure"])

    def record_failure(self, natural_key: NaturalKey, reason: str) -> None:
        self.failed += 1
        self.failures.append(ImportFailure(natural_key=natural_key, reason=reason))


@dataclass(frozen=True, slots=True)
class ApplyProgress:
    """Progress snapshot emitted after each applied batch."""

    processed: int
    total: int
    inserted: int
    updated: int
    failed: int

    @property
    def percent(self) -> int:
        if self.total <= 0:
            return 100
        return self.processed * 100 // self.total
