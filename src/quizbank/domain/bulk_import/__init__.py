"""Bulk-import reconciliation core for quiz content.

Layered flow, strictly forward:
1) parse the payload into raw rows (delimited text or a JSON document)
2) validate rows into typed records against a record schema
3) deduplicate natural keys within the payload
4) reconcile against one batched snapshot of stored records
5) resolve conflicts (keep / replace / merge) by operator choice
6) apply inserts and upserts in failure-isolated batches
"""

from __future__ import annotations

from .apply import DEFAULT_BATCH_SIZE, BatchApplier, WorkItem, WriteKind, build_work_list
from .contracts import (
    ALL_CONFLICTS,
    ApplyProgress,
    BulkImportError,
    ConflictItem,
    ImportFailure,
    ImportOutcome,
    MergeFieldPolicy,
    ParseError,
    ParseResult,
    RawRow,
    ResolutionAction,
    SourceFormat,
    UnsupportedFormatError,
    ValidatedRow,
    ValidationError,
    ValidationResult,
)
from .deduplicate import DeduplicationResult, deduplicate
from .engine import ExistingLookupError, ImportEngine, ImportPreview, ImportSummary
from .export import export_records
from .parse import parse
from .policy import (
    MERGE_FIELD_POLICIES,
    RecordTypeMismatchError,
    UnknownConflictError,
    apply_resolution,
    merge_records,
    resolution_counts,
    set_resolution,
)
from .reconcile import ReconcileResult, natural_keys, reconcile
from .schema import (
    GLOSSARY_TERM_SCHEMA,
    FieldKind,
    FieldSpec,
    RecordSchema,
    question_schema,
    schema_for,
)
from .validate import validate, validate_row

__all__ = [
    "ALL_CONFLICTS",
    "DEFAULT_BATCH_SIZE",
    "GLOSSARY_TERM_SCHEMA",
    "MERGE_FIELD_POLICIES",
    "ApplyProgress",
    "BatchApplier",
    "BulkImportError",
    "ConflictItem",
    "DeduplicationResult",
    "ExistingLookupError",
    "FieldKind",
    "FieldSpec",
    "ImportEngine",
    "ImportFailure",
    "ImportOutcome",
    "ImportPreview",
    "ImportSummary",
    "MergeFieldPolicy",
    "ParseError",
    "ParseResult",
    "RawRow",
    "ReconcileResult",
    "RecordSchema",
    "RecordTypeMismatchError",
    "ResolutionAction",
    "SourceFormat",
    "UnknownConflictError",
    "UnsupportedFormatError",
    "ValidatedRow",
    "ValidationError",
    "ValidationResult",
    "WorkItem",
    "WriteKind",
    "apply_resolution",
    "build_work_list",
    "deduplicate",
    "export_records",
    "merge_records",
    "natural_keys",
    "parse",
    "question_schema",
    "reconcile",
    "resolution_counts",
    "schema_for",
    "set_resolution",
    "validate",
    "validate_row",
]
