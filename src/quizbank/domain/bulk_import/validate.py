"""Row validation: untyped rows to typed, normalised records.

Responsibilities of this stage:
- trim every text value and apply the schema's required/optional rules
- check the natural key shape (prefix) and enumerated choices
- assemble list fields (answer options, links) and check their item counts
- collect every violation of a row into one ``ValidationError``

Each row is judged on its own; nothing here touches storage.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, cast

import pydantic

from quizbank.domain.model import ResourceLink

from .contracts import RawRow, ValidatedRow, ValidationError, ValidationResult
from .schema import FieldKind

if TYPE_CHECKING:
    from collections.abc import Iterable

    from .schema import FieldSpec, RecordSchema


class _Violations:
    def __init__(self) -> None:
        self.messages: list[str] = []

    def add(self, message: str) -> None:
        self.messages.append(message)


def validate(rows: Iterable[RawRow], schema: RecordSchema) -> ValidationResult:
    """Validate ``rows`` against ``schema``; invalid rows are reported, never raised."""

    result = ValidationResult()
    for row in rows:
        outcome = validate_row(row, schema)
        if isinstance(outcome, ValidationError):
            result.errors.append(outcome)
        else:
            result.valid.append(outcome)
    return result


def validate_row(row: RawRow, schema: RecordSchema) -> ValidatedRow | ValidationError:
    violations = _Violations()
    values: dict[str, object] = {}
    for spec in schema.fields:
        if spec.name == schema.natural_key_field:
            values[spec.name] = _natural_key_value(row, spec, schema, violations)
        elif spec.kind is FieldKind.TEXT:
            values[spec.name] = _text_value(row.get(spec.name), spec, violations)
        elif spec.kind is FieldKind.CHOICE:
            values[spec.name] = _choice_value(row.get(spec.name), spec, violations)
        elif spec.kind is FieldKind.TEXT_LIST:
            values[spec.name] = _text_list_value(row, spec, violations)
        else:
            values[spec.name] = _links_value(row.get(spec.name), spec, violations)

    key_text = cast(str, values[schema.natural_key_field])
    if violations.messages:
        return ValidationError(
            position=row.position,
            natural_key=schema.normalize_key(key_text) if key_text else None,
            messages=tuple(violations.messages),
        )
    record = schema.record_cls(**values)  # pyright: ignore[reportArgumentType]
    return ValidatedRow(position=row.position, record=record)


def _natural_key_value(
    row: RawRow,
    spec: FieldSpec,
    schema: RecordSchema,
    violations: _Violations,
) -> str:
    value = _text_value(row.get(spec.name), spec, violations)
    if not value:
        return value
    if schema.uppercase_key:
        value = value.upper()
    prefix = schema.key_prefix
    if prefix and not value.startswith(prefix.upper()):
        violations.add(f'{spec.label} must start with "{prefix}" for {schema.display_name}')
    return value


def _as_text(raw: object) -> str | None:
    if raw is None:
        return ""
    if isinstance(raw, str):
        return raw.strip()
    if isinstance(raw, (int, float)) and not isinstance(raw, bool):
        return str(raw)
    return None


def _text_value(raw: object, spec: FieldSpec, violations: _Violations) -> str:
    text = _as_text(raw)
    if text is None:
        violations.add(f"Invalid {spec.label}: expected text")
        return ""
    if not text and spec.required:
        violations.add(f"Missing {spec.label}")
    return text


def _choice_value(raw: object, spec: FieldSpec, violations: _Violations) -> int:
    text = _as_text(raw)
    if text is None:
        violations.add(f"Invalid {spec.label}")
        return 0
    if not text:
        if spec.required:
            violations.add(f"Missing {spec.label}")
        return 0
    canonical = spec.choices.get(text.lower())
    if canonical is None:
        violations.add(f"Invalid {spec.label}: {text!r}")
        return 0
    return canonical


def _text_list_value(row: RawRow, spec: FieldSpec, violations: _Violations) -> tuple[str, ...]:
    raw = row.get(spec.name)
    items: list[object]
    if isinstance(raw, (list, tuple)):
        items = list(cast("list[object] | tuple[object, ...]", raw))
    elif raw is None and any(column in row.fields for column in spec.member_columns):
        items = [row.get(column) for column in spec.member_columns]
    elif raw is None:
        items = []
    else:
        violations.add(f"Invalid {spec.label}: expected a list")
        return ()

    texts: list[str] = []
    for item in items:
        text = _as_text(item)
        if text is None:
            violations.add(f"Invalid {spec.label}: expected text entries")
            return ()
        texts.append(text)

    if not texts and not spec.required:
        return ()
    if spec.item_count is not None and len(texts) != spec.item_count:
        violations.add(f"Must have exactly {spec.item_count} {spec.label}")
    elif not texts:
        violations.add(f"Missing {spec.label}")
    elif any(not text for text in texts):
        violations.add(f"All {spec.label} must have text")
    return tuple(texts)


def _links_value(
    raw: object,
    spec: FieldSpec,
    violations: _Violations,
) -> tuple[ResourceLink, ...]:
    if raw is None or (isinstance(raw, str) and not raw.strip()):
        if spec.required:
            violations.add(f"Missing {spec.label}")
        return ()
    if not isinstance(raw, (list, tuple)):
        violations.add(f"Invalid {spec.label}: expected a list")
        return ()

    links: list[ResourceLink] = []
    entries = cast("list[object] | tuple[object, ...]", raw)
    for index, entry in enumerate(entries, start=1):
        try:
            links.append(ResourceLink.model_validate(entry))
        except pydantic.ValidationError as exc:
            first = exc.errors()[0]
            location = ".".join(str(part) for part in first["loc"]) or "entry"
            violations.add(f"Invalid link #{index} ({location}): {first['msg']}")
    return tuple(links)
