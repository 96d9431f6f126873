"""Serialise stored records into payloads the importer accepts."""

from __future__ import annotations

import csv
import io
import json
from typing import TYPE_CHECKING, cast

from .contracts import SourceFormat
from .schema import FieldKind

if TYPE_CHECKING:
    from collections.abc import Iterable

    from quizbank.domain.model import ImportRecord, ResourceLink

    from .schema import FieldSpec, RecordSchema


def export_records(
    records: Iterable[ImportRecord],
    fmt: SourceFormat,
    *,
    schema: RecordSchema,
) -> bytes:
    """Render ``records`` as delimited text or a JSON array, encoded as UTF-8.

    Delimited output quotes a field only when it contains the delimiter, a quote
    or a line break; links are only carried by JSON output.
    """

    if fmt is SourceFormat.DELIMITED:
        return _export_delimited(records, schema=schema).encode("utf-8")
    payload = [_structured_entry(record, schema=schema) for record in records]
    return json.dumps(payload, indent=2, ensure_ascii=False).encode("utf-8")


def _export_delimited(records: Iterable[ImportRecord], *, schema: RecordSchema) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(schema.delimited_columns())
    for record in records:
        cells: list[str] = []
        for spec in schema.fields:
            cells.extend(_delimited_cells(getattr(record, spec.name), spec))
        writer.writerow(cells)
    return buffer.getvalue()


def _delimited_cells(value: object, spec: FieldSpec) -> list[str]:
    match spec.kind:
        case FieldKind.LINKS:
            return []
        case FieldKind.TEXT_LIST:
            items = list(cast("tuple[str, ...]", value))
            padded = items + [""] * (len(spec.member_columns) - len(items))
            return padded[: len(spec.member_columns)]
        case FieldKind.CHOICE:
            index = cast(int, value)
            if 0 <= index < len(spec.choice_labels):
                return [spec.choice_labels[index]]
            return [str(index)]
        case FieldKind.TEXT:
            return [cast(str, value)]


def _structured_entry(record: ImportRecord, *, schema: RecordSchema) -> dict[str, object]:
    entry: dict[str, object] = {}
    for spec in schema.fields:
        value = getattr(record, spec.name)
        match spec.kind:
            case FieldKind.TEXT:
                if value or spec.required:
                    entry[spec.name] = value
            case FieldKind.TEXT_LIST:
                entry[spec.name] = list(cast("tuple[str, ...]", value))
            case FieldKind.CHOICE:
                entry[spec.name] = value
            case FieldKind.LINKS:
                links = cast("tuple[ResourceLink, ...]", value)
                entry[spec.name] = [link.to_payload() for link in links]
    return entry
