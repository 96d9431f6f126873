"""Payload parsing: raw bytes to untyped rows.

Responsibilities of this stage:
- decode the payload and split it into rows (delimited) or elements (structured)
- map header names and property names onto canonical columns via schema synonyms
- report structurally broken rows without aborting the remaining ones

Out of scope for this stage:
- value validation, trimming or normalisation (see ``validate``)
"""

from __future__ import annotations

import csv
import io
import json
from typing import TYPE_CHECKING, cast

from .contracts import ParseError, ParseResult, RawRow, SourceFormat

if TYPE_CHECKING:
    from collections.abc import Iterable

    from .schema import RecordSchema

DOCUMENT_POSITION = 0


def parse(
    payload: bytes | str,
    fmt: SourceFormat,
    *,
    schema: RecordSchema,
    delimiter: str = ",",
) -> ParseResult:
    """Split ``payload`` into ``RawRow`` records, collecting per-row parse errors."""

    result = ParseResult()
    text = _decode(payload, result)
    if text is None:
        return result
    if fmt is SourceFormat.DELIMITED:
        _parse_delimited(text, schema=schema, delimiter=delimiter, result=result)
    else:
        _parse_structured(text, schema=schema, result=result)
    return result


def _decode(payload: bytes | str, result: ParseResult) -> str | None:
    if isinstance(payload, str):
        return payload.removeprefix("\ufeff")
    try:
        return payload.decode("utf-8-sig")
    except UnicodeDecodeError as exc:
        result.errors.append(ParseError(DOCUMENT_POSITION, f"Payload is not valid UTF-8: {exc}"))
        return None


def _parse_delimited(
    text: str,
    *,
    schema: RecordSchema,
    delimiter: str,
    result: ParseResult,
) -> None:
    feed = _LineFeed(io.StringIO(text, newline="").readlines())
    reader = csv.reader(feed, delimiter=delimiter, strict=True)
    header: list[str] | None = None
    position = 0
    while True:
        position += 1
        start = feed.index
        try:
            cells = next(reader)
        except StopIteration:
            break
        except csv.Error as exc:
            if header is None:
                result.errors.append(ParseError(DOCUMENT_POSITION, f"Unreadable header: {exc}"))
                return
            result.errors.append(ParseError(position, f"Malformed quoting: {exc}"))
            # resume on the line after the one the broken record started on
            feed.index = start + 1
            reader = csv.reader(feed, delimiter=delimiter, strict=True)
            continue

        if not any(cell.strip() for cell in cells):
            continue
        if header is None:
            header = [schema.canonical_column(cell) for cell in cells]
            continue
        if len(cells) != len(header):
            result.errors.append(
                ParseError(position, f"Expected {len(header)} columns, found {len(cells)}")
            )
            continue
        result.rows.append(RawRow(position, _collect(zip(header, cells, strict=True))))

    if header is None:
        result.errors.append(ParseError(DOCUMENT_POSITION, "No header row found"))


class _LineFeed:
    """Line iterator whose read position can be moved back after a broken record."""

    def __init__(self, lines: list[str]) -> None:
        self.lines = lines
        self.index = 0

    def __iter__(self) -> _LineFeed:
        return self

    def __next__(self) -> str:
        if self.index >= len(self.lines):
            raise StopIteration
        line = self.lines[self.index]
        self.index += 1
        return line


def _parse_structured(text: str, *, schema: RecordSchema, result: ParseResult) -> None:
    try:
        document = json.loads(text)
    except json.JSONDecodeError as exc:
        result.errors.append(
            ParseError(DOCUMENT_POSITION, f"Invalid JSON: {exc.msg} (line {exc.lineno})")
        )
        return

    elements = _collection(document, schema=schema, result=result)
    if elements is None:
        return
    for position, element in enumerate(elements, start=1):
        if not isinstance(element, dict):
            result.errors.append(
                ParseError(position, f"Expected an object, found {type(element).__name__}")
            )
            continue
        mapping = cast(dict[str, object], element)
        pairs = ((schema.canonical_column(str(key)), value) for key, value in mapping.items())
        result.rows.append(RawRow(position, _collect(pairs)))


def _collection(
    document: object,
    *,
    schema: RecordSchema,
    result: ParseResult,
) -> list[object] | None:
    if isinstance(document, list):
        return cast(list[object], document)
    if isinstance(document, dict):
        mapping = cast(dict[str, object], document)
        for key in schema.collection_keys:
            if key not in mapping:
                continue
            value = mapping[key]
            if isinstance(value, list):
                return cast(list[object], value)
            result.errors.append(ParseError(DOCUMENT_POSITION, f'"{key}" must be a list'))
            return None
    expected = ", ".join(f'"{key}"' for key in schema.collection_keys)
    result.errors.append(
        ParseError(
            DOCUMENT_POSITION,
            f"Expected a list of {schema.display_name} or an object with {expected}",
        )
    )
    return None


def _collect(pairs: Iterable[tuple[str, object]]) -> dict[str, object]:
    """Build the row mapping; when synonyms collide, the first non-blank value wins."""

    fields: dict[str, object] = {}
    for column, value in pairs:
        if column in fields and not _is_blank(fields[column]):
            continue
        fields[column] = value
    return fields


def _is_blank(value: object) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())
