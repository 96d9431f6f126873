"""Declarative record schemas.

A ``RecordSchema`` is the per-record-type strategy the generic engine is
parameterised with. It names the fields, which of them are required, the
natural key and its prefix rule, enumerated choices, header synonyms and the
collection properties accepted in structured documents.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import StrEnum
from functools import cache
from types import MappingProxyType

from quizbank.domain.model import (
    GlossaryTerm,
    NaturalKey,
    Question,
    QuestionPool,
    RecordType,
    glossary_key,
)


class FieldKind(StrEnum):
    TEXT = "text"
    CHOICE = "choice"
    TEXT_LIST = "text_list"
    LINKS = "links"


@dataclass(frozen=True, slots=True, kw_only=True)
class FieldSpec:
    """One field of a record schema.

    ``choices`` maps lower-cased accepted tokens to the canonical value and
    ``choice_labels`` gives the preferred written form of each canonical value
    (index = value). ``member_columns`` lists the flat columns a list field is
    spread across in delimited input.
    """

    name: str
    label: str
    kind: FieldKind = FieldKind.TEXT
    required: bool = True
    synonyms: tuple[str, ...] = ()
    choices: Mapping[str, int] = field(default_factory=lambda: MappingProxyType({}))
    choice_labels: tuple[str, ...] = ()
    item_count: int | None = None
    member_columns: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True, kw_only=True, eq=False)
class RecordSchema:
    record_type: RecordType
    display_name: str
    record_cls: type[Question] | type[GlossaryTerm]
    fields: tuple[FieldSpec, ...]
    natural_key_field: str
    key_prefix: str | None = None
    uppercase_key: bool = False
    collection_keys: tuple[str, ...] = ()
    column_aliases: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))

    def field_spec(self, name: str) -> FieldSpec:
        for spec in self.fields:
            if spec.name == name:
                return spec
        raise KeyError(name)

    @property
    def key_spec(self) -> FieldSpec:
        return self.field_spec(self.natural_key_field)

    def normalize_key(self, text: str) -> NaturalKey:
        """Natural key for operator-entered or raw key text."""

        if self.uppercase_key:
            return text.strip().upper()
        return glossary_key(text)

    def canonical_column(self, header: str) -> str:
        """Map a header (or structured property name) to its canonical column."""

        cleaned = header.strip().strip('"').strip().lower()
        return self.column_aliases.get(cleaned, cleaned)

    def delimited_columns(self) -> tuple[str, ...]:
        """Canonical column order used when writing delimited output."""

        columns: list[str] = []
        for spec in self.fields:
            if spec.kind is FieldKind.LINKS:
                continue
            if spec.member_columns:
                columns.extend(spec.member_columns)
            else:
                columns.append(spec.name)
        return tuple(columns)


def _column_aliases(
    fields: tuple[FieldSpec, ...],
    member_synonyms: Mapping[str, tuple[str, ...]] | None = None,
) -> Mapping[str, str]:
    aliases: dict[str, str] = {}
    for spec in fields:
        for alias in (spec.name, *spec.synonyms):
            aliases[alias] = spec.name
        for column in spec.member_columns:
            aliases[column] = column
    for column, synonyms in (member_synonyms or {}).items():
        for alias in synonyms:
            aliases[alias] = column
    return MappingProxyType(aliases)


ANSWER_CHOICES: Mapping[str, int] = MappingProxyType(
    {"a": 0, "b": 1, "c": 2, "d": 3, "0": 0, "1": 1, "2": 2, "3": 3}
)
ANSWER_LABELS = ("A", "B", "C", "D")
OPTION_COLUMNS = ("option_a", "option_b", "option_c", "option_d")

_QUESTION_FIELDS = (
    FieldSpec(name="id", label="ID"),
    FieldSpec(name="question", label="question text"),
    FieldSpec(
        name="options",
        label="options",
        kind=FieldKind.TEXT_LIST,
        item_count=4,
        member_columns=OPTION_COLUMNS,
    ),
    FieldSpec(
        name="correct_answer",
        label="correct answer",
        kind=FieldKind.CHOICE,
        synonyms=("correct", "correctanswer", "answer"),
        choices=ANSWER_CHOICES,
        choice_labels=ANSWER_LABELS,
    ),
    FieldSpec(name="subelement", label="subelement"),
    FieldSpec(name="question_group", label="question group", synonyms=("group", "questiongroup")),
    FieldSpec(name="explanation", label="explanation", required=False),
    FieldSpec(name="links", label="links", kind=FieldKind.LINKS, required=False),
)

_GLOSSARY_FIELDS = (
    FieldSpec(name="term", label="term"),
    FieldSpec(name="definition", label="definition"),
)


@cache
def question_schema(pool: QuestionPool) -> RecordSchema:
    """Schema for questions of one exam pool; ids must carry the pool prefix."""

    return RecordSchema(
        record_type=RecordType.QUESTION,
        display_name=f"{pool.value} questions",
        record_cls=Question,
        fields=_QUESTION_FIELDS,
        natural_key_field="id",
        key_prefix=pool.prefix,
        uppercase_key=True,
        collection_keys=("questions",),
        column_aliases=_column_aliases(
            _QUESTION_FIELDS,
            {column: (column.removeprefix("option_"),) for column in OPTION_COLUMNS},
        ),
    )


GLOSSARY_TERM_SCHEMA = RecordSchema(
    record_type=RecordType.GLOSSARY_TERM,
    display_name="glossary terms",
    record_cls=GlossaryTerm,
    fields=_GLOSSARY_FIELDS,
    natural_key_field="term",
    collection_keys=("terms", "glossary"),
    column_aliases=_column_aliases(_GLOSSARY_FIELDS),
)


def schema_for(record_type: RecordType, *, pool: QuestionPool | None = None) -> RecordSchema:
    if record_type is RecordType.GLOSSARY_TERM:
        return GLOSSARY_TERM_SCHEMA
    if pool is None:
        raise ValueError("Question imports require an exam pool")
    return question_schema(pool)
