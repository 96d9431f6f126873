"""Typed records produced by validation and read back from storage.

Both variants are immutable. Downstream stages (reconciliation, merge, apply)
only ever build new instances; they never re-parse raw payload values.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, ClassVar

from .enums import QuestionPool, RecordType

if TYPE_CHECKING:
    from .links import ResourceLink

type NaturalKey = str


def glossary_key(term: str) -> NaturalKey:
    """Natural key for glossary terms: the term, trimmed and case-folded."""

    return term.strip().casefold()


@dataclass(frozen=True, slots=True, kw_only=True)
class Question:
    record_type: ClassVar[RecordType] = RecordType.QUESTION

    id: str
    question: str
    options: tuple[str, ...]
    correct_answer: int
    subelement: str
    question_group: str
    explanation: str = ""
    links: tuple[ResourceLink, ...] = ()

    @property
    def natural_key(self) -> NaturalKey:
        return self.id

    @property
    def pool(self) -> QuestionPool | None:
        return QuestionPool.for_question_id(self.id)


@dataclass(frozen=True, slots=True, kw_only=True)
class GlossaryTerm:
    record_type: ClassVar[RecordType] = RecordType.GLOSSARY_TERM

    term: str
    definition: str

    @property
    def natural_key(self) -> NaturalKey:
        return glossary_key(self.term)


type ImportRecord = Question | GlossaryTerm
