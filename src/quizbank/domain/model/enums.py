"""Domain enums (pure, dependency-light)."""

from __future__ import annotations

from enum import StrEnum


class RecordType(StrEnum):
    """Discriminator for the record variants handled by the import engine."""

    QUESTION = "question"
    GLOSSARY_TERM = "glossary_term"


class QuestionPool(StrEnum):
    TECHNICIAN = "technician"
    GENERAL = "general"
    EXTRA = "extra"

    @property
    def prefix(self) -> str:
        return _POOL_PREFIXES[self]

    @classmethod
    def for_question_id(cls, question_id: str) -> QuestionPool | None:
        """Return the pool a question id belongs to, judged by its leading letter."""

        head = question_id[:1].upper()
        for pool, prefix in _POOL_PREFIXES.items():
            if prefix == head:
                return pool
        return None


_POOL_PREFIXES: dict[QuestionPool, str] = {
    QuestionPool.TECHNICIAN: "T",
    QuestionPool.GENERAL: "G",
    QuestionPool.EXTRA: "E",
}
