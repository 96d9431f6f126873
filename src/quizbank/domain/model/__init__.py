"""Domain model for quiz content handled by the bulk importer."""

from __future__ import annotations

from .enums import QuestionPool, RecordType
from .links import LinkType, ResourceLink
from .records import GlossaryTerm, ImportRecord, NaturalKey, Question, glossary_key

__all__ = [
    "GlossaryTerm",
    "ImportRecord",
    "LinkType",
    "NaturalKey",
    "Question",
    "QuestionPool",
    "RecordType",
    "ResourceLink",
    "glossary_key",
]
