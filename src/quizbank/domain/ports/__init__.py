"""Domain port definitions for adapters."""

from __future__ import annotations

from .persistence import GlossaryTermStore, QuestionStore, RecordStore
from .unit_of_work import (
    ImportRepositories,
    ImportUnitOfWork,
    RepositoryCollection,
    UnitOfWork,
)

__all__ = [
    "GlossaryTermStore",
    "ImportRepositories",
    "ImportUnitOfWork",
    "QuestionStore",
    "RecordStore",
    "RepositoryCollection",
    "UnitOfWork",
]
