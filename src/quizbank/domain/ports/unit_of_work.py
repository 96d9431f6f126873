"""Unit-of-work abstractions for coordinating repositories."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol, runtime_checkable

from quizbank.domain.model import RecordType

if TYPE_CHECKING:
    from types import TracebackType

    from quizbank.domain.ports.persistence import (
        GlossaryTermStore,
        QuestionStore,
        RecordStore,
    )


@runtime_checkable
class RepositoryCollection(Protocol):
    """Marker protocol for groups of repositories managed together."""


@runtime_checkable
class UnitOfWork[TRepositories: RepositoryCollection](Protocol):
    """Generic unit-of-work boundary around a repository collection."""

    @property
    def repositories(self) -> TRepositories: ...

    def __enter__(self) -> UnitOfWork[TRepositories]: ...

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> bool: ...

    def commit(self) -> None: ...

    def rollback(self) -> None: ...


@dataclass(slots=True)
class ImportRepositories(RepositoryCollection):
    """Stores required by bulk imports."""

    questions: QuestionStore
    glossary_terms: GlossaryTermStore

    def store_for(self, record_type: RecordType) -> RecordStore:
        if record_type is RecordType.QUESTION:
            return self.questions
        return self.glossary_terms


type ImportUnitOfWork = UnitOfWork[ImportRepositories]
