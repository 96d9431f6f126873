"""Ports for persisting imported records."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

from quizbank.domain.model import GlossaryTerm, ImportRecord, Question

if TYPE_CHECKING:
    from collections.abc import Collection, Sequence

    from quizbank.domain.model import NaturalKey


@runtime_checkable
class RecordStore[TRecord: ImportRecord](Protocol):
    """Storage contract consumed by the import engine.

    ``fetch_existing`` is a single batched read. ``insert`` and ``upsert`` write
    one record each and signal failure by raising. ``insert`` of a key that is
    already stored leaves the stored record as it is, so a retried work list is safe.
    """

    def fetch_existing(
        self,
        natural_keys: Collection[NaturalKey],
    ) -> dict[NaturalKey, TRecord]: ...

    def insert(self, record: TRecord) -> None: ...

    def upsert(self, record: TRecord) -> None: ...

    def list_records(self) -> Sequence[TRecord]: ...


@runtime_checkable
class QuestionStore(RecordStore[Question], Protocol):
    """Store for exam questions, keyed by question id."""


@runtime_checkable
class GlossaryTermStore(RecordStore[GlossaryTerm], Protocol):
    """Store for glossary terms, keyed by case-folded term."""
