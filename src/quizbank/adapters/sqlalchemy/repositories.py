"""Record stores backed by SQLAlchemy sessions.

Every write runs inside its own SAVEPOINT so a failing item is rolled back on
its own and the surrounding transaction stays usable for the rest of the batch.
"""

from __future__ import annotations

import logging
from collections.abc import Collection, Iterator, Sequence
from typing import TYPE_CHECKING, Any, cast

import pydantic
from sqlalchemy import exists, insert, select, update
from sqlalchemy.dialects import postgresql, sqlite

from quizbank.adapters.sqlalchemy.mappings import glossary_term_table, question_table
from quizbank.domain.model import GlossaryTerm, NaturalKey, Question, ResourceLink

if TYPE_CHECKING:
    from sqlalchemy import Column, RowMapping, Table
    from sqlalchemy.orm import Session

log = logging.getLogger(__name__)

LOOKUP_CHUNK_SIZE = 500


def _chunks(keys: Collection[NaturalKey], size: int) -> Iterator[list[NaturalKey]]:
    ordered = sorted(set(keys))
    for start in range(0, len(ordered), size):
        yield ordered[start : start + size]


class SqlAlchemyQuestionStore:
    def __init__(self, session: Session) -> None:
        self.session = session

    def fetch_existing(self, natural_keys: Collection[NaturalKey]) -> dict[NaturalKey, Question]:
        found: dict[NaturalKey, Question] = {}
        for chunk in _chunks(natural_keys, LOOKUP_CHUNK_SIZE):
            stmt = select(question_table).where(question_table.c.id.in_(chunk))
            for row in self.session.execute(stmt).mappings():
                question = _question_from_row(row)
                found[question.natural_key] = question
        return found

    def insert(self, record: Question) -> None:
        with self.session.begin_nested():
            _insert_if_absent(
                self.session, question_table, question_table.c.id, _question_values(record)
            )

    def upsert(self, record: Question) -> None:
        values = _question_values(record)
        with self.session.begin_nested():
            stmt = update(question_table).where(question_table.c.id == record.id).values(**values)
            result = self.session.execute(stmt)
            if result.rowcount == 0:
                self.session.execute(insert(question_table).values(**values))

    def list_records(self) -> Sequence[Question]:
        stmt = select(question_table).order_by(question_table.c.id)
        return [_question_from_row(row) for row in self.session.execute(stmt).mappings()]


class SqlAlchemyGlossaryTermStore:
    def __init__(self, session: Session) -> None:
        self.session = session

    def fetch_existing(
        self,
        natural_keys: Collection[NaturalKey],
    ) -> dict[NaturalKey, GlossaryTerm]:
        found: dict[NaturalKey, GlossaryTerm] = {}
        for chunk in _chunks(natural_keys, LOOKUP_CHUNK_SIZE):
            stmt = select(glossary_term_table).where(glossary_term_table.c.term_key.in_(chunk))
            for row in self.session.execute(stmt).mappings():
                found[row["term_key"]] = _term_from_row(row)
        return found

    def insert(self, record: GlossaryTerm) -> None:
        with self.session.begin_nested():
            _insert_if_absent(
                self.session,
                glossary_term_table,
                glossary_term_table.c.term_key,
                _term_values(record),
            )

    def upsert(self, record: GlossaryTerm) -> None:
        values = _term_values(record)
        with self.session.begin_nested():
            stmt = (
                update(glossary_term_table)
                .where(glossary_term_table.c.term_key == record.natural_key)
                .values(term=values["term"], definition=values["definition"])
            )
            result = self.session.execute(stmt)
            if result.rowcount == 0:
                self.session.execute(insert(glossary_term_table).values(**values))

    def list_records(self) -> Sequence[GlossaryTerm]:
        stmt = select(glossary_term_table).order_by(glossary_term_table.c.term_key)
        return [_term_from_row(row) for row in self.session.execute(stmt).mappings()]


def _insert_if_absent(
    session: Session,
    table: Table,
    key_column: Column[str],
    values: dict[str, Any],
) -> None:
    """Insert a row unless its natural key is already stored, so re-applied inserts are no-ops."""

    key = values[key_column.name]
    dialect = session.get_bind().dialect.name
    if dialect in {"sqlite", "postgresql"}:
        dialect_insert = sqlite.insert if dialect == "sqlite" else postgresql.insert
        stmt = dialect_insert(table).values(**values).on_conflict_do_nothing(
            index_elements=[key_column]
        )
        inserted = session.execute(stmt).rowcount
    elif session.execute(select(exists().where(key_column == key))).scalar():
        inserted = 0
    else:
        session.execute(insert(table).values(**values))
        inserted = 1
    if not inserted:
        log.debug("Skipped insert of %s into %s: already stored", key, table.name)


def _question_values(record: Question) -> dict[str, Any]:
    return {
        "id": record.id,
        "question": record.question,
        "options": list(record.options),
        "correct_answer": record.correct_answer,
        "subelement": record.subelement,
        "question_group": record.question_group,
        "explanation": record.explanation or None,
        "links": [link.to_payload() for link in record.links],
    }


def _question_from_row(row: RowMapping) -> Question:
    options = cast("list[object] | None", row["options"]) or []
    return Question(
        id=row["id"],
        question=row["question"],
        options=tuple(str(option) for option in options),
        correct_answer=row["correct_answer"],
        subelement=row["subelement"],
        question_group=row["question_group"],
        explanation=row["explanation"] or "",
        links=_stored_links(row["id"], row["links"]),
    )


def _stored_links(question_id: str, raw: object) -> tuple[ResourceLink, ...]:
    if not isinstance(raw, list):
        return ()
    links: list[ResourceLink] = []
    for entry in cast(list[object], raw):
        try:
            links.append(ResourceLink.model_validate(entry))
        except pydantic.ValidationError:
            log.warning("Ignoring unreadable stored link on question %s: %r", question_id, entry)
    return tuple(links)


def _term_values(record: GlossaryTerm) -> dict[str, Any]:
    return {
        "term": record.term,
        "term_key": record.natural_key,
        "definition": record.definition,
    }


def _term_from_row(row: RowMapping) -> GlossaryTerm:
    return GlossaryTerm(term=row["term"], definition=row["definition"])


if TYPE_CHECKING:
    from quizbank.domain.ports.persistence import GlossaryTermStore, QuestionStore

    _session_stub = cast("Session", object())
    _question_store_check: QuestionStore = SqlAlchemyQuestionStore(_session_stub)
    _glossary_store_check: GlossaryTermStore = SqlAlchemyGlossaryTermStore(_session_stub)
