from __future__ import annotations

from typing import TYPE_CHECKING

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError

from quizbank.adapters.sqlalchemy.mappings import glossary_term_table, question_table
from quizbank.adapters.sqlalchemy.repositories import (
    SqlAlchemyGlossaryTermStore,
    SqlAlchemyQuestionStore,
)
from tests.helpers.records import make_link, make_question, make_term

if TYPE_CHECKING:
    from sqlalchemy.orm import Session


def test_question_store_round_trips_records(sqlite_session: Session) -> None:
    store = SqlAlchemyQuestionStore(sqlite_session)
    question = make_question(
        "T1A01",
        explanation="Because.",
        links=(make_link(title="Band plan", type="website", siteName="ARRL"),),
    )

    store.insert(question)
    store.insert(make_question("T1A02"))
    sqlite_session.commit()

    assert store.fetch_existing({"T1A01", "T1A03"}) == {"T1A01": question}
    assert [record.id for record in store.list_records()] == ["T1A01", "T1A02"]


def test_question_store_upsert_updates_and_inserts(sqlite_session: Session) -> None:
    store = SqlAlchemyQuestionStore(sqlite_session)
    store.insert(make_question("T1A01"))

    store.upsert(make_question("T1A01", question="Updated?", correct_answer=2))
    store.upsert(make_question("T1A02"))
    sqlite_session.commit()

    existing = store.fetch_existing(["T1A01", "T1A02"])
    assert existing["T1A01"].question == "Updated?"
    assert existing["T1A01"].correct_answer == 2
    assert "T1A02" in existing


def test_failed_insert_is_rolled_back_to_its_savepoint(sqlite_session: Session) -> None:
    store = SqlAlchemyQuestionStore(sqlite_session)
    store.insert(make_question("T1A01"))

    with pytest.raises(IntegrityError):
        store.insert(make_question("T1A02", correct_answer=9))
    store.insert(make_question("T1A03"))
    sqlite_session.commit()

    count = sqlite_session.execute(select(func.count()).select_from(question_table)).scalar_one()
    assert count == 2
    assert sorted(store.fetch_existing(["T1A01", "T1A02", "T1A03"])) == ["T1A01", "T1A03"]


def test_insert_of_a_stored_key_leaves_the_row_untouched(sqlite_session: Session) -> None:
    store = SqlAlchemyQuestionStore(sqlite_session)
    store.insert(make_question("T1A01"))

    store.insert(make_question("T1A01", question="Duplicate"))
    sqlite_session.commit()

    assert store.list_records() == [make_question("T1A01")]


def test_glossary_store_keys_terms_case_insensitively(sqlite_session: Session) -> None:
    store = SqlAlchemyGlossaryTermStore(sqlite_session)
    store.insert(make_term("Ohm", "Old"))

    store.insert(make_term("OHM", "Duplicate"))
    assert store.fetch_existing({"ohm"}) == {"ohm": make_term("Ohm", "Old")}
    store.upsert(make_term("Ohm", "New"))
    store.upsert(make_term("Volt", "Unit of potential"))
    sqlite_session.commit()

    assert store.fetch_existing({"ohm"}) == {"ohm": make_term("Ohm", "New")}
    assert [term.term for term in store.list_records()] == ["Ohm", "Volt"]
    keys = sqlite_session.execute(select(glossary_term_table.c.term_key)).scalars().all()
    assert sorted(keys) == ["ohm", "volt"]


def test_fetch_existing_with_no_keys_returns_empty(sqlite_session: Session) -> None:
    assert SqlAlchemyQuestionStore(sqlite_session).fetch_existing(set()) == {}
    assert SqlAlchemyGlossaryTermStore(sqlite_session).fetch_existing(set()) == {}
