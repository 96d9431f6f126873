from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from quizbank.adapters.sqlalchemy.mappings import create_database_engine
from quizbank.adapters.sqlalchemy.unit_of_work import (
    SqlAlchemyImportUnitOfWork,
    StartupError,
    configured_engine,
    is_started,
    shutdown,
    startup,
)
from quizbank.domain.bulk_import import BatchApplier
from tests.helpers.records import make_question, make_questions, make_term

if TYPE_CHECKING:
    from collections.abc import Iterator

    from sqlalchemy.engine import Engine


@pytest.fixture(autouse=True)
def reset_unit_of_work_state() -> Iterator[None]:
    shutdown()
    yield
    shutdown()


def test_sqlalchemy_unit_of_work_requires_startup() -> None:
    with pytest.raises(StartupError):
        SqlAlchemyImportUnitOfWork()


def test_startup_requires_force_for_reconfiguration() -> None:
    engine_a = create_database_engine("sqlite+pysqlite:///:memory:")
    engine_b = create_database_engine("sqlite+pysqlite:///:memory:")

    startup(engine=engine_a, force=True)

    with pytest.raises(StartupError):
        startup(engine=engine_b)

    startup(engine=engine_b, force=True)
    assert configured_engine() is engine_b
    assert is_started()


def test_repositories_require_an_open_unit_of_work(sqlite_engine: Engine) -> None:
    startup(engine=sqlite_engine, force=True)
    uow = SqlAlchemyImportUnitOfWork()

    with pytest.raises(StartupError):
        _ = uow.repositories


def test_unit_of_work_persists_committed_records(sqlite_engine: Engine) -> None:
    startup(engine=sqlite_engine, force=True)

    with SqlAlchemyImportUnitOfWork() as uow:
        uow.repositories.questions.insert(make_question("T1A01"))
        uow.repositories.glossary_terms.insert(make_term("Ohm"))
        uow.commit()

    with SqlAlchemyImportUnitOfWork() as uow:
        assert uow.repositories.questions.fetch_existing({"T1A01"}) == {
            "T1A01": make_question("T1A01")
        }
        assert [term.term for term in uow.repositories.glossary_terms.list_records()] == ["Ohm"]


def test_unit_of_work_rolls_back_on_error(sqlite_engine: Engine) -> None:
    startup(engine=sqlite_engine, force=True)

    with pytest.raises(RuntimeError), SqlAlchemyImportUnitOfWork() as uow:
        uow.repositories.questions.insert(make_question("T1A01"))
        raise RuntimeError("boom")

    with SqlAlchemyImportUnitOfWork() as uow:
        assert uow.repositories.questions.list_records() == []


def test_batches_committed_before_a_failure_stay_written(sqlite_engine: Engine) -> None:
    startup(engine=sqlite_engine, force=True)
    records = make_questions(10)
    records[4] = make_question("T1A05", correct_answer=9)

    with SqlAlchemyImportUnitOfWork() as uow:
        applier = BatchApplier(store=uow.repositories.questions, batch_size=3)
        outcome = applier.apply(records, [], on_batch_complete=uow.commit)

    assert outcome.inserted == 9
    assert outcome.failed == 1
    assert outcome.failures[0].natural_key == "T1A05"
    with SqlAlchemyImportUnitOfWork() as uow:
        stored = uow.repositories.questions.list_records()
    assert len(stored) == 9
    assert "T1A05" not in {record.id for record in stored}


def test_reapplying_an_applied_work_list_leaves_storage_unchanged(sqlite_engine: Engine) -> None:
    startup(engine=sqlite_engine, force=True)
    records = make_questions(10)

    with SqlAlchemyImportUnitOfWork() as uow:
        BatchApplier(store=uow.repositories.questions, batch_size=4).apply(
            records, [], on_batch_complete=uow.commit
        )
    with SqlAlchemyImportUnitOfWork() as uow:
        retry = BatchApplier(store=uow.repositories.questions, batch_size=4).apply(
            records, [], on_batch_complete=uow.commit
        )

    assert retry.failed == 0
    assert retry.failures == []
    with SqlAlchemyImportUnitOfWork() as uow:
        assert uow.repositories.questions.list_records() == records


def test_unit_of_work_cannot_be_entered_twice(sqlite_engine: Engine) -> None:
    startup(engine=sqlite_engine, force=True)

    with SqlAlchemyImportUnitOfWork() as uow, pytest.raises(StartupError):
        uow.__enter__()


def test_closed_unit_of_work_rejects_commit(sqlite_engine: Engine) -> None:
    startup(engine=sqlite_engine, force=True)
    with SqlAlchemyImportUnitOfWork() as uow:
        uow.commit()

    with pytest.raises(StartupError):
        uow.commit()
    assert configured_engine() is sqlite_engine


def test_shutdown_unbinds_storage(sqlite_engine: Engine) -> None:
    startup(engine=sqlite_engine, force=True)

    shutdown()

    assert not is_started()
    assert configured_engine() is None
