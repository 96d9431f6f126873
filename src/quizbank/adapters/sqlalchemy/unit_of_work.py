"""SQLAlchemy unit of work for bulk imports and exports.

The adapter holds one engine and one session factory per process. ``startup``
creates the tables and binds the factory; every ``SqlAlchemyImportUnitOfWork``
then opens its own session from it.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Literal

from sqlalchemy.orm import Session, sessionmaker

from quizbank.adapters.sqlalchemy.mappings import create_all_tables, create_database_engine
from quizbank.adapters.sqlalchemy.repositories import (
    SqlAlchemyGlossaryTermStore,
    SqlAlchemyQuestionStore,
)
from quizbank.config import get_database_config
from quizbank.domain.ports.unit_of_work import ImportRepositories

if TYPE_CHECKING:
    from types import TracebackType

    from sqlalchemy.engine import Engine

log = logging.getLogger(__name__)


class StartupError(RuntimeError):
    """Raised when the SQLAlchemy adapter is used outside its started lifecycle."""


@dataclass(slots=True)
class _Binding:
    engine: Engine
    sessions: sessionmaker[Session]


_binding: _Binding | None = None


def startup(
    *,
    engine: Engine | None = None,
    database_uri: str | None = None,
    force: bool = False,
) -> None:
    """Bind the adapter to ``engine`` (or one built from the configured URI) and create tables.

    A second call without ``force=True`` is rejected so an import never silently
    switches databases halfway through.
    """

    global _binding  # noqa: PLW0603
    if _binding is not None and not force:
        raise StartupError("Storage is already bound; pass force=True to rebind it")

    bound_engine = engine or create_database_engine(database_uri or get_database_config().uri)
    create_all_tables(bound_engine)
    _binding = _Binding(
        engine=bound_engine,
        sessions=sessionmaker(bind=bound_engine, expire_on_commit=False),
    )
    log.debug("Storage bound to %s", bound_engine.url)


def configured_engine() -> Engine | None:
    return _binding.engine if _binding is not None else None


def is_started() -> bool:
    return _binding is not None


def shutdown() -> None:
    """Dispose the bound engine; tests call this between cases."""

    global _binding  # noqa: PLW0603
    if _binding is not None:
        _binding.engine.dispose()
    _binding = None


class SqlAlchemyImportUnitOfWork:
    """Session-per-context unit of work exposing the question and glossary stores."""

    def __init__(self) -> None:
        if _binding is None:
            raise StartupError(
                "Storage is not bound. Call quizbank.adapters.sqlalchemy.unit_of_work.startup() "
                "before opening a unit of work."
            )
        self._sessions = _binding.sessions
        self._session: Session | None = None
        self._repositories: ImportRepositories | None = None

    def __enter__(self) -> SqlAlchemyImportUnitOfWork:
        if self._session is not None:
            raise StartupError("Unit of work is already open")
        self._session = self._sessions()
        self._repositories = ImportRepositories(
            questions=SqlAlchemyQuestionStore(self._session),
            glossary_terms=SqlAlchemyGlossaryTermStore(self._session),
        )
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> Literal[False]:
        session = self.session
        if exc_type is not None:
            session.rollback()
        session.close()
        self._session = None
        self._repositories = None
        return False

    @property
    def session(self) -> Session:
        if self._session is None:
            raise StartupError("Unit of work is not open")
        return self._session

    @property
    def repositories(self) -> ImportRepositories:
        if self._repositories is None:
            raise StartupError("Unit of work is not open")
        return self._repositories

    def commit(self) -> None:
        self.session.commit()

    def rollback(self) -> None:
        self.session.rollback()


if TYPE_CHECKING:
    from quizbank.domain.ports.unit_of_work import ImportUnitOfWork

    _uow_import_check: ImportUnitOfWork = SqlAlchemyImportUnitOfWork()
