"""SQLAlchemy adapter package for Quizbank."""

from __future__ import annotations

from .mappings import (
    create_all_tables,
    create_database_engine,
    glossary_term_table,
    metadata,
    question_table,
)
from .repositories import SqlAlchemyGlossaryTermStore, SqlAlchemyQuestionStore
from .unit_of_work import (
    SqlAlchemyImportUnitOfWork,
    StartupError,
    shutdown,
    startup,
)

__all__ = [
    "SqlAlchemyGlossaryTermStore",
    "SqlAlchemyImportUnitOfWork",
    "SqlAlchemyQuestionStore",
    "StartupError",
    "create_all_tables",
    "create_database_engine",
    "glossary_term_table",
    "metadata",
    "question_table",
    "shutdown",
    "startup",
]
