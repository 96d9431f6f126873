"""SQLAlchemy table metadata for stored quiz content."""

from __future__ import annotations

import logging
import uuid
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

from sqlalchemy import (
    JSON,
    CheckConstraint,
    Column,
    DateTime,
    Dialect,
    Integer,
    MetaData,
    String,
    Table,
    Text,
    TypeDecorator,
    Uuid,
    create_engine,
    event,
)

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine

log = logging.getLogger(__name__)

UUIDColumnType = Uuid[uuid.UUID]


def _utcnow() -> datetime:
    return datetime.now(UTC)


class UTCDateTime(TypeDecorator[datetime]):
    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        if value.tzinfo is None:
            value = value.replace(tzinfo=UTC)
        return value.astimezone(UTC)

    def process_result_value(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        return value if value.tzinfo else value.replace(tzinfo=UTC)


metadata = MetaData(
    naming_convention={
        "ix": "ix_%(column_0_label)s",
        "uq": "uq_%(table_name)s_%(column_0_label)s",
        "ck": "ck_%(table_name)s_%(constraint_name)s",
        "fk": "fk_%(table_name)s_%(column_0_label)s_%(referred_table_name)s",
        "pk": "pk_%(table_name)s",
    }
)

question_table = Table(
    "question",
    metadata,
    Column("id", String(32), primary_key=True),
    Column("question", Text, nullable=False),
    Column("options", JSON, nullable=False),
    Column("correct_answer", Integer, nullable=False),
    Column("subelement", String(16), nullable=False),
    Column("question_group", String(16), nullable=False),
    Column("explanation", Text, nullable=True),
    Column("links", JSON, nullable=False, default=list),
    Column("created_at", UTCDateTime, nullable=False, default=_utcnow),
    Column("updated_at", UTCDateTime, nullable=False, default=_utcnow, onupdate=_utcnow),
    CheckConstraint("correct_answer >= 0 AND correct_answer <= 3", name="correct_answer_range"),
)

glossary_term_table = Table(
    "glossary_term",
    metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column("term", String, nullable=False),
    # case-folded term; the natural key of glossary imports
    Column("term_key", String, nullable=False, unique=True),
    Column("definition", Text, nullable=False),
    Column("created_at", UTCDateTime, nullable=False, default=_utcnow),
    Column("updated_at", UTCDateTime, nullable=False, default=_utcnow, onupdate=_utcnow),
)


def create_all_tables(engine: Engine) -> None:
    """Create database tables for the quiz content metadata."""

    log.info("Creating all tables")
    metadata.create_all(engine)


def create_database_engine(database_uri: str, **kwargs: Any) -> Engine:
    """Create an engine; SQLite engines get explicit BEGIN so SAVEPOINTs nest correctly."""

    engine = create_engine(database_uri, **kwargs)
    if engine.dialect.name == "sqlite":
        event.listen(engine, "connect", _disable_pysqlite_transactions)
        event.listen(engine, "begin", _emit_begin)
    return engine


def _disable_pysqlite_transactions(dbapi_connection: Any, _connection_record: object) -> None:
    dbapi_connection.isolation_level = None


def _emit_begin(connection: Any) -> None:
    connection.exec_driver_sql("BEGIN")
