"""Database engine configuration for the relational plan store."""
import logging

from sqlalchemy import event
from sqlalchemy.engine import Engine
from sqlmodel import SQLModel, create_engine

# Registers the plan/task_item tables on SQLModel.metadata
from treeplanner.db import tables  # noqa: F401

logger = logging.getLogger(__name__)


def build_engine(database_url: str, echo: bool = False) -> Engine:
    """
    Create an engine for the given URL.

    SQLite connections may be shared across threads and get foreign keys
    and WAL journaling switched on at connect time.
    """
    if database_url.startswith("postgresql"):
        logger.info("Using PostgreSQL database")
    else:
        logger.info(f"Using SQLite database: {database_url}")

    connect_args = {"check_same_thread": False} if database_url.startswith("sqlite") else {}
    engine = create_engine(database_url, echo=echo, connect_args=connect_args)

    if database_url.startswith("sqlite"):
        @event.listens_for(engine, "connect")
        def set_sqlite_pragma(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            if ":memory:" not in database_url and database_url != "sqlite://":
                cursor.execute("PRAGMA journal_mode=WAL")
            cursor.close()

    return engine


def init_db(engine: Engine) -> None:
    """Create all planner tables that do not exist yet."""
    SQLModel.metadata.create_all(engine)
    logger.info("Planner tables ready")
