from pathlib import Path

from sqlalchemy import event
from sqlalchemy.engine import Engine
from sqlmodel import SQLModel, create_engine

from field_inspection.db_models import Inspection, Photo

REMOTE_TABLES = [Inspection.__table__, Photo.__table__]


def get_local_engine(database_path: Path | str) -> Engine:
    """SQLite engine for the on-device store, with cascades and durable commits."""
    engine = create_engine(
        f"sqlite:///{database_path}",
        connect_args={"check_same_thread": False},
    )

    @event.listens_for(engine, "connect")
    def _set_sqlite_pragmas(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.execute("PRAGMA journal_mode=WAL")
        cursor.execute("PRAGMA synchronous=FULL")
        cursor.close()

    return engine


def get_remote_engine(url: str) -> Engine:
    return create_engine(url, pool_pre_ping=True)


def init_local_db(engine: Engine) -> None:
    SQLModel.metadata.create_all(engine)


def init_remote_db(engine: Engine) -> None:
    # The outbox only exists on the device.
    SQLModel.metadata.create_all(engine, tables=REMOTE_TABLES)
