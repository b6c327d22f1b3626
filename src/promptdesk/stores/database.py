"""Database connection management.

Wraps a SQLAlchemy engine. SQLite is the default backend; any SQLAlchemy URL
works.
"""

from collections.abc import Iterator
from contextlib import contextmanager

from sqlalchemy import Connection, create_engine, event, text
from sqlalchemy.engine import Engine
from sqlalchemy.pool import StaticPool

from .schema import metadata


class Database:
    """Engine owner with transactional connections."""

    def __init__(self, url: str, *, create_tables: bool = True) -> None:
        self.url = url
        self._engine: Engine = create_engine(url, echo=False)
        if url.startswith("sqlite"):
            Database._configure_sqlite(self._engine)
        if create_tables:
            metadata.create_all(self._engine)

    @staticmethod
    def _configure_sqlite(engine: Engine) -> None:
        @event.listens_for(engine, "connect")
        def set_sqlite_pragma(dbapi_connection: object, connection_record: object) -> None:
            cursor = dbapi_connection.cursor()  # type: ignore[attr-defined]
            cursor.execute("PRAGMA journal_mode=WAL")
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.execute("PRAGMA busy_timeout=5000")
            cursor.close()

    @classmethod
    def in_memory(cls) -> "Database":
        """Create an in-memory SQLite database with all tables.

        A single shared connection (StaticPool) keeps the data visible to
        every thread the test client runs requests on.
        """
        engine = create_engine(
            "sqlite://",
            echo=False,
            poolclass=StaticPool,
            connect_args={"check_same_thread": False},
        )
        cls._configure_sqlite(engine)
        metadata.create_all(engine)
        instance = cls.__new__(cls)
        instance.url = "sqlite://"
        instance._engine = engine
        return instance

    @property
    def engine(self) -> Engine:
        return self._engine

    @contextmanager
    def connection(self) -> Iterator[Connection]:
        """Connection inside a transaction: commits on exit, rolls back on error."""
        with self._engine.begin() as conn:
            yield conn

    def ping(self) -> None:
        """Round-trip a trivial query; raises if the database is unreachable."""
        with self.connection() as conn:
            conn.execute(text("SELECT 1"))

    def close(self) -> None:
        self._engine.dispose()
