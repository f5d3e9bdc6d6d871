"""Embedded database connection management for WishfulSearch."""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import AbstractContextManager, contextmanager
from typing import TYPE_CHECKING

from sqlalchemy import Engine, create_engine, text
from sqlalchemy.pool import StaticPool

from wishfulsearch.exceptions import ConnectionError

if TYPE_CHECKING:
    from sqlalchemy import Connection
    from sqlalchemy.engine.url import URL


MEMORY_URL = "sqlite:///:memory:"


def _is_memory_url(url: str) -> bool:
    return url in ("sqlite://", MEMORY_URL)


@contextmanager
def read_only_connection(engine: Engine) -> Iterator[Connection]:
    """Yield a connection that refuses writes for its lifetime.

    Uses SQLite's ``query_only`` pragma, so even a statement that slips
    past validation cannot mutate the database.
    """
    with engine.connect() as conn:
        conn.exec_driver_sql("PRAGMA query_only = ON")
        try:
            yield conn
        finally:
            conn.rollback()
            conn.exec_driver_sql("PRAGMA query_only = OFF")


class DatabaseConnection:
    """Manages the embedded SQLite engine.

    In-memory databases share a single underlying connection (``StaticPool``)
    so that tables created at setup are visible to every later query. The
    handle is single-writer; callers serialize concurrent access themselves.
    Foreign keys are declared but not enforced, since link columns on the
    parent table are not required to be unique.
    """

    def __init__(self, url: str | URL = MEMORY_URL, echo: bool = False) -> None:
        """Initialize database connection.

        Args:
            url: SQLite URL, "sqlite:///:memory:" (default) or "sqlite:///path/to/db.sqlite"
            echo: Whether to echo SQL statements (for debugging)

        Raises:
            ConnectionError: If the URL is not a SQLite URL
        """
        url_str = str(url)
        if not url_str.startswith("sqlite"):
            raise ConnectionError(
                f"Unsupported database URL: {url_str}. "
                "Use 'sqlite:///:memory:' or 'sqlite:///path/to/db.sqlite'."
            )
        self._url = url_str
        self._echo = echo
        self._engine: Engine | None = None

    @property
    def url(self) -> str:
        return self._url

    @property
    def engine(self) -> Engine:
        """Get or create the SQLAlchemy engine."""
        if self._engine is None:
            try:
                kwargs: dict[str, object] = {
                    "echo": self._echo,
                    "connect_args": {"check_same_thread": False},
                }
                if _is_memory_url(self._url):
                    kwargs["poolclass"] = StaticPool
                self._engine = create_engine(self._url, **kwargs)
            except Exception as e:
                raise ConnectionError(f"Failed to create database engine: {e}") from e
        return self._engine

    def read_only(self) -> AbstractContextManager[Connection]:
        """Read-only connection to this database (see ``read_only_connection``)."""
        return read_only_connection(self.engine)

    def test_connection(self) -> bool:
        """Test if the database connection works.

        Raises:
            ConnectionError: If connection test fails
        """
        try:
            with self.engine.connect() as conn:
                conn.execute(text("SELECT 1"))
            return True
        except Exception as e:
            raise ConnectionError(f"Database connection test failed: {e}") from e

    def close(self) -> None:
        """Close the database connection and dispose of the engine."""
        if self._engine is not None:
            self._engine.dispose()
            self._engine = None

    def __enter__(self) -> DatabaseConnection:
        self.test_connection()
        return self

    def __exit__(self, exc_type: object, exc_val: object, exc_tb: object) -> None:
        self.close()
