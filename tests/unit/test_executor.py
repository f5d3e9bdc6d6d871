"""Tests for read-only query execution."""

import pytest
from sqlalchemy.exc import OperationalError

from wishfulsearch import WishfulSearch
from wishfulsearch.exceptions import ExecutionError, ExecutionErrorKind
from wishfulsearch.query.executor import QueryExecutor, classify_engine_error, execute_query


def _flight_count(ws: WishfulSearch) -> int:
    return ws.execute_sql("SELECT COUNT(*) FROM flights").rows[0][0]


class TestQueryExecutor:
    """Tests for QueryExecutor.execute."""

    def test_select(self, ws: WishfulSearch) -> None:
        """Test that rows come back as column names plus arrays."""
        result = execute_query(
            "SELECT flight_number, price FROM flights WHERE origin = 'Boston'", ws.connection
        )

        assert result.columns == ["flight_number", "price"]
        assert result.rows == [["AF5678", 95.5]]
        assert result.truncated is False

    def test_accepts_sqlalchemy_engine(self, ws: WishfulSearch) -> None:
        """Test that a bare SQLAlchemy engine works as the handle."""
        result = execute_query("SELECT COUNT(*) AS n FROM segments", ws.connection.engine)
        assert result.records() == [{"n": 6}]

    def test_join_through_link(self, ws: WishfulSearch) -> None:
        """Test a join from child to parent through the link column."""
        result = ws.execute_sql(
            "SELECT DISTINCT f.flight_number FROM segments s "
            "JOIN flights f ON s.flight_id = f.id WHERE s.carrier = 'LH'"
        )
        assert result.rows == [["AF9012"]]

    def test_colon_in_literal(self, ws: WishfulSearch) -> None:
        """Test that colons in literals are not treated as parameters."""
        result = ws.execute_sql("SELECT 'at 10:30' AS t")
        assert result.rows == [["at 10:30"]]

    def test_drop_never_reaches_engine(self, ws: WishfulSearch) -> None:
        """Test that unsafe statements are rejected before execution."""
        with pytest.raises(ExecutionError) as exc_info:
            ws.execute_sql("DROP TABLE flights")

        assert exc_info.value.kind == ExecutionErrorKind.UNSAFE
        assert exc_info.value.sql == "DROP TABLE flights"
        assert _flight_count(ws) == 4

    def test_unknown_column(self, ws: WishfulSearch) -> None:
        """Test that an unknown column is classified and the message kept verbatim."""
        with pytest.raises(ExecutionError) as exc_info:
            ws.execute_sql("SELECT dest FROM flights")

        assert exc_info.value.kind == ExecutionErrorKind.UNKNOWN_COLUMN
        assert "no such column: dest" in exc_info.value.message

    def test_unknown_table(self, ws: WishfulSearch) -> None:
        """Test that an unknown table is classified."""
        with pytest.raises(ExecutionError) as exc_info:
            ws.execute_sql("SELECT * FROM trips")

        assert exc_info.value.kind == ExecutionErrorKind.UNKNOWN_TABLE
        assert "no such table: trips" in exc_info.value.message

    def test_syntax_error(self, ws: WishfulSearch) -> None:
        """Test that malformed SQL is classified as a syntax failure."""
        with pytest.raises(ExecutionError) as exc_info:
            ws.execute_sql("SELECT * FROM flights WHERE")

        assert exc_info.value.kind == ExecutionErrorKind.SYNTAX

    def test_row_cap_truncates(self, ws: WishfulSearch) -> None:
        """Test that at most row_limit rows are returned and truncation flagged."""
        result = QueryExecutor(row_limit=2).execute(
            "SELECT flight_number FROM flights ORDER BY flight_number", ws.connection
        )

        assert result.rows == [["AF1234"], ["AF5678"]]
        assert result.truncated is True

    def test_row_cap_exact(self, ws: WishfulSearch) -> None:
        """Test that hitting exactly row_limit rows is not truncation."""
        result = QueryExecutor(row_limit=4).execute("SELECT id FROM flights", ws.connection)

        assert len(result.rows) == 4
        assert result.truncated is False

    def test_empty_result(self, empty_ws: WishfulSearch) -> None:
        """Test that no rows still reports the columns."""
        result = empty_ws.execute_sql("SELECT id, price FROM flights")
        assert result.columns == ["id", "price"]
        assert result.rows == []


class TestReadOnlyConnection:
    """Tests for the read-only connection guard."""

    def test_writes_refused(self, ws: WishfulSearch) -> None:
        """Test that writes fail even without validation."""
        with pytest.raises(OperationalError, match="readonly"):
            with ws.connection.read_only() as conn:
                conn.exec_driver_sql("DELETE FROM flights")

        assert _flight_count(ws) == 4

    def test_writes_allowed_afterwards(self, ws: WishfulSearch) -> None:
        """Test that the guard is lifted once the connection is released."""
        with ws.connection.read_only() as conn:
            conn.exec_driver_sql("SELECT 1")

        extra = [["f5", "LH0001", "Munich", "Paris", "2024-03-15", 80.0, "zz"]]
        counts = ws.insert_rows([extra, []])
        assert counts == {"flights": 1, "segments": 0}
        assert _flight_count(ws) == 5


class TestClassifyEngineError:
    """Tests for classify_engine_error."""

    @pytest.mark.parametrize(
        ("message", "kind"),
        [
            ("no such column: dest", ExecutionErrorKind.UNKNOWN_COLUMN),
            ("table flights has no column named x", ExecutionErrorKind.UNKNOWN_COLUMN),
            ("no such table: trips", ExecutionErrorKind.UNKNOWN_TABLE),
            ('near "FORM": syntax error', ExecutionErrorKind.SYNTAX),
            ("incomplete input", ExecutionErrorKind.SYNTAX),
            ("no such function: MEDIAN", ExecutionErrorKind.SYNTAX),
            ("attempt to write a readonly database", ExecutionErrorKind.UNSAFE),
            ("database is locked", ExecutionErrorKind.ENGINE),
        ],
    )
    def test_classification(self, message: str, kind: ExecutionErrorKind) -> None:
        """Test engine message classification."""
        assert classify_engine_error(message) == kind
