"""Tests for the ask retry loop."""

from typing import Any

import pytest

from wishfulsearch import WishfulSearch
from wishfulsearch.core.types import AskOptions, MessageRole
from wishfulsearch.exceptions import (
    BudgetExceededError,
    ExecutionError,
    ExecutionErrorKind,
    ExtractionError,
    TransportError,
)
from wishfulsearch.query.orchestrator import AskState, Orchestrator, ask

BAD_SQL = "SELECT dest FROM flights"


def _ask(ws: WishfulSearch, llm: Any, max_retries: int = 2, question: str = "q") -> Any:
    return ask(question, ws.schema, llm, ws.connection, AskOptions(max_retries=max_retries))


class TestAskSuccess:
    """Tests for answered questions."""

    def test_first_attempt(
        self, ws: WishfulSearch, scripted_llm: Any, respond: Any, paris_sql: str
    ) -> None:
        """Test a question answered on the first call."""
        llm = scripted_llm([respond(paris_sql, "Paris flights departing in March.")])
        result = _ask(ws, llm, question="flights to Paris in March")

        assert llm.call_count == 1
        assert result.attempts == 1
        assert result.sql == paris_sql
        assert result.explanation == "Paris flights departing in March."
        assert result.columns == ["flight_number", "departure_date"]
        assert result.rows == [["AF1234", "2024-03-05"], ["AF5678", "2024-03-20"]]

    @pytest.mark.parametrize(
        "template",
        [
            "-- Paris flights in March\n{sql}",
            "/* departures between March 1 and 31 */ {sql}",
            "{sql}; -- ordered by date",
        ],
    )
    def test_commented_sql_first_attempt(
        self, ws: WishfulSearch, scripted_llm: Any, respond: Any, paris_sql: str, template: str
    ) -> None:
        """Test that comments in the model's SQL do not cost a retry."""
        llm = scripted_llm([respond(template.format(sql=paris_sql))])
        result = _ask(ws, llm, max_retries=0)

        assert llm.call_count == 1
        assert result.attempts == 1
        assert result.rows == [["AF1234", "2024-03-05"], ["AF5678", "2024-03-20"]]

    def test_state_history(self, ws: WishfulSearch, scripted_llm: Any, respond: Any) -> None:
        """Test the states walked for a retried question."""
        llm = scripted_llm(["no fence here", respond("SELECT 1")])
        orchestrator = Orchestrator(AskOptions())
        orchestrator.ask("q", ws.schema, llm, ws.connection)

        assert orchestrator.history == [
            AskState.BUILDING,
            AskState.CALLING,
            AskState.EXTRACTING,
            AskState.RETRYING,
            AskState.CALLING,
            AskState.EXTRACTING,
            AskState.EXECUTING,
            AskState.DONE,
        ]
        assert orchestrator.state == AskState.DONE

    def test_no_sql_block_then_success(
        self, ws: WishfulSearch, scripted_llm: Any, respond: Any
    ) -> None:
        """Test that a missing fence is corrected on the next call."""
        llm = scripted_llm(["You probably want the flights table.", respond("SELECT 1 AS one")])
        result = _ask(ws, llm)

        assert llm.call_count == 2
        assert result.attempts == 2
        assert result.rows == [[1]]

        retry = llm.calls[1]
        assert len(retry) == 4
        assert retry[2].role == MessageRole.ASSISTANT
        assert retry[2].content == "You probably want the flights table."
        assert retry[3].role == MessageRole.USER
        assert "```sql" in retry[3].content

    def test_engine_message_fed_back_verbatim(
        self, ws: WishfulSearch, scripted_llm: Any, respond: Any, paris_sql: str
    ) -> None:
        """Test that the failing SQL and engine error reach the model."""
        llm = scripted_llm([respond(BAD_SQL), respond(paris_sql)])
        result = _ask(ws, llm)

        assert result.attempts == 2
        correction = llm.calls[1][-1].content
        assert BAD_SQL in correction
        assert "no such column: dest" in correction

    def test_conversation_grows_per_attempt(
        self, ws: WishfulSearch, scripted_llm: Any, respond: Any
    ) -> None:
        """Test that each retry appends one assistant and one user turn."""
        llm = scripted_llm([respond(BAD_SQL), respond(BAD_SQL), respond("SELECT 1")])
        _ask(ws, llm)

        assert [len(call) for call in llm.calls] == [2, 4, 6]
        # Earlier turns are never rewritten
        assert llm.calls[2][:4] == llm.calls[1]

    def test_unsafe_sql_retried_without_touching_data(
        self, ws: WishfulSearch, scripted_llm: Any, respond: Any
    ) -> None:
        """Test that a destructive statement is rejected and corrected."""
        llm = scripted_llm(
            [respond("DROP TABLE flights"), respond("SELECT COUNT(*) FROM flights")]
        )
        result = _ask(ws, llm)

        assert result.rows == [[4]]
        assert "Only SELECT or WITH" in llm.calls[1][-1].content

    def test_empty_completion_is_missing_block(
        self, ws: WishfulSearch, scripted_llm: Any, respond: Any
    ) -> None:
        """Test that an empty or missing completion is retried as NoSQLBlock."""
        llm = scripted_llm([None, "", respond("SELECT 1")])
        result = _ask(ws, llm)

        assert result.attempts == 3


class TestRetryBudget:
    """Tests for the bounded retry budget."""

    @pytest.mark.parametrize("max_retries", [0, 1, 2])
    @pytest.mark.parametrize("failures", [0, 1, 2, 3])
    def test_call_count(
        self,
        ws: WishfulSearch,
        scripted_llm: Any,
        respond: Any,
        failures: int,
        max_retries: int,
    ) -> None:
        """Test that calls equal min(failures, max_retries) + 1."""
        llm = scripted_llm([respond(BAD_SQL)] * failures + [respond("SELECT 1")])

        if failures > max_retries:
            with pytest.raises(BudgetExceededError) as exc_info:
                _ask(ws, llm, max_retries=max_retries)
            assert exc_info.value.attempts == max_retries + 1
        else:
            assert _ask(ws, llm, max_retries=max_retries).attempts == failures + 1

        assert llm.call_count == min(failures, max_retries) + 1

    def test_budget_exceeded_details(
        self, ws: WishfulSearch, scripted_llm: Any, respond: Any
    ) -> None:
        """Test that the final failure carries the last error and SQL."""
        llm = scripted_llm(["no sql", respond(BAD_SQL)])
        orchestrator = Orchestrator(AskOptions(max_retries=1))

        with pytest.raises(BudgetExceededError) as exc_info:
            orchestrator.ask("q", ws.schema, llm, ws.connection)

        error = exc_info.value
        assert isinstance(error.last_error, ExecutionError)
        assert error.last_error.kind == ExecutionErrorKind.UNKNOWN_COLUMN
        assert error.last_sql == BAD_SQL
        assert "after 2 attempt(s)" in error.message
        assert error.to_dict()["context"]["last_error"]["context"]["kind"] == "UnknownColumn"
        assert orchestrator.state == AskState.FAILED

    def test_budget_exceeded_on_extraction(self, ws: WishfulSearch, scripted_llm: Any) -> None:
        """Test exhausting the budget without ever getting SQL."""
        llm = scripted_llm(["nothing", "still nothing"])

        with pytest.raises(BudgetExceededError) as exc_info:
            _ask(ws, llm, max_retries=1)

        assert isinstance(exc_info.value.last_error, ExtractionError)
        assert exc_info.value.last_sql is None


class TestTransportFailures:
    """Tests for LLM call failures."""

    def test_exception_not_retried(self, ws: WishfulSearch, scripted_llm: Any) -> None:
        """Test that an LLM failure surfaces immediately as TransportError."""
        llm = scripted_llm([RuntimeError("rate limited"), "unused"])
        orchestrator = Orchestrator(AskOptions(max_retries=5))

        with pytest.raises(TransportError, match="rate limited"):
            orchestrator.ask("q", ws.schema, llm, ws.connection)

        assert llm.call_count == 1
        assert orchestrator.state == AskState.FAILED

    def test_transport_error_passed_through(
        self, ws: WishfulSearch, scripted_llm: Any, respond: Any
    ) -> None:
        """Test that adapter TransportErrors keep their provider context."""
        llm = scripted_llm([respond(BAD_SQL), TransportError("timeout", provider="openai")])

        with pytest.raises(TransportError) as exc_info:
            _ask(ws, llm)

        assert exc_info.value.provider == "openai"
        assert llm.call_count == 2
