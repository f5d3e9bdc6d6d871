"""Question -> prompt -> LLM -> extraction -> execution, with bounded retries.

Each attempt walks the same states in order::

    BUILDING -> CALLING -> EXTRACTING -> EXECUTING -> DONE | RETRYING | FAILED

Extraction and execution failures feed the failed SQL (if any) and the error
message back to the model as a corrective user turn, then re-enter CALLING.
The model always re-emits a full query; nothing is patched locally. LLM
transport failures are not retried.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from enum import StrEnum
from typing import TYPE_CHECKING

from wishfulsearch.core.types import AskOptions, ChatMessage, QueryResult, SchemaSet
from wishfulsearch.exceptions import (
    BudgetExceededError,
    ExecutionError,
    ExtractionError,
    TransportError,
    WishfulSearchError,
)
from wishfulsearch.query.executor import QueryExecutor
from wishfulsearch.query.extractor import ResponseExtractor
from wishfulsearch.query.prompt import PromptBuilder

if TYPE_CHECKING:
    from sqlalchemy import Engine

    from wishfulsearch.core.connection import DatabaseConnection
    from wishfulsearch.llm.base import LLMCall

logger = logging.getLogger(__name__)


class AskState(StrEnum):
    """States of a single ``ask`` call."""

    BUILDING = "building"
    CALLING = "calling"
    EXTRACTING = "extracting"
    EXECUTING = "executing"
    RETRYING = "retrying"
    DONE = "done"
    FAILED = "failed"


def call_llm(llm: LLMCall, messages: Sequence[ChatMessage]) -> str:
    """Invoke an LLM call, normalizing every failure to TransportError."""
    try:
        completion = llm(list(messages))
    except WishfulSearchError:
        raise
    except Exception as e:
        raise TransportError(f"LLM call failed: {e}") from e
    return completion or ""


class Orchestrator:
    """Runs the ask state machine for one schema set."""

    def __init__(
        self,
        options: AskOptions | None = None,
        prompt_builder: PromptBuilder | None = None,
        extractor: ResponseExtractor | None = None,
        executor: QueryExecutor | None = None,
    ) -> None:
        """Initialize the orchestrator.

        Args:
            options: Retry budget, row cap and dialect (defaults to AskOptions())
            prompt_builder: Prompt builder (defaults to one for options.dialect)
            extractor: Response extractor
            executor: Query executor (defaults to one capped at options.row_limit)
        """
        self._options = options or AskOptions()
        self._prompt_builder = prompt_builder or PromptBuilder(self._options.dialect)
        self._extractor = extractor or ResponseExtractor()
        self._executor = executor or QueryExecutor(row_limit=self._options.row_limit)
        self.state = AskState.BUILDING
        self.history: list[AskState] = []

    def _enter(self, state: AskState) -> None:
        self.state = state
        self.history.append(state)
        logger.debug(f"ask state -> {state.value}")

    def ask(
        self,
        question: str,
        schema: SchemaSet,
        llm: LLMCall,
        engine: DatabaseConnection | Engine,
    ) -> QueryResult:
        """Answer a natural-language question with SQL against the schema.

        Args:
            question: Natural-language question
            schema: Schema set the SQL must target
            llm: Callable taking messages and returning completion text
            engine: Database handle holding the schema's tables

        Returns:
            QueryResult with SQL, explanation, columns, rows and attempt count

        Raises:
            TransportError: If the LLM call fails (never retried)
            BudgetExceededError: If every attempt failed to extract or execute
        """
        self.history = []
        self._enter(AskState.BUILDING)
        messages = self._prompt_builder.build(question, schema)

        max_attempts = self._options.max_retries + 1
        last_error: ExtractionError | ExecutionError | None = None
        last_sql: str | None = None

        for attempt in range(1, max_attempts + 1):
            if attempt > 1:
                self._enter(AskState.RETRYING)

            self._enter(AskState.CALLING)
            try:
                raw = call_llm(llm, messages)
            except TransportError:
                self._enter(AskState.FAILED)
                raise

            try:
                self._enter(AskState.EXTRACTING)
                extracted = self._extractor.extract(raw)
                last_sql = extracted.sql

                self._enter(AskState.EXECUTING)
                table = self._executor.execute(extracted.sql, engine)
            except (ExtractionError, ExecutionError) as e:
                last_error = e
                logger.warning(
                    f"Attempt {attempt}/{max_attempts} failed "
                    f"({e.__class__.__name__}: {e.kind.value}): {e.message}"
                )
                messages = [
                    *messages,
                    ChatMessage.assistant(raw),
                    self._prompt_builder.correction(e),
                ]
                continue

            self._enter(AskState.DONE)
            logger.info(f"Answered in {attempt} attempt(s): {len(table.rows)} row(s)")
            return QueryResult(
                sql=table.sql,
                explanation=extracted.explanation,
                columns=table.columns,
                rows=table.rows,
                truncated=table.truncated,
                attempts=attempt,
            )

        self._enter(AskState.FAILED)
        assert last_error is not None
        raise BudgetExceededError(max_attempts, last_error, last_sql)


def ask(
    question: str,
    schema: SchemaSet,
    llm: LLMCall,
    engine: DatabaseConnection | Engine,
    options: AskOptions | None = None,
) -> QueryResult:
    """Convenience function to answer one question.

    Args:
        question: Natural-language question
        schema: Schema set the SQL must target
        llm: Callable taking messages and returning completion text
        engine: Database handle
        options: Retry budget, row cap and dialect

    Returns:
        QueryResult
    """
    return Orchestrator(options).ask(question, schema, llm, engine)
