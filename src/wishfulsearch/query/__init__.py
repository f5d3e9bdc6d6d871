"""Natural-language query synthesis for WishfulSearch.

Pipeline:
    1. Prompt Builder - Renders LLM-visible schema plus the question
    2. Response Extractor - Pulls the ```sql block and explanation from model output
    3. Query Validator / Executor - Runs a single read-only statement with a row cap
    4. Orchestrator - Wires the above with a bounded corrective retry loop

Example:
    result = ask("flights to Paris in March", schema, llm, connection)
    print(result.sql, result.explanation, result.rows)
"""

from wishfulsearch.query.executor import QueryExecutor, execute_query
from wishfulsearch.query.extractor import ExtractedQuery, ResponseExtractor, extract
from wishfulsearch.query.orchestrator import AskState, Orchestrator, ask
from wishfulsearch.query.prompt import PromptBuilder, build_prompt
from wishfulsearch.query.validator import QueryType, QueryValidator, ValidationResult

__all__ = [
    "PromptBuilder",
    "build_prompt",
    "ResponseExtractor",
    "ExtractedQuery",
    "extract",
    "QueryValidator",
    "QueryType",
    "ValidationResult",
    "QueryExecutor",
    "execute_query",
    "Orchestrator",
    "AskState",
    "ask",
]
