"""Object analysis: from an example object to a schema set.

Runs four chained prompts against an LLM:

1. Typespec - TypedDict classes for the example (skipped when supplied)
2. Table structure - markdown reasoning, then SQLite DDL in the same conversation
3. Structured DDL - the DDL as schema-set JSON, parsed into a SchemaSet
4. object_to_rows - a Python function flattening objects into rows per table

Fenced blocks are extracted from each answer; if a fence is missing the raw
answer is kept. A failing stage stops the chain: the partial result is
returned with the error recorded and still written to the report.

Generated code is never executed here.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Any

from pydantic import ValidationError as PydanticValidationError

from wishfulsearch.analyze import prompts
from wishfulsearch.analyze.report import render_report, save_report
from wishfulsearch.analyze.shape import describe_shape
from wishfulsearch.core.types import ChatMessage, SchemaSet
from wishfulsearch.exceptions import AnalysisError, SchemaError, WishfulSearchError
from wishfulsearch.query.extractor import extract_fenced
from wishfulsearch.query.orchestrator import call_llm
from wishfulsearch.schema.ddl import validate_schema

if TYPE_CHECKING:
    from wishfulsearch.llm.base import LLMCall

logger = logging.getLogger(__name__)


@dataclass
class AnalysisResult:
    """Outputs of the analysis flow; stages that did not run stay None."""

    typespec: str | None = None
    shape: str | None = None
    table_structure: str | None = None
    ddl: str | None = None
    structured_ddl: str | None = None
    object_to_rows: str | None = None
    schema: SchemaSet | None = None
    report_path: str | None = None
    errors: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        """Return result as JSON-serializable dict."""
        return {
            "typespec": self.typespec,
            "shape": self.shape,
            "table_structure": self.table_structure,
            "ddl": self.ddl,
            "structured_ddl": self.structured_ddl,
            "object_to_rows": self.object_to_rows,
            "schema": self.schema.model_dump() if self.schema else None,
            "report_path": self.report_path,
            "errors": self.errors,
        }


def _fenced_or_raw(raw: str, language: str) -> str:
    block = extract_fenced(raw, language)
    return block if block is not None else raw.strip()


def _require(raw: str, stage: str) -> str:
    if not raw.strip():
        raise AnalysisError(f"No response from LLM while generating {stage}.", {"stage": stage})
    return raw


def parse_structured_ddl(structured_ddl: str) -> SchemaSet:
    """Parse schema-set JSON produced by the LLM.

    Accepts either ``{"tables": [...]}`` or a bare list of tables.

    Raises:
        SchemaError: If the JSON is malformed or the schema set is invalid
    """
    try:
        data = json.loads(structured_ddl)
    except json.JSONDecodeError as e:
        raise SchemaError(f"Structured DDL is not valid JSON: {e}") from e

    if isinstance(data, list):
        data = {"tables": data}
    try:
        schema = SchemaSet.model_validate(data)
    except PydanticValidationError as e:
        raise SchemaError(f"Structured DDL does not match the schema set format: {e}") from e

    validate_schema(schema)
    return schema


class ObjectAnalyzer:
    """Runs the analysis prompt chain for one example object."""

    def __init__(self, llm: LLMCall) -> None:
        """Initialize the analyzer.

        Args:
            llm: Callable taking messages and returning completion text
        """
        self._llm = llm

    def _call(self, messages: list[ChatMessage], stage: str) -> str:
        logger.info(f"Generating {stage}...")
        return _require(call_llm(self._llm, messages), stage)

    def analyze(
        self,
        obj: Any,
        save_dir: str | Path | None = None,
        existing_typespec: str | None = None,
    ) -> AnalysisResult:
        """Analyze an example object.

        Args:
            obj: Example object (not an array)
            save_dir: Existing directory for the markdown report (not saved when None)
            existing_typespec: Known typespec, skips the first prompt

        Returns:
            AnalysisResult, possibly partial (see ``errors``)

        Raises:
            AnalysisError: If obj is not an object or save_dir does not exist
        """
        shape = describe_shape(obj)
        if save_dir is not None and not Path(save_dir).is_dir():
            raise AnalysisError(
                f"Report save location {save_dir} does not exist. Create it first.",
                {"save_dir": str(save_dir)},
            )
        result = AnalysisResult(typespec=existing_typespec, shape=shape.describe())

        try:
            self._run_chain(obj, result)
        except WishfulSearchError as e:
            logger.error(f"Error running object analysis: {e.message}")
            result.errors.append(e.message)

        if save_dir is not None:
            path = save_report(render_report(obj, result), save_dir)
            result.report_path = str(path)
        return result

    def _run_chain(self, obj: Any, result: AnalysisResult) -> None:
        messages = [
            ChatMessage.system(prompts.typespec_system(obj)),
            ChatMessage.user(prompts.TYPESPEC_USER),
        ]
        if result.typespec is None:
            raw = self._call(messages, "typespec")
            result.typespec = _fenced_or_raw(raw, "python")

        messages += [
            ChatMessage.assistant(result.typespec),
            ChatMessage.user(prompts.table_structure_user(result.shape or "")),
        ]
        result.table_structure = self._call(messages, "table structure")

        messages += [
            ChatMessage.assistant(result.table_structure),
            ChatMessage.user(prompts.DDL_USER),
        ]
        result.ddl = _fenced_or_raw(self._call(messages, "DDL"), "sql")

        structured = self._call(
            [
                ChatMessage.system(prompts.structured_ddl_system(result.ddl)),
                ChatMessage.user(prompts.structured_ddl_user()),
            ],
            "structured DDL",
        )
        result.structured_ddl = _fenced_or_raw(structured, "json")
        try:
            result.schema = parse_structured_ddl(result.structured_ddl)
        except SchemaError as e:
            logger.warning(f"Structured DDL not usable as a schema set: {e.message}")
            result.errors.append(e.message)

        raw_rows = self._call(
            [
                ChatMessage.system(prompts.object_to_rows_system(result.typespec, result.ddl)),
                ChatMessage.user(prompts.OBJECT_TO_ROWS_USER),
            ],
            "object to rows function",
        )
        result.object_to_rows = _fenced_or_raw(raw_rows, "python")


def analyze_object(
    obj: Any,
    llm: LLMCall,
    save_dir: str | Path | None = None,
    existing_typespec: str | None = None,
) -> AnalysisResult:
    """Convenience function to analyze an example object.

    Args:
        obj: Example object (not an array)
        llm: Callable taking messages and returning completion text
        save_dir: Existing directory for the markdown report
        existing_typespec: Known typespec, skips the first prompt

    Returns:
        AnalysisResult
    """
    return ObjectAnalyzer(llm).analyze(obj, save_dir, existing_typespec)
