"""Markdown report for the object analysis flow."""

from __future__ import annotations

import json
import logging
from datetime import UTC, datetime
from pathlib import Path
from typing import TYPE_CHECKING, Any

from wishfulsearch.exceptions import AnalysisError

if TYPE_CHECKING:
    from wishfulsearch.analyze.analyzer import AnalysisResult

logger = logging.getLogger(__name__)

INTRO = """# Automated Object Analysis
*All the key information in this file was generated by an LLM. Treat it as a starting \
point, don't ever run auto-generated code without a sandbox unless you have checked it \
yourself.*

The hardest part of searching nested objects is converting them into flat tables that \
can be queried. This report covers:
1. A typespec - a type definition for the incoming object.
2. DDL - the SQLite tables that can hold the information in the object.
3. Structured DDL - the schema set used by WishfulSearch, with example values, ranges \
and which columns are visible to the LLM converting natural language to SQL. This \
metadata is stripped when the tables are created.
4. object_to_rows - a function turning objects into flat rows per table. Treat it as a \
starting point."""


def _section(title: str, body: str | None, language: str | None = None) -> str:
    if not body:
        return ""
    if language is None:
        return f"{title}\n\n{body}"
    return f"{title}\n\n```{language}\n{body}\n```"


def render_report(obj: Any, result: AnalysisResult) -> str:
    """Render the analysis inputs and outputs as markdown."""
    sections = [
        INTRO,
        _section("# Typespec", result.typespec, "python"),
        _section("# SQL Tables", result.ddl, "sql"),
        _section("# Structured DDL", result.structured_ddl, "json"),
        _section("# Object to Rows function", result.object_to_rows, "python"),
        "# Appendix",
        _section("## Input Object", json.dumps(obj, indent=2, default=str), "json"),
        _section("## Object Shape", result.shape),
        _section("## Reasoning for table structure", result.table_structure),
    ]
    if result.errors:
        sections.append(_section("## Errors", "\n".join(f"- {e}" for e in result.errors)))
    return "\n\n".join(s for s in sections if s) + "\n"


def save_report(markdown: str, save_dir: str | Path, now: datetime | None = None) -> Path:
    """Save a report as ``analysis_<UTC timestamp>.md`` in an existing directory.

    Raises:
        AnalysisError: If save_dir does not exist
    """
    directory = Path(save_dir)
    if not directory.is_dir():
        raise AnalysisError(
            f"Report save location {directory} does not exist. Create it first.",
            {"save_dir": str(directory)},
        )
    stamp = (now or datetime.now(UTC)).strftime("%Y-%m-%dT%H-%M-%S.%fZ")
    path = directory / f"analysis_{stamp}.md"
    logger.info(f"Saving analysis report to {path}")
    path.write_text(markdown, encoding="utf-8")
    return path
