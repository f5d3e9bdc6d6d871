"""Response extraction for LLM output.

Pulls the first ```sql fenced block out of raw model text and keeps the
prose around it as the explanation. Output without a SQL fence is a typed
failure; no attempt is made to guess SQL out of free text.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from wishfulsearch.exceptions import ExtractionError, ExtractionErrorKind

# ```lang\n body ``` ; the language tag is optional and the body may share the opening line
FENCE_PATTERN = re.compile(r"```([A-Za-z0-9_+.-]*)[ \t]*\r?\n?(.*?)```", re.DOTALL)

SQL_LANGUAGES = frozenset({"sql", "sqlite"})


@dataclass(frozen=True)
class FencedBlock:
    """A fenced region of model output."""

    language: str
    body: str


@dataclass(frozen=True)
class ExtractedQuery:
    """SQL and explanation recovered from a model response."""

    sql: str
    explanation: str = ""


def find_fenced_blocks(raw: str) -> list[FencedBlock]:
    """Find all closed fenced blocks, in order of appearance."""
    return [
        FencedBlock(language=m.group(1).lower(), body=m.group(2))
        for m in FENCE_PATTERN.finditer(raw)
    ]


def extract_fenced(raw: str, languages: str | frozenset[str]) -> str | None:
    """Return the body of the first fenced block tagged with one of ``languages``.

    Args:
        raw: Model output
        languages: Accepted language tag(s), lowercase

    Returns:
        Stripped block body, or None if no block matches
    """
    accepted = frozenset({languages}) if isinstance(languages, str) else languages
    for block in find_fenced_blocks(raw):
        if block.language in accepted:
            return block.body.strip()
    return None


def normalize_sql(sql: str) -> str:
    """Strip surrounding whitespace and trailing semicolons, nothing else."""
    return re.sub(r"[\s;]+$", "", sql).strip()


class ResponseExtractor:
    """Extracts SQL and explanation from raw model output."""

    def __init__(self, languages: frozenset[str] = SQL_LANGUAGES) -> None:
        """Initialize the extractor.

        Args:
            languages: Fence tags accepted as SQL (lowercase)
        """
        self._languages = languages

    def extract(self, raw: str) -> ExtractedQuery:
        """Extract the SQL and explanation.

        Only the first SQL fence is used; later ones are treated as
        illustrative alternatives and dropped along with every other fence
        from the explanation.

        Args:
            raw: Model output

        Returns:
            ExtractedQuery with normalized SQL and trimmed explanation

        Raises:
            ExtractionError: If there is no (non-empty) SQL fenced block
        """
        body = extract_fenced(raw, self._languages)
        if body is None:
            raise ExtractionError(
                "Response contained no ```sql fenced block.",
                ExtractionErrorKind.NO_SQL_BLOCK,
            )

        sql = normalize_sql(body)
        if not sql:
            raise ExtractionError(
                "Response contained an empty ```sql fenced block.",
                ExtractionErrorKind.NO_SQL_BLOCK,
            )

        prose = FENCE_PATTERN.sub("\n", raw)
        explanation = re.sub(r"\n{3,}", "\n\n", prose).strip()
        return ExtractedQuery(sql=sql, explanation=explanation)


def extract(raw: str) -> ExtractedQuery:
    """Convenience function to extract SQL with the default extractor."""
    return ResponseExtractor().extract(raw)
