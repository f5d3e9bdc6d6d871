"""SQL statement validator for LLM-generated queries.

Checks a statement before it reaches the engine:
- Exactly one statement
- It starts with SELECT or WITH
- No data-modifying or schema-changing keywords anywhere in it
- No engine-escaping functions (extension loading, file access)

Checks run on a skeleton of the statement with string literals and quoted
identifiers replaced by a placeholder and comments removed, so values like
'DROP' in a WHERE clause or a leading comment do not trip them. The
statement that executes is never rewritten.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import StrEnum

from wishfulsearch.exceptions import ExecutionErrorKind


class QueryType(StrEnum):
    """Types of SQL statements."""

    SELECT = "SELECT"
    WITH = "WITH"
    INSERT = "INSERT"
    UPDATE = "UPDATE"
    DELETE = "DELETE"
    OTHER = "OTHER"


READ_ONLY_TYPES = frozenset({QueryType.SELECT, QueryType.WITH})

# Keywords that change data or schema; REPLACE is only blocked as REPLACE INTO
# because replace() is a common scalar function
WRITE_KEYWORDS = [
    "INSERT",
    "UPDATE",
    "DELETE",
    "DROP",
    "ALTER",
    "CREATE",
    "ATTACH",
    "DETACH",
    "PRAGMA",
    "VACUUM",
    "REINDEX",
    "ANALYZE",
]

UNSAFE_PATTERNS = [
    r"\bREPLACE\s+INTO\b",
    r"\bload_extension\s*\(",
    r"\breadfile\s*\(",
    r"\bwritefile\s*\(",
    r"\bfts3_tokenizer\s*\(",
]

_SKELETON_PATTERN = re.compile(
    r"""
    '(?:[^']|'')*'         # string literal
    | "(?:[^"]|"")*"       # quoted identifier
    | `[^`]*`              # backtick identifier
    | \[[^\]]*\]           # bracket identifier
    | --[^\n]*             # line comment
    | /\*.*?\*/            # block comment
    """,
    re.DOTALL | re.VERBOSE,
)


@dataclass
class ValidationResult:
    """Result of statement validation."""

    valid: bool
    """Whether the statement may be executed."""

    sql: str = ""
    """The statement as it will execute."""

    error: str | None = None
    """Error message if validation failed."""

    kind: ExecutionErrorKind | None = None
    """Failure kind if validation failed."""

    query_type: QueryType = QueryType.OTHER
    """Detected statement type."""


def _blank(match: re.Match[str]) -> str:
    token = match.group(0)
    return " " if token.startswith(("--", "/*")) else " x "


def skeleton(sql: str) -> str:
    """Replace literals and quoted identifiers by a placeholder, drop comments."""
    return _SKELETON_PATTERN.sub(_blank, sql)


class QueryValidator:
    """Validates that a statement is a single read-only query."""

    def __init__(self, extra_patterns: list[str] | None = None) -> None:
        """Initialize the validator.

        Args:
            extra_patterns: Additional regexes (case-insensitive) to reject
        """
        self._patterns = UNSAFE_PATTERNS + (extra_patterns or [])

    def validate(self, sql: str) -> ValidationResult:
        """Validate an SQL statement.

        Args:
            sql: Statement to validate

        Returns:
            ValidationResult with validation status and details
        """
        cleaned = sql.strip().rstrip(";").strip()
        if not cleaned:
            return ValidationResult(
                valid=False, error="Empty query", kind=ExecutionErrorKind.SYNTAX
            )

        # Comments may follow the final ';'
        shape = re.sub(r"[\s;]+$", "", skeleton(cleaned)).strip()
        if not shape:
            return ValidationResult(
                valid=False,
                sql=cleaned,
                error="Query contains only comments",
                kind=ExecutionErrorKind.SYNTAX,
            )

        query_type = self._detect_query_type(shape)

        if ";" in shape:
            return ValidationResult(
                valid=False,
                sql=cleaned,
                error="Only a single statement is allowed. Remove everything after the first ';'.",
                kind=ExecutionErrorKind.UNSAFE,
                query_type=query_type,
            )

        if query_type not in READ_ONLY_TYPES:
            return ValidationResult(
                valid=False,
                sql=cleaned,
                error=f"Only SELECT or WITH statements are allowed. Got: {query_type.value}",
                kind=ExecutionErrorKind.UNSAFE,
                query_type=query_type,
            )

        for keyword in WRITE_KEYWORDS:
            if re.search(rf"\b{keyword}\b", shape, re.IGNORECASE):
                return ValidationResult(
                    valid=False,
                    sql=cleaned,
                    error=f"Read-only queries cannot contain {keyword}.",
                    kind=ExecutionErrorKind.UNSAFE,
                    query_type=query_type,
                )

        for pattern in self._patterns:
            if re.search(pattern, shape, re.IGNORECASE):
                return ValidationResult(
                    valid=False,
                    sql=cleaned,
                    error=f"Query contains potentially unsafe pattern: {pattern}",
                    kind=ExecutionErrorKind.UNSAFE,
                    query_type=query_type,
                )

        return ValidationResult(valid=True, sql=cleaned, query_type=query_type)

    def _detect_query_type(self, shape: str) -> QueryType:
        """Detect the statement type from its first keyword."""
        match = re.match(r"[\s(]*([A-Za-z]+)", shape)
        if match is None:
            return QueryType.OTHER
        keyword = match.group(1).upper()
        try:
            return QueryType(keyword)
        except ValueError:
            return QueryType.OTHER


def validate_query(sql: str) -> ValidationResult:
    """Convenience function to validate a statement."""
    return QueryValidator().validate(sql)
