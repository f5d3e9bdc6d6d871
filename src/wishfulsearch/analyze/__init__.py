"""Object analysis: suggest a schema set and row mapping for an example object.

Example:
    result = analyze_object(example, llm, save_dir="reports")
    print(result.ddl)
    print(result.object_to_rows)
"""

from wishfulsearch.analyze.analyzer import (
    AnalysisResult,
    ObjectAnalyzer,
    analyze_object,
    parse_structured_ddl,
)
from wishfulsearch.analyze.shape import FieldShape, ObjectShape, describe_shape

__all__ = [
    "AnalysisResult",
    "ObjectAnalyzer",
    "analyze_object",
    "parse_structured_ddl",
    "FieldShape",
    "ObjectShape",
    "describe_shape",
]
