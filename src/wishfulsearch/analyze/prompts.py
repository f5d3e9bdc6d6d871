"""Prompt templates for the object analysis flow."""

from __future__ import annotations

import json
from typing import Any

from wishfulsearch.core.types import SchemaSet


def typespec_system(obj: Any) -> str:
    return f"EXAMPLE_JSON:\n```json\n{json.dumps(obj, indent=2, default=str)}\n```"


TYPESPEC_USER = (
    "Outline a Python typespec for the EXAMPLE provided, as TypedDict classes "
    "inside a ```python code block."
)


def table_structure_user(shape_description: str) -> str:
    return f"""SHAPE (top-level keys of the example):
{shape_description}

GUIDELINES:
1. Prefer flat tables when necessary, instead of making additional tables.
2. Encode datatypes in the column names when possible.
3. Ignore normalization and avoid junction tables, we're looking for a one-to-many \
relationship between one main table and multiple sub-tables, repetition is okay.

Talk me through (in markdown) how you would structure one or more SQLite tables to hold \
this information following GUIDELINES, inferring things like datatypes, what information \
is being managed, what decisions you would make, step-by-step. Then outline the overall \
structure of the tables and which columns would need comments in the final DDL to clear \
any confusion. Be exhaustive, and explain your decisions. Skip primary keys when they're \
not really needed."""


DDL_USER = (
    "Please generate the valid SQLite DDL for me with comments, "
    "and place it in ```sql code blocks."
)


def structured_ddl_system(ddl: str) -> str:
    return f"DDL:\n{ddl}"


def structured_ddl_user() -> str:
    schema = json.dumps(SchemaSet.model_json_schema(), indent=2)
    return f"""Convert the DDL into JSON conforming to this JSON schema:
```json
{schema}
```

Notes:
- The first table is the main table; every other table links to its parent through \
exactly one column with a foreign_key (one-to-many only).
- Set visible_to_llm to false for bookkeeping columns a user would never ask about.
- Use dynamic_enum {{"type": "EXHAUSTIVE", "top_k": 20}} for categorical text columns, \
{{"type": "MIN_MAX", "format": "DATE"}} or {{"type": "MIN_MAX", "format": "NUMBER"}} for \
dates and numbers, and {{"type": "EXHAUSTIVE_CHAR_LIMITED", "char_limit": 500}} for \
free-text columns with many values.

Don't leave any columns out, be exhaustive. Place the JSON in a ```json code block."""


def object_to_rows_system(typespec: str, ddl: str) -> str:
    return f"TYPESPEC:\n```python\n{typespec}\n```\n\nDDL:\n```sql\n{ddl}\n```"


OBJECT_TO_ROWS_USER = (
    "I need a Python function called object_to_rows to help me insert objects of type "
    "TYPESPEC into tables structured with DDL. The function should take in a list of "
    "objects like TYPESPEC, and return a 3 dimensional list: one element per table in "
    "DDL order, each a list of rows, each row a list of column values in DDL column order. "
    "Make sure to cast values to the column types to prevent errors. Also make sure to "
    "check if top-level objects are None before accessing them. Convert dates to ISO-8601 "
    "strings. Make sure no value is missing because we'll insert the rows later; use "
    "sensible defaults. Place the function in a ```python code block."
)
