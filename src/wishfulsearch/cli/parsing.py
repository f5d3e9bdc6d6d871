"""Input parsing utilities for CLI commands."""

import importlib
import importlib.util
import json
from collections.abc import Callable
from pathlib import Path
from typing import Any

from wishfulsearch.analyze import parse_structured_ddl
from wishfulsearch.core.types import SchemaSet


def read_json_file(path: str) -> Any:
    """Read a JSON document from file.

    Args:
        path: Path to JSON file

    Returns:
        Parsed JSON value

    Raises:
        FileNotFoundError: If file doesn't exist
        json.JSONDecodeError: If file contains invalid JSON
    """
    file_path = Path(path)
    if not file_path.exists():
        raise FileNotFoundError(f"File not found: {path}")

    with file_path.open("r") as f:
        return json.load(f)


def read_jsonl_file(path: str) -> list[Any]:
    """Read JSON Lines (JSONL) file.

    Each line should contain a separate JSON object.

    Args:
        path: Path to JSONL file

    Returns:
        List of parsed JSON objects

    Raises:
        FileNotFoundError: If file doesn't exist
        json.JSONDecodeError: If any line contains invalid JSON
    """
    file_path = Path(path)
    if not file_path.exists():
        raise FileNotFoundError(f"File not found: {path}")

    records = []
    with file_path.open("r") as f:
        for line_num, line in enumerate(f, 1):
            line = line.strip()
            if not line:
                continue
            try:
                records.append(json.loads(line))
            except json.JSONDecodeError as e:
                raise json.JSONDecodeError(
                    f"Invalid JSON on line {line_num}: {e.msg}",
                    e.doc,
                    e.pos,
                ) from e

    return records


def read_objects(path: str) -> list[Any]:
    """Read objects to load from a JSON array, a single JSON object, or JSONL."""
    if path.endswith(".jsonl"):
        return read_jsonl_file(path)
    data = read_json_file(path)
    return data if isinstance(data, list) else [data]


def load_schema(path: str) -> SchemaSet:
    """Load and validate a schema set from its JSON (structured DDL) form.

    Raises:
        FileNotFoundError: If file doesn't exist
        SchemaError: If the file is not a valid schema set
    """
    file_path = Path(path)
    if not file_path.exists():
        raise FileNotFoundError(f"File not found: {path}")
    return parse_structured_ddl(file_path.read_text())


def load_function(reference: str) -> Callable[..., Any]:
    """Load a function from ``module.path:func`` or ``path/to/file.py:func``.

    Examples:
        "flights.rows:flights_to_rows" → flights_to_rows from module flights.rows
        "./mapping.py:object_to_rows" → object_to_rows from that file

    Raises:
        ValueError: If the reference format is invalid or the target is not callable
    """
    module_ref, sep, func_name = reference.rpartition(":")
    if not sep or not module_ref or not func_name:
        raise ValueError(
            f"Invalid function reference: '{reference}'. "
            "Expected format: module.path:function or file.py:function"
        )

    if module_ref.endswith(".py"):
        file_path = Path(module_ref)
        if not file_path.exists():
            raise FileNotFoundError(f"File not found: {module_ref}")
        spec = importlib.util.spec_from_file_location(file_path.stem, file_path)
        if spec is None or spec.loader is None:
            raise ValueError(f"Cannot load module from {module_ref}")
        module = importlib.util.module_from_spec(spec)
        spec.loader.exec_module(module)
    else:
        module = importlib.import_module(module_ref)

    func = getattr(module, func_name, None)
    if not callable(func):
        raise ValueError(f"'{func_name}' in {module_ref} is not a function.")
    return func
