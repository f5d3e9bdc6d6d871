"""Shape summary of an example object.

Input to the analyze flow is "any JSON" object. Rather than modelling it as an
open-ended dynamic type, each top-level key is classified once as a scalar,
an object or an array, looking exactly one level deeper. That is enough to
decide which keys become columns of the main table and which become child
tables.
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, Field

from wishfulsearch.exceptions import AnalysisError

FieldKind = Literal["scalar", "object", "array"]


def _type_name(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "bool"
    if isinstance(value, int):
        return "int"
    if isinstance(value, float):
        return "float"
    if isinstance(value, str):
        return "str"
    if isinstance(value, dict):
        return "object"
    if isinstance(value, list):
        return "array"
    return type(value).__name__


class FieldShape(BaseModel):
    """Shape of one top-level key."""

    name: str
    kind: FieldKind
    type_name: str = Field(description="Scalar type, or element type for arrays")
    keys: list[str] = Field(
        default_factory=list, description="Nested keys for objects or arrays of objects"
    )

    def describe(self) -> str:
        if self.kind == "scalar":
            return f"{self.name}: {self.type_name}"
        if self.kind == "object":
            return f"{self.name}: object with keys {', '.join(self.keys) or '(none)'}"
        if self.keys:
            return f"{self.name}: array of objects with keys {', '.join(self.keys)}"
        return f"{self.name}: array of {self.type_name}"


class ObjectShape(BaseModel):
    """Shape of an example object at one fixed depth."""

    fields: list[FieldShape]

    @property
    def scalar_fields(self) -> list[FieldShape]:
        return [f for f in self.fields if f.kind == "scalar"]

    @property
    def nested_fields(self) -> list[FieldShape]:
        return [f for f in self.fields if f.kind != "scalar"]

    def describe(self) -> str:
        return "\n".join(f"- {f.describe()}" for f in self.fields)


def _array_shape(name: str, items: list[Any]) -> FieldShape:
    kinds = {_type_name(item) for item in items if item is not None}
    if kinds == {"object"}:
        keys: list[str] = []
        for item in items:
            if item is None:
                continue
            for key in item:
                if key not in keys:
                    keys.append(key)
        return FieldShape(name=name, kind="array", type_name="object", keys=keys)
    if not kinds:
        return FieldShape(name=name, kind="array", type_name="unknown")
    if len(kinds) == 1:
        return FieldShape(name=name, kind="array", type_name=kinds.pop())
    return FieldShape(name=name, kind="array", type_name=" | ".join(sorted(kinds)))


def describe_shape(obj: Any) -> ObjectShape:
    """Classify each top-level key of an example object.

    Args:
        obj: Example object (a JSON object, not an array)

    Returns:
        ObjectShape with one FieldShape per key, in key order

    Raises:
        AnalysisError: If obj is not a JSON object
    """
    if isinstance(obj, list):
        raise AnalysisError(
            "Analyze a single example object, not an array. Pass one element instead.",
            {"received": "array"},
        )
    if not isinstance(obj, dict):
        raise AnalysisError(
            f"Expected a JSON object, got {_type_name(obj)}.", {"received": _type_name(obj)}
        )

    fields: list[FieldShape] = []
    for name, value in obj.items():
        if isinstance(value, dict):
            fields.append(
                FieldShape(name=name, kind="object", type_name="object", keys=list(value))
            )
        elif isinstance(value, list):
            fields.append(_array_shape(name, value))
        else:
            fields.append(FieldShape(name=name, kind="scalar", type_name=_type_name(value)))
    return ObjectShape(fields=fields)
