"""Schema set validation, DDL generation and dynamic enums."""

from wishfulsearch.schema.ddl import generate_ddl, generate_table_ddl, validate_schema
from wishfulsearch.schema.enums import compute_dynamic_enums

__all__ = ["validate_schema", "generate_ddl", "generate_table_ddl", "compute_dynamic_enums"]
