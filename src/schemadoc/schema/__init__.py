"""Canonical schema model, tagged results and validation.

Both description-file dialects are parsed into these models; nothing here
knows which dialect a value came from.
"""

from schemadoc.schema.models import (
    DEFAULT_SCHEMA_NAME,
    Column,
    Index,
    Relation,
    RelationType,
    Schema,
    SchemaMetadata,
    Table,
    TableReference,
)
from schemadoc.schema.result import (
    Attempt,
    Err,
    Ok,
    ParseError,
    ResolutionError,
    Result,
    SchemaAdapterError,
    SchemaError,
    ValidationError,
    Violation,
)
from schemadoc.schema.types import TypeBounds, derive_type_bounds
from schemadoc.schema.validator import validate_schema, validate_table

__all__ = [
    # Models
    "DEFAULT_SCHEMA_NAME",
    "Column",
    "Index",
    "Relation",
    "RelationType",
    "Schema",
    "SchemaMetadata",
    "Table",
    "TableReference",
    # Results
    "Attempt",
    "Err",
    "Ok",
    "ParseError",
    "ResolutionError",
    "Result",
    "SchemaAdapterError",
    "SchemaError",
    "ValidationError",
    "Violation",
    # Types
    "TypeBounds",
    "derive_type_bounds",
    # Validator
    "validate_schema",
    "validate_table",
]
