"""schemadoc - resolve tbls-style schema docs into one canonical, cached model."""

__version__ = "0.1.0"

from schemadoc.adapter import (
    SchemaFileParser,
    get_schema_parser,
    list_schemas,
    parse_schema_file,
    parse_schema_overview,
    parse_schema_with_fallback,
    parse_single_table_file,
    parse_table_references,
    validate_parsed_schema,
)
from schemadoc.cache import CacheStats, ResourceCache
from schemadoc.config import SchemaDocConfig, init_logging
from schemadoc.resolver import (
    ResolvedFile,
    SchemaFormat,
    SchemaSource,
    resolve_schema_file,
    resolve_schema_source,
)
from schemadoc.service import SchemaService

__all__ = [
    "CacheStats",
    "ResolvedFile",
    "ResourceCache",
    "SchemaDocConfig",
    "SchemaFileParser",
    "SchemaFormat",
    "SchemaService",
    "SchemaSource",
    "get_schema_parser",
    "init_logging",
    "list_schemas",
    "parse_schema_file",
    "parse_schema_overview",
    "parse_schema_with_fallback",
    "parse_single_table_file",
    "parse_table_references",
    "resolve_schema_file",
    "resolve_schema_source",
    "validate_parsed_schema",
]
