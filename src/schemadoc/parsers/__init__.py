"""Dialect parsers: structured JSON and tbls-style Markdown."""

from schemadoc.parsers.json_parser import parse_json_content, parse_json_schema
from schemadoc.parsers.markdown_parser import (
    is_schema_overview,
    parse_markdown_content,
    parse_markdown_schema,
    parse_overview,
    parse_single_table_markdown,
    parse_table_markdown,
    parse_table_references,
)

__all__ = [
    "is_schema_overview",
    "parse_json_content",
    "parse_json_schema",
    "parse_markdown_content",
    "parse_markdown_schema",
    "parse_overview",
    "parse_single_table_markdown",
    "parse_table_markdown",
    "parse_table_references",
]
