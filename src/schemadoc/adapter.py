"""Schema adapter: one dialect-agnostic entry point per use case.

Each operation resolves the path (see ``schemadoc.resolver``), reads the file
and hands the text to the parser for its dialect. Callers never branch on
JSON vs Markdown; they get the same canonical models either way.

The adapter does no caching of its own. ``SchemaService`` puts a
``ResourceCache`` in front of it.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Any

from loguru import logger

from schemadoc.file_utils import FilePath, list_dir, read_text, stat_path
from schemadoc.parsers import json_parser, markdown_parser
from schemadoc.parsers.markdown_tables import HORIZONTAL_RULE
from schemadoc.resolver import (
    EXTENSIONS,
    ResolvedFile,
    SchemaFormat,
    candidate_paths,
    format_for,
    resolve_schema_file,
)
from schemadoc.schema.models import Schema, SchemaMetadata, TableReference
from schemadoc.schema.result import (
    Attempt,
    Err,
    Ok,
    ParseError,
    ResolutionError,
    Result,
)
from schemadoc.schema.validator import validate_schema

DEFAULT_SCHEMA_LABEL = "default"


async def read_schema_text(path: FilePath) -> Result[str]:
    """Read a schema file as UTF-8, converting I/O failures into a ResolutionError."""
    try:
        return Ok(await read_text(path))
    except (OSError, UnicodeDecodeError) as e:
        return Err(
            ResolutionError(
                f"Failed to read schema file: {path}",
                attempts=(Attempt(str(path), str(e)),),
            )
        )


# --- Per-file parser ---


@dataclass(frozen=True)
class SchemaFileParser:
    """Parser bound to one resolved file.

    The ``parse_*`` methods work on text already read from ``resolved.path``;
    the ``load_*`` methods read the file first.
    """

    resolved: ResolvedFile

    @property
    def path(self) -> Path:
        return self.resolved.path

    @property
    def format(self) -> SchemaFormat:
        return self.resolved.format

    def parse_schema(self, content: str) -> Result[Schema]:
        match self.format:
            case SchemaFormat.JSON:
                return json_parser.parse_json_content(content)
            case SchemaFormat.MARKDOWN:
                return markdown_parser.parse_markdown_content(content)

    def parse_single_table(self, content: str) -> Result[Schema]:
        match self.format:
            case SchemaFormat.JSON:
                # JSON always carries the complete schema
                return json_parser.parse_json_content(content)
            case SchemaFormat.MARKDOWN:
                if markdown_parser.is_schema_overview(content):
                    return markdown_parser.parse_markdown_schema(content)
                return markdown_parser.parse_single_table_markdown(content)

    def parse_overview(self, content: str) -> Result[SchemaMetadata]:
        match self.format:
            case SchemaFormat.JSON:
                return json_parser.parse_json_content(content).map(lambda s: s.metadata)
            case SchemaFormat.MARKDOWN:
                if markdown_parser.is_schema_overview(content):
                    overview = HORIZONTAL_RULE.split(content, maxsplit=1)[0]
                    return markdown_parser.parse_overview(overview)
                return markdown_parser.parse_single_table_markdown(content).map(
                    lambda s: s.metadata
                )

    def parse_table_references(self, content: str) -> Result[list[TableReference]]:
        match self.format:
            case SchemaFormat.JSON:
                return json_parser.parse_json_content(content).map(
                    lambda s: list(s.table_references)
                )
            case SchemaFormat.MARKDOWN:
                # The summary lives in the overview; no summary means no references
                overview = HORIZONTAL_RULE.split(content, maxsplit=1)[0]
                return Ok(markdown_parser.parse_table_references(overview))

    async def _load(self, parse) -> Result:
        content = await read_schema_text(self.path)
        if not content.is_ok:
            return content
        return parse(content.value)

    async def load_schema(self) -> Result[Schema]:
        return await self._load(self.parse_schema)

    async def load_single_table(self) -> Result[Schema]:
        return await self._load(self.parse_single_table)

    async def load_overview(self) -> Result[SchemaMetadata]:
        return await self._load(self.parse_overview)

    async def load_table_references(self) -> Result[list[TableReference]]:
        return await self._load(self.parse_table_references)


async def get_schema_parser(path: FilePath) -> Result[SchemaFileParser]:
    """Resolve ``path`` once and return a parser bound to the chosen file."""
    resolved = await resolve_schema_file(path)
    if not resolved.is_ok:
        return resolved
    return Ok(SchemaFileParser(resolved.value))


# --- Use-case entry points ---


async def parse_schema_file(path: FilePath) -> Result[Schema]:
    """Parse the complete schema at ``path`` (file, directory or base path)."""
    parser = await get_schema_parser(path)
    if not parser.is_ok:
        return parser

    result = await parser.value.load_schema()
    if result.is_ok:
        logger.info(
            f"Parsed schema '{result.value.metadata.name}' from {parser.value.path} "
            f"({len(result.value.tables)} tables)"
        )
    return result


async def parse_single_table_file(path: FilePath, table_name: str | None = None) -> Result[Schema]:
    """Parse a single-table document, or select one table out of a full schema.

    Args:
        path: Table file, schema file or schema directory.
        table_name: When given, the result holds only that table.

    Returns:
        Ok(Schema) or Err; a missing ``table_name`` is a ParseError naming it.
    """
    parser = await get_schema_parser(path)
    if not parser.is_ok:
        return parser

    result = await parser.value.load_single_table()
    if not result.is_ok or table_name is None:
        return result

    schema = result.value
    table = schema.get_table(table_name)
    if table is None:
        return Err(
            ParseError(
                f"Table '{table_name}' not found in schema '{schema.metadata.name}'",
                field=table_name,
            )
        )

    return Ok(
        schema.model_copy(
            update={
                "metadata": schema.metadata.model_copy(update={"table_count": 1}),
                "tables": (table,),
                "table_references": (TableReference.from_table(table),),
            }
        )
    )


async def parse_schema_overview(path: FilePath) -> Result[SchemaMetadata]:
    parser = await get_schema_parser(path)
    if not parser.is_ok:
        return parser
    return await parser.value.load_overview()


async def parse_table_references(path: FilePath) -> Result[list[TableReference]]:
    parser = await get_schema_parser(path)
    if not parser.is_ok:
        return parser
    return await parser.value.load_table_references()


def validate_parsed_schema(candidate: Any) -> Result[Schema]:
    """Validate a schema built outside the parsers (e.g. deserialized from a cache dump)."""
    return validate_schema(candidate)


# --- Fallback parsing ---


def _ordered_candidates(base: FilePath, prefer: SchemaFormat) -> list[Path]:
    """Candidates with the preferred dialect's names first, priority order otherwise kept."""
    if format_for(base) is not None:
        return [Path(base)]
    candidates = candidate_paths(base)
    preferred = [c for c in candidates if EXTENSIONS[c.suffix.lower()] == prefer]
    others = [c for c in candidates if EXTENSIONS[c.suffix.lower()] != prefer]
    return preferred + others


async def parse_schema_with_fallback(
    path: FilePath, prefer: SchemaFormat = SchemaFormat.JSON
) -> Result[Schema]:
    """Try every candidate of both dialects until one parses.

    Unlike ``parse_schema_file``, a candidate that exists but fails to parse
    doesn't end the search.

    Args:
        path: Schema directory or base path.
        prefer: Dialect whose candidates are tried first.

    Returns:
        The first successful parse. Otherwise Err(ParseError) with the last
        parse error and every attempt, or Err(ResolutionError) if no candidate
        existed at all.
    """
    attempts: list[Attempt] = []
    last_error = None

    for candidate in _ordered_candidates(path, prefer):
        info = await stat_path(candidate)
        if info is None or not info.is_file:
            attempts.append(Attempt(str(candidate), "file not found"))
            continue

        parser = SchemaFileParser(ResolvedFile(candidate, EXTENSIONS[candidate.suffix.lower()]))
        result = await parser.load_schema()
        if result.is_ok:
            logger.debug(f"Fallback parse succeeded with {candidate}")
            return result

        logger.warning(f"Fallback candidate {candidate} failed: {result.error}")
        attempts.append(Attempt(str(candidate), str(result.error)))
        last_error = result.error

    if last_error is None:
        return Err(
            ResolutionError(f"No schema files found for {path}", attempts=tuple(attempts))
        )

    return Err(
        ParseError(
            f"Failed to parse schema from any candidate file. Last error: {last_error.message}",
            field=getattr(last_error, "field", None),
            attempts=tuple(attempts),
        )
    )


# --- Schema listing ---


async def _schema_summary(path: Path, label: str) -> SchemaMetadata:
    """Metadata for one schema location, degrading to a bare entry if nothing parses."""
    overview = await parse_schema_overview(path)
    if overview.is_ok:
        return overview.value.model_copy(update={"name": label})

    schema = await parse_schema_with_fallback(path)
    if schema.is_ok:
        return schema.value.metadata.model_copy(
            update={"name": label, "table_count": len(schema.value.tables)}
        )

    logger.warning(f"Could not read schema '{label}' at {path}: {schema.error}")
    return SchemaMetadata(
        name=label,
        table_count=0,
        description="Default schema" if label == DEFAULT_SCHEMA_LABEL else None,
    )


async def list_schemas(schema_dir: FilePath) -> Result[list[SchemaMetadata]]:
    """List the schemas under ``schema_dir``, sorted by name.

    A ``README.md`` or ``schema.json`` directly in ``schema_dir`` is the
    ``default`` schema; each subdirectory holding one of those files is a
    schema named after the subdirectory.
    """
    root = Path(schema_dir)
    info = await stat_path(root)
    if info is None or not info.is_dir:
        return Err(
            ResolutionError(
                f"Schema directory does not exist: {root}",
                attempts=(Attempt(str(root), "not a directory"),),
            )
        )

    root_markers = ("README.md", "schema.json")
    schemas = []

    for marker in root_markers:
        marker_info = await stat_path(root / marker)
        if marker_info is not None and marker_info.is_file:
            schemas.append(await _schema_summary(root, DEFAULT_SCHEMA_LABEL))
            break

    for entry in await list_dir(root):
        subdir = root / entry
        entry_info = await stat_path(subdir)
        if entry_info is None or not entry_info.is_dir:
            continue
        for marker in root_markers:
            marker_info = await stat_path(subdir / marker)
            if marker_info is not None and marker_info.is_file:
                schemas.append(await _schema_summary(subdir, entry))
                break

    return Ok(sorted(schemas, key=lambda s: s.name))
