"""Cache-fronted schema lookups.

Ties the adapter and the resource cache together in the order every lookup
follows: check the cache, resolve and parse on a miss, store the result
under the path the caller supplied.
"""

from pathlib import Path
from typing import Optional

from loguru import logger

from schemadoc import adapter
from schemadoc.cache import CacheStats, ResourceCache
from schemadoc.config import SchemaDocConfig
from schemadoc.file_utils import FilePath, is_file
from schemadoc.resolver import SchemaFormat, format_for, resolve_schema_file
from schemadoc.schema.models import Schema, SchemaMetadata, Table, TableReference
from schemadoc.schema.result import Err, Ok, ParseError, Result


async def _per_table_file(schema_path: FilePath, table_name: str) -> Optional[Path]:
    """``<table>.md`` or ``<table>.json`` next to the schema, if one exists.

    Names are joined with the extension directly; schema-qualified names
    like ``public.users`` already contain a dot.
    """
    for suffix in (".md", ".json"):
        candidate = Path(schema_path) / f"{table_name}{suffix}"
        if await is_file(candidate):
            return candidate
    return None


class SchemaService:
    """Schema, table and overview lookups with optional caching.

    Args:
        cache: Cache to consult; None disables caching.
        fallback_preference: Dialect tried first when ordinary resolution
            of a directory fails.
        schema_dir: Root used by ``list_schemas`` when no directory is given.
    """

    def __init__(
        self,
        cache: Optional[ResourceCache] = None,
        fallback_preference: SchemaFormat = SchemaFormat.JSON,
        schema_dir: Optional[Path] = None,
    ):
        self.cache = cache
        self.fallback_preference = fallback_preference
        self.schema_dir = schema_dir

    @classmethod
    def from_config(cls, config: SchemaDocConfig) -> "SchemaService":
        cache = ResourceCache.from_config(config) if config.cache_enabled else None
        return cls(
            cache=cache,
            fallback_preference=SchemaFormat(config.fallback_preference),
            schema_dir=config.schema_dir,
        )

    async def get_schema(self, path: FilePath) -> Result[Schema]:
        """Parsed schema for a file, directory or base path."""
        if self.cache is not None:
            cached = await self.cache.get_schema(path)
            if cached is not None:
                return Ok(cached)

        result = await adapter.parse_schema_file(path)

        # --- Fallback across dialects ---
        # Trigger: a directory/base path whose first matching file didn't parse
        # Outcome: try every candidate in preference order before giving up
        if not result.is_ok and format_for(path) is None:
            logger.debug(f"Resolution of {path} failed, trying fallback: {result.error.message}")
            result = await adapter.parse_schema_with_fallback(path, self.fallback_preference)

        if result.is_ok and self.cache is not None:
            await self.cache.set_schema(path, result.value)
        return result

    async def get_table(self, schema_path: FilePath, table_name: str) -> Result[Table]:
        """One table, from its own ``<table>.md``/``<table>.json`` or from the full schema.

        tbls writes one file per table next to the README, so the per-table
        file is tried first.
        """
        if self.cache is not None:
            cached = await self.cache.get_table(schema_path, table_name)
            if cached is not None:
                return Ok(cached)

        table_file = await _per_table_file(schema_path, table_name)
        if table_file is not None:
            result = await adapter.parse_single_table_file(table_file)
            if result.is_ok and result.value.get_table(table_name) is None:
                result = Err(
                    ParseError(f"Table '{table_name}' not found in {table_file}", field=table_name)
                )
        else:
            result = await adapter.parse_single_table_file(schema_path, table_name)

        if not result.is_ok:
            return result

        table = result.value.get_table(table_name)
        if self.cache is not None:
            await self.cache.set_table(schema_path, table, table_name)
        return Ok(table)

    async def get_overview(self, path: FilePath) -> Result[SchemaMetadata]:
        if self.cache is not None:
            cached = await self.cache.get_schema(path)
            if cached is not None:
                return Ok(cached.metadata)
        return await adapter.parse_schema_overview(path)

    async def get_table_references(self, path: FilePath) -> Result[list[TableReference]]:
        if self.cache is not None:
            cached = await self.cache.get_table_references(path)
            if cached is not None:
                return Ok(cached)

        result = await adapter.parse_table_references(path)
        if result.is_ok and self.cache is not None:
            await self.cache.set_table_references(path, result.value)
        return result

    async def get_file_content(self, path: FilePath) -> Result[str]:
        """Raw text of the file ``path`` resolves to."""
        resolved = await resolve_schema_file(path)
        if not resolved.is_ok:
            return resolved
        file_path = resolved.value.path

        if self.cache is not None:
            cached = await self.cache.get_file_content(file_path)
            if cached is not None:
                return Ok(cached)

        result = await adapter.read_schema_text(file_path)
        if result.is_ok and self.cache is not None:
            await self.cache.set_file_content(file_path, result.value)
        return result

    async def list_schemas(self, schema_dir: Optional[FilePath] = None) -> Result[list[SchemaMetadata]]:
        root = schema_dir if schema_dir is not None else self.schema_dir
        if root is None:
            return Err(ParseError("No schema directory configured", field="schema_dir"))
        return await adapter.list_schemas(root)

    def invalidate(self, path: FilePath) -> None:
        if self.cache is not None:
            self.cache.invalidate(path)

    def stats(self) -> Optional[CacheStats]:
        return self.cache.stats() if self.cache is not None else None
