"""Bounded, mtime-aware memoization of schema lookups.

Entries are keyed by ``(category, path, name)`` so the same path can be
cached as raw file content, a parsed schema, a table-reference list and any
number of single tables without collisions.

Every ``get`` re-stats the path before honoring a hit. File-category entries
require a regular file with the exact modification time captured at ``set``;
directory-category entries require the same kind of path (directory, or file
when a file was cached) with the same modification time. A mismatch, a
failed stat or an expired TTL evicts the entry and counts as a miss.

No locking: values are immutable and a racing ``set`` simply replaces the
entry.
"""

import time
from collections import OrderedDict
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Any, NamedTuple, Optional

from loguru import logger

from schemadoc.file_utils import FilePath, FileStat, stat_path
from schemadoc.schema.models import Schema, Table, TableReference

if TYPE_CHECKING:  # pragma: no cover
    from schemadoc.config import SchemaDocConfig


class CacheCategory(Enum):
    FILE = "file"
    SCHEMA = "schema"
    TABLE_REFS = "tableRefs"
    TABLE = "table"


# Categories whose entries describe a schema location rather than one file
DIRECTORY_CATEGORIES = frozenset(
    {CacheCategory.SCHEMA, CacheCategory.TABLE_REFS, CacheCategory.TABLE}
)


class CacheKey(NamedTuple):
    category: CacheCategory
    path: str
    name: Optional[str] = None  # table name, TABLE category only


@dataclass(frozen=True)
class CacheEntry:
    value: Any
    mtime_ns: int
    is_dir: bool
    stored_at: float


@dataclass(frozen=True)
class CacheStats:
    hits: int
    misses: int
    hit_rate: float
    size: int


def _normalize(path: FilePath) -> str:
    return str(Path(path))


class ResourceCache:
    """LRU cache with TTL and modification-time validation.

    Args:
        max_items: Capacity; the least recently used entry is evicted beyond it.
        ttl_seconds: Maximum age of an entry. None disables expiry.
        update_age_on_get: Reset an entry's age on every hit.
        clock: Monotonic time source for TTL bookkeeping.
    """

    def __init__(
        self,
        max_items: int = 100,
        ttl_seconds: Optional[float] = 300.0,
        update_age_on_get: bool = True,
        clock: Callable[[], float] = time.monotonic,
    ):
        if max_items < 1:
            raise ValueError("max_items must be at least 1")
        self.max_items = max_items
        self.ttl_seconds = ttl_seconds
        self.update_age_on_get = update_age_on_get
        self._clock = clock
        self._entries: OrderedDict[CacheKey, CacheEntry] = OrderedDict()
        self._hits = 0
        self._misses = 0

    @classmethod
    def from_config(cls, config: "SchemaDocConfig") -> "ResourceCache":
        return cls(max_items=config.cache_max_items, ttl_seconds=config.cache_ttl_seconds)

    def __len__(self) -> int:
        return len(self._entries)

    # --- Core operations ---

    def _is_expired(self, entry: CacheEntry, now: float) -> bool:
        return self.ttl_seconds is not None and now - entry.stored_at > self.ttl_seconds

    @staticmethod
    def _is_fresh(key: CacheKey, entry: CacheEntry, info: FileStat | None) -> bool:
        if info is None:
            return False
        if key.category in DIRECTORY_CATEGORIES and entry.is_dir:
            kind_matches = info.is_dir
        else:
            kind_matches = info.is_file
        return kind_matches and info.mtime_ns == entry.mtime_ns

    async def _get(self, key: CacheKey) -> Any:
        entry = self._entries.get(key)
        if entry is None:
            self._misses += 1
            logger.debug(f"Cache miss: {key.category.value}:{key.path}")
            return None

        now = self._clock()
        if self._is_expired(entry, now):
            del self._entries[key]
            self._misses += 1
            logger.debug(f"Cache entry expired: {key.category.value}:{key.path}")
            return None

        # --- Staleness check ---
        # Trigger: the path changed, vanished or switched kind since set()
        # Why: no watcher is trusted, every read re-verifies the filesystem
        # Outcome: evict and report a miss
        info = await stat_path(key.path)

        # --- Concurrent change ---
        # Trigger: invalidate/clear/eviction/set ran while the stat was awaited
        # Outcome: the entry we checked is gone or replaced, report a miss and
        # leave whatever is stored now untouched
        if self._entries.get(key) is not entry:
            self._misses += 1
            logger.debug(f"Cache entry changed during lookup: {key.category.value}:{key.path}")
            return None

        if not self._is_fresh(key, entry, info):
            self._entries.pop(key, None)
            self._misses += 1
            logger.debug(f"Cache entry stale, evicted: {key.category.value}:{key.path}")
            return None

        self._entries.move_to_end(key)
        if self.update_age_on_get:
            self._entries[key] = CacheEntry(
                value=entry.value, mtime_ns=entry.mtime_ns, is_dir=entry.is_dir, stored_at=now
            )
        self._hits += 1
        logger.debug(f"Cache hit: {key.category.value}:{key.path}")
        return entry.value

    async def _set(self, key: CacheKey, value: Any) -> None:
        info = await stat_path(key.path)
        if info is None:
            # Nothing to validate against later, so don't store
            logger.debug(f"Not caching {key.category.value}:{key.path}, stat failed")
            return
        if key.category is CacheCategory.FILE and not info.is_file:
            logger.debug(f"Not caching {key.path} as file content, not a regular file")
            return

        self._entries.pop(key, None)
        self._entries[key] = CacheEntry(
            value=value, mtime_ns=info.mtime_ns, is_dir=info.is_dir, stored_at=self._clock()
        )

        if len(self._entries) > self.max_items:
            evicted, _ = self._entries.popitem(last=False)
            logger.debug(f"Evicted least recently used entry: {evicted.category.value}:{evicted.path}")

    # --- Typed accessors ---

    async def get_file_content(self, path: FilePath) -> Optional[str]:
        return await self._get(CacheKey(CacheCategory.FILE, _normalize(path)))

    async def set_file_content(self, path: FilePath, content: str) -> None:
        await self._set(CacheKey(CacheCategory.FILE, _normalize(path)), content)

    async def get_schema(self, path: FilePath) -> Optional[Schema]:
        return await self._get(CacheKey(CacheCategory.SCHEMA, _normalize(path)))

    async def set_schema(self, path: FilePath, schema: Schema) -> None:
        await self._set(CacheKey(CacheCategory.SCHEMA, _normalize(path)), schema)

    async def get_table_references(self, path: FilePath) -> Optional[list[TableReference]]:
        references = await self._get(CacheKey(CacheCategory.TABLE_REFS, _normalize(path)))
        return list(references) if references is not None else None

    async def set_table_references(self, path: FilePath, references: list[TableReference]) -> None:
        await self._set(CacheKey(CacheCategory.TABLE_REFS, _normalize(path)), tuple(references))

    async def get_table(self, path: FilePath, name: Optional[str] = None) -> Optional[Table]:
        """Get a cached table. ``name`` keeps several tables from one schema apart."""
        return await self._get(CacheKey(CacheCategory.TABLE, _normalize(path), name))

    async def set_table(self, path: FilePath, table: Table, name: Optional[str] = None) -> None:
        await self._set(CacheKey(CacheCategory.TABLE, _normalize(path), name), table)

    # --- Maintenance ---

    def invalidate(self, path: FilePath) -> int:
        """Drop every entry for ``path`` in every category, including all table names.

        Returns:
            Number of entries removed.
        """
        normalized = _normalize(path)
        doomed = [key for key in self._entries if key.path == normalized]
        for key in doomed:
            del self._entries[key]
        if doomed:
            logger.debug(f"Invalidated {len(doomed)} cache entries for {normalized}")
        return len(doomed)

    def clear(self) -> None:
        """Remove all entries and reset hit/miss counters."""
        self._entries.clear()
        self._hits = 0
        self._misses = 0

    def stats(self) -> CacheStats:
        now = self._clock()
        for key in [k for k, e in self._entries.items() if self._is_expired(e, now)]:
            del self._entries[key]

        total = self._hits + self._misses
        return CacheStats(
            hits=self._hits,
            misses=self._misses,
            hit_rate=self._hits / total if total > 0 else 0.0,
            size=len(self._entries),
        )
