"""Format resolution: map a user-supplied path to a concrete schema file.

A path is resolved in one of two ways:

1. Direct: it carries a recognized extension (``.json`` or ``.md``). The file
   must exist and be a regular file.
2. Search: anything else is treated as a base path and the conventional names
   are tried in priority order (see ``CANDIDATE_NAMES``); the first existing
   regular file wins.

Every rejected candidate is recorded so a failed search reports exactly what
was tried and why.
"""

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Literal

from loguru import logger

from schemadoc.file_utils import FilePath, stat_path
from schemadoc.schema.result import Attempt, Err, Ok, ResolutionError, Result


class SchemaFormat(Enum):
    """Description-file dialect."""

    JSON = "json"  # tbls structured output
    MARKDOWN = "markdown"  # tbls README-style docs


EXTENSIONS = {
    ".json": SchemaFormat.JSON,
    ".md": SchemaFormat.MARKDOWN,
}

# Directory-search order; canonical names first, then legacy
CANDIDATE_NAMES = ("schema.json", "README.md", "database.json", "database.md")


@dataclass(frozen=True)
class ResolvedFile:
    """A concrete schema file and the dialect it's written in."""

    path: Path
    format: SchemaFormat


@dataclass(frozen=True)
class SchemaSource:
    """A user path classified as a file or a directory, without choosing a file."""

    kind: Literal["file", "directory"]
    path: Path


def format_for(path: FilePath) -> SchemaFormat | None:
    return EXTENSIONS.get(Path(path).suffix.lower())


def candidate_paths(base: FilePath) -> list[Path]:
    """All paths tried for ``base`` in priority order.

    ``<base>.json`` and ``<base>.md`` are siblings of ``base``, not children,
    so ``schemas/app`` also finds ``schemas/app.json``.
    """
    base_path = Path(base)
    return [
        *(base_path / name for name in CANDIDATE_NAMES),
        Path(f"{base_path}.json"),
        Path(f"{base_path}.md"),
    ]


def _allowed_extensions() -> str:
    return ", ".join(EXTENSIONS)


async def resolve_schema_file(path: FilePath) -> Result[ResolvedFile]:
    """Resolve a file or base path to a single schema file.

    Args:
        path: A ``.json``/``.md`` file, a directory, or an extensionless base path.

    Returns:
        Ok(ResolvedFile), or Err(ResolutionError) carrying every attempt.
    """
    if not str(path).strip():
        return Err(ResolutionError("Schema path must be a non-empty string"))

    target = Path(path)
    fmt = format_for(target)

    # --- Direct file ---
    if fmt is not None:
        info = await stat_path(target)
        if info is None:
            reason = "file not found"
        elif not info.is_file:
            reason = "not a regular file"
        else:
            logger.debug(f"Resolved {target} directly as {fmt.value}")
            return Ok(ResolvedFile(path=target, format=fmt))
        return Err(
            ResolutionError(
                f"Schema file is not usable: {target}",
                attempts=(Attempt(str(target), reason),),
            )
        )

    # --- Unsupported extension ---
    # Trigger: a suffix that isn't .json/.md on something that isn't a directory
    # Why: "schema.yaml" is almost always a typo'd file, not a base path
    # Outcome: hard error naming the allowed extensions
    if target.suffix:
        info = await stat_path(target)
        if info is None or not info.is_dir:
            return Err(
                ResolutionError(
                    f"Unsupported file extension '{target.suffix}' for {target}. "
                    f"Expected one of: {_allowed_extensions()}"
                )
            )

    # --- Directory / base-path search ---
    attempts = []
    for candidate in candidate_paths(target):
        info = await stat_path(candidate)
        if info is None:
            attempts.append(Attempt(str(candidate), "file not found"))
            continue
        if not info.is_file:
            attempts.append(Attempt(str(candidate), "not a regular file"))
            continue

        resolved = ResolvedFile(path=candidate, format=EXTENSIONS[candidate.suffix.lower()])
        logger.debug(f"Resolved {target} to {candidate} ({resolved.format.value})")
        return Ok(resolved)

    return Err(ResolutionError(f"No schema file found for {target}", attempts=tuple(attempts)))


async def resolve_schema_source(path: FilePath) -> Result[SchemaSource]:
    """Classify ``path`` as a schema file or a schema directory."""
    if not str(path).strip():
        return Err(ResolutionError("Schema source cannot be empty"))

    target = Path(path)
    info = await stat_path(target)
    if info is None:
        return Err(
            ResolutionError(
                f"Schema source does not exist: {target}",
                attempts=(Attempt(str(target), "not found"),),
            )
        )

    if info.is_file:
        if format_for(target) is None:
            return Err(
                ResolutionError(
                    f"Schema file must have one of the extensions {_allowed_extensions()}, "
                    f"got: '{target.suffix}'"
                )
            )
        return Ok(SchemaSource(kind="file", path=target))

    if info.is_dir:
        return Ok(SchemaSource(kind="directory", path=target))

    return Err(ResolutionError(f"Schema source is neither a file nor a directory: {target}"))
