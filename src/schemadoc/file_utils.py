"""Async filesystem helpers.

Everything that touches the disk goes through here so parsers stay pure.
Uses aiofiles so a stat or read suspends only the calling task.
"""

import stat
from pathlib import Path
from typing import NamedTuple, TypeAlias, Union

import aiofiles
import aiofiles.os
from loguru import logger

FilePath: TypeAlias = Union[Path, str]


class FileStat(NamedTuple):
    """The parts of ``os.stat`` the resolver and cache care about."""

    is_file: bool
    is_dir: bool
    mtime_ns: int


async def stat_path(path: FilePath) -> FileStat | None:
    """Stat a path, returning None when it doesn't exist or can't be read.

    Modification time is kept in nanoseconds so comparisons are exact.
    """
    try:
        st = await aiofiles.os.stat(str(path))
    except OSError as e:
        logger.debug(f"stat failed for {path}: {e}")
        return None

    return FileStat(
        is_file=stat.S_ISREG(st.st_mode),
        is_dir=stat.S_ISDIR(st.st_mode),
        mtime_ns=st.st_mtime_ns,
    )


async def is_file(path: FilePath) -> bool:
    info = await stat_path(path)
    return info is not None and info.is_file


async def is_dir(path: FilePath) -> bool:
    info = await stat_path(path)
    return info is not None and info.is_dir


async def read_text(path: FilePath) -> str:
    """Read a UTF-8 text file.

    Raises:
        OSError: If the file can't be opened or read.
        UnicodeDecodeError: If the file isn't valid UTF-8.
    """
    async with aiofiles.open(path, mode="r", encoding="utf-8") as f:
        content = await f.read()
    logger.debug(f"Read {path} ({len(content)} chars)")
    return content


async def list_dir(path: FilePath) -> list[str]:
    """Entry names in a directory, sorted. Empty when the directory is unreadable."""
    try:
        return sorted(await aiofiles.os.listdir(str(path)))
    except OSError as e:
        logger.debug(f"listdir failed for {path}: {e}")
        return []
