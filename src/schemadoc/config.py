"""Configuration management for schemadoc.

Settings come from the environment (prefix ``SCHEMADOC_``) or constructor
arguments. Only the pieces the adapter and cache need live here; process
wiring belongs to whatever hosts the library.
"""

import sys
from pathlib import Path
from typing import Literal

from loguru import logger
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


LogLevel = Literal["TRACE", "DEBUG", "INFO", "WARNING", "ERROR"]


class SchemaDocConfig(BaseSettings):
    """Settings for schema resolution and caching."""

    model_config = SettingsConfigDict(
        env_prefix="SCHEMADOC_",
        extra="ignore",
    )

    schema_dir: Path = Field(
        default=Path("schemas"),
        description="Directory holding generated schema documentation",
    )
    log_level: LogLevel = Field(default="INFO", description="Minimum log level")

    cache_enabled: bool = Field(default=True, description="Memoize parsed schema lookups")
    cache_max_items: int = Field(
        default=100, ge=1, description="Maximum number of cache entries before LRU eviction"
    )
    cache_ttl_seconds: float = Field(
        default=300.0, gt=0, description="Seconds an entry may live regardless of mtime"
    )

    fallback_preference: Literal["json", "markdown"] = Field(
        default="json",
        description="Dialect tried first when fallback parsing a directory",
    )


def init_logging(level: str = "INFO") -> None:
    """Route loguru output to stderr at the given level.

    Removes the default handler first so repeated calls don't duplicate output.
    """
    logger.remove()
    logger.add(
        sys.stderr,
        level=level,
        format="<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | {name}:{function} - {message}",
    )
    logger.debug(f"Logging initialized at level {level}")
