"""Derive size bounds from raw column type strings.

Both dialects carry the column type as free text (``varchar(255)``,
``decimal(10,2)``, ``int(11)``). Length, precision and scale are read from
the parenthesized arguments:

    decimal(10, 2) -> precision=10, scale=2
    varchar(255)   -> max_length=255
    int(11)        -> nothing (display width, not a bound)
"""

import re
from typing import NamedTuple


PRECISION_SCALE_RE = re.compile(r"\((\d+),\s*(\d+)\)")
SINGLE_ARG_RE = re.compile(r"\((\d+)\)")


class TypeBounds(NamedTuple):
    max_length: int | None = None
    precision: int | None = None
    scale: int | None = None


def is_character_type(type_str: str) -> bool:
    """Character types are the only ones whose single argument is a length."""
    return "char" in type_str.lower()


def derive_type_bounds(type_str: str) -> TypeBounds:
    """Read max_length / precision / scale out of a type string."""
    precision_match = PRECISION_SCALE_RE.search(type_str)
    if precision_match:
        return TypeBounds(
            precision=int(precision_match.group(1)),
            scale=int(precision_match.group(2)),
        )

    length_match = SINGLE_ARG_RE.search(type_str)
    if length_match and is_character_type(type_str):
        return TypeBounds(max_length=int(length_match.group(1)))

    return TypeBounds()
