"""Tests for schemadoc.schema.types -- bounds read from type strings."""

import pytest

from schemadoc.schema.types import TypeBounds, derive_type_bounds, is_character_type


@pytest.mark.parametrize(
    "type_str, expected",
    [
        ("varchar(255)", TypeBounds(max_length=255)),
        ("CHAR(2)", TypeBounds(max_length=2)),
        ("character varying(64)", TypeBounds(max_length=64)),
        ("decimal(10,2)", TypeBounds(precision=10, scale=2)),
        ("numeric(12, 4)", TypeBounds(precision=12, scale=4)),
        ("int(11)", TypeBounds()),
        ("text", TypeBounds()),
        ("timestamp", TypeBounds()),
    ],
)
def test_derive_type_bounds(type_str, expected):
    assert derive_type_bounds(type_str) == expected


def test_is_character_type():
    assert is_character_type("VARCHAR(10)")
    assert not is_character_type("bigint")
