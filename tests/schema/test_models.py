"""Tests for schemadoc.schema.models -- canonical model invariants and serialization."""

import pydantic
import pytest

from schemadoc.schema.models import (
    Column,
    Index,
    Relation,
    Schema,
    SchemaMetadata,
    Table,
    TableReference,
)


def _table(name: str = "users", **kwargs) -> Table:
    return Table(
        name=name,
        columns=kwargs.pop("columns", [Column(name="id", type="int")]),
        **kwargs,
    )


# --- Column ---


class TestColumn:
    def test_defaults(self):
        column = Column(name="id", type="int")

        assert column.nullable is True
        assert column.default_value is None
        assert column.is_primary_key is False
        assert column.max_length is None

    def test_empty_name_rejected(self):
        with pytest.raises(pydantic.ValidationError):
            Column(name="", type="int")

    def test_empty_type_rejected(self):
        with pytest.raises(pydantic.ValidationError):
            Column(name="id", type="")

    def test_max_length_requires_character_type(self):
        with pytest.raises(pydantic.ValidationError):
            Column(name="id", type="int(11)", max_length=11)

    def test_max_length_accepted_for_varchar(self):
        column = Column(name="email", type="varchar(255)", max_length=255)
        assert column.max_length == 255

    def test_precision_requires_two_arguments(self):
        with pytest.raises(pydantic.ValidationError):
            Column(name="amount", type="decimal(10)", precision=10)

    def test_precision_and_scale_from_pair(self):
        column = Column(name="amount", type="decimal(10,2)", precision=10, scale=2)
        assert (column.precision, column.scale) == (10, 2)

    def test_camel_case_aliases(self):
        column = Column.model_validate(
            {"name": "id", "type": "int", "isPrimaryKey": True, "defaultValue": "1"}
        )
        dumped = column.model_dump(by_alias=True)

        assert column.is_primary_key is True
        assert dumped["isPrimaryKey"] is True
        assert dumped["defaultValue"] == "1"
        assert "is_primary_key" not in dumped

    def test_frozen(self):
        column = Column(name="id", type="int")
        with pytest.raises(pydantic.ValidationError):
            column.name = "other"


# --- Index / Relation ---


class TestIndex:
    def test_requires_columns(self):
        with pytest.raises(pydantic.ValidationError):
            Index(name="idx", columns=[])

    def test_primary_implies_unique(self):
        with pytest.raises(pydantic.ValidationError):
            Index(name="PRIMARY", columns=["id"], is_primary=True, is_unique=False)

    def test_primary_and_unique(self):
        index = Index(name="PRIMARY", columns=["id"], is_primary=True, is_unique=True)
        assert index.columns == ("id",)


class TestRelation:
    def test_column_counts_must_match(self):
        with pytest.raises(pydantic.ValidationError):
            Relation(
                type="belongsTo",
                table="posts",
                columns=["user_id", "org_id"],
                referenced_table="users",
                referenced_columns=["id"],
            )

    def test_unknown_type_rejected(self):
        with pytest.raises(pydantic.ValidationError):
            Relation(
                type="manyToMany",
                table="posts",
                columns=["user_id"],
                referenced_table="users",
                referenced_columns=["id"],
            )


# --- Table / Schema ---


class TestTable:
    def test_requires_columns(self):
        with pytest.raises(pydantic.ValidationError):
            Table(name="empty", columns=[])

    def test_get_column_and_primary_keys(self):
        table = _table(
            columns=[
                Column(name="id", type="int", is_primary_key=True),
                Column(name="email", type="varchar(255)"),
            ]
        )

        assert table.get_column("email").type == "varchar(255)"
        assert table.get_column("missing") is None
        assert table.primary_key_columns == ["id"]

    def test_table_reference_from_table(self):
        table = _table(comment="People")
        reference = TableReference.from_table(table)

        assert reference == TableReference(name="users", comment="People", column_count=1)


class TestSchema:
    def test_json_round_trip(self):
        schema = Schema(
            metadata=SchemaMetadata(name="app", table_count=2, version="1"),
            tables=[
                _table("users"),
                _table(
                    "posts",
                    relations=[
                        Relation(
                            type="belongsTo",
                            table="posts",
                            columns=["user_id"],
                            referenced_table="users",
                            referenced_columns=["id"],
                        )
                    ],
                ),
            ],
        )

        restored = Schema.from_json(schema.to_json())

        assert restored == schema
        assert restored.table_names == ["users", "posts"]

    def test_json_uses_camel_case(self):
        schema = Schema(metadata=SchemaMetadata(name="app", table_count=0))
        assert '"tableReferences"' in schema.to_json()
        assert '"tableCount"' in schema.to_json()

    def test_get_table(self):
        schema = Schema(metadata=SchemaMetadata(name="app"), tables=[_table("users")])

        assert schema.get_table("users").name == "users"
        assert schema.get_table("nope") is None

    def test_metadata_name_required(self):
        with pytest.raises(pydantic.ValidationError):
            SchemaMetadata(name="")
