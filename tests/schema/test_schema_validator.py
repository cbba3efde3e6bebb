"""Tests for schemadoc.schema.validator -- aggregated invariant checks."""

import pytest

from schemadoc.schema.models import Column, Table
from schemadoc.schema.result import SchemaAdapterError, ValidationError
from schemadoc.schema.validator import validate_schema, validate_table


def _column(name: str = "id", type_: str = "int") -> dict:
    return {"name": name, "type": type_}


class TestValidateTable:
    def test_valid_dict(self):
        result = validate_table({"name": "users", "columns": [_column()]})

        assert result.is_ok
        assert isinstance(result.value, Table)
        assert result.value.columns[0].nullable is True

    def test_accepts_model_instance(self):
        table = Table(name="users", columns=[Column(name="id", type="int")])
        assert validate_table(table).value == table

    def test_zero_columns_rejected(self):
        result = validate_table({"name": "users", "columns": []})

        assert not result.is_ok
        assert isinstance(result.error, ValidationError)
        assert "columns" in result.error.fields
        assert "users" in result.error.message

    def test_zero_column_index_rejected(self):
        result = validate_table(
            {"name": "users", "columns": [_column()], "indexes": [{"name": "idx", "columns": []}]}
        )

        assert not result.is_ok
        assert "indexes.0.columns" in result.error.fields

    def test_mismatched_relation_rejected(self):
        result = validate_table(
            {
                "name": "posts",
                "columns": [_column("user_id")],
                "relations": [
                    {
                        "type": "belongsTo",
                        "table": "posts",
                        "columns": ["user_id"],
                        "referenced_table": "users",
                        "referenced_columns": ["id", "org_id"],
                    }
                ],
            }
        )

        assert not result.is_ok
        assert any(field.startswith("relations.0") for field in result.error.fields)

    def test_aggregates_every_violation(self):
        result = validate_table(
            {
                "name": "",
                "columns": [_column(name=""), _column(type_="")],
            }
        )

        assert not result.is_ok
        fields = result.error.fields
        assert "name" in fields
        assert "columns.0.name" in fields
        assert "columns.1.type" in fields

    def test_unwrap_raises(self):
        result = validate_table({"name": "users", "columns": []})

        with pytest.raises(SchemaAdapterError) as exc_info:
            result.unwrap()
        assert exc_info.value.error is result.error


class TestValidateSchema:
    def test_valid_schema(self):
        result = validate_schema(
            {
                "metadata": {"name": "app", "tableCount": 1},
                "tables": [{"name": "users", "columns": [_column()]}],
            }
        )

        assert result.is_ok
        assert result.value.metadata.table_count == 1

    def test_violations_across_tables(self):
        result = validate_schema(
            {
                "metadata": {"name": "app"},
                "tables": [
                    {"name": "users", "columns": []},
                    {"name": "posts", "columns": [_column(name="")]},
                ],
            }
        )

        assert not result.is_ok
        assert "tables.0.columns" in result.error.fields
        assert "tables.1.columns.0.name" in result.error.fields

    def test_missing_metadata(self):
        result = validate_schema({"tables": []})

        assert not result.is_ok
        assert "metadata" in result.error.fields
