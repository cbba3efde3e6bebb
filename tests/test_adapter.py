"""Tests for schemadoc.adapter -- dialect-agnostic entry points."""

import json

import pytest

from schemadoc.adapter import (
    get_schema_parser,
    list_schemas,
    parse_schema_file,
    parse_schema_overview,
    parse_schema_with_fallback,
    parse_single_table_file,
    parse_table_references,
    validate_parsed_schema,
)
from schemadoc.resolver import SchemaFormat
from schemadoc.schema.result import ParseError, ResolutionError


# --- Whole schema ---


class TestParseSchemaFile:
    @pytest.mark.asyncio
    async def test_json_directory(self, json_schema_dir):
        schema = (await parse_schema_file(json_schema_dir)).unwrap()
        assert schema.table_names == ["users", "posts"]

    @pytest.mark.asyncio
    async def test_markdown_directory(self, markdown_schema_dir):
        schema = (await parse_schema_file(markdown_schema_dir)).unwrap()
        assert schema.table_names == ["users", "posts"]

    @pytest.mark.asyncio
    async def test_dialects_agree(self, json_schema_dir, markdown_schema_dir):
        from_json = (await parse_schema_file(json_schema_dir)).unwrap()
        from_markdown = (await parse_schema_file(markdown_schema_dir)).unwrap()

        for name in ("users", "posts"):
            json_table = from_json.get_table(name)
            markdown_table = from_markdown.get_table(name)
            assert [c.name for c in json_table.columns] == [c.name for c in markdown_table.columns]
            assert [c.nullable for c in json_table.columns] == [
                c.nullable for c in markdown_table.columns
            ]

    @pytest.mark.asyncio
    async def test_resolution_failure(self, tmp_path):
        result = await parse_schema_file(tmp_path)

        assert not result.is_ok
        assert isinstance(result.error, ResolutionError)

    @pytest.mark.asyncio
    async def test_parse_failure(self, tmp_path):
        (tmp_path / "schema.json").write_text("{broken")

        result = await parse_schema_file(tmp_path)

        assert not result.is_ok
        assert isinstance(result.error, ParseError)

    @pytest.mark.asyncio
    async def test_invalid_utf8(self, tmp_path):
        (tmp_path / "schema.json").write_bytes(b"\xff\xfe\x00")

        result = await parse_schema_file(tmp_path)

        assert not result.is_ok
        assert isinstance(result.error, ResolutionError)


# --- Single table, overview, references ---


class TestSingleTable:
    @pytest.mark.asyncio
    async def test_single_table_markdown_file(self, tmp_path, single_table_markdown):
        (tmp_path / "comments.md").write_text(single_table_markdown)

        schema = (await parse_single_table_file(tmp_path / "comments")).unwrap()

        assert schema.table_names == ["comments"]

    @pytest.mark.asyncio
    async def test_select_table_by_name(self, json_schema_dir):
        schema = (await parse_single_table_file(json_schema_dir, "posts")).unwrap()

        assert schema.table_names == ["posts"]
        assert schema.metadata.table_count == 1
        assert [r.name for r in schema.table_references] == ["posts"]

    @pytest.mark.asyncio
    async def test_select_from_markdown_schema(self, markdown_schema_dir):
        schema = (await parse_single_table_file(markdown_schema_dir, "users")).unwrap()
        assert schema.tables[0].comment == "Registered users"

    @pytest.mark.asyncio
    async def test_missing_table_name(self, json_schema_dir):
        result = await parse_single_table_file(json_schema_dir, "ghosts")

        assert not result.is_ok
        assert isinstance(result.error, ParseError)
        assert result.error.field == "ghosts"


class TestOverviewAndReferences:
    @pytest.mark.asyncio
    async def test_overview_json(self, json_schema_dir):
        metadata = (await parse_schema_overview(json_schema_dir)).unwrap()

        assert metadata.name == "app"
        assert metadata.table_count == 2

    @pytest.mark.asyncio
    async def test_overview_markdown(self, markdown_schema_dir):
        metadata = (await parse_schema_overview(markdown_schema_dir)).unwrap()

        assert metadata.name == "app"
        assert metadata.generated == "2024-01-15T10:30:00Z"

    @pytest.mark.asyncio
    async def test_overview_of_single_table_document(self, tmp_path, single_table_markdown):
        path = tmp_path / "comments.md"
        path.write_text(single_table_markdown)

        metadata = (await parse_schema_overview(path)).unwrap()

        assert metadata.name == "comments"

    @pytest.mark.asyncio
    async def test_references_json(self, json_schema_dir):
        references = (await parse_table_references(json_schema_dir)).unwrap()
        assert [r.name for r in references] == ["users", "posts"]

    @pytest.mark.asyncio
    async def test_references_markdown(self, markdown_schema_dir):
        references = (await parse_table_references(markdown_schema_dir)).unwrap()
        assert [r.column_count for r in references] == [3, 3]

    @pytest.mark.asyncio
    async def test_references_markdown_without_summary(self, tmp_path):
        (tmp_path / "README.md").write_text("# notes\n\nFree-form text, no tables here.\n")

        result = await parse_table_references(tmp_path)

        assert result.is_ok
        assert result.value == []

    @pytest.mark.asyncio
    async def test_references_single_table_document(self, tmp_path, single_table_markdown):
        path = tmp_path / "comments.md"
        path.write_text(single_table_markdown)

        assert (await parse_table_references(path)).unwrap() == []

    @pytest.mark.asyncio
    async def test_parser_bound_to_resolved_file(self, markdown_schema_dir):
        parser = (await get_schema_parser(markdown_schema_dir)).unwrap()

        assert parser.format is SchemaFormat.MARKDOWN
        assert parser.path.name == "README.md"
        assert (await parser.load_schema()).unwrap().metadata.name == "app"
        assert len((await parser.load_table_references()).unwrap()) == 2


# --- Fallback ---


class TestFallback:
    @pytest.mark.asyncio
    async def test_json_preference(self, dual_schema_dir):
        schema = (await parse_schema_with_fallback(dual_schema_dir, SchemaFormat.JSON)).unwrap()
        assert schema.metadata.name == "app_from_json"

    @pytest.mark.asyncio
    async def test_markdown_preference(self, dual_schema_dir):
        schema = (
            await parse_schema_with_fallback(dual_schema_dir, SchemaFormat.MARKDOWN)
        ).unwrap()
        assert schema.metadata.name == "app_from_markdown"

    @pytest.mark.asyncio
    async def test_broken_preferred_file_falls_through(self, dual_schema_dir):
        (dual_schema_dir / "schema.json").write_text("{broken")

        schema = (await parse_schema_with_fallback(dual_schema_dir)).unwrap()

        assert schema.metadata.name == "app_from_markdown"

    @pytest.mark.asyncio
    async def test_all_candidates_broken(self, tmp_path):
        (tmp_path / "schema.json").write_text("{broken")
        (tmp_path / "README.md").write_text("no headings at all")

        result = await parse_schema_with_fallback(tmp_path)

        assert not result.is_ok
        assert isinstance(result.error, ParseError)
        reasons = {a.path: a.reason for a in result.error.attempts}
        assert len(reasons) == 6
        assert "JSON" in reasons[str(tmp_path / "schema.json")]
        assert reasons[str(tmp_path / "database.json")] == "file not found"

    @pytest.mark.asyncio
    async def test_nothing_found(self, tmp_path):
        result = await parse_schema_with_fallback(tmp_path)

        assert not result.is_ok
        assert isinstance(result.error, ResolutionError)
        assert len(result.error.attempts) == 6


# --- Validation and listing ---


def test_validate_parsed_schema():
    result = validate_parsed_schema(
        {"metadata": {"name": "app"}, "tables": [{"name": "t", "columns": []}]}
    )
    assert not result.is_ok


class TestListSchemas:
    @pytest.mark.asyncio
    async def test_single_and_multi_schema(self, tmp_path, sample_json, sample_markdown):
        (tmp_path / "README.md").write_text(sample_markdown)
        (tmp_path / "billing").mkdir()
        (tmp_path / "billing" / "schema.json").write_text(json.dumps(sample_json))
        (tmp_path / "notes").mkdir()  # no schema file, ignored

        schemas = (await list_schemas(tmp_path)).unwrap()

        assert [s.name for s in schemas] == ["billing", "default"]
        assert schemas[0].table_count == 2
        assert schemas[1].description == "Application database."

    @pytest.mark.asyncio
    async def test_unparseable_schema_still_listed(self, tmp_path):
        (tmp_path / "broken").mkdir()
        (tmp_path / "broken" / "schema.json").write_text("{broken")

        schemas = (await list_schemas(tmp_path)).unwrap()

        assert schemas[0].name == "broken"
        assert schemas[0].table_count == 0

    @pytest.mark.asyncio
    async def test_missing_directory(self, tmp_path):
        result = await list_schemas(tmp_path / "nope")
        assert not result.is_ok
