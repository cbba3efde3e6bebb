"""Parser for tbls-style JSON schema documents.

Converts the structured-object dialect into the canonical model:

    {
      "name": "app",
      "desc": "Application database",
      "tables": [
        {"name": "users", "comment": "...",
         "columns": [{"name": "id", "type": "int(11)", "nullable": false,
                      "extra_def": "auto_increment"}],
         "indexes": [{"name": "PRIMARY", "def": "PRIMARY KEY (id)", "columns": ["id"]}]}
      ],
      "relations": [
        {"table": "posts", "columns": ["user_id"],
         "parent_table": "users", "parent_columns": ["id"]}
      ]
    }

A document may instead carry ``{"schemas": [...]}``; one entry is selected
and parsed as above. Parsing is fail-fast: the first missing field or broken
cross-reference aborts the whole document with a ParseError naming the field.
"""

import json
from typing import Any

from loguru import logger

from schemadoc.schema.models import DEFAULT_SCHEMA_NAME, Schema
from schemadoc.schema.result import Err, Ok, ParseError, Result
from schemadoc.schema.types import derive_type_bounds
from schemadoc.schema.validator import validate_schema


def _non_empty_str(value: Any) -> str | None:
    if isinstance(value, str) and value.strip():
        return value
    return None


def _optional_str(value: Any) -> str | None:
    return value if isinstance(value, str) and value else None


# --- Entry points ---


def parse_json_content(content: str, schema_name: str | None = None) -> Result[Schema]:
    """Decode JSON text and parse it into a Schema."""
    trimmed = content.strip()
    if not trimmed:
        return Err(ParseError("JSON content is empty"))

    try:
        data = json.loads(trimmed)
    except json.JSONDecodeError as e:
        return Err(ParseError(f"Failed to parse JSON: {e}"))

    if data is None:
        return Err(ParseError("Parsed JSON is null"))

    return parse_json_schema(data, schema_name)


def parse_json_schema(data: Any, schema_name: str | None = None) -> Result[Schema]:
    """Parse a decoded JSON object into a validated Schema.

    Args:
        data: The decoded document.
        schema_name: Entry to pick when the document holds several schemas.
            Ignored for single-schema documents.

    Returns:
        Ok(Schema), or Err(ParseError | ValidationError) for the first problem found.
    """
    if not isinstance(data, dict):
        return Err(ParseError("Schema data must be an object"))

    # --- Multi-schema documents ---
    # Trigger: top-level "schemas" list instead of "tables"
    # Why: one file can describe several databases
    # Outcome: pick one entry, then continue with the single-schema branch
    if isinstance(data.get("schemas"), list) and "tables" not in data:
        selected = _select_schema(data["schemas"], schema_name)
        if not selected.is_ok:
            return selected
        data = selected.value

    tables_data = data.get("tables")
    if not isinstance(tables_data, list):
        return Err(ParseError("Schema must contain a tables array", field="tables"))

    # --- Pass 1: tables with only their embedded relations ---
    tables: list[dict] = []
    for i, table_data in enumerate(tables_data):
        parsed = _parse_table(table_data, f"tables[{i}]")
        if not parsed.is_ok:
            return parsed
        tables.append(parsed.value)

    # --- Pass 2: schema-level relations indexed by table name ---
    extra_relations: dict[str, list[dict]] = {t["name"]: [] for t in tables}
    relations_data = data.get("relations")
    if relations_data is not None:
        if not isinstance(relations_data, list):
            return Err(ParseError("Relations must be an array", field="relations"))
        for i, relation_data in enumerate(relations_data):
            parsed = _parse_schema_relation(relation_data, extra_relations, f"relations[{i}]")
            if not parsed.is_ok:
                return parsed
            child_relation, parent_relation = parsed.value
            extra_relations[child_relation["table"]].append(child_relation)
            extra_relations[parent_relation["referenced_table"]].append(parent_relation)

    # --- Pass 3: merge into final tables ---
    final_tables = [
        {**table, "relations": [*table["relations"], *extra_relations[table["name"]]]}
        for table in tables
    ]

    candidate = {
        "metadata": {
            "name": _non_empty_str(data.get("name")) or DEFAULT_SCHEMA_NAME,
            "description": _optional_str(data.get("desc")),
            "version": _optional_str(data.get("version")),
            "table_count": len(final_tables),
            "generated": None,
        },
        "tables": final_tables,
        "table_references": [
            {
                "name": table["name"],
                "comment": table["comment"],
                "column_count": len(table["columns"]),
            }
            for table in final_tables
        ],
    }

    result = validate_schema(candidate)
    if result.is_ok:
        logger.debug(
            f"Parsed JSON schema: name={result.value.metadata.name}, "
            f"tables={len(result.value.tables)}"
        )
    return result


def _select_schema(schemas: list, schema_name: str | None) -> Result[dict]:
    """Pick the requested schema, or the first one when no name is given."""
    if not schemas:
        return Err(ParseError("Schemas array is empty", field="schemas"))

    if schema_name is None:
        selected = schemas[0]
    else:
        selected = next(
            (s for s in schemas if isinstance(s, dict) and s.get("name") == schema_name),
            None,
        )
        if selected is None:
            return Err(ParseError(f"Schema '{schema_name}' not found", field="schemas"))

    if not isinstance(selected, dict):
        return Err(ParseError("Schema entry must be an object", field="schemas"))
    return Ok(selected)


# --- Tables ---


def _parse_table(table_data: Any, location: str) -> Result[dict]:
    if not isinstance(table_data, dict):
        return Err(ParseError("Table data must be an object", field=location))

    name = _non_empty_str(table_data.get("name"))
    if name is None:
        return Err(ParseError("Table name is required", field=f"{location}.name"))

    columns_data = table_data.get("columns")
    if not isinstance(columns_data, list):
        return Err(ParseError("Table must have a columns array", field=f"{location}.columns"))
    if not columns_data:
        return Err(
            ParseError("Table must have at least one column", field=f"{location}.columns")
        )

    columns = []
    for i, column_data in enumerate(columns_data):
        parsed = _parse_column(column_data, f"{location}.columns[{i}]")
        if not parsed.is_ok:
            return parsed
        columns.append(parsed.value)

    indexes = []
    if isinstance(table_data.get("indexes"), list):
        for i, index_data in enumerate(table_data["indexes"]):
            parsed = _parse_index(index_data, f"{location}.indexes[{i}]")
            if not parsed.is_ok:
                return parsed
            indexes.append(parsed.value)

    relations = []
    if isinstance(table_data.get("relations"), list):
        for i, relation_data in enumerate(table_data["relations"]):
            parsed = _parse_table_relation(relation_data, f"{location}.relations[{i}]")
            if not parsed.is_ok:
                return parsed
            relations.append(parsed.value)

    return Ok(
        {
            "name": name,
            "comment": _optional_str(table_data.get("comment")),
            "columns": columns,
            "indexes": indexes,
            "relations": relations,
        }
    )


def _default_text(value: Any) -> str | None:
    """Column defaults as text; JSON booleans keep their lower-case spelling."""
    if value is None:
        return None
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _parse_column(column_data: Any, location: str) -> Result[dict]:
    if not isinstance(column_data, dict):
        return Err(ParseError("Column data must be an object", field=location))

    name = _non_empty_str(column_data.get("name"))
    if name is None:
        return Err(ParseError("Column name is required", field=f"{location}.name"))

    type_str = _non_empty_str(column_data.get("type"))
    if type_str is None:
        return Err(ParseError("Column type is required", field=f"{location}.type"))

    extra_def = column_data.get("extra_def")
    extra = extra_def.lower() if isinstance(extra_def, str) else ""

    is_auto_increment = "auto_increment" in extra
    bounds = derive_type_bounds(type_str)

    return Ok(
        {
            "name": name,
            "type": type_str,
            "nullable": column_data.get("nullable") is not False,
            "default_value": _default_text(column_data.get("default")),
            "comment": _optional_str(column_data.get("comment")),
            "is_primary_key": is_auto_increment or "primary key" in extra,
            "is_auto_increment": is_auto_increment,
            "max_length": bounds.max_length,
            "precision": bounds.precision,
            "scale": bounds.scale,
        }
    )


def _index_type(definition: str, is_primary: bool) -> str:
    lowered = definition.lower()
    if is_primary:
        return "PRIMARY KEY"
    if "unique" in lowered:
        return "UNIQUE"
    if "key " in lowered:
        return "KEY"
    return definition or "INDEX"


def _parse_index(index_data: Any, location: str) -> Result[dict]:
    if not isinstance(index_data, dict):
        return Err(ParseError("Index data must be an object", field=location))

    name = _non_empty_str(index_data.get("name"))
    if name is None:
        return Err(ParseError("Index name is required", field=f"{location}.name"))

    columns = index_data.get("columns")
    if not isinstance(columns, list):
        return Err(ParseError("Index must have a columns array", field=f"{location}.columns"))
    if not columns:
        return Err(
            ParseError("Index must have at least one column", field=f"{location}.columns")
        )

    definition = index_data.get("def") if isinstance(index_data.get("def"), str) else ""
    is_primary = "primary key" in definition.lower()

    return Ok(
        {
            "name": name,
            "columns": [str(c) for c in columns],
            "is_primary": is_primary,
            "is_unique": is_primary or "unique" in definition.lower(),
            "type": _index_type(definition, is_primary),
            "comment": _optional_str(index_data.get("comment")),
        }
    )


# --- Relations ---


def _relation_columns(
    columns: Any, parent_columns: Any, location: str
) -> Result[tuple[list[str], list[str]]]:
    if not isinstance(columns, list) or not isinstance(parent_columns, list):
        return Err(
            ParseError("Relation must have columns and parent columns arrays", field=location)
        )
    if len(columns) != len(parent_columns):
        return Err(
            ParseError(
                "Relation columns count mismatch between child and parent columns",
                field=f"{location}.columns",
            )
        )
    if not columns:
        return Err(ParseError("Relation must have at least one column", field=f"{location}.columns"))
    return Ok(([str(c) for c in columns], [str(c) for c in parent_columns]))


def _parse_table_relation(relation_data: Any, location: str) -> Result[dict]:
    """Parse a relation embedded in a table; always a belongsTo from that table."""
    if not isinstance(relation_data, dict):
        return Err(ParseError("Table relation data must be an object", field=location))

    # Both camelCase and snake_case generators exist in the wild
    parent_table = relation_data.get("parentTable") or relation_data.get("parent_table")
    parent_columns = relation_data.get("parentColumns") or relation_data.get("parent_columns")
    table = relation_data.get("table")

    if not _non_empty_str(parent_table) or not _non_empty_str(table):
        return Err(
            ParseError(
                "Table relation must have table and parentTable/parent_table",
                field=f"{location}.parent_table",
            )
        )

    columns = _relation_columns(relation_data.get("columns"), parent_columns, location)
    if not columns.is_ok:
        return columns
    child_columns, referenced_columns = columns.value

    return Ok(
        {
            "type": "belongsTo",
            "table": table,
            "columns": child_columns,
            "referenced_table": parent_table,
            "referenced_columns": referenced_columns,
        }
    )


def _parse_schema_relation(
    relation_data: Any, known_tables: dict[str, list], location: str
) -> Result[tuple[dict, dict]]:
    """Parse a schema-level relation into (child belongsTo, parent hasMany)."""
    if not isinstance(relation_data, dict):
        return Err(ParseError("Relation data must be an object", field=location))

    table = _non_empty_str(relation_data.get("table"))
    parent_table = _non_empty_str(relation_data.get("parent_table"))
    if table is None or parent_table is None:
        return Err(
            ParseError("Relation must have table and parent_table", field=f"{location}.table")
        )

    columns = _relation_columns(
        relation_data.get("columns"), relation_data.get("parent_columns"), location
    )
    if not columns.is_ok:
        return columns
    child_columns, referenced_columns = columns.value

    if table not in known_tables:
        return Err(
            ParseError(f"Child table '{table}' not found in schema", field=f"{location}.table")
        )
    if parent_table not in known_tables:
        return Err(
            ParseError(
                f"Parent table '{parent_table}' not found in schema",
                field=f"{location}.parent_table",
            )
        )

    relation = {
        "table": table,
        "columns": child_columns,
        "referenced_table": parent_table,
        "referenced_columns": referenced_columns,
    }
    return Ok(({**relation, "type": "belongsTo"}, {**relation, "type": "hasMany"}))
