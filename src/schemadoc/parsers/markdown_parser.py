"""Parser for tbls-style Markdown schema documents.

Two document shapes are recognized:

Full schema (an overview followed by per-table sections split by ``---``):

    # Database Schema: app
    Application database.
    Generated on: 2024-01-15T10:30:00Z
    Tables: 2

    ## Tables
    | Name | Columns | Comment |
    | ---- | ------- | ------- |
    | users | 3 | Registered users |
    ---
    # users
    ## Columns
    | Name | Type | Default | Nullable | Children | Parents | Comment |
    ...

Single table (the whole document is one table section).

Within a table, the ``## Columns`` section is required. ``## Indexes`` and
``## Relations`` are optional. Malformed rows are skipped with a warning;
a table without a name or without parseable columns fails the parse.
"""

import re
from datetime import datetime, timezone

from loguru import logger

from schemadoc.parsers.markdown_tables import (
    HORIZONTAL_RULE,
    extract_section,
    find_pipe_table,
    header_has,
    split_lines,
    strip_link,
)
from schemadoc.schema.models import Schema, SchemaMetadata, Table, TableReference
from schemadoc.schema.result import Err, Ok, ParseError, Result
from schemadoc.schema.types import derive_type_bounds
from schemadoc.schema.validator import validate_schema, validate_table


SCHEMA_TITLE = "# Database Schema:"
TABLES_HEADING = "## Tables"
GENERATED_LABEL = "Generated on:"
TABLE_COUNT_LABEL = "Tables:"

TABLE_TITLE = re.compile(r"^#\s+([^#].*)$")
ISO_TIMESTAMP = re.compile(r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}")
LEGACY_SUBSECTION = re.compile(r"^###\s+(.+?)\s*$")
INDEX_COLUMNS = re.compile(r"\(([^)]+)\)")
INDEX_METHOD_PREFIX = re.compile(r"^(BTREE|GIN|GIST|HASH)\s*\(", re.IGNORECASE)
INDEX_USING = re.compile(r"\bUSING\s+(\w+)", re.IGNORECASE)
SORT_ORDER = re.compile(r"\s+(ASC|DESC)$", re.IGNORECASE)

# Formats tried when "Generated on:" isn't already ISO-8601
TIMESTAMP_FORMATS = (
    "%Y-%m-%d %H:%M:%S",
    "%Y-%m-%d",
    "%Y/%m/%d %H:%M:%S",
    "%Y/%m/%d",
    "%m/%d/%Y",
    "%B %d, %Y",
    "%b %d, %Y",
    "%a %b %d %H:%M:%S %Y",
)

CARDINALITY_TYPES = {
    "zero or one": "belongsTo",
    "zero or more": "hasMany",
    "one or more": "hasMany",
    "one": "hasOne",
}

LEGACY_RELATION_TYPES = {
    "one-to-one": "hasOne",
    "one-to-many": "hasMany",
    "many-to-one": "belongsTo",
}


def is_schema_overview(content: str) -> bool:
    """True for full-schema documents, False for single-table documents."""
    return SCHEMA_TITLE in content or any(
        line.strip() == TABLES_HEADING for line in split_lines(content)
    )


# --- Entry points ---


def parse_markdown_content(content: str) -> Result[Schema]:
    """Parse a Markdown document of either shape into a validated Schema."""
    if is_schema_overview(content):
        return parse_markdown_schema(content)
    return parse_single_table_markdown(content)


def parse_single_table_markdown(content: str) -> Result[Schema]:
    """Parse a whole document as one table; metadata is synthesized from the table."""
    parsed = parse_table_markdown(content)
    if not parsed.is_ok:
        return parsed
    table = parsed.value

    return validate_schema(
        Schema(
            metadata=SchemaMetadata(
                name=table.name,
                table_count=1,
                description=table.comment,
            ),
            tables=(table,),
            table_references=(TableReference.from_table(table),),
        )
    )


def parse_overview(content: str) -> Result[SchemaMetadata]:
    """Extract schema metadata from an overview section.

    The name comes from ``# Database Schema: <name>`` (or, failing that, the
    first top-level heading). Description is the free text under the title.
    """
    lines = split_lines(content)

    title_index = next(
        (i for i, line in enumerate(lines) if line.startswith(SCHEMA_TITLE)), None
    )
    if title_index is not None:
        name = lines[title_index][len(SCHEMA_TITLE) :].strip()
    else:
        title_index = next(
            (i for i, line in enumerate(lines) if TABLE_TITLE.match(line)), None
        )
        name = TABLE_TITLE.match(lines[title_index]).group(1).strip() if title_index is not None else ""

    if not name:
        return Err(ParseError("Schema name not found in title", field="title"))

    description_lines = []
    for line in lines[title_index + 1 :]:
        stripped = line.strip()
        if (
            stripped.startswith("#")
            or stripped.startswith(GENERATED_LABEL)
            or stripped.startswith(TABLE_COUNT_LABEL)
            or stripped == "---"
        ):
            break
        if stripped:
            description_lines.append(stripped)

    generated = None
    table_count = None
    for line in lines:
        stripped = line.strip()
        if generated is None and stripped.startswith(GENERATED_LABEL):
            raw = stripped[len(GENERATED_LABEL) :].strip()
            generated = _normalize_timestamp(raw) if raw else None
        elif table_count is None and stripped.startswith(TABLE_COUNT_LABEL):
            count_match = re.match(r"Tables:\s*(\d+)", stripped)
            table_count = int(count_match.group(1)) if count_match else None

    return Ok(
        SchemaMetadata(
            name=name,
            table_count=table_count,
            generated=generated,
            description=" ".join(description_lines) or None,
        )
    )


def parse_table_references(content: str) -> list[TableReference]:
    """Read the ``## Tables`` summary table. Never fails; absent means empty."""
    section = extract_section(content, TABLES_HEADING)
    if section is None:
        return []

    table = find_pipe_table(section, header_has("Name", "Columns", "Comment"))
    if table is None:
        return []

    name_idx = table.column_index("Name") or 0
    count_idx = table.column_index("Columns")
    comment_idx = table.column_index("Comment")

    references = []
    for cells in table.rows:
        if len(cells) < 3:
            continue
        name = strip_link(cells[name_idx]) if name_idx < len(cells) else ""
        if not name:
            continue

        count_cell = cells[count_idx] if count_idx is not None and count_idx < len(cells) else ""
        comment = cells[comment_idx] if comment_idx is not None and comment_idx < len(cells) else ""

        references.append(
            TableReference(
                name=name,
                column_count=int(count_cell) if count_cell.isdigit() else None,
                comment=comment or None,
            )
        )
    return references


def parse_table_markdown(content: str) -> Result[Table]:
    """Parse one table section into a validated Table."""
    lines = split_lines(content)

    title_index = next((i for i, line in enumerate(lines) if TABLE_TITLE.match(line)), None)
    if title_index is None:
        return Err(ParseError("Table name not found", field="title"))
    name = TABLE_TITLE.match(lines[title_index]).group(1).strip()

    comment_lines = []
    for line in lines[title_index + 1 :]:
        stripped = line.strip()
        if stripped.startswith("##"):
            break
        if stripped:
            comment_lines.append(stripped)
    comment = " ".join(comment_lines) or _description_section(content)

    columns_section = extract_section(content, "## Columns")
    if columns_section is None:
        return Err(ParseError(f"Columns section not found in table '{name}'", field="Columns"))

    columns = _parse_columns(columns_section, name)
    if not columns:
        return Err(
            ParseError(f"Table '{name}' must have at least one column", field="Columns")
        )

    indexes_section = extract_section(content, "## Indexes")
    relations_section = extract_section(content, "## Relations")

    return validate_table(
        {
            "name": name,
            "comment": comment,
            "columns": columns,
            "indexes": _parse_indexes(indexes_section, name) if indexes_section else [],
            "relations": _parse_relations(relations_section, name) if relations_section else [],
        }
    )


# --- Full schema ---


def parse_markdown_schema(content: str) -> Result[Schema]:
    """Parse a full-schema document: overview, then one section per table."""
    sections = HORIZONTAL_RULE.split(content)
    overview = sections[0]

    metadata = parse_overview(overview)
    if not metadata.is_ok:
        return metadata

    tables = []
    for section in sections[1:]:
        if not section.strip():
            continue
        parsed = parse_table_markdown(section)
        if not parsed.is_ok:
            # One broken table fails the whole document, like the JSON dialect
            return parsed
        tables.append(parsed.value)

    meta = metadata.value
    if meta.table_count is None:
        meta = meta.model_copy(update={"table_count": len(tables)})

    result = validate_schema(
        Schema(metadata=meta, tables=tuple(tables), table_references=tuple(parse_table_references(overview)))
    )
    if result.is_ok:
        logger.debug(f"Parsed Markdown schema: name={meta.name}, tables={len(tables)}")
    return result


def _description_section(content: str) -> str | None:
    """Text of a ``## Description`` section, the comment location tbls uses."""
    section = extract_section(content, "## Description")
    if section is None:
        return None
    text = " ".join(line.strip() for line in split_lines(section)[1:] if line.strip())
    return text or None


def _normalize_timestamp(raw: str) -> str:
    """Pass ISO-8601 through, reparse other formats best-effort, else keep raw."""
    if ISO_TIMESTAMP.match(raw):
        return raw

    parsed = None
    try:
        parsed = datetime.fromisoformat(raw)
    except ValueError:
        for fmt in TIMESTAMP_FORMATS:
            try:
                parsed = datetime.strptime(raw, fmt)
                break
            except ValueError:
                continue

    if parsed is None:
        return raw
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc).isoformat()


# --- Columns ---


def _parse_columns(section: str, table_name: str) -> list[dict]:
    table = find_pipe_table(section, header_has("Name", "Type"))
    if table is None:
        return []

    name_idx = table.column_index("Name")
    type_idx = table.column_index("Type")
    default_idx = table.column_index("Default")
    nullable_idx = table.column_index("Nullable")
    extra_idx = table.column_index("Extra Definition", "Extra")
    comment_idx = table.column_index("Comment")

    def cell(cells: list[str], idx: int | None) -> str:
        return cells[idx] if idx is not None and idx < len(cells) else ""

    columns = []
    for row_number, cells in enumerate(table.rows, start=1):
        name = cell(cells, name_idx)
        type_str = cell(cells, type_idx)

        # --- Malformed rows ---
        # Trigger: short row or empty name/type cell
        # Why: hand-edited docs often carry partial rows
        # Outcome: skip the row, keep the rest of the table
        if len(cells) < len(table.header) or not name or not type_str:
            logger.warning(
                f"Skipping malformed column row {row_number} in table '{table_name}': {cells}"
            )
            continue

        comment = cell(cells, comment_idx) or None
        extra = cell(cells, extra_idx).lower()
        is_auto_increment = "auto_increment" in type_str.lower() or "auto_increment" in extra
        is_primary_key = (
            is_auto_increment
            or "primary key" in extra
            or (comment is not None and "primary key" in comment.lower())
        )
        bounds = derive_type_bounds(type_str)

        columns.append(
            {
                "name": name,
                "type": type_str,
                "nullable": cell(cells, nullable_idx).lower() != "false",
                "default_value": cell(cells, default_idx) or None,
                "comment": comment,
                "is_primary_key": is_primary_key,
                "is_auto_increment": is_auto_increment,
                "max_length": bounds.max_length,
                "precision": bounds.precision,
                "scale": bounds.scale,
            }
        )
    return columns


# --- Indexes ---


def _index_type(definition: str, is_primary: bool, is_unique: bool) -> str:
    if is_primary:
        return "PRIMARY KEY"
    if is_unique:
        return "UNIQUE"
    prefix = INDEX_METHOD_PREFIX.match(definition)
    if prefix:
        return prefix.group(1).upper()
    using = INDEX_USING.search(definition)
    if using:
        return using.group(1).upper()
    return "INDEX"


def _parse_indexes(section: str, table_name: str) -> list[dict]:
    table = find_pipe_table(section, header_has("Name", "Definition"))
    if table is None:
        return []

    definition_idx = table.column_index("Definition") or 1
    comment_idx = table.column_index("Comment")

    indexes = []
    for cells in table.rows:
        if len(cells) < 2:
            continue
        name = cells[0]
        definition = cells[definition_idx] if definition_idx < len(cells) else ""
        columns_match = INDEX_COLUMNS.search(definition)
        if not name or not columns_match:
            logger.warning(f"Skipping malformed index row in table '{table_name}': {cells}")
            continue

        columns = [
            SORT_ORDER.sub("", column.strip().replace("`", "").replace('"', ""))
            for column in columns_match.group(1).split(",")
        ]
        columns = [c for c in columns if c]
        if not columns:
            continue

        is_primary = "PRIMARY KEY" in definition.upper()
        is_unique = is_primary or "UNIQUE" in definition.upper()
        comment = cells[comment_idx] if comment_idx is not None and comment_idx < len(cells) else ""

        indexes.append(
            {
                "name": name,
                "columns": columns,
                "is_unique": is_unique,
                "is_primary": is_primary,
                "type": _index_type(definition, is_primary, is_unique),
                "comment": comment or None,
            }
        )
    return indexes


# --- Relations ---


def _split_columns(text: str) -> list[str]:
    return [c.strip() for c in text.split(",") if c.strip()]


def _parse_relations(section: str, table_name: str) -> list[dict]:
    """Parse a Relations section in either the cardinality or the legacy shape."""
    cardinality_table = find_pipe_table(
        section, header_has("Column", "Cardinality", "Related Table")
    )
    if cardinality_table is not None:
        return _parse_cardinality_relations(cardinality_table.rows, table_name)

    relations = []
    for _parent, subsection in _legacy_subsections(section):
        legacy_table = find_pipe_table(subsection, header_has("Column", "Table", "Parent Key", "Type"))
        if legacy_table is None:
            continue
        relations.extend(_parse_legacy_relations(legacy_table.rows, table_name))
    return relations


def _parse_cardinality_relations(rows: list[list[str]], table_name: str) -> list[dict]:
    relations = []
    for cells in rows:
        if len(cells) < 4:
            continue
        columns = _split_columns(cells[0])
        referenced_table = strip_link(cells[2])
        referenced_columns = _split_columns(cells[3])
        if not columns or not referenced_table or not referenced_columns:
            continue
        if len(columns) != len(referenced_columns):
            logger.warning(
                f"Skipping relation with mismatched column counts in table '{table_name}': {cells}"
            )
            continue

        constraint = cells[4] if len(cells) >= 5 else ""
        relations.append(
            {
                "type": CARDINALITY_TYPES.get(cells[1].lower(), "hasMany"),
                "table": table_name,
                "columns": columns,
                "referenced_table": referenced_table,
                "referenced_columns": referenced_columns,
                "constraint_name": constraint or None,
            }
        )
    return relations


def _legacy_subsections(section: str) -> list[tuple[str, str]]:
    """Split a legacy Relations section into ``(### heading, body)`` pairs."""
    subsections: list[tuple[str, list[str]]] = []
    for line in split_lines(section):
        heading = LEGACY_SUBSECTION.match(line)
        if heading:
            subsections.append((heading.group(1), []))
        elif subsections:
            subsections[-1][1].append(line)
    return [(heading, "\n".join(body)) for heading, body in subsections]


def _parse_legacy_relations(rows: list[list[str]], table_name: str) -> list[dict]:
    relations = []
    for cells in rows:
        if len(cells) < 4 or not all(cells[:4]):
            continue
        columns = _split_columns(cells[0])
        referenced_columns = _split_columns(cells[2])
        if len(columns) != len(referenced_columns):
            logger.warning(
                f"Skipping relation with mismatched column counts in table '{table_name}': {cells}"
            )
            continue

        relations.append(
            {
                "type": LEGACY_RELATION_TYPES.get(cells[3].lower(), "belongsTo"),
                "table": table_name,
                "columns": columns,
                "referenced_table": strip_link(cells[1]),
                "referenced_columns": referenced_columns,
            }
        )
    return relations
