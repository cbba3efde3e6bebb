"""Common test fixtures: sample documents in both dialects and schema directories."""

import json
from pathlib import Path

import pytest


SAMPLE_JSON = {
    "name": "app",
    "desc": "Application database",
    "tables": [
        {
            "name": "users",
            "comment": "Registered users",
            "columns": [
                {
                    "name": "id",
                    "type": "int(11)",
                    "nullable": False,
                    "extra_def": "auto_increment",
                },
                {"name": "email", "type": "varchar(255)", "nullable": False},
                {"name": "balance", "type": "decimal(10,2)", "default": "0.00"},
            ],
            "indexes": [
                {"name": "PRIMARY", "def": "PRIMARY KEY (id)", "columns": ["id"]},
                {
                    "name": "users_email_key",
                    "def": "UNIQUE KEY users_email_key (email)",
                    "columns": ["email"],
                },
            ],
        },
        {
            "name": "posts",
            "comment": "Blog posts",
            "columns": [
                {"name": "id", "type": "int(11)", "nullable": False, "extra_def": "auto_increment"},
                {"name": "user_id", "type": "int(11)", "nullable": False},
                {"name": "title", "type": "varchar(200)", "comment": "Post title"},
            ],
        },
    ],
    "relations": [
        {
            "table": "posts",
            "columns": ["user_id"],
            "parent_table": "users",
            "parent_columns": ["id"],
        }
    ],
}


SAMPLE_MARKDOWN = """# Database Schema: app

Application database.

Generated on: 2024-01-15T10:30:00Z
Tables: 2

## Tables

| Name | Columns | Comment |
| ---- | ------- | ------- |
| [users](users.md) | 3 | Registered users |
| [posts](posts.md) | 3 | Blog posts |

---

# users

Registered users

## Columns

| Name | Type | Default | Nullable | Children | Parents | Comment |
| ---- | ---- | ------- | -------- | -------- | ------- | ------- |
| id | int(11) auto_increment | | false | posts | | Primary key |
| email | varchar(255) | | false | | | |
| balance | decimal(10,2) | 0.00 | true | | | |

## Indexes

| Name | Definition |
| ---- | ---------- |
| PRIMARY | PRIMARY KEY (id) |
| users_email_key | UNIQUE KEY users_email_key (`email`) |

---

# posts

Blog posts

## Columns

| Name | Type | Default | Nullable | Children | Parents | Comment |
| ---- | ---- | ------- | -------- | -------- | ------- | ------- |
| id | int(11) | | false | | | Primary key |
| user_id | int(11) | | false | | users | |
| title | varchar(200) | | true | | | Post title |

## Relations

| Column | Cardinality | Related Table | Related Column(s) | Constraint |
| ------ | ----------- | ------------- | ----------------- | ---------- |
| user_id | Zero or one | [users](users.md) | id | posts_user_id_fkey |
"""


SINGLE_TABLE_MARKDOWN = """# comments

User comments on posts

## Columns

| Name | Type | Default | Nullable | Children | Parents | Comment |
| ---- | ---- | ------- | -------- | -------- | ------- | ------- |
| id | bigint | | false | | | Primary key |
| post_id | int(11) | | false | | posts | |
| body | text | | true | | | |

## Indexes

| Name | Definition |
| ---- | ---------- |
| comments_pkey | CREATE UNIQUE INDEX comments_pkey ON public.comments USING btree (id) |
| comments_post_id_idx | CREATE INDEX comments_post_id_idx ON public.comments USING btree (post_id DESC) |

## Relations

### posts

| Column | Table | Parent Key | Type |
| ------ | ----- | ---------- | ---- |
| post_id | posts | id | many-to-one |
"""


@pytest.fixture
def sample_json() -> dict:
    # Fresh deep copy so tests can mutate it
    return json.loads(json.dumps(SAMPLE_JSON))


@pytest.fixture
def sample_markdown() -> str:
    return SAMPLE_MARKDOWN


@pytest.fixture
def single_table_markdown() -> str:
    return SINGLE_TABLE_MARKDOWN


@pytest.fixture
def json_schema_dir(tmp_path: Path, sample_json) -> Path:
    """Directory holding only schema.json."""
    schema_dir = tmp_path / "json_schema"
    schema_dir.mkdir()
    (schema_dir / "schema.json").write_text(json.dumps(sample_json), encoding="utf-8")
    return schema_dir


@pytest.fixture
def markdown_schema_dir(tmp_path: Path, sample_markdown) -> Path:
    """Directory holding only README.md."""
    schema_dir = tmp_path / "markdown_schema"
    schema_dir.mkdir()
    (schema_dir / "README.md").write_text(sample_markdown, encoding="utf-8")
    return schema_dir


@pytest.fixture
def dual_schema_dir(tmp_path: Path, sample_json, sample_markdown) -> Path:
    """Directory holding both dialects; the JSON one names its schema differently."""
    schema_dir = tmp_path / "dual_schema"
    schema_dir.mkdir()
    data = {**sample_json, "name": "app_from_json"}
    (schema_dir / "schema.json").write_text(json.dumps(data), encoding="utf-8")
    (schema_dir / "README.md").write_text(
        sample_markdown.replace("# Database Schema: app", "# Database Schema: app_from_markdown"),
        encoding="utf-8",
    )
    return schema_dir
