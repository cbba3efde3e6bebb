"""Canonical schema model.

Format-neutral representation that both the JSON and the Markdown parser
produce. Models are frozen and collections are tuples, so a value handed out
by the adapter or the cache can't be changed underneath another caller.

Attributes are snake_case in Python; ``model_dump(by_alias=True)`` emits the
camelCase names downstream consumers expect (``isPrimaryKey``,
``referencedColumns``, ``tableReferences``, ...).
"""

from typing import Annotated, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator, model_validator
from pydantic.alias_generators import to_camel

from schemadoc.schema.types import PRECISION_SCALE_RE, SINGLE_ARG_RE, is_character_type


DEFAULT_SCHEMA_NAME = "database_schema"

RelationType = Literal["belongsTo", "hasMany", "hasOne"]

NonEmptyStr = Annotated[str, Field(min_length=1)]


class CanonicalModel(BaseModel):
    """Shared config: immutable, camelCase aliases, snake_case accepted too."""

    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


class Column(CanonicalModel):
    """A single table column."""

    name: NonEmptyStr
    type: NonEmptyStr  # raw type string, e.g. varchar(255)
    nullable: bool = True
    default_value: Optional[str] = None
    comment: Optional[str] = None
    is_primary_key: bool = False
    is_auto_increment: bool = False
    max_length: Optional[int] = Field(default=None, gt=0)
    precision: Optional[int] = Field(default=None, gt=0)
    scale: Optional[int] = Field(default=None, ge=0)

    @field_validator("precision", "scale")
    @classmethod
    def _requires_precision_scale_argument(cls, value: int | None, info: ValidationInfo):
        type_str = info.data.get("type")
        if value is not None and type_str and not PRECISION_SCALE_RE.search(type_str):
            raise ValueError(f"{info.field_name} requires a (p,s) argument in type '{type_str}'")
        return value

    @field_validator("max_length")
    @classmethod
    def _requires_length_argument(cls, value: int | None, info: ValidationInfo):
        type_str = info.data.get("type")
        if value is None or not type_str:
            return value
        if PRECISION_SCALE_RE.search(type_str) or not SINGLE_ARG_RE.search(type_str):
            raise ValueError(f"max_length requires a single (n) argument in type '{type_str}'")
        if not is_character_type(type_str):
            raise ValueError(f"max_length only applies to character types, got '{type_str}'")
        return value


class Index(CanonicalModel):
    """A table index. Primary indexes are always unique."""

    name: NonEmptyStr
    columns: tuple[NonEmptyStr, ...] = Field(min_length=1)
    is_unique: bool = False
    is_primary: bool = False
    type: Optional[str] = None  # PRIMARY KEY | UNIQUE | KEY | INDEX | BTREE | raw definition
    comment: Optional[str] = None

    @model_validator(mode="after")
    def _primary_implies_unique(self) -> "Index":
        if self.is_primary and not self.is_unique:
            raise ValueError("primary index must also be unique")
        return self


class Relation(CanonicalModel):
    """A foreign-key relationship seen from ``table``."""

    type: RelationType
    table: NonEmptyStr
    columns: tuple[NonEmptyStr, ...] = Field(min_length=1)
    referenced_table: NonEmptyStr
    referenced_columns: tuple[NonEmptyStr, ...] = Field(min_length=1)
    constraint_name: Optional[str] = None

    @model_validator(mode="after")
    def _column_counts_match(self) -> "Relation":
        if len(self.columns) != len(self.referenced_columns):
            raise ValueError(
                f"columns ({len(self.columns)}) and referenced_columns "
                f"({len(self.referenced_columns)}) must have the same length"
            )
        return self


class Table(CanonicalModel):
    name: NonEmptyStr
    comment: Optional[str] = None
    columns: tuple[Column, ...] = Field(min_length=1)
    indexes: tuple[Index, ...] = ()
    relations: tuple[Relation, ...] = ()

    def get_column(self, name: str) -> Column | None:
        return next((c for c in self.columns if c.name == name), None)

    @property
    def primary_key_columns(self) -> list[str]:
        return [c.name for c in self.columns if c.is_primary_key]


class TableReference(CanonicalModel):
    """Lightweight table listing entry."""

    name: NonEmptyStr
    comment: Optional[str] = None
    column_count: Optional[int] = Field(default=None, ge=0)

    @classmethod
    def from_table(cls, table: Table) -> "TableReference":
        return cls(name=table.name, comment=table.comment, column_count=len(table.columns))


class SchemaMetadata(CanonicalModel):
    name: NonEmptyStr
    table_count: Optional[int] = Field(default=None, ge=0)
    generated: Optional[str] = None  # ISO-8601 when it could be normalized, raw text otherwise
    version: Optional[str] = None
    description: Optional[str] = None


class Schema(CanonicalModel):
    """A complete parsed schema: metadata plus ordered tables and references."""

    metadata: SchemaMetadata
    tables: tuple[Table, ...] = ()
    table_references: tuple[TableReference, ...] = ()

    def get_table(self, name: str) -> Table | None:
        return next((t for t in self.tables if t.name == name), None)

    @property
    def table_names(self) -> list[str]:
        return [t.name for t in self.tables]

    def to_json(self, indent: int | None = None) -> str:
        return self.model_dump_json(by_alias=True, indent=indent)

    @classmethod
    def from_json(cls, content: str) -> "Schema":
        return cls.model_validate_json(content)
