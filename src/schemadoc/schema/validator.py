"""Validator for candidate schema models.

Re-checks every model invariant on a candidate (a plain dict from a parser,
or an already-built model) and reports *all* violations in one
ValidationError instead of stopping at the first. Pure: no I/O, no logging.
"""

from typing import Any

import pydantic

from schemadoc.schema.models import Schema, Table
from schemadoc.schema.result import Err, Ok, Result, ValidationError, Violation


def _violations(exc: pydantic.ValidationError) -> tuple[Violation, ...]:
    return tuple(
        Violation(
            location=".".join(str(part) for part in error["loc"]) or "__root__",
            message=error["msg"],
        )
        for error in exc.errors(include_url=False)
    )


def _as_candidate(candidate: Any) -> Any:
    # Re-validate models from their dumped form so invariants are checked again
    if isinstance(candidate, pydantic.BaseModel):
        return candidate.model_dump()
    return candidate


def validate_table(candidate: Any) -> Result[Table]:
    """Validate a table candidate.

    Args:
        candidate: Dict (snake_case or camelCase keys) or Table instance.

    Returns:
        Ok(Table) or Err(ValidationError) listing every violated field.
    """
    try:
        return Ok(Table.model_validate(_as_candidate(candidate)))
    except pydantic.ValidationError as e:
        name = candidate.get("name") if isinstance(candidate, dict) else None
        label = f"Table '{name}'" if name else "Table"
        return Err(ValidationError(f"{label} validation failed", violations=_violations(e)))


def validate_schema(candidate: Any) -> Result[Schema]:
    """Validate a whole-schema candidate, aggregating violations across all tables."""
    try:
        return Ok(Schema.model_validate(_as_candidate(candidate)))
    except pydantic.ValidationError as e:
        return Err(ValidationError("Schema validation failed", violations=_violations(e)))
