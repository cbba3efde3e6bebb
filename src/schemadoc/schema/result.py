"""Tagged results and the error taxonomy for schema resolution.

Every adapter, parser and validator entry point returns ``Ok`` or ``Err``
instead of raising. Callers branch on ``is_ok`` (or pattern-match) and decide
themselves whether a failure is worth retrying.

    ResolutionError  -> missing path, unsupported extension, exhausted search
    ParseError       -> malformed or incomplete dialect structure
    ValidationError  -> parseable but violates a model invariant
"""

from collections.abc import Callable
from dataclasses import dataclass
from typing import Generic, NamedTuple, TypeAlias, TypeVar, Union

T = TypeVar("T")
U = TypeVar("U")


# --- Errors ---


class Attempt(NamedTuple):
    """One candidate tried during resolution and why it was rejected."""

    path: str
    reason: str


class Violation(NamedTuple):
    """One invariant violated by a candidate model."""

    location: str
    message: str


@dataclass(frozen=True)
class SchemaError:
    """Base for all tagged schema errors."""

    message: str

    @property
    def kind(self) -> str:
        return type(self).__name__

    def __str__(self) -> str:
        return self.message


@dataclass(frozen=True)
class ResolutionError(SchemaError):
    """A path could not be mapped to a concrete schema file."""

    attempts: tuple[Attempt, ...] = ()

    def __str__(self) -> str:
        if not self.attempts:
            return self.message
        tried = "\n".join(f"  {a.path}: {a.reason}" for a in self.attempts)
        return f"{self.message}\nTried:\n{tried}"


@dataclass(frozen=True)
class ParseError(SchemaError):
    """Source text is not a usable schema document."""

    field: str | None = None
    attempts: tuple[Attempt, ...] = ()

    def __str__(self) -> str:
        text = self.message
        if self.field:
            text = f"{text} (field: {self.field})"
        if self.attempts:
            tried = "\n".join(f"  {a.path}: {a.reason}" for a in self.attempts)
            text = f"{text}\nTried:\n{tried}"
        return text


@dataclass(frozen=True)
class ValidationError(SchemaError):
    """A candidate model violates one or more invariants."""

    violations: tuple[Violation, ...] = ()

    @property
    def fields(self) -> list[str]:
        return [v.location for v in self.violations]

    def __str__(self) -> str:
        details = ", ".join(f"{v.location}: {v.message}" for v in self.violations)
        return f"{self.message}: {details}" if details else self.message


class SchemaAdapterError(Exception):
    """Raised by ``Err.unwrap()`` for callers that prefer exceptions."""

    def __init__(self, error: SchemaError):
        self.error = error
        super().__init__(str(error))


# --- Results ---


@dataclass(frozen=True)
class Ok(Generic[T]):
    value: T

    @property
    def is_ok(self) -> bool:
        return True

    def unwrap(self) -> T:
        return self.value

    def map(self, fn: Callable[[T], U]) -> "Ok[U]":
        return Ok(fn(self.value))


@dataclass(frozen=True)
class Err:
    error: SchemaError

    @property
    def is_ok(self) -> bool:
        return False

    def unwrap(self):
        raise SchemaAdapterError(self.error)

    def map(self, fn: Callable) -> "Err":
        return self


Result: TypeAlias = Union[Ok[T], Err]
