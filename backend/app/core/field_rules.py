"""Field Rules — statically declared validation rules evaluated by an explicit validator.

Invariants:
    - Rules never raise: each returns a FieldViolation or None
    - apply_rules() evaluates EVERY rule and returns all violations (aggregated, not fail-fast)
    - Rules normalize the value they accept in place (trim, lowercase) on the working copy only

Design Decisions:
    - Frozen dataclasses over schema dicts: rule tables are plain data, checked by mypy
    - PreparedWrite as the pipeline's return type: callers must check it before any IO
"""

import re
from dataclasses import dataclass
from typing import Any, Protocol, cast

from app.core.errors import DevEventError, FieldViolation


class FieldRule(Protocol):
    field: str

    def apply(self, document: dict[str, Any]) -> FieldViolation | None: ...


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


@dataclass(frozen=True)
class TextRule:
    """Required string, trimmed, with optional min length, lowercasing and pattern."""
    field: str
    required_message: str
    min_length: int = 0
    min_length_message: str = ""
    lowercase: bool = False
    pattern: re.Pattern[str] | None = None
    pattern_message: str = ""

    def apply(self, document: dict[str, Any]) -> FieldViolation | None:
        value = document.get(self.field)
        if _is_blank(value):
            return FieldViolation(self.field, self.required_message)
        if not isinstance(value, str):
            return FieldViolation(self.field, f"{self.field} must be a string")

        value = value.strip()
        if self.lowercase:
            value = value.lower()
        document[self.field] = value

        if len(value) < self.min_length:
            return FieldViolation(self.field, self.min_length_message)
        if self.pattern is not None and not self.pattern.match(value):
            return FieldViolation(self.field, self.pattern_message)
        return None


@dataclass(frozen=True)
class ChoiceRule:
    """Required value that must be one of a fixed set."""
    field: str
    choices: tuple[str, ...]
    required_message: str
    choice_message: str

    def apply(self, document: dict[str, Any]) -> FieldViolation | None:
        value = document.get(self.field)
        if _is_blank(value):
            return FieldViolation(self.field, self.required_message)
        if not isinstance(value, str) or value.strip() not in self.choices:
            return FieldViolation(self.field, self.choice_message)
        document[self.field] = value.strip()
        return None


@dataclass(frozen=True)
class StringListRule:
    """Required non-empty sequence of non-blank strings; order preserved."""
    field: str
    required_message: str
    empty_message: str

    def apply(self, document: dict[str, Any]) -> FieldViolation | None:
        value = document.get(self.field)
        if value is None:
            return FieldViolation(self.field, self.required_message)
        if isinstance(value, str) or not isinstance(value, (list, tuple)):
            return FieldViolation(self.field, f"{self.field} must be a list of strings")
        if not value:
            return FieldViolation(self.field, self.empty_message)
        if any(not isinstance(item, str) or not item.strip() for item in value):
            return FieldViolation(
                self.field, f"{self.field} items must be non-empty strings",
            )
        document[self.field] = [item.strip() for item in value]
        return None


def apply_rules(
    rules: tuple[FieldRule, ...], document: dict[str, Any],
) -> list[FieldViolation]:
    """Run every rule against the working copy; return all violations."""
    violations = []
    for rule in rules:
        violation = rule.apply(document)
        if violation is not None:
            violations.append(violation)
    return violations


@dataclass(frozen=True)
class PreparedWrite:
    """Outcome of a validate-then-normalize pipeline: a document XOR an error."""
    document: dict[str, Any] | None = None
    error: DevEventError | None = None

    def __post_init__(self) -> None:
        if (self.document is None) == (self.error is None):
            raise ValueError("PreparedWrite needs exactly one of document or error")

    @classmethod
    def succeeded(cls, document: dict[str, Any]) -> "PreparedWrite":
        return cls(document=document)

    @classmethod
    def failed(cls, error: DevEventError) -> "PreparedWrite":
        return cls(error=error)

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> dict[str, Any]:
        """Return the document or raise the pipeline error."""
        if self.error is not None:
            raise self.error
        return cast(dict[str, Any], self.document)
