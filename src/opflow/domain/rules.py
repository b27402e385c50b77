"""Rule abstraction and the built-in rule variants.

A rule is a stateless check producing at most one ValidationResult.
Rules may close over domain values supplied at construction, so they
are cheap to build per validation call and safe to share across commands.

"Missing value" semantics (shared with :mod:`opflow.domain.required`):
- ``None``
- the all-zero UUID
- numeric zero (``bool`` is not treated as numeric)
- ``datetime.min`` / ``date.min``
- blank strings, and strings that spell numeric zero, the minimum
  ISO date/time, or the all-zero UUID
"""

from __future__ import annotations

import re
from collections.abc import Callable, Iterable
from datetime import date, datetime
from decimal import Decimal
from typing import Any, NamedTuple, Protocol, runtime_checkable
from uuid import UUID

from opflow.domain.results import ValidationResult

NIL_UUID = UUID(int=0)


class RuleOutcome(NamedTuple):
    """``(valid, error)`` pair returned by :meth:`Rule.validate`."""

    valid: bool
    error: ValidationResult | None = None


@runtime_checkable
class Rule(Protocol):
    """Anything that can validate itself into a RuleOutcome."""

    def validate(self) -> RuleOutcome: ...


class RuleBase:
    """Base for concrete rules.

    Subclasses implement :meth:`_on_validate`, returning ``None`` when the
    rule holds or a ValidationResult (usually via :meth:`_invalidate`)
    when it does not.
    """

    fields: tuple[str, ...] = ()

    def validate(self) -> RuleOutcome:
        error = self._on_validate()
        if error is None:
            return RuleOutcome(valid=True)
        return RuleOutcome(valid=False, error=error)

    def _on_validate(self) -> ValidationResult | None:
        raise NotImplementedError

    def _invalidate(self, message: str, *fields: str) -> ValidationResult:
        return ValidationResult(message=message, fields=fields or self.fields)

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


class AlwaysValidRule(RuleBase):
    """Rule that always passes."""

    def _on_validate(self) -> ValidationResult | None:
        return None


class AlwaysInvalidRule(RuleBase):
    """Rule that always fails with a fixed message."""

    def __init__(self, message: str, fields: Iterable[str] = ()) -> None:
        self.message = message
        self.fields = tuple(fields)

    def _on_validate(self) -> ValidationResult | None:
        return self._invalidate(self.message)

    def __repr__(self) -> str:
        return f"AlwaysInvalidRule({self.message!r})"


class ValueRequiredRule(RuleBase):
    """Fails when *value* is missing for its type (see module docstring)."""

    def __init__(self, value: Any, field_name: str) -> None:
        self.value = value
        self.field_name = field_name
        self.fields = (field_name,)

    def _on_validate(self) -> ValidationResult | None:
        if is_missing_value(self.value):
            return self._invalidate(required_message(self.field_name))
        return None

    def __repr__(self) -> str:
        return f"ValueRequiredRule({self.value!r}, {self.field_name!r})"


class PredicateRule(RuleBase):
    """Custom domain rule built from a zero-argument predicate.

    Usage::

        PredicateRule(lambda: order.total <= customer.credit_limit,
                      "Order exceeds the credit limit", fields=["total"])
    """

    def __init__(
        self,
        predicate: Callable[[], bool],
        message: str,
        fields: Iterable[str] = (),
    ) -> None:
        self.predicate = predicate
        self.message = message
        self.fields = tuple(fields)

    def _on_validate(self) -> ValidationResult | None:
        if self.predicate():
            return None
        return self._invalidate(self.message)

    def __repr__(self) -> str:
        return f"PredicateRule({self.message!r})"


# --- Missing-value semantics ---


def required_message(field_name: str) -> str:
    return f"The {field_name} field is required."


def is_missing_value(value: Any) -> bool:
    """Return True when *value* counts as not supplied."""
    if value is None:
        return True
    if isinstance(value, bool):
        return False
    if isinstance(value, UUID):
        return value == NIL_UUID
    if isinstance(value, Decimal):
        return not value.is_nan() and value.is_zero()
    if isinstance(value, int | float):
        return value == 0
    if isinstance(value, datetime):
        return value == datetime.min
    if isinstance(value, date):
        return value == date.min
    if isinstance(value, str):
        return _is_missing_text(value)
    return False


# Sign, digits with optional thousands separators, optional fraction.
# No exponents, underscores, or NaN/Infinity spellings.
_NUMBER_TEXT = re.compile(r"[+-]?(?=\.?\d)\d*(?:,\d*)*(?:\.\d*)?")


def _is_missing_text(text: str) -> bool:
    stripped = text.strip()
    if not stripped:
        return True
    if _NUMBER_TEXT.fullmatch(stripped) and Decimal(stripped.replace(",", "")).is_zero():
        return True
    try:
        if datetime.fromisoformat(stripped) == datetime.min:
            return True
    except ValueError:
        pass
    try:
        return UUID(stripped) == NIL_UUID
    except ValueError:
        return False


_REQUIRABLE_TYPES = (str, int, float, Decimal, UUID, date)


def create_value_required_rule(value: Any, field_name: str) -> ValueRequiredRule:
    """Build a ValueRequiredRule for a supported value type.

    Raises:
        TypeError: If *value* is not one of str, int, float, Decimal,
            UUID, date or datetime.
    """
    if isinstance(value, bool) or not isinstance(value, _REQUIRABLE_TYPES):
        msg = f"Cannot build a value-required rule for {type(value).__name__}"
        raise TypeError(msg)
    return ValueRequiredRule(value, field_name)


def validate_rules(rules: Iterable[Rule]) -> list[ValidationResult]:
    """Evaluate every rule in order and collect the failures.

    No short-circuit on first failure, no sorting, no deduplication.
    """
    errors: list[ValidationResult] = []
    for rule in rules:
        valid, error = rule.validate()
        if not valid:
            if error is None:
                error = ValidationResult(message=f"{type(rule).__name__} failed validation")
            errors.append(error)
    return errors
