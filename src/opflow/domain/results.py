"""ValidationResult and ExecutionResult — the universal command contract.

INVARIANT: Every Command execution returns exactly one ExecutionResult.
``success`` is True iff ``errors`` is empty, and ``value`` is only ever
set on success.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, ConfigDict, model_validator

T = TypeVar("T")


class ValidationResult(BaseModel):
    """One validation failure tied to zero or more named fields."""

    model_config = ConfigDict(frozen=True)

    message: str
    fields: tuple[str, ...] = ()

    @classmethod
    def from_message(cls, message: str, *fields: str) -> ValidationResult:
        return cls(message=message, fields=fields)


class ExecutionResult(BaseModel, Generic[T]):
    """Uniform success/failure/value outcome of a command execution.

    Attributes:
        success: Whether the command reached the Succeeded state.
        errors: Ordered failures when ``success`` is False, else None.
        value: Payload produced by a successful command, if any.
        meta: Optional metadata (telemetry spans). Never affects success.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    success: bool
    errors: tuple[ValidationResult, ...] | None = None
    value: T | None = None
    meta: dict[str, Any] | None = None

    @model_validator(mode="after")
    def _check_shape(self) -> ExecutionResult[T]:
        if self.success and self.errors:
            msg = "A successful result cannot carry errors"
            raise ValueError(msg)
        if not self.success:
            if not self.errors:
                msg = "A failed result requires at least one error"
                raise ValueError(msg)
            if self.value is not None:
                msg = "A failed result cannot carry a value"
                raise ValueError(msg)
        return self

    @classmethod
    def succeeded(cls, value: T | None = None) -> ExecutionResult[T]:
        """Build a success result, optionally carrying *value*."""
        return cls(success=True, errors=None, value=value)

    @classmethod
    def failed(cls, errors: Iterable[ValidationResult]) -> ExecutionResult[T]:
        """Build a failure result. Order is preserved; nothing is deduplicated."""
        return cls(success=False, errors=tuple(errors))

    @property
    def error_messages(self) -> list[str]:
        return [e.message for e in self.errors or ()]
