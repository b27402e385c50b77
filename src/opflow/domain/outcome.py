"""Tagged outcome of the Executing step.

Execution logic reports a service failure by returning :class:`Fail`
rather than raising. A raised ServiceException is normalised into the
same variant by the pipeline, so both routes reach the FailedService
terminal path.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar

from opflow.domain.errors import ServiceException

T = TypeVar("T")


@dataclass(frozen=True)
class Ok(Generic[T]):
    """Execution completed; *value* becomes the success payload."""

    value: T | None = None


@dataclass(frozen=True)
class Fail:
    """Execution failed with a service-level *message*.

    *exception* holds the ServiceException that was raised, when there was
    one, so the service-exception hook receives the original instance.
    """

    message: str
    exception: ServiceException | None = field(default=None, compare=False, repr=False)

    @classmethod
    def from_exception(cls, exc: ServiceException) -> Fail:
        return cls(exc.message, exception=exc)

    def to_exception(self) -> ServiceException:
        """The raised exception, or a fresh one carrying :attr:`message`."""
        if self.exception is not None:
            return self.exception
        return ServiceException(self.message)


type ExecutionOutcome = Ok[Any] | Fail


def as_outcome(raw: Any) -> ExecutionOutcome:
    """Wrap a bare return value from execution logic as ``Ok``."""
    if isinstance(raw, Ok | Fail):
        return raw
    return Ok(raw)
