"""Declarative required-field validation for pydantic models.

Fields opt in via ``typing.Annotated`` metadata::

    class Customer(BaseModel):
        id: Annotated[int, Required()] = 0
        name: Annotated[str | None, Required(display_name="Name")] = None

:func:`validate_required` runs before a command executes and produces the
same ValidationResult shape the rules do, so its output can be handed to
``Command(errors=...)`` to short-circuit rule evaluation.
"""

from __future__ import annotations

from dataclasses import dataclass

from pydantic import BaseModel

from opflow.domain.results import ValidationResult
from opflow.domain.rules import is_missing_value, required_message


@dataclass(frozen=True)
class Required:
    """Marks a model field as required using missing-value semantics.

    Attributes:
        display_name: Name used in the message and ``fields``; defaults to
            the field's alias, then its title, then its attribute name.
        message: Full message override.
    """

    display_name: str | None = None
    message: str | None = None


def validate_required(model: BaseModel) -> list[ValidationResult]:
    """Return one ValidationResult per missing required field, in declaration order."""
    results: list[ValidationResult] = []
    for name, info in type(model).model_fields.items():
        marker = next((m for m in info.metadata if isinstance(m, Required)), None)
        if marker is None:
            continue
        if not is_missing_value(getattr(model, name)):
            continue
        display = marker.display_name or info.alias or info.title or name
        results.append(
            ValidationResult(
                message=marker.message or required_message(display),
                fields=(display,),
            )
        )
    return results
