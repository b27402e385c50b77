"""BusinessService — CRUD commands over an injected data proxy.

Every service receives a data proxy at construction time. Each public
method returns a fresh, single-use :class:`Command`; callers execute it
with ``execute()`` (sync proxy) or ``execute_async()`` (async proxy).
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import TYPE_CHECKING, Any, Generic, TypeVar

from pydantic import BaseModel

from opflow.domain.required import validate_required
from opflow.domain.results import ValidationResult
from opflow.domain.rules import Rule, ValueRequiredRule
from opflow.services.command import Command

if TYPE_CHECKING:
    from opflow.plugins.manager import PluginManager
    from opflow.services.data_proxy import AsyncSupportsCRUD, SupportsCRUD

T = TypeVar("T")
K = TypeVar("K")

logger = logging.getLogger(__name__)


class BusinessService(Generic[T, K]):
    """Base for entity services.

    Subclasses add business rules per operation by overriding the
    ``_*_rules`` methods; the defaults add none.

    Usage::

        class CustomerService(BusinessService[Customer, int]):
            def _insert_rules(self, entity: Customer) -> list[Rule]:
                return [PredicateRule(lambda: entity.name != "admin",
                                      "Reserved name", fields=["name"])]

        result = CustomerService(proxy).insert_command(customer).execute()
    """

    entity_name: str = "entity"

    def __init__(
        self,
        data_proxy: SupportsCRUD[T, K] | AsyncSupportsCRUD[T, K],
        *,
        plugins: PluginManager | None = None,
    ) -> None:
        self._proxy = data_proxy
        self._plugins = plugins

    # ------------------------------------------------------------------
    # Command factories
    # ------------------------------------------------------------------

    def get_all_command(self) -> Command[Sequence[T]]:
        return self._command("get_all", on_execute=self._proxy.get_all)

    def get_by_id_command(self, id: K) -> Command[T]:
        return self._command(
            "get_by_id",
            on_get_rules=lambda: [ValueRequiredRule(id, "id"), *self._get_by_id_rules(id)],
            on_execute=lambda: self._proxy.get_by_id(id),
        )

    def insert_command(self, entity: T) -> Command[T]:
        return self._command(
            "insert",
            errors=self._required_errors(entity),
            on_get_rules=lambda: self._insert_rules(entity),
            on_execute=lambda: self._proxy.insert(entity),
        )

    def update_command(self, entity: T) -> Command[T]:
        return self._command(
            "update",
            errors=self._required_errors(entity),
            on_get_rules=lambda: self._update_rules(entity),
            on_execute=lambda: self._proxy.update(entity),
        )

    def delete_command(self, id: K) -> Command[None]:
        return self._command(
            "delete",
            on_get_rules=lambda: [ValueRequiredRule(id, "id"), *self._delete_rules(id)],
            on_execute=lambda: self._proxy.delete(id),
        )

    # ------------------------------------------------------------------
    # Business rule extension points
    # ------------------------------------------------------------------

    def _get_by_id_rules(self, id: K) -> list[Rule]:
        return []

    def _insert_rules(self, entity: T) -> list[Rule]:
        return []

    def _update_rules(self, entity: T) -> list[Rule]:
        return []

    def _delete_rules(self, id: K) -> list[Rule]:
        return []

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _command(self, operation: str, **kwargs: Any) -> Command[Any]:
        name = f"{self.entity_name}.{operation}"
        logger.debug("Building command %s", name)
        return Command(name=name, plugins=self._plugins, **kwargs)

    @staticmethod
    def _required_errors(entity: T) -> list[ValidationResult]:
        if isinstance(entity, BaseModel):
            return validate_required(entity)
        return []
