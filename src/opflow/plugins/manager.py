"""Plugin registry and command lifecycle notifications.

Plugins are observers: they hear that a command was initialized and how
it finished, and nothing they do can alter the ExecutionResult.
"""

from __future__ import annotations

import inspect
import logging
from collections.abc import Iterable
from typing import TYPE_CHECKING, Any

import pluggy

from opflow.plugins.hookspecs import OpflowHookSpec

if TYPE_CHECKING:
    from opflow.domain.results import ExecutionResult

PROJECT_NAME = "opflow"
ENTRY_POINT_GROUP = "opflow.plugins"

logger = logging.getLogger(__name__)


class PluginManager:
    """Registry of command lifecycle observers.

    Usage::

        plugins = PluginManager(blocked=["noisy-audit"])
        plugins.load_entrypoints()
        Command(plugins=plugins, on_execute=...).execute()
    """

    def __init__(self, *, blocked: Iterable[str] = ()) -> None:
        self._pm = pluggy.PluginManager(PROJECT_NAME)
        self._pm.add_hookspecs(OpflowHookSpec)
        for name in blocked:
            self._pm.set_blocked(name)
        self._entrypoints_loaded = False

    @property
    def entrypoints_loaded(self) -> bool:
        return self._entrypoints_loaded

    def load_entrypoints(self) -> list[str]:
        """Register observers published under the ``opflow.plugins`` group.

        An entry point may name a class or an instance. Blocked names are
        skipped. Returns the names of all registered observers.
        """
        count = self._pm.load_setuptools_entrypoints(ENTRY_POINT_GROUP)
        for plugin in list(self._pm.get_plugins()):
            if inspect.isclass(plugin):
                name = self._pm.get_name(plugin) or plugin.__name__
                self._pm.unregister(plugin)
                self._register_instance(plugin, name)
        self._entrypoints_loaded = True
        logger.debug("Loaded %d entry-point observer(s)", count)
        return self.names()

    def register(self, plugin: object, name: str | None = None) -> str | None:
        """Register an observer instance, or a class to be instantiated.

        Returns the registered name, or None when the name is blocked or
        the class could not be instantiated.
        """
        if inspect.isclass(plugin):
            return self._register_instance(plugin, name or plugin.__name__)
        resolved = name or type(plugin).__name__
        return self._pm.register(plugin, name=resolved)

    def unregister(self, plugin: object) -> None:
        self._pm.unregister(plugin)

    def names(self) -> list[str]:
        return [self._pm.get_name(p) or type(p).__name__ for p in self._pm.get_plugins()]

    # ------------------------------------------------------------------
    # Lifecycle notifications
    # ------------------------------------------------------------------

    def notify_initialized(self, command_name: str) -> bool:
        """Tell observers *command_name* passed its initialization hook."""
        return self._notify("post_initialization", command_name=command_name)

    def notify_finished(self, command_name: str, result: ExecutionResult[Any]) -> bool:
        """Tell observers which terminal outcome *command_name* produced."""
        return self._notify(
            "post_execute",
            command_name=command_name,
            success=result.success,
            error_messages=result.error_messages,
        )

    def _notify(self, hook_name: str, **payload: Any) -> bool:
        """Call *hook_name* on every observer. Returns False if one raised.

        INVARIANT: Observer failures are warnings, never errors.
        """
        try:
            getattr(self._pm.hook, hook_name)(**payload)
        except Exception:
            logger.warning(
                "Plugin hook %s failed for command %s",
                hook_name,
                payload.get("command_name"),
                exc_info=True,
            )
            return False
        return True

    def _register_instance(self, cls: type, name: str) -> str | None:
        if self._pm.is_blocked(name):
            logger.debug("Skipping blocked plugin %s", name)
            return None
        try:
            instance = cls()
        except Exception:
            logger.warning("Failed to instantiate plugin %s", name, exc_info=True)
            return None
        return self._pm.register(instance, name=name)
