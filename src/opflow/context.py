"""AppContext — wires settings into logging, telemetry, and plugins.

Created once by the embedding application (service endpoint, view-model
host). Commands built through :meth:`AppContext.command` share the
context's plugin manager.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from opflow.config.logging import configure_logging
from opflow.services.command import Command
from opflow.services.telemetry import enable_telemetry

if TYPE_CHECKING:
    from opflow.config.settings import OpflowSettings
    from opflow.plugins.manager import PluginManager


class AppContext:
    """Shared runtime context.

    The plugin manager is built lazily on first use so that applications
    which never execute a command never import or scan plugins.
    """

    def __init__(self, settings: OpflowSettings) -> None:
        self.settings = settings
        self._plugins: PluginManager | None = None

        configure_logging(
            verbose=settings.logging.verbose,
            log_json=settings.logging.log_json,
        )

        if settings.telemetry.enabled:
            enable_telemetry()

    @property
    def plugins(self) -> PluginManager | None:
        """Loaded plugin manager, or None when plugins are disabled."""
        if not self.settings.plugins.enabled:
            return None
        if self._plugins is None:
            from opflow.plugins.manager import PluginManager

            self._plugins = PluginManager(blocked=self.settings.plugins.blocked)
            self._plugins.load_entrypoints()
        return self._plugins

    def command(self, **kwargs: Any) -> Command[Any]:
        """Build a Command wired to this context's plugins."""
        return Command(plugins=self.plugins, **kwargs)
