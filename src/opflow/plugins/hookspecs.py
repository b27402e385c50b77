"""Pluggy hook specifications for opflow command lifecycle events.

Hooks are notifications only: they observe a command's execution and
can never change its outcome.
"""

from __future__ import annotations

import pluggy

hookspec = pluggy.HookspecMarker("opflow")
hookimpl = pluggy.HookimplMarker("opflow")


class OpflowHookSpec:
    """Hook specifications for the opflow plugin system."""

    @hookspec
    def post_initialization(self, command_name: str) -> None:
        """Called after a command's initialization hook has run."""

    @hookspec
    def post_execute(
        self,
        command_name: str,
        success: bool,
        error_messages: list[str],
    ) -> None:
        """Called after the terminal hook has produced the ExecutionResult."""
