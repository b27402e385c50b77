"""Failure signals raised around command execution.

ServiceException is the only exception the pipeline converts into a
result. Everything else here marks misuse and propagates to the caller.
"""

from __future__ import annotations

import asyncio


class ServiceException(Exception):
    """Recoverable service-layer failure raised from execution logic.

    The pipeline catches it during the Executing step only and reports
    it as a single field-less ValidationResult.
    """

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class CommandCancelledError(asyncio.CancelledError):
    """Async execution was cancelled before entering the Executing step."""

    def __init__(self, command_name: str) -> None:
        super().__init__(f"Command {command_name} was cancelled before execution")
        self.command_name = command_name


class CommandReusedError(RuntimeError):
    """A Command instance was executed more than once."""

    def __init__(self, command_name: str) -> None:
        super().__init__(
            f"Command {command_name} has already been executed; construct a new instance"
        )
        self.command_name = command_name
