"""Command — the single-use execution pipeline for one business operation.

Pipeline: INITIALIZE → ERROR CHECK → RULE CHECK → EXECUTE → TERMINAL

Behaviour is customised by composing hooks, not by subclassing. Every
hook has a pass-through default, so a command supplies only the ones it
needs (most commonly ``on_execute`` and ``on_get_rules``)::

    command = Command(
        name="insert_customer",
        rules=[ValueRequiredRule(customer.name, "name")],
        on_execute=lambda: proxy.insert(customer),
    )
    result = command.execute()

INVARIANTS:
- Hooks fire in the fixed order above; exactly one terminal hook fires.
- Pre-supplied errors skip rule evaluation and execution entirely.
- Only ServiceException (or a returned ``Fail``) raised by the execute
  hook becomes a failure result. Anything else propagates unchanged.
"""

from __future__ import annotations

import asyncio
import inspect
from collections.abc import Awaitable, Callable, Iterable, Sequence
from dataclasses import dataclass, fields, replace
from typing import TYPE_CHECKING, Any, Generic, TypeVar

import structlog

from opflow.config.logging import command_context
from opflow.domain.errors import CommandCancelledError, CommandReusedError, ServiceException
from opflow.domain.outcome import ExecutionOutcome, Fail, Ok, as_outcome
from opflow.domain.results import ExecutionResult, ValidationResult
from opflow.domain.rules import Rule, validate_rules
from opflow.services.telemetry import trace_span, traced

if TYPE_CHECKING:
    from opflow.plugins.manager import PluginManager

T = TypeVar("T")

log = structlog.get_logger(__name__)


@dataclass(frozen=True)
class CommandHooks(Generic[T]):
    """The seven extension points of the pipeline. ``None`` means default.

    Attributes:
        on_initialization: Side-effect only; always runs first.
        on_get_errors: Pre-computed validation failures.
        on_get_rules: Rules to evaluate when there are no pre-computed failures.
        on_execute: Business logic. Returns a value, ``Ok``/``Fail``, or an
            awaitable of those (async path only); may raise ServiceException.
        on_failed_execution: Builds the result for validation failures.
        on_service_exception: Builds the result for service failures.
        on_successful_execution: Builds the result on success, given the value.
    """

    on_initialization: Callable[[], None] | None = None
    on_get_errors: Callable[[], Iterable[ValidationResult] | None] | None = None
    on_get_rules: Callable[[], Iterable[Rule] | None] | None = None
    on_execute: Callable[[], Any] | None = None
    on_failed_execution: Callable[[Sequence[ValidationResult]], ExecutionResult[T]] | None = None
    on_service_exception: Callable[[ServiceException], ExecutionResult[T]] | None = None
    on_successful_execution: Callable[[T | None], ExecutionResult[T]] | None = None


_HOOK_NAMES = frozenset(f.name for f in fields(CommandHooks))


class Command(Generic[T]):
    """Single-use orchestration of validation and execution.

    Lifecycle: constructed → executed exactly once → discarded. A second
    call to :meth:`execute` or :meth:`execute_async` raises
    CommandReusedError. Not thread-safe.

    Parameters:
        name: Identifies the command in logs, telemetry, and plugin events.
        errors: Pre-supplied validation failures (e.g. from
            :func:`opflow.domain.required.validate_required`).
        rules: Pre-supplied rules.
        hooks: A CommandHooks bundle; individual hooks may also be passed
            as keyword arguments, which take precedence.
        plugins: Optional PluginManager notified of lifecycle events.
    """

    def __init__(
        self,
        *,
        name: str | None = None,
        errors: Iterable[ValidationResult] | None = None,
        rules: Iterable[Rule] | None = None,
        hooks: CommandHooks[T] | None = None,
        plugins: PluginManager | None = None,
        **hook_overrides: Callable[..., Any] | None,
    ) -> None:
        unknown = set(hook_overrides) - _HOOK_NAMES
        if unknown:
            msg = f"Unknown command hooks: {', '.join(sorted(unknown))}"
            raise TypeError(msg)
        self.name = name or type(self).__name__
        self._errors: tuple[ValidationResult, ...] = tuple(errors or ())
        self._rules: tuple[Rule, ...] = tuple(rules or ())
        self._hooks: CommandHooks[T] = replace(hooks or CommandHooks(), **hook_overrides)
        self._plugins = plugins
        self._executed = False

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    @traced
    def execute(self) -> ExecutionResult[T]:
        """Run the pipeline and return its single terminal outcome."""
        self._claim()
        with command_context(self.name):
            errors = self._run_checks()
            if errors:
                return self._finish_failed_validation(errors)

            with trace_span("execute"):
                outcome = self._execute_sync()
            return self._finish(outcome)

    @traced
    async def execute_async(
        self,
        *,
        cancel_event: asyncio.Event | None = None,
    ) -> ExecutionResult[T]:
        """Asynchronous twin of :meth:`execute`.

        Only the execute hook may suspend. Ordering, short-circuiting,
        and exception mapping are identical to the synchronous path.

        Raises:
            CommandCancelledError: If *cancel_event* is set when the
                pipeline is about to enter the Executing step.
        """
        self._claim()
        with command_context(self.name):
            errors = self._run_checks()
            if errors:
                return self._finish_failed_validation(errors)

            if cancel_event is not None and cancel_event.is_set():
                log.info("command.cancelled")
                raise CommandCancelledError(self.name)

            with trace_span("execute"):
                outcome = await self._execute_async()
            return self._finish(outcome)

    def get_rules(self) -> list[Rule]:
        """Return the rules the rule-supply hook provides."""
        return list(self._supply_rules())

    def get_errors(self) -> list[ValidationResult]:
        """Return pre-supplied errors, or failing rule results when there are none.

        Does not initialise, execute, or consume the command.
        """
        errors = self._supply_errors()
        if errors:
            return list(errors)
        return validate_rules(self._supply_rules())

    # ------------------------------------------------------------------
    # Pipeline steps
    # ------------------------------------------------------------------

    def _claim(self) -> None:
        if self._executed:
            raise CommandReusedError(self.name)
        self._executed = True

    def _run_checks(self) -> tuple[ValidationResult, ...]:
        """INITIALIZE → ERROR CHECK → RULE CHECK. Returns collected failures."""
        log.debug("command.start")
        with trace_span("initialize"):
            if self._hooks.on_initialization is not None:
                self._hooks.on_initialization()
        if self._plugins is not None:
            self._plugins.notify_initialized(self.name)

        with trace_span("get_errors") as span:
            errors = self._supply_errors()
            if span is not None:
                span.annotate("errors", len(errors))
        if errors:
            return errors

        with trace_span("get_rules") as span:
            rules = self._supply_rules()
            rule_errors = tuple(validate_rules(rules))
            if span is not None:
                span.annotate("rules", len(rules))
                span.annotate("errors", len(rule_errors))
        return rule_errors

    def _supply_errors(self) -> tuple[ValidationResult, ...]:
        if self._hooks.on_get_errors is None:
            return self._errors
        return tuple(self._hooks.on_get_errors() or ())

    def _supply_rules(self) -> tuple[Rule, ...]:
        if self._hooks.on_get_rules is None:
            return self._rules
        return tuple(self._hooks.on_get_rules() or ())

    def _execute_sync(self) -> ExecutionOutcome:
        if self._hooks.on_execute is None:
            return Ok()
        try:
            raw = self._hooks.on_execute()
        except ServiceException as exc:
            return Fail.from_exception(exc)
        if inspect.isawaitable(raw):
            _discard_awaitable(raw)
            msg = f"Command {self.name} returned an awaitable; use execute_async()"
            raise TypeError(msg)
        return as_outcome(raw)

    async def _execute_async(self) -> ExecutionOutcome:
        if self._hooks.on_execute is None:
            return Ok()
        try:
            raw = self._hooks.on_execute()
            if inspect.isawaitable(raw):
                raw = await raw
        except ServiceException as exc:
            return Fail.from_exception(exc)
        return as_outcome(raw)

    # ------------------------------------------------------------------
    # Terminal states
    # ------------------------------------------------------------------

    def _finish(self, outcome: ExecutionOutcome) -> ExecutionResult[T]:
        if isinstance(outcome, Fail):
            return self._finish_service_exception(outcome.to_exception())
        return self._finish_succeeded(outcome.value)

    def _finish_failed_validation(
        self, errors: Sequence[ValidationResult]
    ) -> ExecutionResult[T]:
        log.debug("command.failed_validation", errors=errors)
        with trace_span("terminal"):
            if self._hooks.on_failed_execution is not None:
                result = self._hooks.on_failed_execution(errors)
            else:
                result = ExecutionResult.failed(errors)
        return self._notify(result)

    def _finish_service_exception(self, exc: ServiceException) -> ExecutionResult[T]:
        log.info("command.service_exception", error=exc.message, kind=type(exc).__name__)
        with trace_span("terminal"):
            if self._hooks.on_service_exception is not None:
                result = self._hooks.on_service_exception(exc)
            else:
                result = ExecutionResult.failed([ValidationResult(message=exc.message)])
        return self._notify(result)

    def _finish_succeeded(self, value: T | None) -> ExecutionResult[T]:
        log.debug("command.succeeded")
        with trace_span("terminal"):
            if self._hooks.on_successful_execution is not None:
                result = self._hooks.on_successful_execution(value)
            else:
                result = ExecutionResult.succeeded(value)
        return self._notify(result)

    def _notify(self, result: ExecutionResult[T]) -> ExecutionResult[T]:
        if self._plugins is not None:
            self._plugins.notify_finished(self.name, result)
        return result

    def __repr__(self) -> str:
        return f"Command(name={self.name!r})"


def _discard_awaitable(awaitable: Awaitable[Any]) -> None:
    """Close a coroutine that will never be awaited."""
    close = getattr(awaitable, "close", None)
    if close is not None:
        close()
