"""Tests for the Command pipeline — ordering, short-circuits, and outcome mapping."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from typing import Any
from unittest.mock import MagicMock, call

import pytest

from opflow.domain.errors import CommandReusedError, ServiceException
from opflow.domain.outcome import Fail, Ok
from opflow.domain.results import ExecutionResult, ValidationResult
from opflow.domain.rules import AlwaysInvalidRule, AlwaysValidRule, Rule
from opflow.services.command import Command, CommandHooks

ALL_HOOKS = [
    "on_initialization",
    "on_get_errors",
    "on_get_rules",
    "on_execute",
    "on_failed_execution",
    "on_service_exception",
    "on_successful_execution",
]


def logging_command(
    doer: MagicMock,
    *,
    errors: Iterable[ValidationResult] | None = None,
    rules: Iterable[Rule] | None = None,
) -> Command[Any]:
    """Command whose every hook logs its name to *doer* before default behaviour."""

    def on_initialization() -> None:
        doer.log("on_initialization")

    def on_get_errors() -> Iterable[ValidationResult]:
        doer.log("on_get_errors")
        return errors or ()

    def on_get_rules() -> Iterable[Rule]:
        doer.log("on_get_rules")
        return rules or ()

    def on_execute() -> Any:
        doer.log("on_execute")
        return doer.do_something()

    def on_failed_execution(errs: Sequence[ValidationResult]) -> ExecutionResult[Any]:
        doer.log("on_failed_execution")
        return ExecutionResult.failed(errs)

    def on_service_exception(exc: ServiceException) -> ExecutionResult[Any]:
        doer.log("on_service_exception")
        return ExecutionResult.failed([ValidationResult(message=exc.message)])

    def on_successful_execution(value: Any) -> ExecutionResult[Any]:
        doer.log("on_successful_execution")
        return ExecutionResult.succeeded(value)

    return Command(
        name="stub",
        on_initialization=on_initialization,
        on_get_errors=on_get_errors,
        on_get_rules=on_get_rules,
        on_execute=on_execute,
        on_failed_execution=on_failed_execution,
        on_service_exception=on_service_exception,
        on_successful_execution=on_successful_execution,
    )


def logged(doer: MagicMock) -> list[str]:
    return [c.args[0] for c in doer.log.call_args_list]


class TestSuccessfulExecution:
    def test_no_errors_no_rules(self, doer: MagicMock) -> None:
        doer.do_something.return_value = None
        result = logging_command(doer).execute()

        assert result.success is True
        assert result.errors is None
        assert logged(doer) == [
            "on_initialization",
            "on_get_errors",
            "on_get_rules",
            "on_execute",
            "on_successful_execution",
        ]

    def test_all_rules_pass(self, doer: MagicMock) -> None:
        doer.do_something.return_value = None
        command = logging_command(doer, rules=[AlwaysValidRule(), AlwaysValidRule()])
        result = command.execute()

        assert result.success is True
        assert result.errors is None
        assert logged(doer)[-1] == "on_successful_execution"

    def test_value_is_carried(self, doer: MagicMock) -> None:
        doer.do_something.return_value = {"id": 1}
        result = logging_command(doer).execute()
        assert result.value == {"id": 1}

    def test_ok_outcome_value_is_carried(self, doer: MagicMock) -> None:
        doer.do_something.return_value = Ok("created")
        result = logging_command(doer).execute()
        assert result.success is True
        assert result.value == "created"


class TestRuleFailures:
    def test_any_rule_fails(self, doer: MagicMock) -> None:
        command = logging_command(
            doer, rules=[AlwaysValidRule(), AlwaysInvalidRule("X failed validation")]
        )
        result = command.execute()

        assert result.success is False
        assert result.errors == (ValidationResult(message="X failed validation"),)
        assert logged(doer) == [
            "on_initialization",
            "on_get_errors",
            "on_get_rules",
            "on_failed_execution",
        ]
        doer.do_something.assert_not_called()

    def test_every_rule_is_evaluated_in_order(self, doer: MagicMock) -> None:
        command = logging_command(doer, rules=[AlwaysInvalidRule("A"), AlwaysInvalidRule("B")])
        result = command.execute()
        assert result.error_messages == ["A", "B"]

    def test_duplicate_failures_are_kept(self, doer: MagicMock) -> None:
        command = logging_command(doer, rules=[AlwaysInvalidRule("A"), AlwaysInvalidRule("A")])
        assert command.execute().error_messages == ["A", "A"]


class TestPreSuppliedErrors:
    def test_errors_skip_rules_and_execution(self, doer: MagicMock) -> None:
        supplied = [ValidationResult(message="Y required")]
        command = logging_command(doer, errors=supplied, rules=[AlwaysInvalidRule("ignored")])
        result = command.execute()

        assert result.success is False
        assert result.errors == tuple(supplied)
        assert logged(doer) == [
            "on_initialization",
            "on_get_errors",
            "on_failed_execution",
        ]
        doer.do_something.assert_not_called()

    def test_default_error_supply_uses_constructor_errors(self) -> None:
        rule = MagicMock()
        supplied = [ValidationResult(message="first"), ValidationResult(message="second")]
        result = Command(errors=supplied, rules=[rule]).execute()

        assert result.error_messages == ["first", "second"]
        rule.validate.assert_not_called()


class TestServiceFailures:
    def test_service_exception_is_mapped(self, doer: MagicMock) -> None:
        doer.do_something.side_effect = ServiceException("You shall not pass")
        result = logging_command(doer).execute()

        assert result.success is False
        assert result.errors == (ValidationResult(message="You shall not pass", fields=()),)
        assert logged(doer) == [
            "on_initialization",
            "on_get_errors",
            "on_get_rules",
            "on_execute",
            "on_service_exception",
        ]

    def test_fail_outcome_takes_service_path(self, doer: MagicMock) -> None:
        doer.do_something.return_value = Fail("Backend unavailable")
        result = logging_command(doer).execute()

        assert result.error_messages == ["Backend unavailable"]
        assert logged(doer)[-1] == "on_service_exception"

    def test_hook_receives_the_raised_exception(self) -> None:
        class CustomerNotFound(ServiceException):
            def __init__(self, key: int) -> None:
                super().__init__(f"Customer {key} not found")
                self.key = key

        raised = CustomerNotFound(7)
        seen: list[ServiceException] = []

        def lookup() -> None:
            raise raised

        def on_service_exception(exc: ServiceException) -> ExecutionResult[Any]:
            seen.append(exc)
            return ExecutionResult.failed([ValidationResult(message=exc.message)])

        result = Command(on_execute=lookup, on_service_exception=on_service_exception).execute()

        assert result.error_messages == ["Customer 7 not found"]
        assert seen[0] is raised
        assert seen[0].key == 7
        assert seen[0].__traceback__ is not None

    def test_fail_outcome_builds_plain_exception(self) -> None:
        seen: list[ServiceException] = []

        def on_service_exception(exc: ServiceException) -> ExecutionResult[Any]:
            seen.append(exc)
            return ExecutionResult.failed([ValidationResult(message=exc.message)])

        Command(
            on_execute=lambda: Fail("Backend unavailable"),
            on_service_exception=on_service_exception,
        ).execute()

        assert type(seen[0]) is ServiceException
        assert seen[0].message == "Backend unavailable"

    def test_other_exceptions_propagate(self, doer: MagicMock) -> None:
        doer.do_something.side_effect = KeyError("boom")
        with pytest.raises(KeyError):
            logging_command(doer).execute()
        assert "on_service_exception" not in logged(doer)
        assert "on_successful_execution" not in logged(doer)

    def test_exceptions_before_execution_propagate(self) -> None:
        def explode() -> None:
            raise ServiceException("not during initialization")

        with pytest.raises(ServiceException):
            Command(on_initialization=explode).execute()

    def test_rule_exceptions_propagate(self) -> None:
        rule = MagicMock()
        rule.validate.side_effect = ValueError("bad rule")
        with pytest.raises(ValueError, match="bad rule"):
            Command(rules=[rule]).execute()


class TestDefaults:
    def test_bare_command_succeeds(self) -> None:
        result = Command().execute()
        assert result == ExecutionResult.succeeded()

    def test_default_name_is_class_name(self) -> None:
        class InsertCustomerCommand(Command[None]):
            pass

        assert InsertCustomerCommand().name == "InsertCustomerCommand"

    def test_execute_hook_only(self) -> None:
        result = Command(on_execute=lambda: 5).execute()
        assert result.value == 5

    def test_hooks_bundle_with_override(self) -> None:
        hooks = CommandHooks(on_execute=lambda: "from bundle")
        assert Command(hooks=hooks).execute().value == "from bundle"
        assert Command(hooks=hooks, on_execute=lambda: "override").execute().value == "override"

    def test_unknown_hook_rejected(self) -> None:
        with pytest.raises(TypeError, match="on_teardown"):
            Command(on_teardown=lambda: None)

    def test_custom_success_result(self) -> None:
        result = Command(
            on_execute=lambda: 2,
            on_successful_execution=lambda value: ExecutionResult.succeeded(value * 10),
        ).execute()
        assert result.value == 20

    def test_none_from_error_and_rule_hooks_means_empty(self) -> None:
        result = Command(on_get_errors=lambda: None, on_get_rules=lambda: None).execute()
        assert result.success is True


class TestTerminalHookExclusivity:
    @pytest.mark.parametrize(
        ("scenario", "expected_terminal"),
        [
            ("success", "on_successful_execution"),
            ("rule_failure", "on_failed_execution"),
            ("supplied_errors", "on_failed_execution"),
            ("service_exception", "on_service_exception"),
        ],
    )
    def test_exactly_one_terminal_hook(
        self, doer: MagicMock, scenario: str, expected_terminal: str
    ) -> None:
        kwargs: dict[str, Any] = {}
        if scenario == "rule_failure":
            kwargs["rules"] = [AlwaysInvalidRule("no")]
        elif scenario == "supplied_errors":
            kwargs["errors"] = [ValidationResult(message="no")]
        elif scenario == "service_exception":
            doer.do_something.side_effect = ServiceException("no")

        logging_command(doer, **kwargs).execute()

        names = logged(doer)
        terminals = [n for n in names if n in ALL_HOOKS[4:]]
        assert terminals == [expected_terminal]
        assert names[0] == "on_initialization"
        assert names[-1] == expected_terminal


class TestSingleUse:
    def test_second_execute_rejected(self) -> None:
        command = Command(name="once")
        command.execute()
        with pytest.raises(CommandReusedError, match="once"):
            command.execute()

    def test_failed_command_also_single_use(self) -> None:
        command = Command(rules=[AlwaysInvalidRule("no")])
        assert command.execute().success is False
        with pytest.raises(CommandReusedError):
            command.execute()

    def test_sync_execute_rejects_awaitable(self) -> None:
        async def work() -> int:
            return 1

        with pytest.raises(TypeError, match="execute_async"):
            Command(on_execute=work).execute()


class TestInspection:
    def test_get_rules(self, doer: MagicMock) -> None:
        rules = [AlwaysValidRule(), AlwaysInvalidRule("FalseRule1 failed validation")]
        command = logging_command(doer, rules=rules)
        assert command.get_rules() == rules

    def test_get_errors_evaluates_rules(self, doer: MagicMock) -> None:
        rules = [AlwaysValidRule(), AlwaysInvalidRule("FalseRule1 failed validation")]
        command = logging_command(doer, rules=rules)

        errors = command.get_errors()

        assert errors == [ValidationResult(message="FalseRule1 failed validation")]
        doer.log.assert_has_calls([call("on_get_errors"), call("on_get_rules")])
        assert "on_initialization" not in logged(doer)
        assert "on_execute" not in logged(doer)

    def test_get_errors_prefers_supplied_errors(self) -> None:
        supplied = [ValidationResult(message="Y required")]
        command = Command(errors=supplied, rules=[AlwaysInvalidRule("ignored")])
        assert command.get_errors() == supplied

    def test_inspection_does_not_consume(self) -> None:
        command = Command(rules=[AlwaysValidRule()])
        command.get_errors()
        command.get_rules()
        assert command.execute().success is True
