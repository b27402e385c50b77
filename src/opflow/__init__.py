"""opflow — validate-then-execute pipeline for business operations."""

from opflow.domain.errors import CommandCancelledError, CommandReusedError, ServiceException
from opflow.domain.outcome import Fail, Ok
from opflow.domain.required import Required, validate_required
from opflow.domain.results import ExecutionResult, ValidationResult
from opflow.domain.rules import (
    AlwaysInvalidRule,
    AlwaysValidRule,
    PredicateRule,
    Rule,
    RuleBase,
    RuleOutcome,
    ValueRequiredRule,
    create_value_required_rule,
    is_missing_value,
)
from opflow.services.base import BusinessService
from opflow.services.command import Command, CommandHooks

__version__ = "0.1.0"

__all__ = [
    "AlwaysInvalidRule",
    "AlwaysValidRule",
    "BusinessService",
    "Command",
    "CommandCancelledError",
    "CommandHooks",
    "CommandReusedError",
    "ExecutionResult",
    "Fail",
    "Ok",
    "PredicateRule",
    "Required",
    "Rule",
    "RuleBase",
    "RuleOutcome",
    "ServiceException",
    "ValidationResult",
    "ValueRequiredRule",
    "__version__",
    "create_value_required_rule",
    "is_missing_value",
    "validate_required",
]
