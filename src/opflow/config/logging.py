"""structlog setup for command execution logs.

Every record emitted while a command runs carries ``command=<name>``,
including records from stdlib loggers in data proxies and rules, because
the pipeline binds the name into structlog's contextvars for the duration
of the run. Output goes to stderr as console lines or one JSON object
per line.
"""

from __future__ import annotations

import logging
import sys
from collections.abc import Iterator, Sequence
from contextlib import contextmanager

import structlog
from structlog.typing import EventDict, Processor, WrappedLogger

from opflow.domain.results import ValidationResult

PACKAGE_LOGGER = "opflow"
COMMAND_KEY = "command"


@contextmanager
def command_context(name: str) -> Iterator[None]:
    """Bind *name* as ``command`` on every record logged inside the block."""
    with structlog.contextvars.bound_contextvars(**{COMMAND_KEY: name}):
        yield


def render_validation_results(
    logger: WrappedLogger, method_name: str, event_dict: EventDict
) -> EventDict:
    """Replace ValidationResult sequences with ``message [fields]`` strings."""
    for key, value in event_dict.items():
        if (
            isinstance(value, Sequence)
            and not isinstance(value, str)
            and value
            and all(isinstance(item, ValidationResult) for item in value)
        ):
            event_dict[key] = [_describe(item) for item in value]
    return event_dict


def _describe(result: ValidationResult) -> str:
    if not result.fields:
        return result.message
    return f"{result.message} [{', '.join(result.fields)}]"


def configure_logging(
    *,
    verbose: bool = False,
    log_json: bool = False,
) -> None:
    """Route structlog and stdlib records through one stderr handler.

    Args:
        verbose: DEBUG for ``opflow.*`` (every pipeline step); otherwise
            only WARNING and above, which keeps service exceptions and
            plugin failures visible.
        log_json: Render JSON instead of console lines.
    """
    pre_chain: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        render_validation_results,
        structlog.processors.StackInfoRenderer(),
    ]

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            *pre_chain,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=pre_chain,
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                _renderer(log_json),
            ],
        )
    )

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(logging.WARNING)

    for name, level in _levels(verbose).items():
        logging.getLogger(name).setLevel(level)


def _renderer(log_json: bool) -> Processor:
    if log_json:
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())


def _levels(verbose: bool) -> dict[str, int]:
    return {
        PACKAGE_LOGGER: logging.DEBUG if verbose else logging.WARNING,
        "pluggy": logging.WARNING,
    }
