"""Structured logging via structlog.

Configures structlog once at CLI startup. Modules keep using
``logging.getLogger(__name__)``; their records reach a single stderr
handler whose `structlog.stdlib.ProcessorFormatter` runs the same processor
chain as structlog's own loggers, so stdout carries only command output
(summaries, JSON responses) and can be piped.

Renderer selection:
  debug=True:  `ConsoleRenderer` with colours for interactive use.
  debug=False: `JSONRenderer` for CI logs.

ContextVar injection:
  The `command` field (the CLI sub-command being run) is injected into every
  line from `_command_var`, so CI logs from several devkit steps can be told
  apart.
"""

from __future__ import annotations

import logging
import sys
from contextvars import ContextVar

import structlog

_command_var: ContextVar[str] = ContextVar("command", default="")


def set_command(name: str) -> None:
    """Record the CLI sub-command for the rest of this process."""
    _command_var.set(name)


def get_command() -> str:
    """Return the current CLI sub-command, or empty string if not set."""
    return _command_var.get()


def _inject_context_vars(
    logger: logging.Logger,
    method: str,
    event_dict: dict,
) -> dict:
    """Structlog processor: inject the current command from its ContextVar."""
    command = get_command()
    if command:
        event_dict["command"] = command
    return event_dict


def configure_structlog(debug: bool = False) -> None:
    """Configure structlog and the stdlib root logger for the process lifetime.

    Call once from `main()` before any command runs. Calling it again
    replaces the handler in place.
    """
    level = logging.DEBUG if debug else logging.INFO
    shared_processors: list = [
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        _inject_context_vars,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    if debug:
        renderer = structlog.dev.ConsoleRenderer()
    else:
        renderer = structlog.processors.JSONRenderer()

    structlog.configure(
        processors=shared_processors + [structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=False,
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=shared_processors,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
    ))

    root = logging.getLogger()
    for existing in list(root.handlers):
        root.removeHandler(existing)
    root.addHandler(handler)
    root.setLevel(level)
