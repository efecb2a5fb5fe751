"""Logging for modctl.

Every line goes to stderr; stdout carries task results and tool output.
Module loggers are plain ``logging`` loggers rendered by structlog, so
records from modctl, plugins and libraries share one format.

While a task runs, :func:`task_scope` and :func:`step_scope` bind the task
name (``op``) and the current step as context variables.  Console output
prefixes each line with them; JSON output carries them as keys, together
with any ``extra`` fields such as the ``tool`` that failed.
"""

from __future__ import annotations

import logging
import sys
from collections.abc import Iterator, MutableMapping
from contextlib import contextmanager
from typing import Any

import structlog


def _prefix_task(
    _logger: Any, _method: str, event_dict: MutableMapping[str, Any]
) -> MutableMapping[str, Any]:
    """Fold ``op`` and ``step`` into a ``[op: step]`` prefix on the event."""
    op = event_dict.pop("op", None)
    step = event_dict.pop("step", None)
    if op:
        where = f"{op}: {step}" if step else op
        event_dict["event"] = f"[{where}] {event_dict.get('event', '')}"
    return event_dict


def configure_logging(*, verbose: bool = False, log_json: bool = False) -> None:
    """Install the single stderr handler.

    Args:
        verbose: DEBUG for modctl loggers; otherwise WARNING and above.
        log_json: One JSON object per line, with an ISO timestamp.
    """
    pre_chain: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.ExtraAdder(),
    ]
    if log_json:
        pre_chain.append(structlog.processors.TimeStamper(fmt="iso", utc=True))
        rendering: list[structlog.types.Processor] = [structlog.processors.JSONRenderer()]
    else:
        rendering = [
            _prefix_task,
            structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty()),
        ]

    # Plugins may log through structlog directly; route them to the same handler.
    structlog.configure(
        processors=[*pre_chain, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=pre_chain,
            processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, *rendering],
        )
    )

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(logging.WARNING)
    logging.getLogger("modctl").setLevel(logging.DEBUG if verbose else logging.WARNING)


@contextmanager
def task_scope(op: str) -> Iterator[None]:
    """Tag log lines emitted while task *op* runs."""
    with structlog.contextvars.bound_contextvars(op=op):
        yield


@contextmanager
def step_scope(step: str) -> Iterator[None]:
    """Tag log lines emitted while *step* of the current task runs."""
    with structlog.contextvars.bound_contextvars(step=step):
        yield
