# src/shadergraph/core/logging.py
"""Structured logging configuration for shadergraph.

The graph operations log through ``structlog.get_logger(__name__)`` and
never configure anything themselves; a host editor or the CLI calls
``configure_logging`` once. Both structlog and stdlib records are rendered
by the same ProcessorFormatter chain, as JSON or for the console.

Graph events often carry id collections (removed nodes, pruned edges).
Those are capped at ``MAX_LOGGED_IDS`` entries so a bulk delete on a large
graph cannot produce an unbounded log line.
"""

import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Any

import structlog
from structlog.stdlib import ProcessorFormatter

MAX_LOGGED_IDS = 20


def _remove_internal_fields(
    logger: logging.Logger | None,
    method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    """Remove ProcessorFormatter bookkeeping fields from output.

    ProcessorFormatter always adds _record and _from_structlog when
    formatting, so a missing key indicates a broken integration.
    """
    del event_dict["_record"]
    del event_dict["_from_structlog"]
    return event_dict


def cap_id_collections(
    logger: logging.Logger | None,
    method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    """Truncate ``*_ids`` list/set/tuple fields and record the full count."""
    for key, value in list(event_dict.items()):
        if not key.endswith("_ids") or not isinstance(value, list | tuple | set | frozenset):
            continue
        ids = sorted(value) if isinstance(value, set | frozenset) else list(value)
        if len(ids) > MAX_LOGGED_IDS:
            event_dict[key] = ids[:MAX_LOGGED_IDS]
            event_dict[f"{key}_total"] = len(ids)
    return event_dict


def configure_logging(
    *,
    json_output: bool = False,
    level: str = "INFO",
) -> None:
    """Configure structlog and stdlib logging.

    Output goes to stderr; CLI commands write graph documents to stdout.

    Args:
        json_output: If True, output JSON. If False, human-readable.
        level: Log level (DEBUG, INFO, WARNING, ERROR).
    """
    log_level = getattr(logging, level.upper())

    shared_processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        cap_id_collections,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.StackInfoRenderer(),
    ]

    if json_output:
        final_processors: list[Any] = [
            _remove_internal_fields,
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    else:
        final_processors = [
            _remove_internal_fields,
            structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty()),
        ]

    structlog.configure(
        processors=[*shared_processors, ProcessorFormatter.wrap_for_formatter],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        # Tests reconfigure logging; cached loggers would go stale
        cache_logger_on_first_use=False,
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        ProcessorFormatter(
            processors=final_processors,
            foreign_pre_chain=shared_processors,
        )
    )

    root = logging.getLogger()
    root.handlers = []
    root.addHandler(handler)
    root.setLevel(log_level)


@contextmanager
def graph_log_context(graph_path: Path, command: str) -> Iterator[None]:
    """Bind the document path and command to every log line in the block."""
    with structlog.contextvars.bound_contextvars(graph_file=str(graph_path), command=command):
        yield


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Get a bound logger for a module.

    Args:
        name: Logger name (typically __name__).

    Returns:
        Bound structlog logger.
    """
    logger: structlog.stdlib.BoundLogger = structlog.get_logger(name)
    return logger
