# src/shadergraph/contracts/events.py
"""Compile lifecycle events emitted by the compile scheduler.

Consumed by the host editor (status indicator, error banner) through
shadergraph.core.events.EventBus. Every event carries the emitting
scheduler's ``source`` name, so sessions sharing one bus can tell their
own compiles apart.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True, slots=True)
class CompileStarted:
    """A compile pass began for the given graph generation."""

    generation: int
    node_count: int
    edge_count: int
    source: str = ""


@dataclass(frozen=True, slots=True)
class CompileCompleted:
    """A compile pass resolved successfully."""

    generation: int
    compile_ms: float
    result: Any
    source: str = ""


@dataclass(frozen=True, slots=True)
class CompileFailed:
    """A compile pass was rejected.

    message is the user-visible text; error is the original exception.
    """

    generation: int
    message: str
    error: BaseException
    source: str = ""
