# src/shadergraph/engine/scheduler.py
"""Compile scheduling: a capacity-1 work queue with request coalescing.

Two flags drive it. ``needs_compile`` is raised by every mutation that
affects compiled output; ``compiling`` is held while the single in-flight
compile runs. ``maybe_compile`` starts a pass only when the first is set
and the second is not. Mutations arriving mid-compile are never lost and
never cancel the running pass: they raise ``needs_compile`` again, and the
next pass starts as soon as the current one settles.

A generation counter, bumped by every ``mark_dirty``, tags each pass with
the mutation it compiled. ``needs_compile`` is cleared when a pass starts,
so a failed pass is not retried unless a newer mutation arrived.

Edits that arrive as bursts (typing into a source node, toggling baked
inputs) go through ``request_compile``, which marks dirty only once the
burst has been quiet for a delay. Any immediate ``mark_dirty`` supersedes
a pending delayed request.
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any

import structlog

from shadergraph.contracts.events import CompileCompleted, CompileFailed, CompileStarted
from shadergraph.core.events import EventBusProtocol, NullEventBus
from shadergraph.core.graph.models import Graph, GraphNode
from shadergraph.core.identifiers import make_id

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class CompileOutput:
    """What the external compiler hands back.

    ``graph`` is the compiled copy of the input graph, with node inputs
    refreshed by parsing; None when the compiler does not report one.
    """

    fragment_result: str
    vertex_result: str
    compile_result: Any = None
    data_nodes: Mapping[str, GraphNode] = field(default_factory=lambda: MappingProxyType({}))
    data_inputs: Mapping[str, Any] = field(default_factory=lambda: MappingProxyType({}))
    active_node_ids: frozenset[str] = frozenset()
    graph: Graph | None = None


CompileSource = Callable[[Graph, Any, Any], Awaitable[CompileOutput]]


@dataclass(frozen=True)
class CompileResult:
    """A finished compile: the compiler output plus bookkeeping."""

    graph: Graph
    output: CompileOutput
    compile_ms: float

    @property
    def compiled_graph(self) -> Graph:
        return self.output.graph if self.output.graph is not None else self.graph


async def compile_graph_async(graph: Graph, engine: Any, ctx: Any, compile_source: CompileSource) -> CompileResult:
    """Run the external compiler once and time it."""
    start = time.perf_counter()
    output = await compile_source(graph, engine, ctx)
    compile_ms = (time.perf_counter() - start) * 1000
    return CompileResult(graph=graph, output=output, compile_ms=compile_ms)


class CompileScheduler:
    """Coalescing compile trigger.

    Args:
        compile_source: External compiler coroutine ``(graph, engine, ctx)``
        graph_provider: Returns the current canonical graph; read when a
            pass starts, so every pass compiles the latest snapshot
        engine: Opaque engine handle passed through to the compiler
        ctx: Opaque engine context passed through to the compiler
        event_bus: Receives CompileStarted/Completed/Failed
        name: Tags every emitted event; a fresh id when omitted
    """

    def __init__(
        self,
        compile_source: CompileSource,
        graph_provider: Callable[[], Graph],
        *,
        engine: Any = None,
        ctx: Any = None,
        event_bus: EventBusProtocol | None = None,
        name: str | None = None,
    ) -> None:
        self._name = name or make_id()
        self._compile_source = compile_source
        self._graph_provider = graph_provider
        self._engine = engine
        self._ctx = ctx
        self._events: EventBusProtocol = event_bus or NullEventBus()

        self._needs_compile = False
        self._compiling = False
        self._generation = 0
        self._task: asyncio.Task[CompileResult | None] | None = None
        self._last_result: CompileResult | None = None
        self._last_error: str | None = None
        self._pending_request: asyncio.TimerHandle | None = None

    @property
    def name(self) -> str:
        return self._name

    @property
    def needs_compile(self) -> bool:
        return self._needs_compile

    @property
    def compiling(self) -> bool:
        return self._compiling

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def last_result(self) -> CompileResult | None:
        return self._last_result

    @property
    def last_error(self) -> str | None:
        return self._last_error

    @property
    def request_pending(self) -> bool:
        return self._pending_request is not None

    def mark_dirty(self, reason: str) -> None:
        self.cancel_pending_request()
        self._needs_compile = True
        self._generation += 1
        logger.debug("compile_requested", reason=reason, generation=self._generation, compiling=self._compiling)

    def request_compile(self, reason: str, delay_s: float) -> None:
        """Mark dirty and start a pass once ``delay_s`` passes without another request.

        Outside a running event loop, or with no delay, this is ``mark_dirty``.
        """
        if delay_s <= 0:
            self.mark_dirty(reason)
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            self.mark_dirty(reason)
            return
        self.cancel_pending_request()
        self._pending_request = loop.call_later(delay_s, self._fire_request, reason)

    def cancel_pending_request(self) -> None:
        if self._pending_request is not None:
            self._pending_request.cancel()
            self._pending_request = None

    def _fire_request(self, reason: str) -> None:
        self._pending_request = None
        self.mark_dirty(reason)
        self.maybe_compile()

    def maybe_compile(self) -> asyncio.Task[CompileResult | None] | None:
        """Start a compile pass if one is needed and none is running.

        Must be called from a running event loop.

        Returns:
            The started task, or None when nothing was started
        """
        if not self._needs_compile or self._compiling:
            return None
        graph = self._graph_provider()
        generation = self._generation
        self._needs_compile = False
        self._compiling = True
        self._task = asyncio.get_running_loop().create_task(self._run(graph, generation))
        return self._task

    async def wait_for_compile(self) -> CompileResult | None:
        """Wait until no pass is running or pending, and return the last result."""
        while self._task is not None:
            await self._task
        return self._last_result

    async def _run(self, graph: Graph, generation: int) -> CompileResult | None:
        logger.info("compile_started", generation=generation, node_count=graph.node_count, edge_count=graph.edge_count)
        try:
            self._events.emit(
                CompileStarted(generation=generation, node_count=graph.node_count, edge_count=graph.edge_count, source=self._name)
            )
            try:
                result = await compile_graph_async(graph, self._engine, self._ctx, self._compile_source)
            except Exception as e:
                # Surfaced to the user; not retried
                message = str(e) or type(e).__name__
                self._last_error = message
                logger.error("compile_failed", generation=generation, error=message, error_type=type(e).__name__)
                self._events.emit(CompileFailed(generation=generation, message=message, error=e, source=self._name))
                return None

            self._last_result = result
            self._last_error = None
            logger.info("compile_completed", generation=generation, compile_ms=round(result.compile_ms, 2))
            self._events.emit(CompileCompleted(generation=generation, compile_ms=result.compile_ms, result=result, source=self._name))
            return result
        finally:
            self._compiling = False
            self._task = None
            if self._needs_compile:
                logger.debug("compile_coalesced", generation=self._generation, previous_generation=generation)
                self.maybe_compile()
