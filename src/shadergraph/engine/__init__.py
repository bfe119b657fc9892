"""Editor runtime: compile scheduling and the editor session facade."""

from shadergraph.engine.scheduler import CompileOutput, CompileResult, CompileScheduler, CompileSource, compile_graph_async
from shadergraph.engine.session import EditorSession

__all__ = [
    "CompileOutput",
    "CompileResult",
    "CompileScheduler",
    "CompileSource",
    "EditorSession",
    "compile_graph_async",
]
