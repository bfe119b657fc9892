"""Shared contracts: enums, errors, and events.

Leaf package: nothing here imports from shadergraph.core or
shadergraph.engine.
"""

from shadergraph.contracts.enums import (
    DATA_NODE_TYPES,
    MAGIC_OUTPUT_STMTS,
    SOURCE_NODE_TYPES,
    DataType,
    EdgeLink,
    NodeType,
    ShaderStage,
    is_data_node_type,
    is_source_node_type,
)
from shadergraph.contracts.errors import (
    ArityOverflowError,
    GraphDocumentError,
    GraphError,
    NodeNotFoundError,
    SpliceError,
)
from shadergraph.contracts.events import (
    CompileCompleted,
    CompileFailed,
    CompileStarted,
)

__all__ = [
    "DATA_NODE_TYPES",
    "MAGIC_OUTPUT_STMTS",
    "SOURCE_NODE_TYPES",
    "ArityOverflowError",
    "CompileCompleted",
    "CompileFailed",
    "CompileStarted",
    "DataType",
    "EdgeLink",
    "GraphDocumentError",
    "GraphError",
    "NodeNotFoundError",
    "NodeType",
    "ShaderStage",
    "SpliceError",
    "is_data_node_type",
    "is_source_node_type",
]
