# src/shadergraph/core/graph/serialization.py
"""JSON graph documents.

Stored and imported graphs arrive as camelCase JSON (``{"nodes": [...],
"edges": [...]}``, optionally wrapped as ``{"graph": {...}, ...}`` next to
scene config). They are external data, so they are validated with pydantic
at this boundary and converted to the frozen domain types. Nothing past
this module sees unvalidated documents.
"""

from __future__ import annotations

import json
from pathlib import Path
from types import MappingProxyType
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from shadergraph.contracts.enums import ShaderStage
from shadergraph.contracts.errors import GraphDocumentError
from shadergraph.core.graph.models import Graph, GraphEdge, GraphNode, NodeInput, NodeOutput, Position


class _Document(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)


class PositionDocument(_Document):
    x: float
    y: float


class InputDocument(_Document):
    id: str
    display_name: str = Field(alias="displayName")
    category: str | None = None
    data_type: str | None = Field(default=None, alias="dataType")
    bakeable: bool = False
    baked: bool = False
    property: str | None = None
    accepts: list[str] = Field(default_factory=list)


class OutputDocument(_Document):
    id: str
    name: str
    data_type: str | None = Field(default=None, alias="dataType")


class NodeDocument(_Document):
    id: str
    name: str
    type: str
    position: PositionDocument
    inputs: list[InputDocument] = Field(default_factory=list)
    outputs: list[OutputDocument] = Field(default_factory=list)
    stage: ShaderStage | None = None
    bi_stage: bool = Field(default=False, alias="biStage")
    engine: bool = False
    value: Any = None
    source: str | None = None
    config: dict[str, Any] = Field(default_factory=dict)
    group_id: str | None = Field(default=None, alias="groupId")


class EdgeDocument(_Document):
    id: str
    from_node: str = Field(alias="from")
    to_node: str = Field(alias="to")
    output: str
    input: str
    type: str | None = None


class GraphDocument(_Document):
    nodes: list[NodeDocument] = Field(default_factory=list)
    edges: list[EdgeDocument] = Field(default_factory=list)


def _node_from_document(doc: NodeDocument) -> GraphNode:
    return GraphNode(
        id=doc.id,
        name=doc.name,
        type=doc.type,
        position=Position(doc.position.x, doc.position.y),
        inputs=tuple(
            NodeInput(
                id=i.id,
                display_name=i.display_name,
                category=i.category,
                data_type=i.data_type,
                bakeable=i.bakeable,
                baked=i.baked,
                property=i.property,
                accepts=tuple(i.accepts),
            )
            for i in doc.inputs
        ),
        outputs=tuple(NodeOutput(id=o.id, name=o.name, data_type=o.data_type) for o in doc.outputs),
        stage=doc.stage,
        bi_stage=doc.bi_stage,
        engine=doc.engine,
        value=doc.value,
        source=doc.source,
        config=MappingProxyType(doc.config),
        group_id=doc.group_id,
    )


def graph_from_dict(data: dict[str, Any]) -> Graph:
    """Validate a graph document and build the domain Graph.

    Raises:
        GraphDocumentError: If the document does not validate
    """
    payload = data.get("graph", data) if isinstance(data, dict) else data
    try:
        document = GraphDocument.model_validate(payload)
    except ValidationError as e:
        raise GraphDocumentError(f"Invalid graph document: {e.error_count()} error(s)", validation_error=e) from e
    return Graph(
        nodes=tuple(_node_from_document(node) for node in document.nodes),
        edges=tuple(
            GraphEdge(id=e.id, from_node=e.from_node, to_node=e.to_node, output=e.output, input=e.input, type=e.type)
            for e in document.edges
        ),
    )


def _plain(value: Any) -> Any:
    if isinstance(value, MappingProxyType | dict):
        return {k: _plain(v) for k, v in value.items()}
    if isinstance(value, list | tuple):
        return [_plain(v) for v in value]
    return value


def _node_to_dict(node: GraphNode) -> dict[str, Any]:
    data: dict[str, Any] = {
        "id": node.id,
        "name": node.name,
        "type": node.type,
        "position": {"x": node.position.x, "y": node.position.y},
        "inputs": [
            {
                "id": i.id,
                "displayName": i.display_name,
                "category": i.category,
                "dataType": i.data_type,
                "bakeable": i.bakeable,
                "baked": i.baked,
                "property": i.property,
                "accepts": list(i.accepts),
            }
            for i in node.inputs
        ],
        "outputs": [{"id": o.id, "name": o.name, "dataType": o.data_type} for o in node.outputs],
        "stage": node.stage.value if node.stage is not None else None,
        "biStage": node.bi_stage,
        "engine": node.engine,
        "config": _plain(node.config),
    }
    if node.is_data:
        data["value"] = _plain(node.value)
    if node.source is not None:
        data["source"] = node.source
    if node.group_id is not None:
        data["groupId"] = node.group_id
    return data


def graph_to_dict(graph: Graph) -> dict[str, Any]:
    """Serialize a Graph to a camelCase JSON-ready document."""
    return {
        "nodes": [_node_to_dict(node) for node in graph.nodes],
        "edges": [
            {"id": e.id, "from": e.from_node, "to": e.to_node, "output": e.output, "input": e.input, "type": e.type}
            for e in graph.edges
        ],
    }


def load_graph(path: Path) -> Graph:
    """Read a graph document from disk.

    Raises:
        FileNotFoundError: If the file does not exist
        GraphDocumentError: If the file is not valid JSON or not a graph document
    """
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise GraphDocumentError(f"Invalid JSON in {path}: {e}") from e
    if not isinstance(data, dict):
        raise GraphDocumentError(f"Expected a JSON object in {path}, got {type(data).__name__}")
    return graph_from_dict(data)


def dump_graph(graph: Graph, path: Path) -> None:
    path.write_text(json.dumps(graph_to_dict(graph), indent=2) + "\n", encoding="utf-8")
