"""Legacy graph documents and their conversion to workflows."""

from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .layout import layout_positions
from .templates import NodeTemplate
from .types import CURRENT_WORKFLOW_VERSION

RESERVED_NODE_KEYS = frozenset({"id", "type", "is_intermediate", "use_cache"})


class GraphNode(BaseModel):
    """An execution-graph node; every non-reserved key is a field value."""

    model_config = ConfigDict(extra="allow")

    id: str = Field(..., min_length=1)
    type: str = Field(..., min_length=1)
    is_intermediate: Optional[bool] = None
    use_cache: Optional[bool] = None

    def field_values(self) -> dict[str, Any]:
        return dict(self.model_extra or {})


class EdgeConnection(BaseModel):
    node_id: str = Field(..., min_length=1)
    field: str = Field(..., min_length=1)


class GraphEdge(BaseModel):
    source: EdgeConnection
    destination: EdgeConnection


class GraphDocument(BaseModel):
    id: Optional[str] = None
    nodes: List[GraphNode] = Field(default_factory=list)
    edges: List[GraphEdge] = Field(default_factory=list)

    @field_validator("nodes", mode="before")
    @classmethod
    def nodes_from_mapping(cls, value: Any) -> Any:
        if value is None:
            return []
        if isinstance(value, Mapping):
            return [
                {"id": node_id, **node} if isinstance(node, Mapping) else node
                for node_id, node in value.items()
            ]
        return value

    @field_validator("edges", mode="before")
    @classmethod
    def edges_default(cls, value: Any) -> Any:
        return [] if value is None else value

    @classmethod
    def from_payload(cls, payload: Any) -> "GraphDocument":
        if payload is None:
            return cls()
        return cls.model_validate(payload)


def _is_default(value: Any, field_name: str, template: NodeTemplate | None) -> bool:
    if value is None:
        return True
    if template is None:
        return False
    field = template.inputs.get(field_name)
    return field is not None and field.default is not None and field.default == value


def graph_to_workflow(
    graph: GraphDocument | Mapping[str, Any] | None,
    do_layout: bool,
    templates: Mapping[str, NodeTemplate] | None = None,
) -> Dict[str, Any]:
    """Convert a graph into an untyped current-version workflow document."""
    if not isinstance(graph, GraphDocument):
        graph = GraphDocument.from_payload(graph)
    templates = templates or {}

    nodes: list[dict[str, Any]] = []
    for graph_node in graph.nodes:
        template = templates.get(graph_node.type)
        node: dict[str, Any] = {
            "id": graph_node.id,
            "type": graph_node.type,
            "position": {"x": 0, "y": 0},
            "inputs": {
                field_name: value
                for field_name, value in graph_node.field_values().items()
                if not _is_default(value, field_name, template)
            },
        }
        if template is not None and template.version:
            node["version"] = template.version
        if graph_node.is_intermediate is not None:
            node["is_intermediate"] = graph_node.is_intermediate
        if graph_node.use_cache is not None:
            node["use_cache"] = graph_node.use_cache
        nodes.append(node)

    edges = [
        {
            "id": (
                f"{edge.source.node_id}.{edge.source.field}"
                f"->{edge.destination.node_id}.{edge.destination.field}"
            ),
            "source": edge.source.node_id,
            "source_field": edge.source.field,
            "target": edge.destination.node_id,
            "target_field": edge.destination.field,
        }
        for edge in graph.edges
    ]

    if do_layout:
        positions = layout_positions(
            [node["id"] for node in nodes],
            [(edge["source"], edge["target"]) for edge in edges],
        )
        for node in nodes:
            node["position"] = positions[node["id"]]

    return {
        "version": CURRENT_WORKFLOW_VERSION,
        "name": "",
        "author": "",
        "description": "",
        "notes": "",
        "tags": "",
        "contact": "",
        "category": "user",
        "form": {"elements": []},
        "nodes": nodes,
        "edges": edges,
    }
