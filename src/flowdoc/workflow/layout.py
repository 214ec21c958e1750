"""Deterministic layered placement for converted graphs."""

from __future__ import annotations

import logging
from typing import Any, Iterable

import networkx as nx

from flowdoc.settings import settings

logger = logging.getLogger(__name__)


def _layers(node_ids: list[str], edges: Iterable[tuple[str, str]]) -> list[list[str]]:
    graph = nx.DiGraph()
    graph.add_nodes_from(node_ids)
    graph.add_edges_from(
        (source, target) for source, target in edges if source in graph and target in graph
    )
    order = {node_id: index for index, node_id in enumerate(node_ids)}

    try:
        topo = list(nx.topological_sort(graph))
    except nx.NetworkXUnfeasible:
        logger.warning("graph contains a cycle, placing %d nodes in a single layer", len(node_ids))
        return [list(node_ids)]

    # Longest path from a root decides each node's column.
    depth: dict[str, int] = {}
    for node_id in topo:
        predecessors = list(graph.predecessors(node_id))
        depth[node_id] = max((depth[pred] + 1 for pred in predecessors), default=0)

    layers: list[list[str]] = [[] for _ in range(max(depth.values(), default=-1) + 1)]
    for node_id in sorted(depth, key=order.__getitem__):
        layers[depth[node_id]].append(node_id)
    return layers


def layout_positions(
    node_ids: list[str],
    edges: Iterable[tuple[str, str]],
    spacing_x: int | None = None,
    spacing_y: int | None = None,
) -> dict[str, dict[str, Any]]:
    """Return ``{node_id: {"x", "y"}}`` with one column per dependency depth."""
    spacing_x = settings.layout_spacing_x if spacing_x is None else spacing_x
    spacing_y = settings.layout_spacing_y if spacing_y is None else spacing_y

    positions: dict[str, dict[str, Any]] = {}
    for column, layer in enumerate(_layers(node_ids, edges)):
        for row, node_id in enumerate(layer):
            positions[node_id] = {"x": column * spacing_x, "y": row * spacing_y}
    return positions
