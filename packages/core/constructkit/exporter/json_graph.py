"""Structured node/edge export, the shape graph editors consume directly."""

from __future__ import annotations

from typing import Any

from constructkit.exporter.graph import DiagramEdge, DiagramGraph, DiagramNode


def _node_data(node: DiagramNode) -> dict[str, Any]:
    data: dict[str, Any] = {"label": node.label, "description": node.description}
    if node.technology:
        data["technology"] = node.technology
    if node.container_type:
        data["container_type"] = node.container_type
    if node.type == "system":
        data["external"] = node.external
    return data


def _edge_data(edge: DiagramEdge) -> dict[str, Any]:
    data: dict[str, Any] = {"label": edge.label}
    if edge.technology:
        data["technology"] = edge.technology
    data["type"] = "async" if edge.asynchronous else "sync"
    return data


def render(graph: DiagramGraph) -> dict[str, Any]:
    return {
        "nodes": [{"id": n.id, "type": n.type, "data": _node_data(n)} for n in graph.nodes],
        "edges": [
            {"id": e.id, "type": "relationship", "source": e.source, "target": e.target, "data": _edge_data(e)}
            for e in graph.edges
        ],
    }
