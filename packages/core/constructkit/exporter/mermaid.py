"""Mermaid flowchart exporter for C4 graphs."""

from __future__ import annotations

import re

from constructkit.exporter.graph import DiagramGraph, DiagramNode

_DIRECTIONS = {
    "context": "TB",
    "container": "TB",
    "component": "LR",
    "code": "TB",
}

# C4 palette, one class per node kind
_CLASSDEFS = {
    "person": "fill:#08427b,stroke:#073b6f,color:#fff",
    "system": "fill:#1168bd,stroke:#0e5ba6,color:#fff",
    "external": "fill:#999999,stroke:#8a8a8a,color:#fff",
    "container": "fill:#438dd5,stroke:#3c7fc7,color:#fff",
    "webapp": "fill:#438dd5,stroke:#2e6295,color:#fff",
    "database": "fill:#23648c,stroke:#1b4f6f,color:#fff",
    "queue": "fill:#2f7fa8,stroke:#25658a,color:#fff",
    "storage": "fill:#3a6f9a,stroke:#2d5678,color:#fff",
    "component": "fill:#85bbea,stroke:#78a8d8,color:#000",
}

_CONTAINER_CLASSES = {
    "WebApp": "webapp",
    "Database": "database",
    "MessageBus": "queue",
    "FileSystem": "storage",
}


def _safe_id(raw: str) -> str:
    sid = re.sub(r"[^a-zA-Z0-9_]", "_", raw)
    # "end" is a flowchart keyword
    return f"{sid}_" if sid.lower() == "end" else sid


def _text(raw: str) -> str:
    return raw.replace('"', "#quot;")


def _node_class(node: DiagramNode) -> str:
    if node.type == "system":
        return "external" if node.external else "system"
    if node.type == "container":
        return _CONTAINER_CLASSES.get(node.container_type, "container")
    return node.type


def _node_line(node: DiagramNode, nid: str) -> str:
    parts = [node.label]
    if node.type in ("container", "component") and node.technology:
        parts.append(node.technology)
    if node.type != "component" and node.description:
        parts.append(node.description)
    label = "<br/>".join(_text(p) for p in parts)
    return f'    {nid}["{label}"]'


def render(graph: DiagramGraph) -> str:
    ids = graph.script_ids(_safe_id)
    lines: list[str] = [f"graph {_DIRECTIONS[graph.level]}"]

    lines.extend(_node_line(n, ids[n.id]) for n in graph.nodes)

    for e in graph.edges:
        arrow = "-.->" if e.asynchronous else "-->"
        label = "<br/>".join(_text(p) for p in (e.label, e.technology) if p)
        link = f"{arrow}|{label}|" if label else arrow
        lines.append(f"    {ids[e.source]} {link} {ids[e.target]}")

    # Styling pass
    used = [_node_class(n) for n in graph.nodes]
    for cls in _CLASSDEFS:
        if cls in used:
            lines.append(f"    classDef {cls} {_CLASSDEFS[cls]}")
    for node, cls in zip(graph.nodes, used):
        lines.append(f"    class {ids[node.id]} {cls}")

    return "\n".join(lines)
