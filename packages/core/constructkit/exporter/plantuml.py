"""C4-PlantUML exporter."""

from __future__ import annotations

import re

from constructkit.exporter.graph import DiagramEdge, DiagramGraph, DiagramNode

_C4_STDLIB = "https://raw.githubusercontent.com/plantuml-stdlib/C4-PlantUML/master"

# Each C4-PlantUML file pulls in the levels above it
_INCLUDES = {
    "context": "C4_Context.puml",
    "container": "C4_Container.puml",
    "component": "C4_Component.puml",
    "code": "C4_Component.puml",
}

_CONTAINER_MACROS = {
    "Database": "ContainerDb",
    "MessageBus": "ContainerQueue",
}


def _safe_id(raw: str) -> str:
    return re.sub(r"[^a-zA-Z0-9_]", "_", raw)


def _quote(text: str) -> str:
    return '"' + text.replace('"', "'") + '"'


def _node_statement(node: DiagramNode, nid: str) -> str:
    if node.type == "person":
        return f"Person({nid}, {_quote(node.label)}, {_quote(node.description)})"
    if node.type == "system":
        macro = "System_Ext" if node.external else "System"
        return f"{macro}({nid}, {_quote(node.label)}, {_quote(node.description)})"
    if node.type == "container":
        macro = _CONTAINER_MACROS.get(node.container_type, "Container")
        return f"{macro}({nid}, {_quote(node.label)}, {_quote(node.technology)}, {_quote(node.description)})"
    return f"Component({nid}, {_quote(node.label)}, {_quote(node.technology)}, {_quote(node.description)})"


def _rel_statement(edge: DiagramEdge, ids: dict[str, str]) -> str:
    args = [ids[edge.source], ids[edge.target], _quote(edge.label)]
    if edge.technology:
        args.append(_quote(edge.technology))
    if edge.asynchronous:
        args.append('$tags="async"')
    return f"Rel({', '.join(args)})"


def render(graph: DiagramGraph) -> str:
    lines: list[str] = [
        "@startuml",
        f"!include {_C4_STDLIB}/{_INCLUDES[graph.level]}",
        "",
        f"title {graph.title}",
        "",
    ]

    if any(e.asynchronous for e in graph.edges):
        lines.append('AddRelTag("async", $lineStyle = DashedLine())')
        lines.append("")

    ids = graph.script_ids(_safe_id)
    lines.extend(_node_statement(n, ids[n.id]) for n in graph.nodes)
    lines.extend(_rel_statement(e, ids) for e in graph.edges)

    lines.append("@enduml")
    return "\n".join(lines)
