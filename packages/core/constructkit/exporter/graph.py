"""C4 graph semantics shared by every diagram format.

Each C4 level is built once into a ``DiagramGraph``; the JSON, PlantUML and
Mermaid renderers only decide how to print it. Technology and container-type
labels are resolved here so they cannot drift between formats.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field

from constructkit.spec import ConstructComposition, ConstructDefinition, ConstructInstance

log = logging.getLogger(__name__)

_RUNTIME_LABELS = {
    "nodejs": "Node.js",
    "python": "Python",
    "go": "Go",
}

# metadata tag -> technology label, checked in order when no runtime is set
_LANGUAGE_TAG_LABELS = (
    ("typescript", "TypeScript"),
    ("javascript", "JavaScript"),
    ("python", "Python"),
    ("go", "Go"),
)

DEFAULT_TECHNOLOGY = "Infrastructure"

_CONTAINER_TYPES = {
    "database": "Database",
    "messaging": "MessageBus",
    "storage": "FileSystem",
    "api": "WebApp",
}
DEFAULT_CONTAINER_TYPE = "Container"

ASYNC_CONNECTION_TYPES = frozenset({"async", "event", "message", "queue", "pubsub", "stream"})


@dataclass
class DiagramNode:
    id: str
    type: str  # "person", "system", "container", "component"
    label: str
    description: str = ""
    technology: str = ""
    container_type: str = ""
    external: bool = False


@dataclass
class DiagramEdge:
    id: str
    source: str
    target: str
    label: str = ""
    technology: str = ""
    asynchronous: bool = False


@dataclass
class DiagramGraph:
    level: str
    title: str
    description: str = ""
    nodes: list[DiagramNode] = field(default_factory=list)
    edges: list[DiagramEdge] = field(default_factory=list)

    def add_edge(self, edge: DiagramEdge) -> None:
        # Parallel connections between the same pair still need distinct ids
        taken = {e.id for e in self.edges}
        base, n = edge.id, 1
        while edge.id in taken:
            n += 1
            edge.id = f"{base}-{n}"
        self.edges.append(edge)

    def script_ids(self, sanitize: Callable[[str], str]) -> dict[str, str]:
        """Map node ids to identifiers a script dialect accepts, suffixing ``_2``, ``_3`` on collision."""
        ids: dict[str, str] = {}
        taken: set[str] = set()
        for node in self.nodes:
            base = candidate = sanitize(node.id)
            n = 1
            while candidate in taken:
                n += 1
                candidate = f"{base}_{n}"
            taken.add(candidate)
            ids[node.id] = candidate
        return ids


@dataclass(frozen=True)
class SubComponent:
    key: str
    label: str
    description: str
    technology: str


@dataclass(frozen=True)
class ComponentExpansion:
    """Extra component nodes for one construct category; edge endpoints are sub-component keys or ``core``."""

    parts: tuple[SubComponent, ...]
    edges: tuple[tuple[str, str], ...]


COMPONENT_EXPANSIONS: dict[str, ComponentExpansion] = {
    "api": ComponentExpansion(
        parts=(
            SubComponent("router", "API Router", "Request routing", "REST"),
            SubComponent("auth", "Auth Middleware", "Authentication and authorization", "JWT"),
        ),
        edges=(("router", "auth"), ("auth", "core")),
    ),
}


def technology(definition: ConstructDefinition) -> str:
    runtime = definition.implementation.runtime
    if runtime:
        return _RUNTIME_LABELS.get(runtime.lower(), runtime)
    for tag, label in _LANGUAGE_TAG_LABELS:
        if tag in definition.metadata.tags:
            return label
    return DEFAULT_TECHNOLOGY


def container_type(definition: ConstructDefinition) -> str:
    return _CONTAINER_TYPES.get(definition.metadata.category, DEFAULT_CONTAINER_TYPE)


def is_async(connection_type: str) -> bool:
    return connection_type.lower() in ASYNC_CONNECTION_TYPES


def build_graph(
    composition: ConstructComposition,
    level: str,
    catalog: Mapping[str, ConstructDefinition],
    title: str = "",
) -> DiagramGraph:
    graph = DiagramGraph(level=level, title=title or composition.name, description=composition.metadata.description)
    builder = _BUILDERS[level]
    builder(graph, composition, _resolved(composition, catalog))
    return graph


def _resolved(
    composition: ConstructComposition, catalog: Mapping[str, ConstructDefinition]
) -> list[tuple[ConstructInstance, ConstructDefinition]]:
    pairs = []
    for inst in composition.instances:
        definition = catalog.get(inst.construct_id)
        if definition is None:
            log.debug("Diagram skips %s: construct %s not in catalog", inst.instance_name, inst.construct_id)
            continue
        pairs.append((inst, definition))
    return pairs


def _build_context(graph: DiagramGraph, composition: ConstructComposition, resolved) -> None:
    graph.nodes.append(DiagramNode(id="user", type="person", label="User", description="System user"))
    graph.nodes.append(
        DiagramNode(id="system", type="system", label=composition.name, description=graph.description or "Main system")
    )
    graph.add_edge(
        DiagramEdge(id="user-to-system", source="user", target="system", label="Uses", technology="Web Browser")
    )

    providers = list(dict.fromkeys(p for _, definition in resolved for p in definition.providers))
    for provider in providers:
        node_id = f"provider-{provider}"
        graph.nodes.append(
            DiagramNode(
                id=node_id,
                type="system",
                label=f"{provider.upper()} Services",
                description=f"{provider} cloud services",
                external=True,
            )
        )
        graph.add_edge(
            DiagramEdge(
                id=f"system-to-{provider}", source="system", target=node_id, label="Uses", technology="HTTPS/API"
            )
        )


def _build_container(graph: DiagramGraph, composition: ConstructComposition, resolved) -> None:
    for inst, definition in resolved:
        graph.nodes.append(
            DiagramNode(
                id=inst.instance_name,
                type="container",
                label=inst.instance_name,
                description=definition.metadata.description,
                technology=technology(definition),
                container_type=container_type(definition),
            )
        )

    rendered = {inst.instance_name for inst, _ in resolved}
    for inst, _ in resolved:
        for conn in inst.connections:
            if conn.target_instance not in rendered:
                continue
            graph.add_edge(
                DiagramEdge(
                    id=f"{inst.instance_name}-to-{conn.target_instance}",
                    source=inst.instance_name,
                    target=conn.target_instance,
                    label=conn.type,
                    asynchronous=is_async(conn.type),
                )
            )


def _build_component(graph: DiagramGraph, composition: ConstructComposition, resolved) -> None:
    for inst, definition in resolved:
        name = inst.instance_name
        graph.nodes.append(
            DiagramNode(
                id=f"{name}-core",
                type="component",
                label=f"{name} Core",
                description="Core business logic",
                technology=technology(definition),
            )
        )

        expansion = COMPONENT_EXPANSIONS.get(definition.metadata.category)
        if expansion is None:
            continue
        for part in expansion.parts:
            graph.nodes.append(
                DiagramNode(
                    id=f"{name}-{part.key}",
                    type="component",
                    label=part.label,
                    description=part.description,
                    technology=part.technology,
                )
            )
        for src, tgt in expansion.edges:
            graph.add_edge(
                DiagramEdge(id=f"{name}-{src}-to-{tgt}", source=f"{name}-{src}", target=f"{name}-{tgt}", label="Uses")
            )


def _build_code(graph: DiagramGraph, composition: ConstructComposition, resolved) -> None:
    # Source-level diagrams need real code analysis; the code level is always empty.
    return None


_BUILDERS = {
    "context": _build_context,
    "container": _build_container,
    "component": _build_component,
    "code": _build_code,
}
