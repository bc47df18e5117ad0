"""Render compositions as C4 diagrams in JSON, PlantUML or Mermaid."""

from __future__ import annotations

from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from constructkit.errors import UnsupportedFormatError
from constructkit.spec import C4Diagram, DiagramMetadata

if TYPE_CHECKING:
    from constructkit.spec import ConstructComposition, ConstructDefinition

LEVELS = ("context", "container", "component", "code")
FORMATS = ("json", "plantuml", "mermaid")


def _renderer(fmt: str):
    if fmt == "json":
        from constructkit.exporter.json_graph import render

        return render
    if fmt == "plantuml":
        from constructkit.exporter.plantuml import render

        return render
    from constructkit.exporter.mermaid import render

    return render


class DiagramGenerator:
    """Builds one C4 graph per level and prints it in the requested format."""

    def generate(
        self,
        composition: ConstructComposition,
        level: str,
        fmt: str = "json",
        catalog: Mapping[str, ConstructDefinition] | None = None,
    ) -> C4Diagram:
        from constructkit.exporter.graph import build_graph

        level = level.lower().strip()
        fmt = fmt.lower().strip()
        if level not in LEVELS:
            raise UnsupportedFormatError(f"Unknown C4 level: {level!r}. Supported: {', '.join(LEVELS)}")
        if fmt not in FORMATS:
            raise UnsupportedFormatError(f"Unknown diagram format: {fmt!r}. Supported: {', '.join(FORMATS)}")

        title = f"{composition.name} - {level.capitalize()} Diagram"
        graph = build_graph(composition, level, catalog or {}, title=title)
        content: str | dict[str, Any] = _renderer(fmt)(graph)

        return C4Diagram(
            level=level,
            format=fmt,
            content=content,
            metadata=DiagramMetadata(
                title=title,
                description=composition.metadata.description,
                author="constructkit diagram generator",
                version="1.0.0",
            ),
        )
