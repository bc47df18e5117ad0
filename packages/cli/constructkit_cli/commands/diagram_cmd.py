from __future__ import annotations

import json
from pathlib import Path
from typing import Annotated

import typer
from constructkit import ConstructComposition
from rich.console import Console

from constructkit_cli.utils import handle_error, json_mode, load_catalog, print_json, write_or_print

console = Console()


def diagram(
    ctx: typer.Context,
    composition_file: Annotated[Path, typer.Argument(help="Composition YAML/JSON file", exists=True)],
    level: Annotated[str, typer.Option("--level", "-l", help="C4 level (context, container, component, code)")] = (
        "container"
    ),
    fmt: Annotated[str, typer.Option("--format", "-f", help="Output format: json, plantuml, mermaid")] = "mermaid",
    catalog: Annotated[Path | None, typer.Option("--catalog", help="Catalog directory")] = None,
    output: Annotated[Path | None, typer.Option("--output", "-o", help="Write the diagram here")] = None,
) -> None:
    """Render a composition as a C4 diagram."""
    try:
        from constructkit.exporter import DiagramGenerator

        composition = ConstructComposition.from_file(composition_file)
        result = DiagramGenerator().generate(composition, level, fmt, catalog=load_catalog(catalog))
    except typer.Exit:
        raise
    except Exception as e:
        handle_error(ctx, e)
        return

    if json_mode(ctx):
        print_json({"diagram": result.model_dump()})
        return

    content = result.content if isinstance(result.content, str) else json.dumps(result.content, indent=2)
    write_or_print(content, output, console)
