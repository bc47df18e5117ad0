"""Create a construct definition from infrastructure source code."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from constructkit_cli.project import resolve_provider
from constructkit_cli.utils import handle_error, json_mode, write_or_print

console = Console()

_SUFFIX_LANGUAGES = {
    ".ts": "typescript",
    ".tsx": "typescript",
    ".js": "javascript",
    ".py": "python",
    ".go": "go",
}


def analyze(
    ctx: typer.Context,
    source_file: Annotated[Path, typer.Argument(help="Path to the construct source file", exists=True)],
    name: Annotated[str, typer.Option("--name", "-n", help="Construct name")],
    description: Annotated[str, typer.Option(help="Construct description")] = "",
    level: Annotated[str, typer.Option(help="Construct level (L0-L3)")] = "L1",
    provider: Annotated[str | None, typer.Option(help="Cloud provider (aws, gcp, azure, firebase, local)")] = None,
    language: Annotated[str | None, typer.Option(help="Source language (default: from file suffix)")] = None,
    category: Annotated[str | None, typer.Option(help="Category (default: inferred from name)")] = None,
    tag: Annotated[list[str] | None, typer.Option("--tag", "-t", help="Tag (repeatable)")] = None,
    output: Annotated[Path | None, typer.Option("--output", "-o", help="Write the definition YAML here")] = None,
) -> None:
    """Turn source code plus metadata into a construct definition."""
    try:
        from constructkit.analyzer import ConstructAnalyzer

        lang = language or _SUFFIX_LANGUAGES.get(source_file.suffix.lower(), source_file.suffix.lstrip("."))
        definition = ConstructAnalyzer().create_from_code(
            name=name,
            description=description,
            level=level.upper(),
            source_code=source_file.read_text(),
            language=lang,
            provider=resolve_provider(provider),
            category=category,
            tags=tag or None,
        )

        if json_mode(ctx):
            print(json.dumps({"construct": definition.model_dump(mode="json")}, indent=2))
            return

        if output:
            write_or_print(definition.to_yaml(), output, console)
        else:
            _print_summary(definition)
            print(definition.to_yaml())
    except typer.Exit:
        raise
    except Exception as e:
        handle_error(ctx, e)


def _print_summary(definition) -> None:
    console.print(
        Panel(
            f"Level: {definition.level}  |  Category: {definition.metadata.category}  |  "
            f"Tags: {', '.join(definition.metadata.tags) or '-'}",
            title=f"Construct: {definition.id}",
            border_style="cyan",
        )
    )
    if definition.inputs:
        table = Table(title="Inputs")
        table.add_column("Name", style="cyan")
        table.add_column("Type")
        table.add_column("Required")
        for key, prop in definition.inputs.items():
            table.add_row(key, prop.type, "yes" if prop.required else "")
        console.print(table)
    for sec in definition.security:
        color = "red" if sec.severity in ("critical", "high") else "yellow"
        console.print(f"[{color}][{sec.severity.upper()}][/{color}] {sec.type}: {sec.description}")
