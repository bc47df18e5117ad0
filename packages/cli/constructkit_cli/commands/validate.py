from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer
from constructkit import ConstructComposition, ValidationResult
from rich.console import Console
from rich.text import Text

from constructkit_cli.utils import handle_error, json_mode, load_catalog, print_json

console = Console()


def validate(
    ctx: typer.Context,
    composition_file: Annotated[Path, typer.Argument(help="Path to composition YAML/JSON file", exists=True)],
    catalog: Annotated[Path | None, typer.Option("--catalog", help="Catalog directory")] = None,
) -> None:
    """Validate a composition against the construct catalog."""
    try:
        from constructkit.composer import ConstructComposer

        composition = ConstructComposition.from_file(composition_file)
        result = ConstructComposer().validate(composition, load_catalog(catalog))
    except typer.Exit:
        raise
    except Exception as e:
        handle_error(ctx, e)
        return

    if json_mode(ctx):
        print_json({"validation": result.model_dump()})
    else:
        print_validation(result, title=composition.name)

    if not result.valid:
        raise typer.Exit(1)


def print_validation(result: ValidationResult, title: str = "") -> None:
    status = Text("[VALID]", style="green") if result.valid else Text("[INVALID]", style="red")
    header = Text()
    header.append_text(status)
    if title:
        header.append(f" {title}")
    console.print(header)

    for err in result.errors:
        console.print(f"  [red]error[/red] {err.path}: {err.message}")
    for warning in result.warnings:
        console.print(f"  [yellow]warning[/yellow] {warning}")
    for suggestion in result.suggestions:
        console.print(f"  [dim]suggestion: {suggestion}[/dim]")
