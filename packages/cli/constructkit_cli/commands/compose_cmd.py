"""Build a composition from a request file and validate it."""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer
import yaml
from rich.console import Console

from constructkit_cli.commands.validate import print_validation
from constructkit_cli.utils import handle_error, json_mode, load_catalog, print_json, write_or_print

console = Console()


def compose(
    ctx: typer.Context,
    request_file: Annotated[
        Path, typer.Argument(help="YAML file with 'name' and a list of 'instances'", exists=True)
    ],
    catalog: Annotated[Path | None, typer.Option("--catalog", help="Catalog directory")] = None,
    output: Annotated[Path | None, typer.Option("--output", "-o", help="Write the composition YAML here")] = None,
) -> None:
    """Compose construct instances into a validated composition."""
    try:
        from constructkit.composer import ConstructComposer

        request = yaml.safe_load(request_file.read_text()) or {}
        if not request.get("name"):
            raise ValueError(f"{request_file} has no 'name'")

        constructs = load_catalog(catalog)
        composer = ConstructComposer()
        composition = composer.compose(request["name"], request.get("instances") or [], constructs)
        result = composer.validate(composition, constructs)
    except typer.Exit:
        raise
    except Exception as e:
        handle_error(ctx, e)
        return

    if json_mode(ctx):
        print_json({"composition": composition.model_dump(mode="json"), "validation": result.model_dump()})
    else:
        print_validation(result, title=composition.id)
        write_or_print(composition.to_yaml(), output, console)

    if not result.valid:
        raise typer.Exit(1)
