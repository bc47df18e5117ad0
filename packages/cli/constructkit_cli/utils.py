from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import typer
from constructkit import ConstructKitError
from constructkit.catalog import ConstructCatalog
from rich.console import Console

from constructkit_cli.project import resolve_catalog_path

_err_console = Console(stderr=True)


def ctx_obj(ctx: typer.Context) -> dict[str, Any]:
    # Resolve ctx.obj through parent chain when invoked via sub-app
    obj = ctx.obj or (ctx.parent.obj if ctx.parent else None)
    return obj or {}


def json_mode(ctx: typer.Context) -> bool:
    return bool(ctx_obj(ctx).get("json"))


def print_json(payload: dict[str, Any]) -> None:
    print(json.dumps(payload, indent=2, default=str))


def handle_error(ctx: typer.Context, e: Exception) -> None:
    """Print a clean error message and exit 1."""
    import yaml

    obj = ctx_obj(ctx)
    verbose = obj.get("verbose", False)

    if isinstance(e, FileNotFoundError):
        msg = f"File not found: {e}"
    elif isinstance(e, yaml.YAMLError):
        msg = f"Invalid YAML: {e}"
    elif "validation" in type(e).__name__.lower():
        msg = f"Invalid definition: {e}"
    elif isinstance(e, (ConstructKitError, ValueError)):
        msg = str(e)
    else:
        msg = f"Error: {e}"

    if obj.get("json", False):
        print(json.dumps({"error": msg}))
    else:
        _err_console.print(f"[red]Error:[/red] {msg}")

    if verbose:
        _err_console.print_exception()

    raise typer.Exit(1)


def load_catalog(catalog: Path | None) -> ConstructCatalog:
    return ConstructCatalog.from_directory(resolve_catalog_path(catalog))


def write_or_print(text: str, output: Path | None, console: Console) -> None:
    if output:
        output.write_text(text)
        console.print(f"[green]Written to {output}[/green]")
    else:
        print(text)
