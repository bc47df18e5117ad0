from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.table import Table

from constructkit_cli.utils import handle_error, json_mode, load_catalog, print_json

console = Console()

catalog_app = typer.Typer(
    name="catalog",
    help="Search and inspect the construct catalog.",
    no_args_is_help=True,
)


@catalog_app.callback(invoke_without_command=True)
def catalog_callback(ctx: typer.Context) -> None:
    # Propagate json/verbose flags from parent ctx into this sub-app's ctx
    if ctx.obj is None and ctx.parent and ctx.parent.obj:
        ctx.obj = ctx.parent.obj
    elif ctx.obj is None:
        ctx.ensure_object(dict)


@catalog_app.command("search")
def catalog_search(
    ctx: typer.Context,
    query: Annotated[str | None, typer.Argument(help="Text to match in id, name, description or tags")] = None,
    level: Annotated[str | None, typer.Option(help="Filter by level (L0-L3)")] = None,
    provider: Annotated[str | None, typer.Option(help="Filter by provider")] = None,
    category: Annotated[str | None, typer.Option(help="Filter by category")] = None,
    tag: Annotated[list[str] | None, typer.Option("--tag", "-t", help="Required tag (repeatable)")] = None,
    catalog: Annotated[Path | None, typer.Option("--catalog", help="Catalog directory")] = None,
) -> None:
    """Search constructs in the catalog."""
    try:
        results = load_catalog(catalog).search(
            query,
            level=level.upper() if level else None,
            provider=provider.lower() if provider else None,
            category=category,
            tags=tag or None,
        )
    except typer.Exit:
        raise
    except Exception as e:
        handle_error(ctx, e)
        return

    if json_mode(ctx):
        print_json({"results": [c.model_dump(mode="json") for c in results]})
        return

    if not results:
        console.print("[yellow]No results found.[/yellow]")
        return

    table = Table(title=f'Catalog Search: "{query}"' if query else "Catalog")
    table.add_column("Id", style="cyan")
    table.add_column("Level")
    table.add_column("Name")
    table.add_column("Category")
    table.add_column("Providers")
    table.add_column("Tags", style="dim")
    for c in results:
        table.add_row(
            c.id, c.level, c.metadata.name, c.metadata.category, ", ".join(c.providers), ", ".join(c.metadata.tags)
        )
    console.print(table)


@catalog_app.command("show")
def catalog_show(
    ctx: typer.Context,
    construct_id: Annotated[str, typer.Argument(help="Construct id")],
    catalog: Annotated[Path | None, typer.Option("--catalog", help="Catalog directory")] = None,
) -> None:
    """Show one construct definition and its dependencies."""
    try:
        constructs = load_catalog(catalog)
        definition = constructs.require(construct_id)
        deps = sorted(constructs.dependencies(construct_id))
    except typer.Exit:
        raise
    except Exception as e:
        handle_error(ctx, e)
        return

    if json_mode(ctx):
        print_json({"construct": definition.model_dump(mode="json"), "dependencies": deps})
        return

    print(definition.to_yaml())
    if deps:
        console.print(f"[bold]Dependencies:[/bold] {', '.join(deps)}")
