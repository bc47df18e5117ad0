"""Security recommendations for a construct or a composition."""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer
from constructkit import ConstructComposition, SecurityRecommendation
from rich.console import Console
from rich.table import Table

from constructkit_cli.project import resolve_provider
from constructkit_cli.utils import handle_error, json_mode, load_catalog, print_json

console = Console()

_SEVERITY_STYLES = {"critical": "bold red", "high": "red", "medium": "yellow", "low": "dim"}


def security(
    ctx: typer.Context,
    composition_file: Annotated[
        Path | None, typer.Argument(help="Composition YAML/JSON file (omit with --construct)", exists=True)
    ] = None,
    construct: Annotated[str | None, typer.Option("--construct", "-c", help="Review one catalog construct")] = None,
    provider: Annotated[str | None, typer.Option(help="Target provider")] = None,
    catalog: Annotated[Path | None, typer.Option("--catalog", help="Catalog directory")] = None,
) -> None:
    """List security recommendations, most severe first."""
    try:
        from constructkit.security import SecurityAnalyzer, prioritize

        if not composition_file and not construct:
            raise ValueError("Pass a composition file or --construct ID.")

        constructs = load_catalog(catalog)
        analyzer = SecurityAnalyzer()
        prov = resolve_provider(provider)
        if construct:
            recs = prioritize(analyzer.analyze_construct(constructs.require(construct), prov))
        else:
            composition = ConstructComposition.from_file(composition_file)
            recs = analyzer.analyze_composition(composition, prov, constructs)
    except typer.Exit:
        raise
    except Exception as e:
        handle_error(ctx, e)
        return

    if json_mode(ctx):
        print_json({"recommendations": [r.model_dump() for r in recs]})
        return
    _print_recommendations(recs)


def _print_recommendations(recs: list[SecurityRecommendation]) -> None:
    if not recs:
        console.print("[green]No security recommendations.[/green]")
        return

    table = Table(title=f"Security Recommendations ({len(recs)})")
    table.add_column("Severity")
    table.add_column("Type", style="cyan")
    table.add_column("Construct")
    table.add_column("Finding")
    table.add_column("Recommendation", style="dim")
    for rec in recs:
        style = _SEVERITY_STYLES[rec.severity]
        table.add_row(
            f"[{style}]{rec.severity.upper()}[/{style}]",
            rec.type,
            rec.construct_id or "-",
            rec.description,
            rec.recommendation,
        )
    console.print(table)
