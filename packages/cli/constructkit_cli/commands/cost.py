from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer
from constructkit import ConstructComposition, CostEstimate, Usage
from rich.console import Console
from rich.table import Table

from constructkit_cli.project import resolve_provider, resolve_region
from constructkit_cli.utils import handle_error, json_mode, load_catalog, print_json

console = Console()


def cost(
    ctx: typer.Context,
    composition_file: Annotated[
        Path | None, typer.Argument(help="Composition YAML/JSON file (omit with --construct)", exists=True)
    ] = None,
    construct: Annotated[str | None, typer.Option("--construct", "-c", help="Price a single catalog construct")] = None,
    provider: Annotated[str | None, typer.Option(help="Provider to price against")] = None,
    region: Annotated[str | None, typer.Option(help="Provider region")] = None,
    requests: Annotated[float | None, typer.Option(help="Requests per month")] = None,
    storage: Annotated[float | None, typer.Option(help="Storage in GB")] = None,
    compute: Annotated[float | None, typer.Option(help="Compute hours per month")] = None,
    catalog: Annotated[Path | None, typer.Option("--catalog", help="Catalog directory")] = None,
) -> None:
    """Estimate monthly cost for a construct or a composition."""
    try:
        from constructkit.cost import CostCalculator

        if not composition_file and not construct:
            raise ValueError("Pass a composition file or --construct ID.")

        constructs = load_catalog(catalog)
        calc = CostCalculator()
        prov = resolve_provider(provider)
        reg = resolve_region(region)
        usage = Usage(requests=requests, storage=storage, compute=compute)
        usage_arg = None if usage.is_empty() else usage

        if construct:
            title = construct
            estimate = calc.estimate_construct(constructs.require(construct), prov, reg, usage_arg)
        else:
            composition = ConstructComposition.from_file(composition_file)
            title = composition.name
            estimate = calc.estimate_composition(composition, prov, reg, usage_arg, catalog=constructs)
    except typer.Exit:
        raise
    except Exception as e:
        handle_error(ctx, e)
        return

    if json_mode(ctx):
        print_json({"estimate": estimate.model_dump()})
        return
    _print_cost_table(title, estimate)


def _print_cost_table(title: str, estimate: CostEstimate) -> None:
    region = f" ({estimate.region})" if estimate.region else ""
    table = Table(title=f"Cost Breakdown: {title} [{estimate.provider}{region}]", show_footer=True)
    table.add_column("Item", style="cyan", footer="Monthly total")
    table.add_column("Unit price", justify="right")
    table.add_column("Quantity", justify="right")
    table.add_column("Subtotal", justify="right", footer=f"${estimate.total.monthly:,.2f}")

    for line in estimate.breakdown:
        table.add_row(line.item, f"${line.cost:,.6g}/{line.unit}", f"{line.quantity:g}", f"${line.subtotal:,.2f}")

    console.print(table)
    console.print(f"Hourly ${estimate.total.hourly:,.4f}  |  Daily ${estimate.total.daily:,.2f}  |  "
                  f"Yearly ${estimate.total.yearly:,.2f}")
    for note in estimate.assumptions:
        console.print(f"[dim]- {note}[/dim]")
