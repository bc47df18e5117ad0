import logging

import typer
from rich.console import Console
from rich.logging import RichHandler

from constructkit_cli import __version__
from constructkit_cli.commands.analyze_cmd import analyze
from constructkit_cli.commands.catalog_cmd import catalog_app
from constructkit_cli.commands.compose_cmd import compose
from constructkit_cli.commands.cost import cost
from constructkit_cli.commands.diagram_cmd import diagram
from constructkit_cli.commands.security_cmd import security
from constructkit_cli.commands.validate import validate


def _version_callback(value: bool) -> None:
    if value:
        print(f"constructkit {__version__}")
        raise typer.Exit()


app = typer.Typer(
    name="constructkit",
    help="Analyze, compose, price and diagram infrastructure constructs",
    no_args_is_help=True,
)


@app.callback()
def main(
    ctx: typer.Context,
    version: bool = typer.Option(
        False, "--version", "-V", help="Show version", callback=_version_callback, is_eager=True
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["json"] = json_output
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(message)s",
            handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        )


app.command()(analyze)
app.command()(compose)
app.command()(validate)
app.command()(cost)
app.command()(diagram)
app.command()(security)
app.add_typer(catalog_app, name="catalog")
