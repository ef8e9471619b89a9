"""Main Typer application — imports and registers all CLI commands.

Entry point: ``buildgate`` (configured via pyproject.toml [project.scripts]).
"""

from __future__ import annotations

import logging

import typer
from rich.logging import RichHandler

from buildgate.cli.commands.add_version import add_version_cmd
from buildgate.cli.commands.approve import approve_cmd
from buildgate.cli.commands.products import products_cmd
from buildgate.cli.commands.render import render_cmd
from buildgate.cli.commands.seed import seed_cmd
from buildgate.cli.commands.show import show_cmd
from buildgate.config import BuildgateConfig

app = typer.Typer(
    name="buildgate",
    help="Buildgate: promotion of build artifacts through deployment environments.",
    no_args_is_help=True,
    rich_markup_mode="rich",
    add_completion=False,
)

# Register subcommands
app.command(name="seed", help="Load the demo products into the store.")(seed_cmd)
app.command(name="products", help="List all products.")(products_cmd)
app.command(name="show", help="Show a product or a version pipeline.")(show_cmd)
app.command(name="approve", help="Approve a pending deployment.")(approve_cmd)
app.command(name="add-version", help="Add a version to a product.")(add_version_cmd)
app.command(name="render", help="Print the JSON representation of a resource.")(render_cmd)


def configure_logging(level: str) -> None:
    """Route log records through Rich at the configured level."""
    logging.basicConfig(
        level=level.upper(),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(rich_tracebacks=True, show_path=False)],
    )


def main() -> None:
    """CLI entry point."""
    configure_logging(BuildgateConfig().log_level)
    app()


if __name__ == "__main__":
    main()
