"""``buildgate add-version PRODUCT VERSION`` — register a new release."""

from __future__ import annotations

import typer
from rich.console import Console

from buildgate.cli.commands._context import CLI_ERRORS, DB_OPTION, build_service, fail
from buildgate.cli.renderer import HierarchyRenderer

console = Console()


def add_version_cmd(
    product_id: str = typer.Argument(..., help="Product identifier."),
    version_id: str = typer.Argument(..., help="New version identifier."),
    description: str = typer.Option("", "--description", "-m", help="Release notes."),
    db: str = DB_OPTION,
) -> None:
    """Add a version with one pending deployment per pipeline environment."""
    try:
        version = build_service(db).add_version(product_id, version_id, description)
    except CLI_ERRORS as exc:
        fail(console, exc)
    HierarchyRenderer(console=console).print_version(product_id, version)
