"""``buildgate products`` — list all registered products."""

from __future__ import annotations

from rich.console import Console

from buildgate.cli.commands._context import CLI_ERRORS, DB_OPTION, build_service, fail
from buildgate.cli.renderer import HierarchyRenderer

console = Console()


def products_cmd(db: str = DB_OPTION) -> None:
    """List all products, ordered by identifier."""
    try:
        products = build_service(db).list_products()
    except CLI_ERRORS as exc:
        fail(console, exc)
    HierarchyRenderer(console=console).print_products(products)
