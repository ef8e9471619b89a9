"""``buildgate show PRODUCT [VERSION]`` — show a product or a version pipeline.

Without a version, prints every version of the product with a one-glyph
per environment pipeline summary. With a version, prints each deployment
with its status, approver and authorization instant.
"""

from __future__ import annotations

import typer
from rich.console import Console

from buildgate.cli.commands._context import CLI_ERRORS, DB_OPTION, build_service, fail
from buildgate.cli.renderer import HierarchyRenderer

console = Console()


def show_cmd(
    product_id: str = typer.Argument(..., help="Product identifier."),
    version_id: str = typer.Argument(None, help="Version identifier."),
    db: str = DB_OPTION,
) -> None:
    """Show a product, or the deployment pipeline of one of its versions."""
    renderer = HierarchyRenderer(console=console)
    try:
        service = build_service(db)
        if version_id is None:
            renderer.print_product(service.get_product(product_id))
        else:
            renderer.print_version(
                product_id, service.get_version(product_id, version_id)
            )
    except CLI_ERRORS as exc:
        fail(console, exc)
