"""``buildgate render PRODUCT [VERSION [ORDER]]`` — print a JSON representation.

Goes through the ResourceGateway, so the output is exactly the body (and
status code) an API transport would return.
"""

from __future__ import annotations

import json

import typer
from rich.console import Console

from buildgate.api.gateway import ResourceGateway
from buildgate.api.presenter import Presenter
from buildgate.cli.commands._context import CLI_ERRORS, DB_OPTION, build_service, fail
from buildgate.config import BuildgateConfig

console = Console()


def render_cmd(
    product_id: str = typer.Argument(..., help="Product identifier."),
    version_id: str = typer.Argument(None, help="Version identifier."),
    order: str = typer.Argument(None, help="Deployment order."),
    db: str = DB_OPTION,
) -> None:
    """Print the hypermedia representation of a resource."""
    try:
        service = build_service(db)
    except CLI_ERRORS as exc:
        fail(console, exc)
    gateway = ResourceGateway(service, Presenter(BuildgateConfig().base_url))

    if version_id is None:
        response = gateway.get_product(product_id)
    elif order is None:
        response = gateway.get_version(product_id, version_id)
    else:
        response = gateway.get_deployment(product_id, version_id, order)

    console.print_json(json.dumps({"status": response.status_code, "body": response.body}))
    if not response.ok:
        raise typer.Exit(code=1)
