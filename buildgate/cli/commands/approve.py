"""``buildgate approve PRODUCT VERSION ORDER --as IDENTITY`` — grant a deployment.

Transitions the deployment from PENDING to GRANTED, attributing it to the
given identity. Approving an already granted or performed deployment is
refused with a non-zero exit code.
"""

from __future__ import annotations

import typer
from rich.console import Console

from buildgate.cli.commands._context import CLI_ERRORS, DB_OPTION, build_service, fail
from buildgate.cli.renderer import HierarchyRenderer

console = Console()


def approve_cmd(
    product_id: str = typer.Argument(..., help="Product identifier."),
    version_id: str = typer.Argument(..., help="Version identifier."),
    order: str = typer.Argument(..., help="Deployment order (0-based pipeline position)."),
    identity: str = typer.Option(
        ...,
        "--as",
        "-u",
        help="Identity granting the approval.",
    ),
    db: str = DB_OPTION,
) -> None:
    """Approve a pending deployment."""
    renderer = HierarchyRenderer(console=console)
    try:
        service = build_service(db)
        granted = service.approve_deployment(product_id, version_id, order, identity)
        version = service.get_version(product_id, version_id)
    except CLI_ERRORS as exc:
        fail(console, exc)

    console.print(renderer.approval_panel(product_id, version_id, granted))
    renderer.print_version(product_id, version)
