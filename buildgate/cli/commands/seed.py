"""``buildgate seed`` — load the demo hierarchy into the store.

Inserts the demo products (gaia, siparium) that are not present yet and
leaves existing products untouched.
"""

from __future__ import annotations

from rich.console import Console

from buildgate.cli.commands._context import CLI_ERRORS, DB_OPTION, build_service, fail
from buildgate.cli.renderer import HierarchyRenderer
from buildgate.core.seed import seed_repository

console = Console()


def seed_cmd(db: str = DB_OPTION) -> None:
    """Load the demo products into the store."""
    try:
        service = build_service(db)
        inserted = seed_repository(service.repository)
    except CLI_ERRORS as exc:
        fail(console, exc)

    if inserted:
        console.print(f"[bold green]Seeded:[/bold green] {', '.join(inserted)}")
    else:
        console.print("[dim]Demo products already present — nothing to do.[/dim]")
    HierarchyRenderer(console=console).print_products(service.list_products())
