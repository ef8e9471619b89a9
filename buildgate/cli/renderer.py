"""Rich terminal renderer for products, versions and deployment pipelines.

Color scheme
------------
- dim         : PENDING
- bold yellow : GRANTED
- green       : PERFORMED
"""

from __future__ import annotations

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from buildgate.models.hierarchy import Deployment, Product, Version
from buildgate.models.pipeline import DeploymentStatus

_STATUS_LABELS: dict[DeploymentStatus, str] = {
    DeploymentStatus.PENDING: "[dim]PENDING[/dim]",
    DeploymentStatus.GRANTED: "[bold yellow]GRANTED[/bold yellow]",
    DeploymentStatus.PERFORMED: "[green]PERFORMED[/green]",
}


def status_label(status: DeploymentStatus) -> str:
    return _STATUS_LABELS.get(status, status.value)


def _pipeline_summary(version: Version) -> str:
    """One glyph per environment: performed, granted, pending."""
    glyphs = {
        DeploymentStatus.PERFORMED: "[green]●[/green]",
        DeploymentStatus.GRANTED: "[yellow]◐[/yellow]",
        DeploymentStatus.PENDING: "[dim]○[/dim]",
    }
    return " ".join(glyphs[d.status] for d in version.deployments)


class HierarchyRenderer:
    """Renders the hierarchy as Rich tables.

    Parameters
    ----------
    console:
        Rich Console instance. A new one is created if not provided.
    """

    def __init__(self, console: Console | None = None) -> None:
        self.console = console or Console()

    def products_table(self, products: list[Product]) -> Table:
        table = Table(title="Products", show_lines=False, expand=True)
        table.add_column("Product", style="cyan", no_wrap=True)
        table.add_column("Description")
        table.add_column("Versions", justify="right")
        table.add_column("Latest", style="green")
        for product in products:
            latest = product.versions[-1].id if product.versions else "-"
            table.add_row(
                product.id, product.description, str(len(product.versions)), latest
            )
        return table

    def product_table(self, product: Product) -> Table:
        table = Table(title=f"{product.id} — {product.description}", expand=True)
        table.add_column("Version", style="cyan", no_wrap=True)
        table.add_column("Pipeline")
        table.add_column("Description", style="dim")
        for version in product.versions:
            table.add_row(version.id, _pipeline_summary(version), version.description)
        return table

    def version_table(self, product_id: str, version: Version) -> Table:
        table = Table(title=f"{product_id} {version.id}", expand=True)
        table.add_column("#", justify="right", width=3)
        table.add_column("Environment", style="bold")
        table.add_column("Status", justify="center", width=12)
        table.add_column("Granted By")
        table.add_column("Timestamp", style="dim")
        for d in version.deployments:
            table.add_row(
                str(d.order),
                d.environment,
                status_label(d.status),
                d.granted_by or "-",
                d.timestamp.strftime("%Y-%m-%d %H:%M:%S") if d.timestamp else "-",
            )
        return table

    def approval_panel(
        self, product_id: str, version_id: str, deployment: Deployment
    ) -> Panel:
        return Panel(
            "\n".join([
                "[bold green]Deployment approved![/bold green]",
                "",
                f"[bold]Product:[/bold]     {product_id}",
                f"[bold]Version:[/bold]     {version_id}",
                f"[bold]Environment:[/bold] {deployment.environment} (#{deployment.order})",
                f"[bold]Granted By:[/bold]  {deployment.granted_by}",
                f"[bold]Timestamp:[/bold]   {deployment.timestamp.isoformat() if deployment.timestamp else '-'}",
            ]),
            title="[bold]Approval[/bold]",
            border_style="green",
            padding=(1, 2),
        )

    def print_products(self, products: list[Product]) -> None:
        if not products:
            self.console.print("[dim]No products registered.[/dim]")
            return
        self.console.print(self.products_table(products))

    def print_product(self, product: Product) -> None:
        self.console.print(self.product_table(product))

    def print_version(self, product_id: str, version: Version) -> None:
        self.console.print(self.version_table(product_id, version))
