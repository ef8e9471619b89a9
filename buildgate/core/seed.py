"""Demo hierarchy — two products on the standard four-environment pipeline."""

from __future__ import annotations

from datetime import datetime, timezone

from buildgate.core.repository import Repository
from buildgate.models.hierarchy import Deployment, Product, Version
from buildgate.models.pipeline import DEFAULT_ENVIRONMENTS, DeploymentStatus

DEMO_OPERATOR = "d093154"


def _version(
    product_id: str, version_id: str, performed: int, now: datetime
) -> Version:
    """A version whose first ``performed`` environments are already deployed."""
    deployments = []
    for order, env in enumerate(DEFAULT_ENVIRONMENTS):
        if order < performed:
            deployments.append(
                Deployment(
                    order=order,
                    environment=env,
                    status=DeploymentStatus.PERFORMED,
                    granted_by=DEMO_OPERATOR,
                    timestamp=now,
                )
            )
        else:
            deployments.append(Deployment(order=order, environment=env))
    return Version(
        id=version_id,
        description=f"for a changelog see http://prodinfo/{product_id}/{version_id}",
        deployments=tuple(deployments),
    )


def demo_products(now: datetime | None = None) -> list[Product]:
    """Return the demo products gaia and siparium."""
    now = now or datetime.now(timezone.utc)
    return [
        Product(
            id="gaia",
            description="Portale dei servizi aziendali per il personale",
            versions=(
                _version("gaia", "1.0.0", 3, now),
                _version("gaia", "1.0.1", 2, now),
                _version("gaia", "1.0.2", 0, now),
            ),
        ),
        Product(
            id="siparium",
            description="Enterprise Resource Planning (ERP) per le Risorse Umane",
            versions=(
                _version("siparium", "2.0.0", 3, now),
                _version("siparium", "2.0.1", 2, now),
                _version("siparium", "1.0.2", 0, now),
            ),
        ),
    ]


def seed_repository(repository: Repository, now: datetime | None = None) -> list[str]:
    """Insert every demo product not yet present. Returns the inserted ids."""
    inserted: list[str] = []
    for product in demo_products(now):
        if repository.find_product(product.id) is None:
            repository.insert_product(product)
            inserted.append(product.id)
    return inserted
