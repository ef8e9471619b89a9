"""Presenter — renders domain objects as hypermedia-annotated representations.

Each representation is a frozen Pydantic model whose ``links`` field is
serialized as ``_links`` (HAL style). ``render_*`` methods return the
JSON-ready dict; ``represent_*`` return the models themselves.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from buildgate.models.hierarchy import Deployment, Product, Version
from buildgate.models.pipeline import DeploymentStatus


class Link(BaseModel):
    """A single hypermedia link."""

    model_config = ConfigDict(frozen=True)

    href: str
    method: str = "GET"


class DeploymentRepresentation(BaseModel):
    model_config = ConfigDict(frozen=True)

    order: int
    environment: str
    status: DeploymentStatus
    granted_by: str = Field(default="", serialization_alias="grantedBy")
    timestamp: datetime | None = None
    links: dict[str, Link] = Field(default_factory=dict, serialization_alias="_links")


class VersionRepresentation(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    description: str = ""
    deployments: list[DeploymentRepresentation] = []
    links: dict[str, Link] = Field(default_factory=dict, serialization_alias="_links")


class ProductRepresentation(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    description: str = ""
    versions: list[VersionRepresentation] = []
    links: dict[str, Link] = Field(default_factory=dict, serialization_alias="_links")


class Presenter:
    """Maps Product/Version/Deployment onto linked representations.

    Parameters
    ----------
    base_url:
        Prefix of every rendered ``href``.
    """

    def __init__(self, base_url: str = "/api/v1") -> None:
        self.base_url = base_url.rstrip("/")

    # ------------------------------------------------------------------
    # URLs
    # ------------------------------------------------------------------

    def product_url(self, product_id: str) -> str:
        return f"{self.base_url}/products/{product_id}"

    def version_url(self, product_id: str, version_id: str) -> str:
        return f"{self.product_url(product_id)}/versions/{version_id}"

    def deployment_url(self, product_id: str, version_id: str, order: int) -> str:
        return f"{self.version_url(product_id, version_id)}/deployments/{order}"

    # ------------------------------------------------------------------
    # Models
    # ------------------------------------------------------------------

    def represent_deployment(
        self, product_id: str, version_id: str, deployment: Deployment
    ) -> DeploymentRepresentation:
        url = self.deployment_url(product_id, version_id, deployment.order)
        links = {
            "self": Link(href=url),
            "version": Link(href=self.version_url(product_id, version_id)),
        }
        if deployment.is_pending:
            links["approve"] = Link(href=f"{url}/approval", method="POST")
        return DeploymentRepresentation(
            order=deployment.order,
            environment=deployment.environment,
            status=deployment.status,
            granted_by=deployment.granted_by,
            timestamp=deployment.timestamp,
            links=links,
        )

    def represent_version(
        self, product_id: str, version: Version, *, expand: bool = True
    ) -> VersionRepresentation:
        url = self.version_url(product_id, version.id)
        return VersionRepresentation(
            id=version.id,
            description=version.description,
            deployments=[
                self.represent_deployment(product_id, version.id, d)
                for d in version.deployments
            ]
            if expand
            else [],
            links={
                "self": Link(href=url),
                "product": Link(href=self.product_url(product_id)),
                "deployments": Link(href=f"{url}/deployments"),
            },
        )

    def represent_product(
        self, product: Product, *, expand: bool = True
    ) -> ProductRepresentation:
        url = self.product_url(product.id)
        return ProductRepresentation(
            id=product.id,
            description=product.description,
            versions=[
                self.represent_version(product.id, v, expand=False)
                for v in product.versions
            ]
            if expand
            else [],
            links={
                "self": Link(href=url),
                "versions": Link(href=f"{url}/versions"),
            },
        )

    # ------------------------------------------------------------------
    # JSON-ready bodies
    # ------------------------------------------------------------------

    def render_products(self, products: list[Product]) -> dict[str, Any]:
        return {
            "products": [
                _dump(self.represent_product(p, expand=False)) for p in products
            ],
            "_links": {"self": {"href": f"{self.base_url}/products", "method": "GET"}},
        }

    def render_product(self, product: Product) -> dict[str, Any]:
        return _dump(self.represent_product(product))

    def render_versions(self, product_id: str, versions: list[Version]) -> dict[str, Any]:
        return {
            "versions": [
                _dump(self.represent_version(product_id, v, expand=False))
                for v in versions
            ],
            "_links": {
                "self": {"href": f"{self.product_url(product_id)}/versions", "method": "GET"},
                "product": {"href": self.product_url(product_id), "method": "GET"},
            },
        }

    def render_version(self, product_id: str, version: Version) -> dict[str, Any]:
        return _dump(self.represent_version(product_id, version))

    def render_deployments(
        self, product_id: str, version_id: str, deployments: list[Deployment]
    ) -> dict[str, Any]:
        url = self.version_url(product_id, version_id)
        return {
            "deployments": [
                _dump(self.represent_deployment(product_id, version_id, d))
                for d in deployments
            ],
            "_links": {
                "self": {"href": f"{url}/deployments", "method": "GET"},
                "version": {"href": url, "method": "GET"},
            },
        }

    def render_deployment(
        self, product_id: str, version_id: str, deployment: Deployment
    ) -> dict[str, Any]:
        return _dump(self.represent_deployment(product_id, version_id, deployment))


def _dump(model: BaseModel) -> dict[str, Any]:
    return model.model_dump(mode="json", by_alias=True)
