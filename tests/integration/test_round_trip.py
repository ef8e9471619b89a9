"""End-to-end integration tests — hierarchy persistence and the HTTP-shaped boundary.

These tests exercise the SQLiteRepository, DeploymentService, Presenter and
ResourceGateway working together over a real database file.
"""

from __future__ import annotations

from datetime import datetime
from pathlib import Path

import pytest

from buildgate.api.gateway import ResourceGateway
from buildgate.api.presenter import Presenter
from buildgate.core.seed import seed_repository
from buildgate.core.service import DeploymentService
from buildgate.core.sqlite_repository import SQLiteRepository
from buildgate.models.hierarchy import Deployment, Product, Version
from buildgate.models.pipeline import DeploymentStatus


class TestHierarchyRoundTrip:
    """A product saved through the repository reads back unchanged."""

    @pytest.fixture
    def product(self, now: datetime) -> Product:
        return Product(
            id="atlas",
            description="map tiles",
            versions=(
                Version(
                    id="2.0.0",
                    description="major",
                    deployments=(
                        Deployment(
                            order=0, environment="Integration",
                            status=DeploymentStatus.PERFORMED, granted_by="ops", timestamp=now,
                        ),
                        Deployment(
                            order=1, environment="Production",
                            status=DeploymentStatus.GRANTED, granted_by="lead", timestamp=now,
                        ),
                    ),
                ),
                Version.for_pipeline("1.9.0", "", ["Integration", "Production"]),
            ),
        )

    def test_get_product_returns_equal_structure(self, tmp_dir: Path, product: Product):
        repo = SQLiteRepository(tmp_dir / "rt.db")
        repo.insert_product(product)

        service = DeploymentService(SQLiteRepository(tmp_dir / "rt.db"))
        assert service.get_product("atlas") == product

    def test_version_order_is_insertion_order(self, tmp_dir: Path, product: Product):
        repo = SQLiteRepository(tmp_dir / "rt.db")
        repo.insert_product(product)
        assert [v.id for v in repo.find_product("atlas").versions] == ["2.0.0", "1.9.0"]


class TestGatewayOverSQLite:
    """Browse, approve and administer through the gateway on a real file."""

    @pytest.fixture
    def gateway(self, tmp_dir: Path, now: datetime) -> ResourceGateway:
        repo = SQLiteRepository(tmp_dir / "gw.db")
        seed_repository(repo, now)
        service = DeploymentService(repo, clock=lambda: now)
        return ResourceGateway(service, Presenter("/api/v1"))

    def test_follow_links_to_approval(self, gateway: ResourceGateway):
        products = gateway.list_products().body
        gaia = next(p for p in products["products"] if p["id"] == "gaia")
        assert gaia["_links"]["self"]["href"] == "/api/v1/products/gaia"

        version = gateway.get_version("gaia", "1.0.1").body
        pending = [d for d in version["deployments"] if d["status"] == "pending"]
        assert [d["order"] for d in pending] == [2, 3]
        assert pending[0]["_links"]["approve"]["href"] == (
            "/api/v1/products/gaia/versions/1.0.1/deployments/2/approval"
        )

        response = gateway.approve_deployment("gaia", "1.0.1", "2", "alice")
        assert response.status_code == 200
        assert response.body["grantedBy"] == "alice"

        again = gateway.approve_deployment("gaia", "1.0.1", "2", "bob")
        assert again.status_code == 409

    def test_approval_survives_reopen(self, gateway: ResourceGateway, tmp_dir: Path):
        gateway.approve_deployment("siparium", "2.0.1", "2", "alice")
        reopened = DeploymentService(SQLiteRepository(tmp_dir / "gw.db"))
        deployment = reopened.get_deployment("siparium", "2.0.1", 2)
        assert deployment.status == DeploymentStatus.GRANTED
        assert deployment.granted_by == "alice"

    def test_administration_lifecycle(self, gateway: ResourceGateway):
        assert gateway.create_product({"id": "atlas", "description": "maps"}).status_code == 201
        created = gateway.create_version("atlas", {"id": "0.1.0", "description": "first"})
        assert created.status_code == 201
        assert gateway.approve_deployment("atlas", "0.1.0", "0", "alice").ok

        assert gateway.delete_product("atlas").status_code == 204
        assert gateway.get_version("atlas", "0.1.0").status_code == 404
        assert gateway.get_deployment("atlas", "0.1.0", "0").status_code == 404
