"""Shared test fixtures for Buildgate."""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import pytest

from buildgate.api.gateway import ResourceGateway
from buildgate.api.presenter import Presenter
from buildgate.core.navigator import HierarchyNavigator
from buildgate.core.repository import InMemoryRepository, Repository
from buildgate.core.seed import demo_products
from buildgate.core.service import DeploymentService
from buildgate.core.sqlite_repository import SQLiteRepository
from buildgate.models.hierarchy import Deployment, Product, Version

FIXED_NOW = datetime(2024, 3, 1, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def now() -> datetime:
    """A fixed, timezone-aware instant."""
    return FIXED_NOW


@pytest.fixture
def tmp_dir(tmp_path: Path) -> Path:
    """Provide a temporary directory for test databases."""
    return tmp_path


@pytest.fixture
def memory_repo(now: datetime) -> InMemoryRepository:
    """In-memory repository preloaded with the demo hierarchy."""
    return InMemoryRepository(demo_products(now))


@pytest.fixture
def sqlite_repo(tmp_dir: Path, now: datetime) -> SQLiteRepository:
    """SQLite repository in a temp file, preloaded with the demo hierarchy."""
    repo = SQLiteRepository(tmp_dir / "builds.db")
    for product in demo_products(now):
        repo.insert_product(product)
    return repo


@pytest.fixture(params=["memory", "sqlite"])
def repository(request: pytest.FixtureRequest) -> Repository:
    """Each repository implementation, preloaded with the demo hierarchy."""
    return request.getfixturevalue(f"{request.param}_repo")


@pytest.fixture
def navigator(repository: Repository) -> HierarchyNavigator:
    return HierarchyNavigator(repository)


@pytest.fixture
def service(repository: Repository, now: datetime) -> DeploymentService:
    """A DeploymentService with a frozen clock."""
    return DeploymentService(repository, clock=lambda: now)


@pytest.fixture
def gateway(service: DeploymentService) -> ResourceGateway:
    return ResourceGateway(service, Presenter("/api/v1"))


# ---------------------------------------------------------------------------
# Model factories — shared across test modules
# ---------------------------------------------------------------------------


@pytest.fixture
def make_version() -> Callable[..., Version]:
    """Factory fixture: build a pipeline-shaped Version."""

    def _factory(
        version_id: str = "1.0.0",
        environments: tuple[str, ...] = ("Integration", "Quality", "Certification", "Production"),
        **overrides: Any,
    ) -> Version:
        defaults: dict[str, Any] = {
            "id": version_id,
            "description": f"release {version_id}",
            "deployments": tuple(
                Deployment(order=i, environment=env) for i, env in enumerate(environments)
            ),
        }
        defaults.update(overrides)
        return Version(**defaults)

    return _factory


@pytest.fixture
def make_product(make_version: Callable[..., Version]) -> Callable[..., Product]:
    """Factory fixture: build a Product with the given version ids."""

    def _factory(
        product_id: str = "atlas",
        version_ids: tuple[str, ...] = ("1.0.0", "1.1.0"),
        **overrides: Any,
    ) -> Product:
        defaults: dict[str, Any] = {
            "id": product_id,
            "description": f"{product_id} product",
            "versions": tuple(make_version(v) for v in version_ids),
        }
        defaults.update(overrides)
        return Product(**defaults)

    return _factory
