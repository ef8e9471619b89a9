"""Deployment service — the operation set exposed to the API boundary.

The DeploymentService wires together a Repository, the HierarchyNavigator
and the DeploymentLifecycle. It owns no state of its own apart from the
per-deployment approval locks.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from datetime import datetime, timezone

from buildgate.config import BuildgateConfig
from buildgate.core.lifecycle import DeploymentLifecycle, InvalidTransitionError
from buildgate.core.navigator import HierarchyNavigator, parse_order
from buildgate.core.repository import ConflictError, InMemoryRepository, Repository
from buildgate.core.sqlite_repository import SQLiteRepository
from buildgate.models.hierarchy import Deployment, Product, ValidationError, Version
from buildgate.models.pipeline import DEFAULT_ENVIRONMENTS, DeploymentStatus

logger = logging.getLogger(__name__)

_DeploymentKey = tuple[str, str, int]


class _KeyedLocks:
    """One mutex per deployment identity, dropped when no caller holds it."""

    def __init__(self) -> None:
        self._guard = threading.Lock()
        # key -> [lock, number of callers holding or waiting on it]
        self._locks: dict[_DeploymentKey, list] = {}

    def __len__(self) -> int:
        with self._guard:
            return len(self._locks)

    @contextmanager
    def hold(self, key: _DeploymentKey) -> Iterator[None]:
        with self._guard:
            entry = self._locks.setdefault(key, [threading.Lock(), 0])
            entry[1] += 1
        try:
            with entry[0]:
                yield
        finally:
            with self._guard:
                entry[1] -= 1
                if entry[1] == 0:
                    del self._locks[key]


class DeploymentService:
    """Product/version/deployment operations plus deployment approval.

    Parameters
    ----------
    repository:
        The backing store.
    environments:
        Pipeline environments, in order, used when adding versions.
    clock:
        Returns the current instant; injectable for tests.
    """

    def __init__(
        self,
        repository: Repository,
        *,
        environments: list[str] | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.repository = repository
        self.navigator = HierarchyNavigator(repository)
        self.lifecycle = DeploymentLifecycle()
        self.environments = list(environments or DEFAULT_ENVIRONMENTS)
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._approval_locks = _KeyedLocks()

    @classmethod
    def from_config(cls, config: BuildgateConfig) -> DeploymentService:
        """Build a service with the repository named by ``config``."""
        repository: Repository
        if config.store_backend == "memory":
            repository = InMemoryRepository()
        else:
            repository = SQLiteRepository(config.db_path)
        return cls(repository, environments=config.pipeline_environments)

    # ------------------------------------------------------------------
    # Read operations
    # ------------------------------------------------------------------

    def list_products(self) -> list[Product]:
        """Return all products ordered by identifier (empty if none)."""
        return sorted(self.repository.list_products(), key=lambda p: p.id)

    def get_product(self, product_id: str) -> Product:
        return self.navigator.resolve_product(product_id)

    def list_versions(self, product_id: str) -> list[Version]:
        return list(self.navigator.resolve_product(product_id).versions)

    def get_version(self, product_id: str, version_id: str) -> Version:
        return self.navigator.resolve_version(product_id, version_id)

    def list_deployments(self, product_id: str, version_id: str) -> list[Deployment]:
        return list(self.navigator.resolve_version(product_id, version_id).deployments)

    def get_deployment(
        self, product_id: str, version_id: str, order: str | int
    ) -> Deployment:
        return self.navigator.resolve_deployment(product_id, version_id, order)

    # ------------------------------------------------------------------
    # Approval
    # ------------------------------------------------------------------

    def approve_deployment(
        self,
        product_id: str,
        version_id: str,
        order: str | int,
        approver_identity: str,
    ) -> Deployment:
        """Grant the deployment at ``product_id/version_id/order``.

        Lifecycle:
        1. Resolve the deployment (unknown identifiers fail here, unlocked)
        2. Take the per-deployment lock and re-read the current record
        3. Validate and apply PENDING -> GRANTED
        4. Persist with a conditional write on the PENDING status

        Returns the GRANTED Deployment.
        """
        index = parse_order(order)
        self.navigator.resolve_deployment(product_id, version_id, index)
        with self._approval_locks.hold((product_id, version_id, index)):
            current = self.navigator.resolve_deployment(product_id, version_id, index)
            granted = self.lifecycle.approve(current, approver_identity, self._clock())

            saved = self.repository.save_deployment(
                product_id,
                version_id,
                granted,
                expected_status=DeploymentStatus.PENDING,
            )
            if not saved:
                # Lost a race with a writer outside this process.
                latest = self.navigator.resolve_deployment(product_id, version_id, index)
                raise InvalidTransitionError(
                    latest,
                    DeploymentStatus.GRANTED,
                    "Deployment was modified concurrently.",
                )

        logger.info(
            "Approved %s/%s/%d (%s) by %s",
            product_id,
            version_id,
            index,
            granted.environment,
            approver_identity,
        )
        return granted

    # ------------------------------------------------------------------
    # Administration
    # ------------------------------------------------------------------

    def register_product(self, product: Product) -> Product:
        """Insert a new product.

        Every version must carry one deployment per configured environment,
        in pipeline order. Raises ``ConflictError`` on a duplicate id.
        """
        for version in product.versions:
            self._check_pipeline(version)
        if self.repository.find_product(product.id) is not None:
            raise ConflictError(f"Product {product.id!r} already exists.")
        self.repository.insert_product(product)
        return product

    def add_version(
        self, product_id: str, version_id: str, description: str = ""
    ) -> Version:
        """Append a new version with one PENDING deployment per environment."""
        product = self.navigator.resolve_product(product_id)
        if product.version(version_id) is not None:
            raise ConflictError(
                f"Version {version_id!r} already exists in product {product_id!r}."
            )
        version = Version.for_pipeline(version_id, description, self.environments)
        self._check_pipeline(version)
        self.repository.insert_version(product_id, version)
        return version

    def _check_pipeline(self, version: Version) -> None:
        environments = [d.environment for d in version.deployments]
        if environments != self.environments:
            raise ValidationError(
                "version.pipeline",
                f"version {version.id!r} deploys to {environments}, "
                f"expected the pipeline {self.environments}",
            )

    def delete_product(self, product_id: str) -> None:
        """Delete a product and, by cascade, its versions and deployments."""
        self.navigator.resolve_product(product_id)
        self.repository.delete_product(product_id)
