"""Repository protocol and the in-memory implementation.

The core reads and writes the hierarchy only through ``Repository``.
``find_*`` methods return ``None`` on absence; the navigator turns that
into ``NotFoundError``. Storage failures surface as ``StorageError`` and
are never retried here.
"""

from __future__ import annotations

import logging
import threading
from typing import Protocol, runtime_checkable

from buildgate.models.hierarchy import Deployment, Product, Version
from buildgate.models.pipeline import DeploymentStatus

logger = logging.getLogger(__name__)


class StorageError(RuntimeError):
    """Raised when the backing store fails or returns unusable data."""


class ConflictError(RuntimeError):
    """Raised when an insert collides with an existing identifier."""


@runtime_checkable
class Repository(Protocol):
    """Durable storage of the Product -> Version -> Deployment hierarchy."""

    def list_products(self) -> list[Product]:
        """Return all products, ordered by identifier."""
        ...

    def find_product(self, product_id: str) -> Product | None: ...

    def find_version(self, product_id: str, version_id: str) -> Version | None: ...

    def find_deployment(
        self, product_id: str, version_id: str, order: int
    ) -> Deployment | None: ...

    def save_deployment(
        self,
        product_id: str,
        version_id: str,
        deployment: Deployment,
        *,
        expected_status: DeploymentStatus | None = None,
    ) -> bool:
        """Replace the stored deployment at ``deployment.order``.

        When ``expected_status`` is given the write is conditional: it only
        happens if the stored status still equals it, atomically with the
        check. Returns ``False`` if the condition did not hold or the
        deployment does not exist.
        """
        ...

    def insert_product(self, product: Product) -> None: ...

    def insert_version(self, product_id: str, version: Version) -> None: ...

    def delete_product(self, product_id: str) -> bool: ...


class InMemoryRepository:
    """Dictionary-backed repository for tests and single-process use.

    Parameters
    ----------
    products:
        Optional initial contents.
    """

    def __init__(self, products: list[Product] | None = None) -> None:
        self._lock = threading.Lock()
        self._products: dict[str, Product] = {}
        for product in products or []:
            self.insert_product(product)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def list_products(self) -> list[Product]:
        with self._lock:
            return [self._products[pid] for pid in sorted(self._products)]

    def find_product(self, product_id: str) -> Product | None:
        with self._lock:
            return self._products.get(product_id)

    def find_version(self, product_id: str, version_id: str) -> Version | None:
        product = self.find_product(product_id)
        return product.version(version_id) if product else None

    def find_deployment(
        self, product_id: str, version_id: str, order: int
    ) -> Deployment | None:
        version = self.find_version(product_id, version_id)
        return version.deployment(order) if version else None

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def save_deployment(
        self,
        product_id: str,
        version_id: str,
        deployment: Deployment,
        *,
        expected_status: DeploymentStatus | None = None,
    ) -> bool:
        with self._lock:
            product = self._products.get(product_id)
            version = product.version(version_id) if product else None
            current = version.deployment(deployment.order) if version else None
            if current is None:
                return False
            if expected_status is not None and current.status != expected_status:
                return False
            self._products[product_id] = product.with_version(
                version.with_deployment(deployment)
            )
        logger.debug(
            "Saved deployment %s/%s/%d", product_id, version_id, deployment.order
        )
        return True

    def insert_product(self, product: Product) -> None:
        with self._lock:
            if product.id in self._products:
                raise ConflictError(f"Product {product.id!r} already exists.")
            self._products[product.id] = product

    def insert_version(self, product_id: str, version: Version) -> None:
        with self._lock:
            product = self._products.get(product_id)
            if product is None:
                raise StorageError(f"Product {product_id!r} does not exist.")
            if product.version(version.id) is not None:
                raise ConflictError(
                    f"Version {version.id!r} already exists in product {product_id!r}."
                )
            self._products[product_id] = product.with_version(version)

    def delete_product(self, product_id: str) -> bool:
        with self._lock:
            return self._products.pop(product_id, None) is not None
