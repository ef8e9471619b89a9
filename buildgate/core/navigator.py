"""Hierarchy navigator — resolves identifier chains against a Repository.

productId[/versionId[/order]] chains are resolved top-down. Any absent
link raises ``NotFoundError``; a malformed identifier fragment raises
``BadIdentifierError`` before the repository is consulted.
"""

from __future__ import annotations

from buildgate.core.repository import Repository
from buildgate.models.hierarchy import Deployment, Product, Version


class NotFoundError(LookupError):
    """Raised when an identifier chain does not resolve at some level."""


class BadIdentifierError(ValueError):
    """Raised when an identifier fragment cannot be parsed."""


def parse_order(raw: str | int) -> int:
    """Parse an external deployment identifier into a pipeline order."""
    if isinstance(raw, bool):
        raise BadIdentifierError(f"Invalid deployment identifier: {raw!r}")
    if isinstance(raw, int):
        order = raw
    else:
        text = str(raw).strip()
        if not (text.isascii() and text.isdigit()):
            raise BadIdentifierError(
                f"Invalid deployment identifier: {raw!r} (expected a non-negative integer)"
            )
        order = int(text)
    if order < 0:
        raise BadIdentifierError(f"Invalid deployment identifier: {raw!r}")
    return order


class HierarchyNavigator:
    """Read-only traversal of the Product -> Version -> Deployment hierarchy.

    Parameters
    ----------
    repository:
        The store to resolve against.
    """

    def __init__(self, repository: Repository) -> None:
        self._repository = repository

    def resolve_product(self, product_id: str) -> Product:
        product = self._repository.find_product(product_id)
        if product is None:
            raise NotFoundError(f"No such product: {product_id}")
        return product

    def resolve_version(self, product_id: str, version_id: str) -> Version:
        """Resolve a version.

        A missing product and a missing version raise the same error shape;
        callers that need to tell them apart call ``resolve_product`` first.
        """
        version = self._repository.find_version(product_id, version_id)
        if version is None:
            raise NotFoundError(f"No such version: {product_id}/{version_id}")
        return version

    def resolve_deployment(
        self, product_id: str, version_id: str, order: str | int
    ) -> Deployment:
        index = parse_order(order)
        version = self.resolve_version(product_id, version_id)
        deployment = version.deployment(index)
        if deployment is None:
            raise NotFoundError(
                f"No such deployment: {product_id}/{version_id}/{index}"
            )
        return deployment
