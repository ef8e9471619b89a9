"""Resource gateway — the boundary between the core and a transport layer.

Every operation returns a ``Response``. Typed failures from the core are
mapped to status codes here and nowhere else; untyped exceptions are not
caught and propagate to the transport.

Status mapping
--------------
- 404 : NotFoundError
- 400 : BadIdentifierError
- 422 : ValidationError
- 409 : InvalidTransitionError, ConflictError
- 503 : StorageError
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

from pydantic import BaseModel, ConfigDict

from buildgate.api.presenter import Presenter
from buildgate.core.lifecycle import InvalidTransitionError
from buildgate.core.navigator import BadIdentifierError, NotFoundError
from buildgate.core.repository import ConflictError, StorageError
from buildgate.core.service import DeploymentService
from buildgate.models.hierarchy import Product, ValidationError

logger = logging.getLogger(__name__)


_ERROR_STATUS: list[tuple[type[Exception], int, str]] = [
    (NotFoundError, 404, "not_found"),
    (BadIdentifierError, 400, "bad_identifier"),
    (ValidationError, 422, "validation_error"),
    (InvalidTransitionError, 409, "invalid_transition"),
    (ConflictError, 409, "conflict"),
    (StorageError, 503, "storage_error"),
]


class Response(BaseModel):
    """Status code plus JSON-ready body."""

    model_config = ConfigDict(frozen=True)

    status_code: int
    body: dict[str, Any] | None = None

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300


def error_response(exc: Exception) -> Response | None:
    """Map a typed core failure to a Response, or None if it is not one."""
    for exc_type, status, code in _ERROR_STATUS:
        if isinstance(exc, exc_type):
            body: dict[str, Any] = {"error": code, "message": str(exc)}
            if isinstance(exc, ValidationError):
                body["invariant"] = exc.invariant
            return Response(status_code=status, body=body)
    return None


class ResourceGateway:
    """Exposes the service operation set as status-coded responses.

    Parameters
    ----------
    service:
        The deployment service to delegate to.
    presenter:
        Renders successful results.
    """

    def __init__(self, service: DeploymentService, presenter: Presenter | None = None) -> None:
        self.service = service
        self.presenter = presenter or Presenter()

    def _call(self, operation: Callable[[], Response]) -> Response:
        try:
            return operation()
        except Exception as exc:
            response = error_response(exc)
            if response is None:
                raise
            if response.status_code >= 500:
                logger.error("Storage failure: %s", exc)
            else:
                logger.info("Request refused (%d): %s", response.status_code, exc)
            return response

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def list_products(self) -> Response:
        return self._call(
            lambda: Response(
                status_code=200,
                body=self.presenter.render_products(self.service.list_products()),
            )
        )

    def get_product(self, product_id: str) -> Response:
        return self._call(
            lambda: Response(
                status_code=200,
                body=self.presenter.render_product(self.service.get_product(product_id)),
            )
        )

    def list_versions(self, product_id: str) -> Response:
        return self._call(
            lambda: Response(
                status_code=200,
                body=self.presenter.render_versions(
                    product_id, self.service.list_versions(product_id)
                ),
            )
        )

    def get_version(self, product_id: str, version_id: str) -> Response:
        return self._call(
            lambda: Response(
                status_code=200,
                body=self.presenter.render_version(
                    product_id, self.service.get_version(product_id, version_id)
                ),
            )
        )

    def list_deployments(self, product_id: str, version_id: str) -> Response:
        return self._call(
            lambda: Response(
                status_code=200,
                body=self.presenter.render_deployments(
                    product_id,
                    version_id,
                    self.service.list_deployments(product_id, version_id),
                ),
            )
        )

    def get_deployment(self, product_id: str, version_id: str, order: str) -> Response:
        return self._call(
            lambda: Response(
                status_code=200,
                body=self.presenter.render_deployment(
                    product_id,
                    version_id,
                    self.service.get_deployment(product_id, version_id, order),
                ),
            )
        )

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def approve_deployment(
        self, product_id: str, version_id: str, order: str, approver_identity: str
    ) -> Response:
        return self._call(
            lambda: Response(
                status_code=200,
                body=self.presenter.render_deployment(
                    product_id,
                    version_id,
                    self.service.approve_deployment(
                        product_id, version_id, order, approver_identity
                    ),
                ),
            )
        )

    def create_product(self, payload: dict[str, Any]) -> Response:
        """Create a product from an inbound payload (``id``, ``description``)."""

        def _create() -> Response:
            product = Product(
                id=str(payload.get("id", "")),
                description=str(payload.get("description", "")),
            )
            self.service.register_product(product)
            return Response(
                status_code=201, body=self.presenter.render_product(product)
            )

        return self._call(_create)

    def create_version(self, product_id: str, payload: dict[str, Any]) -> Response:
        """Create a version (``id``, ``description``) on the configured pipeline."""

        def _create() -> Response:
            version = self.service.add_version(
                product_id,
                str(payload.get("id", "")),
                str(payload.get("description", "")),
            )
            return Response(
                status_code=201,
                body=self.presenter.render_version(product_id, version),
            )

        return self._call(_create)

    def delete_product(self, product_id: str) -> Response:
        def _delete() -> Response:
            self.service.delete_product(product_id)
            return Response(status_code=204)

        return self._call(_delete)
