"""Product / Version / Deployment hierarchy — frozen Pydantic v2 models.

Every model validates its structural invariants on construction and raises
``ValidationError`` naming the invariant that broke. Field-level failures
(wrong type, unknown status, missing field) are reported the same way, as
``<model>.<field>``. Instances are frozen; a changed record is a new
instance produced with ``model_copy``.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime
from typing import Any, ClassVar

from pydantic import BaseModel, ConfigDict, ModelWrapValidatorHandler, model_validator
from pydantic import ValidationError as FieldValidationError

from buildgate.models.pipeline import DeploymentStatus


class ValidationError(Exception):
    """Raised when a domain object violates a structural invariant.

    Parameters
    ----------
    invariant:
        Dotted name of the broken invariant, e.g. ``version.deployment_order``.
    message:
        Human-readable description.
    """

    def __init__(self, invariant: str, message: str) -> None:
        super().__init__(f"{invariant}: {message}")
        self.invariant = invariant
        self.message = message


class _DomainModel(BaseModel):
    """Frozen base that reports field errors as domain ``ValidationError``."""

    model_config = ConfigDict(frozen=True)

    invariant_prefix: ClassVar[str] = "model"

    @model_validator(mode="wrap")
    @classmethod
    def _translate_field_errors(
        cls, data: Any, handler: ModelWrapValidatorHandler[Any]
    ) -> Any:
        try:
            return handler(data)
        except FieldValidationError as exc:
            error = exc.errors()[0]
            field = str(error["loc"][0]) if error["loc"] else "fields"
            raise ValidationError(
                f"{cls.invariant_prefix}.{field}", error["msg"]
            ) from exc


class Deployment(_DomainModel):
    """Promotion record of a Version into one pipeline environment.

    ``order`` is the 0-based position in the pipeline and doubles as the
    identifier within the owning Version.
    """

    invariant_prefix: ClassVar[str] = "deployment"

    order: int
    environment: str
    status: DeploymentStatus = DeploymentStatus.PENDING
    granted_by: str = ""  # empty until granted
    timestamp: datetime | None = None  # authorization instant

    @model_validator(mode="after")
    def _check_invariants(self) -> Deployment:
        if self.order < 0:
            raise ValidationError(
                "deployment.order", f"order must be >= 0, got {self.order}"
            )
        if not self.environment.strip():
            raise ValidationError(
                "deployment.environment", "environment must not be empty"
            )
        return self

    @property
    def is_pending(self) -> bool:
        return self.status == DeploymentStatus.PENDING


class Version(_DomainModel):
    """One release of a Product with its ordered pipeline of Deployments."""

    invariant_prefix: ClassVar[str] = "version"

    id: str
    description: str = ""
    deployments: tuple[Deployment, ...] = ()

    @model_validator(mode="after")
    def _check_invariants(self) -> Version:
        if not self.id.strip():
            raise ValidationError("version.id", "version id must not be empty")
        orders = [d.order for d in self.deployments]
        if orders != list(range(len(orders))):
            raise ValidationError(
                "version.deployment_order",
                f"deployment orders of version {self.id!r} must be exactly "
                f"0..{len(orders) - 1} in pipeline order, got {orders}",
            )
        return self

    @classmethod
    def for_pipeline(
        cls, version_id: str, description: str, environments: Iterable[str]
    ) -> Version:
        """Build a Version with one PENDING Deployment per environment."""
        return cls(
            id=version_id,
            description=description,
            deployments=tuple(
                Deployment(order=i, environment=env)
                for i, env in enumerate(environments)
            ),
        )

    def deployment(self, order: int) -> Deployment | None:
        for deployment in self.deployments:
            if deployment.order == order:
                return deployment
        return None

    def with_deployment(self, deployment: Deployment) -> Version:
        """Return a copy with the slot at ``deployment.order`` replaced."""
        if self.deployment(deployment.order) is None:
            raise ValidationError(
                "version.deployment_order",
                f"version {self.id!r} has no deployment at order {deployment.order}",
            )
        replaced = tuple(
            deployment if d.order == deployment.order else d
            for d in self.deployments
        )
        return self.model_copy(update={"deployments": replaced})


class Product(_DomainModel):
    """A deployable software unit and its releases, in release order."""

    invariant_prefix: ClassVar[str] = "product"

    id: str
    description: str = ""
    versions: tuple[Version, ...] = ()

    @model_validator(mode="after")
    def _check_invariants(self) -> Product:
        if not self.id.strip():
            raise ValidationError("product.id", "product id must not be empty")
        seen: set[str] = set()
        for version in self.versions:
            if version.id in seen:
                raise ValidationError(
                    "product.version_ids",
                    f"duplicate version {version.id!r} in product {self.id!r}",
                )
            seen.add(version.id)
        return self

    def version(self, version_id: str) -> Version | None:
        for version in self.versions:
            if version.id == version_id:
                return version
        return None

    def with_version(self, version: Version) -> Product:
        """Return a copy with ``version`` replaced, or appended if new."""
        if self.version(version.id) is None:
            return self.model_copy(update={"versions": (*self.versions, version)})
        replaced = tuple(
            version if v.id == version.id else v for v in self.versions
        )
        return self.model_copy(update={"versions": replaced})
