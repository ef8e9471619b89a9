"""Buildgate data models — all Pydantic v2, all frozen (immutable)."""

from buildgate.models.hierarchy import Deployment, Product, ValidationError, Version
from buildgate.models.pipeline import (
    DEFAULT_ENVIRONMENTS,
    VALID_TRANSITIONS,
    DeploymentStatus,
)

__all__ = [
    # hierarchy
    "Product",
    "Version",
    "Deployment",
    "ValidationError",
    # pipeline
    "DeploymentStatus",
    "VALID_TRANSITIONS",
    "DEFAULT_ENVIRONMENTS",
]
