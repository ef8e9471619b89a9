"""Deployment status model and the transition table that governs it."""

from __future__ import annotations

from enum import Enum


class DeploymentStatus(str, Enum):
    """Authorization state of a single environment promotion."""

    PENDING = "pending"
    GRANTED = "granted"  # authorised, waiting for actuation
    PERFORMED = "performed"


# Valid status transitions, enforced by DeploymentLifecycle.
# PERFORMED is terminal. GRANTED -> PERFORMED is only driven by actuation.
VALID_TRANSITIONS: dict[DeploymentStatus, set[DeploymentStatus]] = {
    DeploymentStatus.PENDING: {DeploymentStatus.GRANTED},
    DeploymentStatus.GRANTED: {DeploymentStatus.PERFORMED},
    DeploymentStatus.PERFORMED: set(),  # terminal
}


# The standard promotion pipeline, in order.
DEFAULT_ENVIRONMENTS: list[str] = [
    "Integration",
    "Quality",
    "Certification",
    "Production",
]
