"""Deployment lifecycle — the authorization state machine.

Enforces:
- Valid status transitions only (VALID_TRANSITIONS table)
- Every grant is attributed to an identity and an instant
- No sequential gating: each environment is approved independently

The lifecycle holds no storage. Callers persist the returned record.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from buildgate.models.hierarchy import Deployment, ValidationError
from buildgate.models.pipeline import VALID_TRANSITIONS, DeploymentStatus

logger = logging.getLogger(__name__)


class InvalidTransitionError(RuntimeError):
    """Raised when a requested status transition is not valid."""

    def __init__(
        self,
        deployment: Deployment,
        target: DeploymentStatus,
        detail: str = "",
    ) -> None:
        allowed = sorted(s.value for s in VALID_TRANSITIONS[deployment.status])
        message = (
            f"Cannot transition deployment {deployment.order} "
            f"({deployment.environment}) from {deployment.status.value} "
            f"to {target.value}. Allowed: {allowed}"
        )
        if detail:
            message = f"{message}. {detail}"
        super().__init__(message)
        self.deployment = deployment
        self.target = target


class DeploymentLifecycle:
    """Applies single-step status transitions to Deployment records."""

    def can_transition(
        self, deployment: Deployment, target: DeploymentStatus
    ) -> bool:
        return target in VALID_TRANSITIONS.get(deployment.status, set())

    def get_available_transitions(
        self, deployment: Deployment
    ) -> set[DeploymentStatus]:
        """Return the set of valid target statuses for a deployment."""
        return set(VALID_TRANSITIONS.get(deployment.status, set()))

    def approve(
        self,
        deployment: Deployment,
        granting_identity: str,
        now: datetime | None = None,
    ) -> Deployment:
        """Grant a PENDING deployment.

        Returns a new Deployment with status GRANTED, ``granted_by`` set to
        ``granting_identity`` and ``timestamp`` set to ``now``. Raises
        ``InvalidTransitionError`` for any other current status; the input
        record is never modified.
        """
        if not granting_identity or not granting_identity.strip():
            raise ValidationError(
                "deployment.granted_by", "granting identity must not be empty"
            )
        self._check(deployment, DeploymentStatus.GRANTED)

        granted = deployment.model_copy(
            update={
                "status": DeploymentStatus.GRANTED,
                "granted_by": granting_identity,
                "timestamp": now or datetime.now(timezone.utc),
            }
        )
        logger.info(
            "Deployment %d (%s) granted by %s",
            granted.order,
            granted.environment,
            granting_identity,
        )
        return granted

    def mark_performed(self, deployment: Deployment) -> Deployment:
        """Record that actuation of a GRANTED deployment completed.

        Reserved for an actuation collaborator; no service operation calls it.
        """
        self._check(deployment, DeploymentStatus.PERFORMED)
        return deployment.model_copy(update={"status": DeploymentStatus.PERFORMED})

    def _check(self, deployment: Deployment, target: DeploymentStatus) -> None:
        if not self.can_transition(deployment, target):
            logger.warning(
                "Refused %s->%s on deployment %d (%s)",
                deployment.status.value,
                target.value,
                deployment.order,
                deployment.environment,
            )
            raise InvalidTransitionError(deployment, target)
