"""Adversarial tests — attempts to bypass the deployment lifecycle.

These tests verify that:
1. Only PENDING -> GRANTED and GRANTED -> PERFORMED are reachable
2. PERFORMED is terminal
3. Refused transitions never mutate the input record
4. Model invariants cannot be sidestepped by construction or copying
"""

from __future__ import annotations

import pytest
from pydantic import ValidationError as PydanticValidationError

from buildgate.core.lifecycle import DeploymentLifecycle, InvalidTransitionError
from buildgate.core.navigator import BadIdentifierError, parse_order
from buildgate.core.service import DeploymentService
from buildgate.models.hierarchy import Deployment, ValidationError, Version
from buildgate.models.pipeline import VALID_TRANSITIONS, DeploymentStatus


@pytest.fixture
def lifecycle() -> DeploymentLifecycle:
    return DeploymentLifecycle()


def _at(status: DeploymentStatus, who: str = "") -> Deployment:
    return Deployment(order=0, environment="Production", status=status, granted_by=who)


class TestInvalidTransitionAttempts:
    """Try to make transitions that violate the VALID_TRANSITIONS table."""

    def test_cannot_skip_pending_to_performed(self, lifecycle):
        with pytest.raises(InvalidTransitionError):
            lifecycle.mark_performed(_at(DeploymentStatus.PENDING))

    def test_cannot_regrant(self, lifecycle):
        with pytest.raises(InvalidTransitionError):
            lifecycle.approve(_at(DeploymentStatus.GRANTED, "alice"), "mallory")

    def test_performed_is_terminal(self, lifecycle):
        performed = _at(DeploymentStatus.PERFORMED, "alice")
        assert lifecycle.get_available_transitions(performed) == set()
        with pytest.raises(InvalidTransitionError):
            lifecycle.approve(performed, "mallory")
        with pytest.raises(InvalidTransitionError):
            lifecycle.mark_performed(performed)

    @pytest.mark.parametrize("source", list(DeploymentStatus))
    @pytest.mark.parametrize("target", list(DeploymentStatus))
    def test_table_is_exhaustive(self, lifecycle, source, target):
        expected = target in VALID_TRANSITIONS[source]
        assert lifecycle.can_transition(_at(source, "x"), target) is expected

    def test_nothing_returns_to_pending(self):
        assert all(DeploymentStatus.PENDING not in t for t in VALID_TRANSITIONS.values())

    def test_refusal_leaves_input_untouched(self, lifecycle):
        granted = _at(DeploymentStatus.GRANTED, "alice")
        with pytest.raises(InvalidTransitionError):
            lifecycle.approve(granted, "mallory")
        assert granted.granted_by == "alice"
        assert granted.status == DeploymentStatus.GRANTED


class TestIdentitySpoofing:
    @pytest.mark.parametrize("identity", ["", " ", "\t\n"])
    def test_blank_identity_refused(self, lifecycle, identity):
        with pytest.raises(ValidationError) as info:
            lifecycle.approve(_at(DeploymentStatus.PENDING), identity)
        assert info.value.invariant == "deployment.granted_by"


class TestModelTampering:
    @pytest.mark.parametrize("status", ["approved", "GRANTED", "", None, 1])
    def test_illegal_status_is_a_domain_error(self, status):
        with pytest.raises(ValidationError) as info:
            Deployment(order=0, environment="Production", status=status)
        assert info.value.invariant == "deployment.status"

    def test_frozen_deployment(self):
        deployment = _at(DeploymentStatus.PENDING)
        with pytest.raises(PydanticValidationError):
            deployment.status = DeploymentStatus.GRANTED  # type: ignore[misc]

    def test_version_rejects_order_gaps(self):
        with pytest.raises(ValidationError):
            Version(
                id="1.0.0",
                deployments=(
                    Deployment(order=0, environment="Integration"),
                    Deployment(order=2, environment="Production"),
                ),
            )

    def test_version_rejects_duplicate_orders(self):
        with pytest.raises(ValidationError):
            Version(
                id="1.0.0",
                deployments=(
                    Deployment(order=0, environment="Integration"),
                    Deployment(order=0, environment="Production"),
                ),
            )


class TestIdentifierFuzz:
    @pytest.mark.parametrize(
        "raw", ["", "-1", "+1", "1.0", "1 0", "1e3", "0x1", "²", "١", True, -3]
    )
    def test_malformed_order_rejected(self, raw):
        with pytest.raises(BadIdentifierError):
            parse_order(raw)

    @pytest.mark.parametrize("raw", ["../1", "0; DROP TABLE deployment", "%00"])
    def test_hostile_order_never_reaches_store(self, service: DeploymentService, raw):
        with pytest.raises(BadIdentifierError):
            service.approve_deployment("gaia", "1.0.2", raw, "mallory")
        assert all(d.is_pending for d in service.list_deployments("gaia", "1.0.2"))
