"""Buildgate: promotion of build artifacts through deployment environments.

Tracks products, their versions and the per-environment deployment records
of each version, and records who authorised each promotion step and when.
  - Frozen Pydantic v2 domain model with structural invariants
  - PENDING -> GRANTED -> PERFORMED authorization state machine
  - Identifier-chain navigation with explicit not-found handling
  - In-memory and SQLite repositories with conditional (CAS) updates
  - Hypermedia presenter and status-coded resource gateway
"""

__version__ = "0.1.0"
__description__ = "Deployment authorization state machine for build promotion pipelines"

from buildgate.core.service import DeploymentService
from buildgate.api.gateway import ResourceGateway

__all__ = ["DeploymentService", "ResourceGateway", "__version__"]
