"""Runtime configuration — env-driven via pydantic-settings.

Reads from a .env file and BUILDGATE_* environment variables.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from buildgate.models.pipeline import DEFAULT_ENVIRONMENTS

logger = logging.getLogger(__name__)


class ProductionConfigError(RuntimeError):
    """Raised when the configuration cannot safely run in production.

    Not to be caught; the process should exit.
    """


class BuildgateConfig(BaseSettings):
    """Service configuration with environment variable overrides.

    Examples
    --------
    Override via environment::

        export BUILDGATE_ENVIRONMENT=staging
        export BUILDGATE_LOG_LEVEL=DEBUG
        export BUILDGATE_DB_PATH=/data/builds.db
        export BUILDGATE_PIPELINE_ENVIRONMENTS='["Dev", "Prod"]'
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="BUILDGATE_",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Runtime environment
    environment: str = "development"
    log_level: str = "INFO"
    debug: bool = False

    # Storage
    store_backend: Literal["sqlite", "memory"] = "sqlite"
    db_path: Path = Path(".buildgate/builds.db")

    # Promotion pipeline, in order
    pipeline_environments: list[str] = Field(
        default_factory=lambda: list(DEFAULT_ENVIRONMENTS)
    )

    # Prefix for hypermedia links rendered by the presenter
    base_url: str = "/api/v1"

    @property
    def is_production(self) -> bool:
        """Whether running in production mode."""
        return self.environment == "production"


def enforce_production_constraints(config: BuildgateConfig) -> None:
    """Fail hard if production-critical settings are wrong.

    Constraints enforced in production
    ----------------------------------
    1. Debug mode must be disabled.
    2. The volatile in-memory store must not be used.
    3. The pipeline must name at least one environment.
    """
    if not config.is_production:
        return

    violations: list[str] = []
    if config.debug:
        violations.append(
            "debug=True is not allowed in production. Set BUILDGATE_DEBUG=false."
        )
    if config.store_backend == "memory":
        violations.append(
            "store_backend=memory loses all approvals on restart. "
            "Set BUILDGATE_STORE_BACKEND=sqlite."
        )
    if not config.pipeline_environments:
        violations.append("pipeline_environments must not be empty.")

    if violations:
        for v in violations:
            logger.error("Production constraint violated: %s", v)
        raise ProductionConfigError(
            "Production configuration invalid:\n  - " + "\n  - ".join(violations)
        )
