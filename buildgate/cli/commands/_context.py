"""Shared helpers for CLI commands: service construction and error output."""

from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console

from buildgate.config import BuildgateConfig, enforce_production_constraints
from buildgate.core.lifecycle import InvalidTransitionError
from buildgate.core.navigator import BadIdentifierError, NotFoundError
from buildgate.core.repository import ConflictError, StorageError
from buildgate.core.service import DeploymentService
from buildgate.core.sqlite_repository import SQLiteRepository
from buildgate.models.hierarchy import ValidationError

# Typed core failures a command reports and exits on.
CLI_ERRORS = (
    NotFoundError,
    BadIdentifierError,
    ValidationError,
    InvalidTransitionError,
    ConflictError,
    StorageError,
)

_ERROR_TITLES: dict[type[Exception], str] = {
    NotFoundError: "Not found",
    BadIdentifierError: "Bad identifier",
    ValidationError: "Invalid input",
    InvalidTransitionError: "Invalid transition",
    ConflictError: "Conflict",
    StorageError: "Storage error",
}


def build_service(db_path: str | None) -> DeploymentService:
    """Service over ``db_path`` if given, else over the configured store."""
    config = BuildgateConfig()
    enforce_production_constraints(config)
    if not db_path:
        return DeploymentService.from_config(config)
    return DeploymentService(
        SQLiteRepository(Path(db_path)), environments=config.pipeline_environments
    )


def fail(console: Console, exc: Exception) -> None:
    """Print a typed failure and exit non-zero."""
    title = next(
        (t for cls, t in _ERROR_TITLES.items() if isinstance(exc, cls)), "Error"
    )
    console.print(f"[bold red]{title}:[/bold red] {exc}")
    raise typer.Exit(code=1)


DB_OPTION = typer.Option(
    None,
    "--db",
    "-d",
    help="Path to the SQLite database (defaults to BUILDGATE_DB_PATH).",
)
