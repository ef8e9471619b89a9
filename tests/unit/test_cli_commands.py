"""Unit tests for the CLI — Typer command registration and basic behavior.

Exercises the app through typer.testing.CliRunner against a temporary
SQLite database.
"""

from __future__ import annotations

from pathlib import Path

import pytest
from typer.testing import CliRunner

from buildgate.cli.app import app
from buildgate.core.sqlite_repository import SQLiteRepository
from buildgate.models.pipeline import DeploymentStatus

runner = CliRunner()


@pytest.fixture
def db(tmp_dir: Path) -> str:
    """Path to a seeded temporary database."""
    path = tmp_dir / "cli.db"
    result = runner.invoke(app, ["seed", "--db", str(path)])
    assert result.exit_code == 0, result.output
    return str(path)


# ---------------------------------------------------------------------------
# Test: CLI help and registration
# ---------------------------------------------------------------------------


class TestCliApp:
    """The CLI must register all expected commands and show help."""

    def test_no_args_shows_help(self):
        result = runner.invoke(app, [])
        # Typer's no_args_is_help may exit with 0 or 2 depending on version
        assert result.exit_code in (0, 2)
        assert "usage" in result.output.lower()

    def test_help_flag(self):
        result = runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        for name in ("seed", "products", "show", "approve", "add-version", "render"):
            assert name in result.output

    @pytest.mark.parametrize(
        "command", ["seed", "products", "show", "approve", "add-version", "render"]
    )
    def test_command_help(self, command):
        result = runner.invoke(app, [command, "--help"])
        assert result.exit_code == 0


class TestSeedAndList:
    def test_seed_reports_products(self, tmp_dir: Path):
        result = runner.invoke(app, ["seed", "--db", str(tmp_dir / "s.db")])
        assert result.exit_code == 0
        assert "gaia" in result.output
        assert "siparium" in result.output

    def test_seed_twice_is_noop(self, db: str):
        result = runner.invoke(app, ["seed", "--db", db])
        assert result.exit_code == 0
        assert "nothing to do" in result.output

    def test_products(self, db: str):
        result = runner.invoke(app, ["products", "--db", db])
        assert result.exit_code == 0
        assert "gaia" in result.output

    def test_products_empty(self, tmp_dir: Path):
        result = runner.invoke(app, ["products", "--db", str(tmp_dir / "empty.db")])
        assert result.exit_code == 0
        assert "No products" in result.output


class TestShow:
    def test_show_product(self, db: str):
        result = runner.invoke(app, ["show", "gaia", "--db", db])
        assert result.exit_code == 0
        assert "1.0.2" in result.output

    def test_show_version(self, db: str):
        result = runner.invoke(app, ["show", "gaia", "1.0.0", "--db", db])
        assert result.exit_code == 0
        assert "Certification" in result.output
        assert "PERFORMED" in result.output

    def test_show_missing(self, db: str):
        result = runner.invoke(app, ["show", "ghost", "--db", db])
        assert result.exit_code == 1
        assert "Not found" in result.output


class TestApprove:
    def test_approve(self, db: str):
        result = runner.invoke(app, ["approve", "gaia", "1.0.0", "3", "--as", "alice", "--db", db])
        assert result.exit_code == 0, result.output
        assert "approved" in result.output
        stored = SQLiteRepository(Path(db)).find_deployment("gaia", "1.0.0", 3)
        assert stored.status == DeploymentStatus.GRANTED
        assert stored.granted_by == "alice"

    def test_reapprove_refused(self, db: str):
        runner.invoke(app, ["approve", "gaia", "1.0.0", "3", "--as", "alice", "--db", db])
        result = runner.invoke(app, ["approve", "gaia", "1.0.0", "3", "--as", "bob", "--db", db])
        assert result.exit_code == 1
        assert "Invalid transition" in result.output

    def test_bad_identifier(self, db: str):
        result = runner.invoke(app, ["approve", "gaia", "1.0.0", "abc", "--as", "alice", "--db", db])
        assert result.exit_code == 1
        assert "Bad identifier" in result.output

    def test_identity_is_required(self, db: str):
        result = runner.invoke(app, ["approve", "gaia", "1.0.0", "3", "--db", db])
        assert result.exit_code != 0


class TestAddVersionAndRender:
    def test_add_version(self, db: str):
        result = runner.invoke(app, ["add-version", "gaia", "1.1.0", "-m", "next", "--db", db])
        assert result.exit_code == 0, result.output
        assert "Production" in result.output

    def test_add_duplicate_version(self, db: str):
        result = runner.invoke(app, ["add-version", "gaia", "1.0.0", "--db", db])
        assert result.exit_code == 1
        assert "Conflict" in result.output

    def test_render_deployment(self, db: str):
        result = runner.invoke(app, ["render", "gaia", "1.0.0", "2", "--db", db])
        assert result.exit_code == 0
        assert '"status": 200' in result.output
        assert "Certification" in result.output

    def test_render_missing(self, db: str):
        result = runner.invoke(app, ["render", "gaia", "9.9.9", "--db", db])
        assert result.exit_code == 1
        assert '"status": 404' in result.output
