"""Buildgate CLI — Typer application with Rich output."""
