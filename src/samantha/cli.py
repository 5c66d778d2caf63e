"""Samantha command line interface."""

from __future__ import annotations

import asyncio
from pathlib import Path

import typer
from loguru import logger
from pydantic import ValidationError

from samantha.app import serve
from samantha.config import Settings
from samantha.errors import ConfigurationError
from samantha.logging_utils import configure_logging
from samantha.registry import default_registry

app = typer.Typer(name="samantha", help="Route chat messages to a natural-language back-end.", add_completion=False)


def _load_settings(frontend_config: Path | None, backend_config: Path | None) -> Settings:
    updates: dict[str, object] = {}
    if frontend_config is not None:
        updates["frontend_config_file"] = frontend_config
    if backend_config is not None:
        updates["backend_config_file"] = backend_config
    settings = Settings()
    if updates:
        settings = settings.model_copy(update=updates)
    return settings


@app.command("run")
def run(
    frontend_config: Path | None = typer.Option(None, "--frontend-config", "-f", help="Frontend providers file"),  # noqa: B008
    backend_config: Path | None = typer.Option(None, "--backend-config", "-b", help="Backend provider file"),  # noqa: B008
) -> None:
    """Start the activated providers until SIGINT or SIGTERM."""

    try:
        settings = _load_settings(frontend_config, backend_config)
    except ValidationError as exc:
        typer.echo(f"error: invalid settings: {exc}", err=True)
        raise typer.Exit(1) from exc

    configure_logging(settings.environment, settings.log_level)
    try:
        asyncio.run(serve(settings))
    except ConfigurationError as exc:
        logger.error("samantha.startup.failed error={}", exc)
        typer.echo(f"error: {exc}", err=True)
        raise typer.Exit(1) from exc


@app.command("providers")
def providers() -> None:
    """List the registered front-end and back-end providers."""

    registry = default_registry()
    for label in registry.frontend_labels():
        typer.echo(f"frontend {label}")
    for label in registry.backend_labels():
        typer.echo(f"backend {label}")
