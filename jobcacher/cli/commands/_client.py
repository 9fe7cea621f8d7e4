"""Shared client construction for CLI subcommands."""

from __future__ import annotations

import typer
from rich.console import Console

from jobcacher.config import CacheSettings
from jobcacher.core.registry_client import RegistryClient

console = Console()
err_console = Console(stderr=True)


def build_client(settings: CacheSettings) -> RegistryClient:
    """Create a ``RegistryClient`` from resolved CLI/environment settings."""
    return RegistryClient(settings.to_registry_config())


def client_from_context(ctx: typer.Context) -> RegistryClient:
    settings = ctx.obj if isinstance(ctx.obj, CacheSettings) else CacheSettings()
    return build_client(settings)


def fail(message: str) -> typer.Exit:
    """Print ``message`` as an error and return the exit to raise."""
    err_console.print(f"[red]Error:[/red] {message}")
    return typer.Exit(code=1)
