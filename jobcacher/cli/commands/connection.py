"""``jobcacher test-connection`` — validate registry URL and credentials."""

from __future__ import annotations

import typer
from rich.panel import Panel

from jobcacher.cli.commands._client import client_from_context, console, fail
from jobcacher.core.errors import RegistryError
from jobcacher.models.registry import InvalidReferenceError


def check_connection_cmd(ctx: typer.Context) -> None:
    """Push and delete a throwaway artifact under the configured namespace."""
    client = client_from_context(ctx)
    config = client.config
    try:
        client.test_connection()
    except (RegistryError, InvalidReferenceError, OSError) as exc:
        raise fail(f"Connection test against {config.hostname} failed: {exc}") from exc

    mode = "anonymous" if config.credentials is None else f"user {config.credentials.username}"
    console.print(
        Panel(
            f"Registry: [cyan]{config.hostname}[/cyan]\n"
            f"Namespace: [cyan]{config.namespace}[/cyan]\n"
            f"Auth: {mode}{' (insecure)' if config.is_insecure else ''}",
            title="[bold green]Connection OK[/bold green]",
            border_style="green",
        )
    )
