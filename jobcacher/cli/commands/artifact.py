"""``jobcacher exists|upload|download|delete`` — cache artifact operations."""

from __future__ import annotations

from pathlib import Path

import typer

from jobcacher.cli.commands._client import client_from_context, console, fail
from jobcacher.core.errors import RegistryError
from jobcacher.models.registry import InvalidReferenceError

_FAILURES = (RegistryError, InvalidReferenceError, OSError)


def exists_cmd(
    ctx: typer.Context,
    full_name: str = typer.Argument(..., help="Cache owner, e.g. the job full name."),
    path: str = typer.Argument(..., help="Archive name within the owner."),
) -> None:
    """Exit 0 if an artifact is cached for the key, 1 otherwise."""
    client = client_from_context(ctx)
    if client.exists(full_name, path):
        console.print(f"[green]present[/green] {client.reference(full_name, path)}")
        return
    console.print(f"[yellow]absent[/yellow] {full_name}/{path}")
    raise typer.Exit(code=1)


def upload_cmd(
    ctx: typer.Context,
    full_name: str = typer.Argument(..., help="Cache owner, e.g. the job full name."),
    path: str = typer.Argument(..., help="Archive name; its extension selects the media type."),
    source: Path = typer.Argument(..., help="Local archive to upload."),
) -> None:
    """Push a local archive as the ``latest`` artifact for the key."""
    client = client_from_context(ctx)
    try:
        manifest = client.upload(full_name, path, source)
    except _FAILURES as exc:
        raise fail(str(exc)) from exc
    console.print(
        f"[green]Uploaded[/green] {source} -> {client.reference(full_name, path)} "
        f"[dim]({manifest.digest})[/dim]"
    )


def download_cmd(
    ctx: typer.Context,
    full_name: str = typer.Argument(..., help="Cache owner, e.g. the job full name."),
    path: str = typer.Argument(..., help="Archive name within the owner."),
    target: Path = typer.Argument(..., help="Destination file; replaced if present."),
) -> None:
    """Fetch the cached archive for the key into a local file."""
    client = client_from_context(ctx)
    try:
        client.download(full_name, path, target)
    except _FAILURES as exc:
        raise fail(str(exc)) from exc
    console.print(f"[green]Downloaded[/green] {client.reference(full_name, path)} -> {target}")


def delete_cmd(
    ctx: typer.Context,
    full_name: str = typer.Argument(..., help="Cache owner, e.g. the job full name."),
    path: str = typer.Argument(..., help="Archive name within the owner."),
) -> None:
    """Delete the cached artifact for the key."""
    client = client_from_context(ctx)
    try:
        client.delete(full_name, path)
    except _FAILURES as exc:
        raise fail(str(exc)) from exc
    console.print(f"[green]Deleted[/green] {client.reference(full_name, path)}")
