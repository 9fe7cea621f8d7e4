"""Main Typer application — imports and registers all CLI commands.

Entry point: ``jobcacher`` (configured via pyproject.toml scripts).

Connection options given before the subcommand override the
``JOBCACHER_*`` environment settings.
"""

from __future__ import annotations

import logging
from typing import Any

import typer
from rich.logging import RichHandler

from jobcacher.cli.commands.artifact import delete_cmd, download_cmd, exists_cmd, upload_cmd
from jobcacher.cli.commands.connection import check_connection_cmd
from jobcacher.config import CacheSettings

app = typer.Typer(
    name="jobcacher",
    help="Jobcacher: cache build archives as artifacts in an OCI registry.",
    no_args_is_help=True,
    rich_markup_mode="rich",
    add_completion=False,
)

# Register subcommands
app.command(name="exists", help="Check whether an artifact is cached for a key.")(exists_cmd)
app.command(name="upload", help="Upload an archive for a key.")(upload_cmd)
app.command(name="download", help="Download the archive cached for a key.")(download_cmd)
app.command(name="delete", help="Delete the artifact cached for a key.")(delete_cmd)
app.command(name="test-connection", help="Validate registry URL and credentials.")(
    check_connection_cmd
)


@app.callback()
def main_callback(
    ctx: typer.Context,
    registry_url: str = typer.Option(None, "--registry-url", help="Registry host or URL."),
    namespace: str = typer.Option(None, "--namespace", help="Namespace for the connection test."),
    username: str = typer.Option(None, "--username", help="Registry username."),
    password: str = typer.Option(None, "--password", help="Registry password."),
    insecure: bool = typer.Option(
        None, "--insecure/--secure", help="Force plain HTTP without TLS verification, or HTTPS."
    ),
    log_level: str = typer.Option(None, "--log-level", help="Logging level, e.g. DEBUG."),
) -> None:
    """Resolve settings and configure logging for every subcommand."""
    overrides: dict[str, Any] = {
        "registry_url": registry_url,
        "namespace": namespace,
        "username": username,
        "password": password,
        "insecure": insecure,
        "log_level": log_level,
    }
    settings = CacheSettings(**{k: v for k, v in overrides.items() if v is not None})
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(message)s",
        handlers=[RichHandler(show_path=False)],
    )
    ctx.obj = settings


def main() -> None:
    """CLI entry point."""
    app()


if __name__ == "__main__":
    main()
