"""CLI module for webpdf-wsclient."""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import TYPE_CHECKING

import typer

from webpdf_wsclient import __version__
from webpdf_wsclient.config import ConfigurationError, Settings, load_settings
from webpdf_wsclient.errors import ResultException
from webpdf_wsclient.observability import (
    LogLevel,
    configure_logging,
    get_logger,
    set_call_id,
)
from webpdf_wsclient.session import Session
from webpdf_wsclient.webservice import DocumentResult, WebServiceType


if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable


app = typer.Typer(
    name="wsclient",
    help="Command line client for the webPDF web services.",
    no_args_is_help=True,
)

_CONFIG_OPTION = typer.Option(
    None,
    "--config",
    "-c",
    help="Path to configuration file.",
)


def version_callback(value: bool) -> None:  # noqa: FBT001
    """Print version and exit."""
    if value:
        typer.echo(f"wsclient version {__version__}")
        raise typer.Exit


@app.callback()
def main(
    version: bool = typer.Option(  # noqa: FBT001
        False,  # noqa: FBT003
        "--version",
        "-v",
        help="Show version and exit.",
        callback=version_callback,
        is_eager=True,
    ),
    verbose: bool = typer.Option(  # noqa: FBT001
        False,  # noqa: FBT003
        "--verbose",
        "-V",
        help="Enable verbose (debug) logging.",
    ),
    quiet: bool = typer.Option(  # noqa: FBT001
        False,  # noqa: FBT003
        "--quiet",
        "-q",
        help="Only show warnings and errors.",
    ),
) -> None:
    """webPDF web service client."""
    del version

    if verbose and quiet:
        typer.echo("Error: --verbose and --quiet are mutually exclusive.", err=True)
        raise typer.Exit(1)

    if verbose:
        level = LogLevel.DEBUG
    elif quiet:
        level = LogLevel.WARNING
    else:
        level = LogLevel.INFO

    configure_logging(level=level)


def _load(config_file: str | None) -> Settings:
    try:
        return load_settings(config_file)
    except ConfigurationError as exc:
        typer.echo(f"Error: {exc.message}", err=True)
        raise typer.Exit(2) from exc


def _run[T](
    settings: Settings,
    operation: str,
    work: Callable[[Session], Awaitable[T]],
) -> T:
    """Run ``work`` inside a fresh session, reporting client errors on stderr."""
    call_id = set_call_id()
    log = get_logger(__name__, operation=operation)

    async def _session_bound() -> T:
        context = settings.to_session_context()
        provider = settings.to_credential_provider()
        async with await Session.create(context, provider) as session:
            return await work(session)

    try:
        return asyncio.run(_session_bound())
    except ResultException as exc:
        log.warning("cli_operation_failed", error=exc.client_error.name)
        typer.echo(f"Error [{call_id}]: {exc}", err=True)
        raise typer.Exit(1) from exc


@app.command()
def convert(
    source: Path = typer.Argument(
        ...,
        exists=True,
        dir_okay=False,
        readable=True,
        help="Document to convert.",
    ),
    target: Path = typer.Argument(..., dir_okay=False, help="Where to write the PDF."),
    pages: str | None = typer.Option(
        None,
        "--pages",
        "-p",
        help='Page selection, e.g. "1-5".',
    ),
    config_file: str | None = _CONFIG_OPTION,
) -> None:
    """Convert a document to PDF with the converter web service."""
    settings = _load(config_file)

    async def _convert(session: Session) -> Path:
        document = await session.upload_document(
            source.read_bytes(),
            source.name,
        )
        invoker = session.create_web_service(WebServiceType.CONVERTER)
        if pages:
            invoker.set_operation_parameters({"pages": pages})
        result = await invoker.process(document)
        if not isinstance(result, DocumentResult):
            target.write_bytes(result.content)
            return target
        return await result.document.download_to_path(target)

    written = _run(settings, "convert", _convert)
    typer.echo(f"Converted {source} -> {written}")


@app.command()
def status(config_file: str | None = _CONFIG_OPTION) -> None:
    """Open a session and report the authenticated user and server status."""
    settings = _load(config_file)

    async def _status(session: Session) -> list[str]:
        user = await session.get_user()
        lines = [
            f"Server: {session.context.url}",
            f"User: {user.user_name or '(anonymous)'}",
            f"Administrator: {'yes' if user.is_admin else 'no'}",
        ]
        if user.is_admin:
            server_status = await session.administration_manager.fetch_server_status()
            lines.append(f"Version: {server_status.version or 'unknown'}")
        return lines

    for line in _run(settings, "status", _status):
        typer.echo(line)


@app.command(name="check-config")
def check_config(config_file: str | None = _CONFIG_OPTION) -> None:
    """Validate the configuration without contacting the server."""
    settings = _load(config_file)
    try:
        context = settings.to_session_context()
        provider = settings.to_credential_provider()
    except ResultException as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(1) from exc

    typer.echo("Configuration OK")
    typer.echo(f"Server: {context.url} ({context.transport})")
    typer.echo(f"Credentials: {type(provider).__name__}")


__all__ = ["app"]
