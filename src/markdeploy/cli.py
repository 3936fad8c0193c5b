# Copyright 2025 Ben Mensi
# SPDX-License-Identifier: Apache-2.0

"""
Main CLI entry point for markdeploy.

Dumb trigger: parses flags, builds the deployment event, hands the bytes to
LogstashClient. All network behaviour lives in markdeploy.logstash.
"""

import logging
from typing import List, Optional

import typer

from markdeploy import __version__
from markdeploy.config import load_config, to_default_map
from markdeploy.errors import MarkdeployError
from markdeploy.logstash import LogstashClient
from markdeploy.marker import build_deployment, validate_inputs


app = typer.Typer(
    name="markdeploy",
    help="Send deployment marker to logstash",
    no_args_is_help=True,
    # -h is the logstash host
    context_settings={"help_option_names": ["--help"]},
)

logger = logging.getLogger(__name__)


def _fail(error: Exception) -> None:
    typer.echo(f"Error while marking deployment: {error}", err=True)
    raise typer.Exit(1)


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"markdeploy version {__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    ctx: typer.Context,
    config_path: Optional[str] = typer.Option(
        None, "--config", help="Path to config file (default: ~/.markdeploy.yaml)"
    ),
    log_level: str = typer.Option("WARNING", "--log-level", help="Python logging level"),
    show_version: bool = typer.Option(
        False, "--version", "-V", callback=_version_callback, is_eager=True,
        help="Only print the version and exit",
    ),
):
    """Send deployment marker to logstash."""
    logging.basicConfig(
        level=getattr(logging, log_level.upper(), logging.WARNING),
        format="%(levelname)s %(name)s: %(message)s",
    )
    ctx.obj = {"config_path": config_path}

    # Config only feeds `mark` defaults; other commands load it themselves
    if ctx.invoked_subcommand == "mark":
        try:
            file_config = load_config(config_path)
        except (FileNotFoundError, MarkdeployError) as e:
            _fail(e)
        ctx.default_map = {"mark": to_default_map(file_config)}


@app.command()
def mark(
    host: str = typer.Option(
        "127.0.0.1", "--host", "-h", envvar="LOGSTASH_HOST", help="IP or hostname of logstash server"
    ),
    port: int = typer.Option(
        9000, "--port", "-p", envvar="LOGSTASH_PORT", help="Port of the logstash tcp input"
    ),
    timeout: int = typer.Option(
        5000, "--timeout", envvar="LOGSTASH_TIMEOUT", help="tcp timeout in milliseconds"
    ),
    application: Optional[str] = typer.Option(
        None, "--app", "-a", envvar="MARKDEPLOY_APPLICATION",
        help="name of the application/component that was deployed",
    ),
    appversion: Optional[str] = typer.Option(
        None, "--appversion", "-v", envvar="MARKDEPLOY_APPVERSION",
        help="version of the application that was deployed",
    ),
    project: Optional[str] = typer.Option(None, "--project", help="optional projectname"),
    reason: Optional[str] = typer.Option(
        None, "--reason", "-r", help="optional reason why deployment was performed"
    ),
    client: Optional[str] = typer.Option(
        None, "--client", "-c", help="optional client/process/user that performed the deployment"
    ),
    environment: Optional[str] = typer.Option(
        None, "--environment", "--env", "-e", envvar="MARKDEPLOY_ENV",
        help="the environment the application is deployed to",
    ),
    target: Optional[List[str]] = typer.Option(
        None, "--target", "-t", help="one or more hosts that the application was deployed to"
    ),
    silent: bool = typer.Option(False, "--silent", "-s", envvar="MARKDEPLOY_SILENT", help="supress all output"),
    dry_run: bool = typer.Option(False, "--dry-run", help="Show the marker without sending it"),
    verbose: bool = typer.Option(False, "--verbose", help="Show connection details and debug logging"),
):
    """Send a deployment marker to logstash."""
    if verbose and not silent:
        logging.getLogger("markdeploy").setLevel(logging.DEBUG)

    try:
        validate_inputs(application, appversion, environment, target, port=port, timeout=timeout)
    except MarkdeployError as e:
        _fail(e)

    if not silent:
        typer.echo(f"Marking deployment of: {application} ({project or ''}, version: {appversion})")
        typer.echo(f"By: {client or ''}, Reason: {reason or ''}")
        typer.echo(f"Connecting to logstash at {host}:{port} (timeout: {timeout})")

    logstash = LogstashClient(host, port, timeout)
    msg = build_deployment(
        application,
        appversion,
        environment,
        target,
        project=project,
        reason=reason,
        client=client,
    ).to_json()

    if dry_run:
        typer.echo(msg.decode("utf-8"))
        _echo_connection(logstash)
        typer.echo("[DRY RUN] Nothing sent")
        return

    try:
        with logstash:
            logstash.connect()
            if verbose and not silent:
                _echo_connection(logstash)
            if not silent:
                typer.echo(msg.decode("utf-8"))
            logstash.send_line(msg)
    except MarkdeployError as e:
        logger.debug("Marker not delivered", exc_info=True)
        _fail(e)

    if not silent:
        typer.echo("Deployment marked succesfully")


def _echo_connection(logstash: LogstashClient) -> None:
    for key, value in logstash.describe().items():
        if isinstance(value, float):
            value = f"{value:.3f}s"
        typer.echo(f"{key + ':':<12}{value}")


@app.command()
def version():
    """Show version information."""
    typer.echo(f"markdeploy version {__version__}")


# Static commands (config)
from markdeploy.commands import config  # noqa: E402

app.add_typer(config.app, name="config")


def main():
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
