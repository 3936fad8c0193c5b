# Copyright 2025 Ben Mensi
# SPDX-License-Identifier: Apache-2.0

"""
Config command for markdeploy.

Validates and shows the config file that supplies `mark` defaults.
"""

from typing import Optional

import typer
import yaml

from markdeploy.config import config_path as resolve_config_path
from markdeploy.config import load_config, to_default_map
from markdeploy.errors import ConfigError

app = typer.Typer(help="Manage and validate configuration")


def _config_path(ctx: typer.Context, config_path: Optional[str]) -> Optional[str]:
    # Fall back to the global --config option
    if config_path:
        return config_path
    if ctx.obj:
        return ctx.obj.get("config_path")
    return None


@app.command()
def validate(
    ctx: typer.Context,
    config_path: str = typer.Option(None, "--config", "-c", help="Path to config file"),
):
    """
    Validate configuration file.

    Checks that the config file exists and is valid YAML.
    """
    config_path = _config_path(ctx, config_path)
    typer.echo(f"Validating configuration: {resolve_config_path(config_path)}")
    typer.echo()

    try:
        config = load_config(config_path)
        defaults = to_default_map(config)
        typer.echo("Configuration structure is valid")
        typer.echo()
        for key, value in defaults.items():
            typer.echo(f"  {key}: {value}")
        typer.echo()
        typer.echo("Configuration validation complete!")
    except FileNotFoundError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)
    except ConfigError as e:
        typer.echo(f"Validation failed: {e}", err=True)
        raise typer.Exit(1)


@app.command()
def show(
    ctx: typer.Context,
    config_path: str = typer.Option(None, "--config", "-c", help="Path to config file"),
):
    """Print the loaded configuration as YAML."""
    try:
        config = load_config(_config_path(ctx, config_path))
    except (FileNotFoundError, ConfigError) as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)

    if not config:
        typer.echo("No configuration found")
        return
    typer.echo(yaml.safe_dump(config, default_flow_style=False, sort_keys=False).rstrip())
