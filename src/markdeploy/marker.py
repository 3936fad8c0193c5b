# Copyright 2025 Ben Mensi
# SPDX-License-Identifier: Apache-2.0

"""
Marker - validate CLI input and build the deployment event.

Knows nothing about the network; the result of build_deployment() is
serialized and handed to LogstashClient.send_line().
"""

from datetime import datetime, timezone
from typing import List, Optional, Sequence

from markdeploy.errors import ValidationError
from markdeploy.schemas import Application, Deployment


def _utcnow() -> datetime:
    """Return current UTC time."""
    return datetime.now(timezone.utc)


def validate_inputs(
    app: Optional[str],
    appversion: Optional[str],
    environment: Optional[str],
    targets: Optional[Sequence[str]],
    port: int = 9000,
    timeout: int = 5000,
) -> None:
    """
    Check that a marker can be sent with the given input.

    Raises:
        ValidationError: on the first missing or out of range value
    """
    if not app:
        raise ValidationError("can't mark a deployment without the application name")
    if not appversion:
        raise ValidationError("can't mark a deployment without the application version")
    if not environment:
        raise ValidationError("can't mark a deployment without an environment")
    if not targets:
        raise ValidationError("can't mark a deployment without at least 1 host")
    if not 1 <= port <= 65535:
        raise ValidationError("port must be between 1 and 65535")
    if timeout <= 0:
        raise ValidationError("timeout must be a positive number of milliseconds")


def build_deployment(
    app: str,
    appversion: str,
    environment: str,
    targets: Sequence[str],
    project: Optional[str] = None,
    reason: Optional[str] = None,
    client: Optional[str] = None,
) -> Deployment:
    """Build a Deployment stamped with the current time."""
    hosts: List[str] = list(targets)
    return Deployment(
        timestamp=_utcnow(),
        application=Application(name=app, version=appversion),
        environment=environment,
        hosts=hosts,
        project=project or "",
        reason=reason or "",
        client=client or "",
    )
