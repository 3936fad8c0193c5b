# Copyright 2025 Ben Mensi
# SPDX-License-Identifier: Apache-2.0

"""Deployment marker schemas.

The serialized form is what logstash receives as one line of JSON:

    {"timestamp":"2017-05-04T10:20:30Z","project":"","application":
     {"name":"x","version":"1.0"},"reason":"","client":"",
     "environment":"prod","hosts":["web01"]}
"""

import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List

RFC3339_FORMAT = "%Y-%m-%dT%H:%M:%SZ"


@dataclass(frozen=True)
class Application:
    """The application/component that was deployed."""
    name: str
    version: str


@dataclass(frozen=True)
class Deployment:
    """A single deployment marker event."""
    timestamp: datetime
    application: Application
    environment: str
    hosts: List[str] = field(default_factory=list)
    project: str = ""
    reason: str = ""
    client: str = ""

    def to_dict(self) -> Dict[str, Any]:
        """Return the event as a dict in wire key order."""
        return {
            "timestamp": format_timestamp(self.timestamp),
            "project": self.project,
            "application": {
                "name": self.application.name,
                "version": self.application.version,
            },
            "reason": self.reason,
            "client": self.client,
            "environment": self.environment,
            "hosts": list(self.hosts),
        }

    def to_json(self) -> bytes:
        """Serialize to compact UTF-8 JSON without a trailing newline."""
        return json.dumps(
            self.to_dict(), separators=(",", ":"), ensure_ascii=False
        ).encode("utf-8")


def format_timestamp(ts: datetime) -> str:
    """Format as RFC 3339 in UTC, second precision.

    Naive datetimes are taken to be UTC already.
    """
    if ts.tzinfo is not None:
        ts = ts.astimezone(timezone.utc)
    return ts.strftime(RFC3339_FORMAT)
