# Copyright 2025 Ben Mensi
# SPDX-License-Identifier: Apache-2.0

"""Markdeploy event schemas."""

from markdeploy.schemas.deployment import (
    Application,
    Deployment,
    format_timestamp,
)

__all__ = [
    "Application",
    "Deployment",
    "format_timestamp",
]
