# Copyright 2025 Ben Mensi
# SPDX-License-Identifier: Apache-2.0

"""markdeploy - send deployment markers to logstash."""

__version__ = "0.0.3"
