# Copyright 2025 Ben Mensi
# SPDX-License-Identifier: Apache-2.0

"""Error types raised by markdeploy.

Transport errors all derive from LogstashError and remember the endpoint
they were raised for. The CLI is the only place these become exit codes.
"""


class MarkdeployError(Exception):
    """Base class for all markdeploy errors."""
    pass


class ValidationError(MarkdeployError):
    """Raised when marker input is incomplete or out of range."""
    pass


class ConfigError(MarkdeployError):
    """Raised when a config file cannot be parsed."""
    pass


class LogstashError(MarkdeployError):
    """Base class for errors talking to the logstash tcp input."""

    def __init__(self, message: str, host: str, port: int):
        super().__init__(message)
        self.host = host
        self.port = port


class ResolutionError(LogstashError):
    """Host/port could not be resolved to a tcp address."""
    pass


class ConnectError(LogstashError):
    """Remote refused or was unreachable during connect."""
    pass


class TimeoutError(LogstashError):
    """A read or write ran past the connection deadline."""
    pass


class WriteError(LogstashError):
    """Any other I/O failure while sending."""
    pass


class NotConnectedError(LogstashError):
    """send_line called without a held connection."""
    pass
