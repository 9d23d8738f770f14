"""
Exceptions raised by dhcping.

Copyright (c) 2025 DNS Science.io, an After Dark Systems, LLC company.
All rights reserved.
"""


class ProbeError(Exception):
    """Base class for dhcping errors."""


class ConfigurationError(ProbeError):
    """Invalid configuration or endpoint setup failure.

    Always raised before the event loop starts.
    """


class ProbeIOError(ProbeError):
    """Non-transient send or receive failure on the probe socket."""

    def __init__(self, operation: str, cause: OSError):
        self.operation = operation
        self.cause = cause
        super().__init__(f"{operation}: {cause.strerror or cause}")
