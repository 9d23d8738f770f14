"""
Configuration management for dhcping.

Loads probe defaults from environment variables or a .env file.
Command line flags override anything loaded here.
"""

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

from dhcping.exceptions import ConfigurationError

# Check common locations for .env
env_locations = [
    Path.home() / ".dhcping" / ".env",
    Path.home() / ".config" / "dhcping" / ".env",
    Path.cwd() / ".env",
]
for env_path in env_locations:
    if env_path.exists():
        load_dotenv(env_path)
        break

# number of packets to try sending
TRIES_MIN = 1
TRIES_MAX = 32
TRIES_DEFAULT = 3

# how long between packet sends
INTERVAL_MIN = 1
INTERVAL_MAX = 10
INTERVAL_DEFAULT = 2

# maximum wait time
MAX_WAIT_MIN = 3
MAX_WAIT_MAX = 60
MAX_WAIT_DEFAULT = 8


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None or value == "":
        return default
    try:
        return int(value)
    except ValueError:
        raise ConfigurationError(f"{name}={value}: not an integer") from None


@dataclass
class ProbeConfig:
    """Probe configuration."""

    # Target
    hardware_address: str | None = None
    server: str | None = None
    local: str | None = None  # Local address to bind, wildcard if unset

    # Timing
    interval: int = INTERVAL_DEFAULT
    tries: int = TRIES_DEFAULT
    max_wait: int = MAX_WAIT_DEFAULT

    # Logging
    verbose: bool = False
    log_file: str | None = None

    @classmethod
    def from_env(cls) -> "ProbeConfig":
        """Load configuration from environment variables."""
        return cls(
            hardware_address=os.getenv("DHCPING_MAC") or None,
            server=os.getenv("DHCPING_SERVER") or None,
            local=os.getenv("DHCPING_LOCAL") or None,
            interval=_env_int("DHCPING_INTERVAL", INTERVAL_DEFAULT),
            tries=_env_int("DHCPING_TRIES", TRIES_DEFAULT),
            max_wait=_env_int("DHCPING_WAIT", MAX_WAIT_DEFAULT),
            log_file=os.getenv("DHCPING_LOG_FILE") or None,
        )

    def validate(self) -> None:
        """
        Check the configuration before probing.

        Raises:
            ConfigurationError: describing the first problem found
        """
        if not self.hardware_address:
            raise ConfigurationError("mac address is required")
        if not self.server:
            raise ConfigurationError("server is required")

        if not INTERVAL_MIN <= self.interval <= INTERVAL_MAX:
            raise ConfigurationError(
                f"interval {self.interval} s: out of range {INTERVAL_MIN}-{INTERVAL_MAX}"
            )
        if not TRIES_MIN <= self.tries <= TRIES_MAX:
            raise ConfigurationError(f"tries {self.tries}: out of range {TRIES_MIN}-{TRIES_MAX}")
        if not MAX_WAIT_MIN <= self.max_wait <= MAX_WAIT_MAX:
            raise ConfigurationError(
                f"wait {self.max_wait} s: out of range {MAX_WAIT_MIN}-{MAX_WAIT_MAX}"
            )

        if self.tries * self.interval > self.max_wait:
            raise ConfigurationError(
                f"tries {self.tries} by interval {self.interval} s > wait {self.max_wait} s"
            )

        from dhcping.dhcp.packet import parse_hardware_address
        parse_hardware_address(self.hardware_address)


# Global config instance
_config: ProbeConfig | None = None


def get_config() -> ProbeConfig:
    """Get the global configuration instance."""
    global _config
    if _config is None:
        _config = ProbeConfig.from_env()
    return _config


def set_config(config: ProbeConfig | None) -> None:
    """Set the global configuration instance."""
    global _config
    _config = config
