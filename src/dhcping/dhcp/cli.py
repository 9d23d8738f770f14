"""
CLI for the DHCP probe.

Exit status: 0 if the server answered, 2 if nothing answered before the
deadline, 1 on any error (including usage errors).

Copyright (c) 2025 DNS Science.io, an After Dark Systems, LLC company.
All rights reserved.
"""

import asyncio
import json
import sys
from dataclasses import replace

import click
from rich.console import Console
from rich.markup import escape

from dhcping import __version__
from dhcping.config import (
    INTERVAL_MAX,
    INTERVAL_MIN,
    MAX_WAIT_MAX,
    MAX_WAIT_MIN,
    TRIES_MAX,
    TRIES_MIN,
    ProbeConfig,
    get_config,
)
from dhcping.dhcp.probe import Outcome, ProbeResult
from dhcping.dhcp.reactor import probe
from dhcping.exceptions import ConfigurationError
from dhcping.logging_config import configure_logging

console = Console(stderr=True)

USAGE = "usage: dhcping [-i interval] [-t tries] [-w wait] -h mac -s server"


def display_result(result: ProbeResult, server: str, verbose: bool):
    """Report a probe result on stderr."""
    if result.outcome is Outcome.REPLIED:
        if verbose:
            console.print(
                f"[green]{escape(server)} replied ({result.reply_size} bytes) "
                f"after {result.transmissions} transmission(s)[/green]"
            )
    elif result.outcome is Outcome.FAILED:
        console.print(f"[red]dhcping: {escape(str(result.error))}[/red]")


def start_logging(config: ProbeConfig):
    """Configure logging, reporting an unusable log file as a setup failure."""
    try:
        configure_logging(verbose=config.verbose, log_file=config.log_file)
    except OSError as e:
        raise ConfigurationError(f"log file {config.log_file}: {e.strerror or e}") from e


@click.command(context_settings={"help_option_names": ["--help"]})
@click.option("--mac", "-h", "hardware_address", help="Client hardware address (xx:xx:xx:xx:xx:xx)")
@click.option("--server", "-s", help="DHCP server to probe")
@click.option("--local", "-l", help="Local address to send from")
@click.option("--interval", "-i", type=click.IntRange(INTERVAL_MIN, INTERVAL_MAX),
              help=f"Seconds between transmissions ({INTERVAL_MIN}-{INTERVAL_MAX})")
@click.option("--tries", "-t", type=click.IntRange(TRIES_MIN, TRIES_MAX),
              help=f"Number of transmissions ({TRIES_MIN}-{TRIES_MAX})")
@click.option("--wait", "-w", "max_wait", type=click.IntRange(MAX_WAIT_MIN, MAX_WAIT_MAX),
              help=f"Maximum seconds to wait for a reply ({MAX_WAIT_MIN}-{MAX_WAIT_MAX})")
@click.option("--verbose", "-v", is_flag=True, help="Verbose output")
@click.option("--log-file", type=click.Path(dir_okay=False), help="Also log to this file")
@click.option("--json-output", "json_out", is_flag=True, help="Output as JSON")
@click.version_option(__version__, prog_name="dhcping")
def dhcping(
    hardware_address: str | None,
    server: str | None,
    local: str | None,
    interval: int | None,
    tries: int | None,
    max_wait: int | None,
    verbose: bool,
    log_file: str | None,
    json_out: bool,
):
    """Check that a DHCP server answers a DHCPDISCOVER.

    Sends a relay-style DHCPDISCOVER for the given MAC to the server,
    retransmitting every interval seconds up to tries times, and waits
    at most wait seconds for any reply. The reply is not inspected.

    Binding the DHCP server port usually requires root.

    \b
    Examples:
        # Probe a server with defaults (3 tries, 2 s apart, 8 s wait)
        dhcping -h 00:11:22:33:44:55 -s 192.0.2.1

        # Send from a specific address, verbose
        dhcping -v -l 192.0.2.10 -h 00:11:22:33:44:55 -s dhcp.example.net

        # Machine readable result
        dhcping -h 00:11:22:33:44:55 -s 192.0.2.1 --json-output
    """
    try:
        config = get_config()
    except ConfigurationError as e:
        console.print(f"[red]dhcping: {escape(str(e))}[/red]")
        sys.exit(1)

    overrides = {
        "hardware_address": hardware_address,
        "server": server,
        "local": local,
        "interval": interval,
        "tries": tries,
        "max_wait": max_wait,
        "log_file": log_file,
    }
    config = replace(
        config,
        verbose=verbose or config.verbose,
        **{k: v for k, v in overrides.items() if v is not None},
    )

    try:
        start_logging(config)
        config.validate()
        result = asyncio.run(probe(config))
    except ConfigurationError as e:
        if json_out:
            click.echo(json.dumps({"outcome": Outcome.FAILED.value, "exit_status": 1, "error": str(e)}))
        else:
            console.print(f"[red]dhcping: {escape(str(e))}[/red]")
            if not config.hardware_address or not config.server:
                console.print(escape(USAGE), highlight=False)
        sys.exit(1)

    if json_out:
        click.echo(json.dumps(result.to_dict(), indent=2))
    else:
        display_result(result, config.server, config.verbose)

    sys.exit(result.exit_status)


def main():
    """Console entry point. Usage errors exit with status 1."""
    try:
        dhcping.main(standalone_mode=False)
    except click.ClickException as e:
        e.show()
        sys.exit(1)
    except click.Abort:
        console.print("Aborted!")
        sys.exit(1)


if __name__ == "__main__":
    main()
