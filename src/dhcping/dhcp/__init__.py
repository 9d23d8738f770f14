"""
DHCP server reachability probe.

Sends a relay-style DHCPDISCOVER to one server, retransmits on a fixed
interval and reports whether any reply arrived before the deadline.

Copyright (c) 2025 DNS Science.io, an After Dark Systems, LLC company.
All rights reserved.
"""

from dhcping.dhcp.packet import (
    BOOTP_MIN_LEN,
    DHCPMessageType,
    DHCPOption,
    DiscoverPacket,
    REQUESTED_OPTIONS,
    build_discover_packet,
    parse_hardware_address,
)
from dhcping.dhcp.probe import Outcome, ProbeResult, ProbeSession
from dhcping.dhcp.reactor import AsyncioReactor, Reactor, probe, run_probe, start_probe

__all__ = [
    "AsyncioReactor",
    "BOOTP_MIN_LEN",
    "DHCPMessageType",
    "DHCPOption",
    "DiscoverPacket",
    "Outcome",
    "ProbeResult",
    "ProbeSession",
    "REQUESTED_OPTIONS",
    "Reactor",
    "build_discover_packet",
    "parse_hardware_address",
    "probe",
    "run_probe",
    "start_probe",
]
