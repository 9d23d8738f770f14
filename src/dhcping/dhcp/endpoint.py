"""
Probe socket setup.

Creates the bound, connected, non-blocking UDP socket the probe talks
through. The socket is bound to the DHCP server port on the local side
as well, since the server replies to giaddr:67 as if we were a relay.

Copyright (c) 2025 DNS Science.io, an After Dark Systems, LLC company.
All rights reserved.
"""

import logging
import socket

from netaddr import IPAddress

from dhcping.dhcp.packet import DHCP_SERVER_PORT
from dhcping.exceptions import ConfigurationError

logger = logging.getLogger(__name__)


def _connect(sock: socket.socket, local_info: tuple, server: str, port: int) -> None:
    """Connect sock to the first usable address of server."""
    family, socktype, proto = local_info

    try:
        addresses = socket.getaddrinfo(server, port, family, socktype, proto)
    except socket.gaierror as e:
        raise ConfigurationError(f"server {server}: {e.strerror}") from e

    last_error: OSError | None = None
    for _, _, _, _, sockaddr in addresses:
        try:
            sock.connect(sockaddr)
        except OSError as e:
            last_error = e
            logger.debug(f"connect to {sockaddr[0]}:{sockaddr[1]} failed: {e}")
            continue
        logger.debug(f"Connected to {sockaddr[0]}:{sockaddr[1]}")
        return

    raise ConfigurationError(f"server {server}: {last_error.strerror if last_error else 'no address'}")


def open_endpoint(
    server: str,
    local: str | None = None,
    port: int = DHCP_SERVER_PORT,
    local_port: int | None = None,
) -> socket.socket:
    """
    Open the probe socket.

    Args:
        server: DHCP server host name or address
        local: Local address to bind (wildcard if None)
        port: Server UDP port
        local_port: Local UDP port, defaults to port

    Returns:
        Non-blocking UDP socket bound locally and connected to the server

    Raises:
        ConfigurationError: if resolution, bind or connect fails
    """
    bind_port = port if local_port is None else local_port
    local_name = "*" if local is None else local

    try:
        addresses = socket.getaddrinfo(
            local, bind_port, socket.AF_INET, socket.SOCK_DGRAM, 0, socket.AI_PASSIVE,
        )
    except socket.gaierror as e:
        raise ConfigurationError(f"local address {local_name}: {e.strerror}") from e

    cause = "socket"
    last_error: OSError | None = None
    server_error: ConfigurationError | None = None

    for family, socktype, proto, _, sockaddr in addresses:
        try:
            sock = socket.socket(family, socktype, proto)
        except OSError as e:
            cause, last_error = "socket", e
            continue

        sock.setblocking(False)

        try:
            sock.bind(sockaddr)
        except OSError as e:
            cause, last_error = "bind", e
            sock.close()
            continue

        try:
            _connect(sock, (family, socktype, proto), server, port)
        except ConfigurationError as e:
            server_error = e
            sock.close()
            continue

        logger.debug(f"Bound to {sockaddr[0]}:{sockaddr[1]}")
        return sock

    if server_error is not None:
        raise server_error

    message = f"local address {local_name} port {bind_port} {cause}: {last_error}"
    if isinstance(last_error, PermissionError):
        message += " (run as root to bind the DHCP server port)"
    raise ConfigurationError(message)


def local_address(sock: socket.socket) -> IPAddress:
    """
    Get the IPv4 address the socket is bound to.

    Raises:
        ConfigurationError: if the address cannot be read or is not IPv4
    """
    try:
        sockname = sock.getsockname()
    except OSError as e:
        raise ConfigurationError(f"getsockname: {e}") from e

    if sock.family != socket.AF_INET:
        raise ConfigurationError(f"unexpected sockname af {sock.family}")

    return IPAddress(sockname[0])
