"""
DHCPDISCOVER packet construction.

Builds the single fixed-size message the probe sends. The packet is
addressed like one forwarded by a relay agent (hops=1, giaddr set to the
local address) so that the server unicasts its reply back to our socket.

Copyright (c) 2025 DNS Science.io, an After Dark Systems, LLC company.
All rights reserved.
"""

import logging
import os
import struct
from enum import IntEnum

from netaddr import EUI, IPAddress, valid_mac

from dhcping.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

# DHCP Constants
DHCP_SERVER_PORT = 67
DHCP_MAGIC_COOKIE = bytes([99, 130, 83, 99])  # 0x63825363

# Minimum BOOTP message size, the probe always sends exactly this many bytes
BOOTP_MIN_LEN = 300

# Hardware types
HTYPE_ETHERNET = 1
ETHER_ADDR_LEN = 6

# DHCP Operation codes
BOOTREQUEST = 1

# op, htype, hlen, hops, xid, secs, flags, ciaddr, yiaddr, siaddr, giaddr,
# chaddr, sname, file
HEADER_FORMAT = '>BBBBIHH4s4s4s4s16s64s128s'
HEADER_LEN = struct.calcsize(HEADER_FORMAT)  # 236
SECS_OFFSET = 8
SECS_FORMAT = '>H'
SECS_MAX = 0xFFFF


class DHCPMessageType(IntEnum):
    """DHCP message types (Option 53)."""
    DISCOVER = 1


class DHCPOption(IntEnum):
    """DHCP options used by the probe."""
    SUBNET_MASK = 1
    TIME_OFFSET = 2
    ROUTER = 3
    DNS_SERVER = 6
    HOSTNAME = 12
    DOMAIN_NAME = 15
    BROADCAST_ADDRESS = 28
    MESSAGE_TYPE = 53
    PARAMETER_REQUEST = 55
    TFTP_SERVER_NAME = 66
    BOOTFILE_NAME = 67
    DOMAIN_SEARCH = 119
    CLASSLESS_STATIC_ROUTES = 121
    # End
    END = 255


# Order matters: some servers log or key on the exact list.
REQUESTED_OPTIONS = (
    DHCPOption.SUBNET_MASK,
    DHCPOption.BROADCAST_ADDRESS,
    DHCPOption.TIME_OFFSET,
    DHCPOption.CLASSLESS_STATIC_ROUTES,
    DHCPOption.ROUTER,
    DHCPOption.DOMAIN_NAME,
    DHCPOption.DOMAIN_SEARCH,
    DHCPOption.DNS_SERVER,
    DHCPOption.HOSTNAME,
    DHCPOption.BOOTFILE_NAME,
    DHCPOption.TFTP_SERVER_NAME,
)


def format_mac(mac: bytes) -> str:
    """Format MAC address as string."""
    return ":".join(f"{b:02x}" for b in mac)


def parse_hardware_address(text: str) -> EUI:
    """
    Parse a 48-bit link-layer address.

    Accepts the usual notations (``aa:bb:cc:dd:ee:ff``, ``aa-bb-...``,
    ``aabb.ccdd.eeff``).

    Raises:
        ConfigurationError: if the text is not a 48-bit MAC address
    """
    if not isinstance(text, str) or not valid_mac(text):
        raise ConfigurationError(f"invalid mac {text}")

    return EUI(text)


def _hardware_bytes(hardware_address: EUI | bytes | str) -> bytes:
    if isinstance(hardware_address, bytes):
        mac = hardware_address
    elif isinstance(hardware_address, EUI):
        mac = hardware_address.packed
    else:
        mac = EUI(hardware_address).packed

    if len(mac) != ETHER_ADDR_LEN:
        raise ValueError(f"hardware address must be {ETHER_ADDR_LEN} bytes, got {len(mac)}")
    return mac


def _ipv4_bytes(address: IPAddress | str) -> bytes:
    ip = address if isinstance(address, IPAddress) else IPAddress(address)
    if ip.version != 4:
        raise ValueError(f"relay agent address must be IPv4, got {ip}")
    return ip.packed


class DiscoverPacket:
    """
    A fixed-length DHCPDISCOVER message.

    Everything is fixed at construction except the elapsed-seconds
    (``secs``) field, which the probe rewrites before every transmission.
    """

    __slots__ = ("_buf",)

    def __init__(self, data: bytes):
        if len(data) != BOOTP_MIN_LEN:
            raise ValueError(f"packet must be {BOOTP_MIN_LEN} bytes, got {len(data)}")
        self._buf = bytearray(data)

    def __len__(self) -> int:
        return len(self._buf)

    def __bytes__(self) -> bytes:
        return bytes(self._buf)

    def __repr__(self) -> str:
        return (
            f"DiscoverPacket(xid=0x{self.transaction_id:08x}, "
            f"chaddr={format_mac(self.hardware_address)}, secs={self.elapsed})"
        )

    @property
    def elapsed(self) -> int:
        return struct.unpack_from(SECS_FORMAT, self._buf, SECS_OFFSET)[0]

    @elapsed.setter
    def elapsed(self, secs: int) -> None:
        if not 0 <= secs <= SECS_MAX:
            raise ValueError(f"elapsed seconds out of range: {secs}")
        struct.pack_into(SECS_FORMAT, self._buf, SECS_OFFSET, secs)

    @property
    def transaction_id(self) -> int:
        return struct.unpack_from('>I', self._buf, 4)[0]

    @property
    def hardware_address(self) -> bytes:
        return bytes(self._buf[28:28 + ETHER_ADDR_LEN])

    @property
    def relay_address(self) -> IPAddress:
        return IPAddress(int.from_bytes(self._buf[24:28], "big"))


def build_discover_packet(
    local_address: IPAddress | str,
    hardware_address: EUI | bytes | str,
    transaction_id: int | None = None,
) -> DiscoverPacket:
    """
    Build the probe's DHCPDISCOVER.

    Args:
        local_address: IPv4 address the probe socket is bound to, used as giaddr
        hardware_address: Client hardware address to put in chaddr
        transaction_id: xid, defaults to the process id

    Returns:
        DiscoverPacket with secs set to 0
    """
    mac = _hardware_bytes(hardware_address)
    giaddr = _ipv4_bytes(local_address)
    xid = os.getpid() if transaction_id is None else transaction_id

    # Build header (236 bytes before options)
    packet = struct.pack(
        HEADER_FORMAT,
        BOOTREQUEST, HTYPE_ETHERNET, ETHER_ADDR_LEN, 1,  # hops=1, relayed
        xid & 0xFFFFFFFF, 0, 0,
        b'\x00\x00\x00\x00',  # ciaddr
        b'\x00\x00\x00\x00',  # yiaddr
        b'\x00\x00\x00\x00',  # siaddr
        giaddr,
        mac,  # struct pads chaddr to 16 bytes
        b'',
        b'',
    )

    # Magic cookie
    packet += DHCP_MAGIC_COOKIE

    # Options
    packet += bytes([DHCPOption.MESSAGE_TYPE, 1, DHCPMessageType.DISCOVER])
    packet += bytes([DHCPOption.PARAMETER_REQUEST, len(REQUESTED_OPTIONS)])
    packet += bytes(REQUESTED_OPTIONS)
    packet += bytes([DHCPOption.END])

    # Pad to minimum size
    packet += b'\x00' * (BOOTP_MIN_LEN - len(packet))

    logger.debug(
        "Built DHCPDISCOVER xid=0x%08x chaddr=%s giaddr=%s (%d bytes)",
        xid & 0xFFFFFFFF, format_mac(mac), IPAddress(int.from_bytes(giaddr, "big")), len(packet),
    )
    return DiscoverPacket(packet)
