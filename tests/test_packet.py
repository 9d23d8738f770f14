"""Tests for DHCPDISCOVER construction."""

import struct

import pytest
from netaddr import EUI, IPAddress

from dhcping.dhcp.packet import (
    BOOTP_MIN_LEN,
    DHCP_MAGIC_COOKIE,
    DiscoverPacket,
    REQUESTED_OPTIONS,
    build_discover_packet,
    format_mac,
    parse_hardware_address,
)
from dhcping.exceptions import ConfigurationError

from conftest import LOCAL, MAC


class TestBuildDiscoverPacket:
    def test_length_is_fixed(self, packet) -> None:
        assert len(packet) == BOOTP_MIN_LEN
        assert len(bytes(packet)) == 300

    def test_header_fields(self, packet) -> None:
        data = bytes(packet)
        op, htype, hlen, hops, xid, secs, flags = struct.unpack(">BBBBIHH", data[:12])
        assert (op, htype, hlen, hops) == (1, 1, 6, 1)
        assert xid == 0x1234
        assert secs == 0
        assert flags == 0
        assert data[12:24] == b"\x00" * 12  # ciaddr, yiaddr, siaddr
        assert data[24:28] == bytes([192, 0, 2, 10])  # giaddr
        assert data[28:34] == bytes.fromhex("001122334455")
        assert data[34:236] == b"\x00" * 202  # chaddr padding, sname, file

    def test_magic_cookie_and_options(self, packet) -> None:
        data = bytes(packet)
        assert data[236:240] == DHCP_MAGIC_COOKIE
        assert data[240:243] == bytes([53, 1, 1])
        assert data[243:245] == bytes([55, 11])
        assert list(data[245:256]) == [1, 28, 2, 121, 3, 15, 119, 6, 12, 67, 66]
        assert data[256] == 255
        assert data[257:] == b"\x00" * (300 - 257)

    def test_requested_options_order(self) -> None:
        assert [int(o) for o in REQUESTED_OPTIONS] == [1, 28, 2, 121, 3, 15, 119, 6, 12, 67, 66]

    def test_deterministic(self) -> None:
        first = build_discover_packet(LOCAL, MAC, transaction_id=7)
        second = build_discover_packet(LOCAL, MAC, transaction_id=7)
        assert bytes(first) == bytes(second)
        assert first.elapsed == 0

    def test_transaction_id_defaults_to_pid(self, monkeypatch) -> None:
        monkeypatch.setattr("dhcping.dhcp.packet.os.getpid", lambda: 4242)
        packet = build_discover_packet(LOCAL, MAC)
        assert packet.transaction_id == 4242
        assert bytes(packet)[4:8] == (4242).to_bytes(4, "big")

    def test_accepts_netaddr_and_bytes(self) -> None:
        a = build_discover_packet(IPAddress(LOCAL), EUI(MAC), transaction_id=1)
        b = build_discover_packet(LOCAL, bytes.fromhex("001122334455"), transaction_id=1)
        assert bytes(a) == bytes(b)
        assert a.relay_address == IPAddress(LOCAL)
        assert format_mac(a.hardware_address) == MAC

    def test_rejects_ipv6_local_address(self) -> None:
        with pytest.raises(ValueError):
            build_discover_packet("2001:db8::1", MAC)

    def test_rejects_short_hardware_address(self) -> None:
        with pytest.raises(ValueError):
            build_discover_packet(LOCAL, b"\x00\x11\x22")


class TestElapsedField:
    def test_only_secs_changes(self, packet) -> None:
        before = bytes(packet)
        packet.elapsed = 0x0102
        after = bytes(packet)
        assert after[8:10] == b"\x01\x02"
        assert before[:8] == after[:8]
        assert before[10:] == after[10:]
        assert packet.elapsed == 0x0102

    def test_out_of_range(self, packet) -> None:
        with pytest.raises(ValueError):
            packet.elapsed = 65536
        with pytest.raises(ValueError):
            packet.elapsed = -1

    def test_wrong_length_rejected(self) -> None:
        with pytest.raises(ValueError):
            DiscoverPacket(b"\x00" * 240)


class TestParseHardwareAddress:
    @pytest.mark.parametrize("text", ["00:11:22:33:44:55", "00-11-22-33-44-55", "0011.2233.4455"])
    def test_valid(self, text: str) -> None:
        assert parse_hardware_address(text).packed == bytes.fromhex("001122334455")

    @pytest.mark.parametrize("text", ["", "nope", "00:11:22:33:44", "00:11:22:33:44:55:66:77", "12"])
    def test_invalid(self, text: str) -> None:
        with pytest.raises(ConfigurationError, match="invalid mac"):
            parse_hardware_address(text)
