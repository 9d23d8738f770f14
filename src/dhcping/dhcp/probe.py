"""
Probe state machine.

A ProbeSession owns the packet, the retry budget and the elapsed-seconds
counter. Its three handlers are driven by a reactor:

- transmit(): send the packet and arm the next retry
- on_readable(): a datagram arrived, the server is alive
- on_deadline(): nothing arrived in time

Every handler returns an Outcome. CONTINUE keeps the session waiting;
anything else is terminal and ends the probe.

Copyright (c) 2025 DNS Science.io, an After Dark Systems, LLC company.
All rights reserved.
"""

import logging
import socket
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any

from dhcping.dhcp.packet import DiscoverPacket
from dhcping.exceptions import ProbeIOError

if TYPE_CHECKING:
    from dhcping.dhcp.reactor import Reactor

logger = logging.getLogger(__name__)

# would-block / interrupted, never surfaced
TRANSIENT_ERRORS = (BlockingIOError, InterruptedError)


class Outcome(str, Enum):
    """Result of dispatching one probe event."""
    CONTINUE = "continue"
    REPLIED = "replied"
    TIMED_OUT = "timed_out"
    FAILED = "failed"

    @property
    def terminal(self) -> bool:
        return self is not Outcome.CONTINUE

    @property
    def exit_status(self) -> int:
        """Process exit status for a terminal outcome."""
        if self is Outcome.CONTINUE:
            raise ValueError("CONTINUE has no exit status")
        return _EXIT_STATUS[self]


_EXIT_STATUS = {
    Outcome.REPLIED: 0,
    Outcome.FAILED: 1,
    Outcome.TIMED_OUT: 2,
}


@dataclass
class ProbeResult:
    """Final state of a probe run."""
    outcome: Outcome
    transmissions: int = 0
    elapsed: float = 0
    reply_size: int | None = None
    error: ProbeIOError | None = None

    @property
    def exit_status(self) -> int:
        return self.outcome.exit_status

    def to_dict(self) -> dict[str, Any]:
        return {
            "outcome": self.outcome.value,
            "exit_status": self.exit_status,
            "transmissions": self.transmissions,
            "elapsed": self.elapsed,
            "reply_size": self.reply_size,
            "error": str(self.error) if self.error else None,
        }


class ProbeSession:
    """
    Live state of one probe run.

    Only ever touched from the reactor's thread, one handler at a time.

    Usage:
        session = ProbeSession(packet, sock, reactor, retries=3, interval=2)
        result = await run_probe(session, reactor, max_wait=8)
    """

    def __init__(
        self,
        packet: DiscoverPacket,
        endpoint: socket.socket,
        reactor: "Reactor",
        retries: int,
        interval: float,
    ):
        """
        Initialize probe session.

        Args:
            packet: Packet to (re)transmit
            endpoint: Bound, connected, non-blocking datagram socket
            reactor: Reactor used to arm the retry timer
            retries: Total number of transmissions, at least 1
            interval: Seconds between transmissions
        """
        if retries < 1:
            raise ValueError(f"retries must be at least 1, got {retries}")
        if interval <= 0:
            raise ValueError(f"interval must be positive, got {interval}")

        self.packet = packet
        self.endpoint = endpoint
        self.reactor = reactor
        self.interval = interval

        self.remaining_retries = retries
        self.elapsed: float = 0
        self.transmissions = 0
        self.sent_elapsed: list[int] = []
        self.reply_size: int | None = None
        self.error: ProbeIOError | None = None

    def transmit(self) -> Outcome:
        """Send the packet, then arm the retry timer if any retries remain."""
        secs = int(self.elapsed)
        self.packet.elapsed = secs
        data = bytes(self.packet)

        while True:
            try:
                self.endpoint.send(data)
            except TRANSIENT_ERRORS:
                continue
            except OSError as e:
                self.error = ProbeIOError("transmit", e)
                logger.debug(f"Transmit failed: {e}")
                return Outcome.FAILED
            break

        self.transmissions += 1
        self.sent_elapsed.append(secs)
        logger.debug(
            f"Sent DHCPDISCOVER #{self.transmissions} "
            f"(xid=0x{self.packet.transaction_id:08x}, secs={secs})"
        )

        if self.remaining_retries == 0:
            return Outcome.CONTINUE

        self.remaining_retries -= 1
        if self.remaining_retries:
            self.elapsed += self.interval
            self.reactor.call_later(self.interval, self.transmit)
        else:
            logger.debug("No retries left, waiting for reply or deadline")

        return Outcome.CONTINUE

    def on_readable(self) -> Outcome:
        """Any datagram at all counts as a reply."""
        try:
            data = self.endpoint.recv(len(self.packet))
        except TRANSIENT_ERRORS:
            return Outcome.CONTINUE
        except OSError as e:
            self.error = ProbeIOError("input", e)
            logger.debug(f"Receive failed: {e}")
            return Outcome.FAILED

        self.reply_size = len(data)
        logger.info(f"Received {len(data)} bytes after {self.transmissions} transmission(s)")
        return Outcome.REPLIED

    def on_deadline(self) -> Outcome:
        logger.info("timeout waiting for reply")
        return Outcome.TIMED_OUT

    def result(self, outcome: Outcome) -> ProbeResult:
        return ProbeResult(
            outcome=outcome,
            transmissions=self.transmissions,
            elapsed=self.elapsed,
            reply_size=self.reply_size,
            error=self.error,
        )
