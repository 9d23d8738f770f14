"""
Event dispatch for the probe.

The reactor multiplexes one persistent readability watch and one-shot
timers, dispatching to ProbeSession handlers one at a time. The first
terminal Outcome finishes it: every timer is cancelled, the watch is
removed and nothing else is dispatched.

Copyright (c) 2025 DNS Science.io, an After Dark Systems, LLC company.
All rights reserved.
"""

import asyncio
import logging
import socket
from abc import ABC, abstractmethod
from typing import Any, Callable

from dhcping.config import ProbeConfig
from dhcping.dhcp.endpoint import local_address, open_endpoint
from dhcping.dhcp.packet import build_discover_packet, parse_hardware_address
from dhcping.dhcp.probe import Outcome, ProbeResult, ProbeSession

logger = logging.getLogger(__name__)

Handler = Callable[[], Outcome]


class Reactor(ABC):
    """Readiness and timer multiplexer driving probe handlers."""

    def __init__(self):
        self._outcome: Outcome | None = None

    @property
    def finished(self) -> bool:
        return self._outcome is not None

    @property
    def outcome(self) -> Outcome | None:
        return self._outcome

    @abstractmethod
    def watch_readable(self, fileobj: Any, handler: Handler) -> None:
        """Call handler every time fileobj becomes readable."""
        pass

    @abstractmethod
    def call_later(self, delay: float, handler: Handler) -> Any:
        """Call handler once after delay seconds. Returns a cancellable handle."""
        pass

    @abstractmethod
    def _shutdown(self) -> None:
        """Drop all timers and watches."""
        pass

    def dispatch(self, handler: Handler) -> Outcome | None:
        """Run one handler unless the reactor already finished."""
        if self.finished:
            return None

        outcome = handler()
        if outcome.terminal:
            self.finish(outcome)
        return outcome

    def finish(self, outcome: Outcome) -> None:
        if self.finished:
            return
        self._outcome = outcome
        self._shutdown()


class AsyncioReactor(Reactor):
    """
    Reactor on top of an asyncio event loop.

    Usage:
        reactor = AsyncioReactor()
        reactor.watch_readable(sock, session.on_readable)
        reactor.call_later(8, session.on_deadline)
        outcome = await reactor.wait()
    """

    def __init__(self, loop: asyncio.AbstractEventLoop | None = None):
        super().__init__()
        self._loop = loop or asyncio.get_running_loop()
        self._done: asyncio.Future = self._loop.create_future()
        self._readers: list[Any] = []
        self._timers: set[asyncio.TimerHandle] = set()

    def watch_readable(self, fileobj: Any, handler: Handler) -> None:
        self._loop.add_reader(fileobj, self.dispatch, handler)
        self._readers.append(fileobj)

    def call_later(self, delay: float, handler: Handler) -> asyncio.TimerHandle:
        timer: asyncio.TimerHandle

        def fire():
            self._timers.discard(timer)
            self.dispatch(handler)

        timer = self._loop.call_later(delay, fire)
        self._timers.add(timer)
        return timer

    @property
    def pending_timers(self) -> int:
        return len(self._timers)

    def _shutdown(self) -> None:
        for timer in self._timers:
            timer.cancel()
        self._timers.clear()

        for fileobj in self._readers:
            self._loop.remove_reader(fileobj)
        self._readers.clear()

        if not self._done.done():
            self._done.set_result(self._outcome)

    async def wait(self) -> Outcome:
        return await self._done


def start_probe(session: ProbeSession, reactor: Reactor, max_wait: float) -> None:
    """Arm the readability watch and the deadline, then transmit once right away."""
    reactor.watch_readable(session.endpoint, session.on_readable)
    reactor.call_later(max_wait, session.on_deadline)

    reactor.dispatch(session.transmit)


async def run_probe(session: ProbeSession, reactor: AsyncioReactor, max_wait: float) -> ProbeResult:
    """
    Drive a probe session until it reaches a terminal outcome.

    Args:
        session: Session to run
        reactor: Reactor the session arms its retry timer on
        max_wait: Seconds before giving up

    Returns:
        ProbeResult for the terminal outcome
    """
    start_probe(session, reactor, max_wait)

    outcome = await reactor.wait()
    logger.debug(f"Probe finished: {outcome.value} after {session.transmissions} transmission(s)")
    return session.result(outcome)


async def probe(config: ProbeConfig, endpoint: socket.socket | None = None) -> ProbeResult:
    """
    Probe a DHCP server.

    Args:
        config: Validated probe configuration
        endpoint: Already opened socket, opened from config.server and
            config.local if None. Closed when the probe ends.

    Returns:
        ProbeResult

    Raises:
        ConfigurationError: if the MAC is invalid or the socket cannot be set up
    """
    mac = parse_hardware_address(config.hardware_address)
    sock = endpoint or open_endpoint(config.server, config.local)

    try:
        packet = build_discover_packet(local_address(sock), mac)
        reactor = AsyncioReactor()
        session = ProbeSession(packet, sock, reactor, retries=config.tries, interval=config.interval)
        return await run_probe(session, reactor, config.max_wait)
    finally:
        sock.close()
