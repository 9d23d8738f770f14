"""Shared fixtures: a virtual-clock reactor and a scripted datagram endpoint."""

import pytest

from dhcping.config import set_config
from dhcping.dhcp.packet import build_discover_packet
from dhcping.dhcp.reactor import Reactor
from dhcping.logging_config import setup_logging

MAC = "00:11:22:33:44:55"
LOCAL = "192.0.2.10"


class ManualTimer:
    def __init__(self, when: float, seq: int, handler):
        self.when = when
        self.seq = seq
        self.handler = handler
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class ManualReactor(Reactor):
    """Reactor driven by hand: time only moves when a test calls advance()."""

    def __init__(self):
        super().__init__()
        self.now = 0.0
        self._seq = 0
        self._timers: list[ManualTimer] = []
        self._readable: list = []

    def watch_readable(self, fileobj, handler) -> None:
        self._readable.append(handler)

    def call_later(self, delay: float, handler) -> ManualTimer:
        self._seq += 1
        timer = ManualTimer(self.now + delay, self._seq, handler)
        self._timers.append(timer)
        return timer

    def _shutdown(self) -> None:
        for timer in self._timers:
            timer.cancel()
        self._timers.clear()
        self._readable.clear()

    @property
    def pending(self) -> list[ManualTimer]:
        return sorted((t for t in self._timers if not t.cancelled), key=lambda t: (t.when, t.seq))

    @property
    def watching(self) -> bool:
        return bool(self._readable)

    def advance(self, until: float) -> None:
        """Fire every timer due at or before `until`, in order."""
        while not self.finished:
            due = [t for t in self.pending if t.when <= until]
            if not due:
                break
            timer = due[0]
            self._timers.remove(timer)
            self.now = timer.when
            self.dispatch(timer.handler)
        if not self.finished:
            self.now = until

    def readable(self) -> None:
        """Report the endpoint readable once."""
        for handler in list(self._readable):
            self.dispatch(handler)


class FakeEndpoint:
    """
    Scripted stand-in for a connected non-blocking UDP socket.

    send_errors are raised by successive send() calls before sends succeed;
    recv_results are returned (bytes) or raised (exceptions) by recv().
    """

    def __init__(self, clock=lambda: 0.0, send_errors=(), recv_results=()):
        self.clock = clock
        self.send_errors = list(send_errors)
        self.recv_results = list(recv_results)
        self.sent: list[tuple[float, bytes]] = []
        self.send_calls = 0

    def send(self, data: bytes) -> int:
        self.send_calls += 1
        if self.send_errors:
            raise self.send_errors.pop(0)
        self.sent.append((self.clock(), bytes(data)))
        return len(data)

    def recv(self, size: int) -> bytes:
        if not self.recv_results:
            raise BlockingIOError()
        item = self.recv_results.pop(0)
        if isinstance(item, BaseException):
            raise item
        return item[:size]


@pytest.fixture
def reactor() -> ManualReactor:
    return ManualReactor()


@pytest.fixture
def endpoint(reactor: ManualReactor) -> FakeEndpoint:
    return FakeEndpoint(clock=lambda: reactor.now)


@pytest.fixture
def packet():
    return build_discover_packet(LOCAL, MAC, transaction_id=0x1234)


@pytest.fixture(autouse=True)
def _reset_state(monkeypatch):
    for name in (
        "DHCPING_MAC", "DHCPING_SERVER", "DHCPING_LOCAL", "DHCPING_INTERVAL",
        "DHCPING_TRIES", "DHCPING_WAIT", "DHCPING_LOG_FILE",
    ):
        monkeypatch.delenv(name, raising=False)
    set_config(None)
    yield
    set_config(None)
    setup_logging(enable_console=False)
