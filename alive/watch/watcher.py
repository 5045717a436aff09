# alive/watch/watcher.py
"""
Single-host availability watcher.

A Watcher owns one ICMP channel and one cooperative loop. The loop waits on
four things: the stop signal, the global timeout ticker, the interval
ticker and a small queue of finished probes. Probe cycles run inline on the
interval branch, so a slow reply delays the next send (there is no catch-up)
and a stop request is noticed at the latest read_deadline after it is made.
"""
import logging
import queue
import random
import threading
import time

from alive.callbacks import Callbacks
from alive.config import Settings
from alive.errors import ConfigError, ProbeError, TransportError, WatcherError, WatcherStateError
from alive.prober.base import Channel, Transport
from alive.prober.icmp import IcmpTransport
from alive.schemas import ProbeResult, ResolvedAddress
from alive.watch.cycle import probe_once
from alive.watch.state import StopSignal, WatcherState
from alive.watch.ticker import Ticker

logger = logging.getLogger(__name__)

RESULT_QUEUE_SIZE = 5

_ACTIVE = (WatcherState.RESOLVING, WatcherState.LISTENING, WatcherState.RUNNING)


class Watcher:
    def __init__(self, addr: str, settings: Settings | None = None,
                 transport: Transport | None = None, callbacks: Callbacks | None = None,
                 rng: random.Random | None = None, clock=time.monotonic):
        s = settings or Settings()
        self.interval = s.interval
        self.timeout = s.timeout
        self.read_deadline = s.read_deadline
        self.size = s.size
        self.ttl = s.ttl
        self.source = s.source
        self.privileged = s.privileged

        self.transport = transport or IcmpTransport()
        self.callbacks = callbacks or Callbacks()
        self.clock = clock

        self.resolved: ResolvedAddress | None = None
        # sequence tags every request and report; nothing advances it
        self.sequence = 0

        self._addr = addr
        self._id = (rng or random.Random()).randrange(0x10000)
        self._done = StopSignal()
        self._state = WatcherState.IDLE
        self._state_lock = threading.Lock()

    @property
    def addr(self) -> str:
        return self._addr

    @property
    def identifier(self) -> int:
        return self._id

    @property
    def ip_version(self) -> int | None:
        return self.resolved.version if self.resolved is not None else None

    @property
    def state(self) -> WatcherState:
        return self._state

    @property
    def running(self) -> bool:
        return self._state in _ACTIVE

    def _set_state(self, state: WatcherState) -> None:
        with self._state_lock:
            self._state = state

    def _check_idle(self, what: str) -> None:
        if self.running:
            raise WatcherStateError(f"{self._addr}: cannot {what} while the watcher is {self._state.value}")

    def set_interval(self, interval: float) -> None:
        self._check_idle("change interval")
        self.interval = interval

    def set_timeout(self, timeout: float) -> None:
        self._check_idle("change timeout")
        self.timeout = timeout

    def set_read_deadline(self, deadline: float) -> None:
        self._check_idle("change read deadline")
        self.read_deadline = deadline

    def set_ttl(self, ttl: int) -> None:
        self._check_idle("change ttl")
        self.ttl = int(ttl)

    def set_size(self, size: int) -> None:
        self._check_idle("change packet size")
        self.size = int(size)

    def set_source(self, source: str) -> None:
        self._check_idle("change source address")
        self.source = source

    def set_privileged(self, privileged: bool) -> None:
        """
        False sends "unprivileged" datagram ICMP pings, True sends raw ICMP
        pings, which requires super-user privileges.
        """
        self._check_idle("change privilege mode")
        self.privileged = bool(privileged)

    def set_callbacks(self, callbacks: Callbacks) -> None:
        self._check_idle("change callbacks")
        self.callbacks = callbacks

    def resolve(self) -> ResolvedAddress:
        """Look the address up and record the IP version. Raises ResolutionError."""
        self._check_idle("resolve")
        return self._resolve()

    def _resolve(self) -> ResolvedAddress:
        self.resolved = self.transport.resolve(self._addr)
        return self.resolved

    def run(self) -> None:
        """
        Resolve (if needed), open the channel and loop until stop() is called.

        ResolutionError and TransportError are fatal and raised to the caller;
        the watcher ends up stopped. Per-probe failures go to on_error.
        """
        with self._state_lock:
            if self._state is not WatcherState.IDLE:
                raise WatcherStateError(f"{self._addr}: watcher already {self._state.value}")
            if self._done.closed:
                self._state = WatcherState.STOPPED
                return
            self._state = WatcherState.RESOLVING if self.resolved is None else WatcherState.LISTENING

        try:
            self._check_periods()
            if self.resolved is None:
                self._resolve()
            self._set_state(WatcherState.LISTENING)
            channel = self._listen()
        except WatcherError:
            self._set_state(WatcherState.STOPPED)
            raise

        self._set_state(WatcherState.RUNNING)
        logger.debug("%s: running, id=%d interval=%s read-deadline=%s",
                     self._addr, self._id, self.interval, self.read_deadline)
        try:
            self._run(channel)
        finally:
            channel.close()
            self._set_state(WatcherState.STOPPED)
            logger.debug("%s: stopped", self._addr)

    def _check_periods(self) -> None:
        for name, period in (("interval", self.interval), ("timeout", self.timeout)):
            if not period > 0:
                raise ConfigError(f"{self._addr}: {name} must be positive, got {period!r}")

    def _listen(self) -> Channel:
        try:
            channel = self.transport.open(self.resolved.version, self.privileged, self.source)
        except TransportError:
            self.stop()
            raise

        try:
            channel.set_ttl(self.ttl)
        except OSError as e:
            channel.close()
            self.stop()
            raise TransportError(f"cannot set ttl {self.ttl}: {e}") from e
        return channel

    def _run(self, channel: Channel) -> None:
        timeout = Ticker(self.timeout, self.clock)
        interval = Ticker(self.interval, self.clock)
        recv: queue.Queue = queue.Queue(maxsize=RESULT_QUEUE_SIZE)

        while True:
            if self._done.closed:
                return

            try:
                result = recv.get_nowait()
            except queue.Empty:
                pass
            else:
                self.callbacks.on_receive(result)
                continue

            now = self.clock()
            if timeout.ready(now):
                self.callbacks.on_timeout()
                continue
            if interval.ready(now):
                try:
                    recv.put(self._send_recv(channel))
                except ProbeError as e:
                    self.callbacks.on_error(e)
                continue

            delay = min(interval.remaining(now), timeout.remaining(now))
            self._done.wait(min(delay, threading.TIMEOUT_MAX))

    def _send_recv(self, channel: Channel) -> ProbeResult:
        return probe_once(
            channel, self.resolved,
            identifier=self._id,
            sequence=self.sequence,
            size=self.size,
            ttl=self.ttl,
            read_deadline=self.read_deadline,
            clock=self.clock,
        )

    def stop(self) -> bool:
        """Ask the loop to stop. Safe to call repeatedly and from any thread."""
        closed = self._done.close()
        if closed:
            logger.debug("%s: stop requested", self._addr)
        return closed


def new_watcher(addr: str, **kwargs) -> Watcher:
    """Build a Watcher and resolve its address right away."""
    w = Watcher(addr, **kwargs)
    w.resolve()
    return w
