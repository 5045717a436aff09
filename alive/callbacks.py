# alive/callbacks.py
import logging

from alive.schemas import ProbeResult

logger = logging.getLogger("alive")


class Callbacks:
    """
    Notification points of a running watcher. The base class ignores every
    event; subclass and override what you need. Return values are ignored.
    """

    def on_timeout(self) -> None:
        pass

    def on_receive(self, result: ProbeResult) -> None:
        pass

    def on_error(self, error: Exception) -> None:
        pass


class LoggingCallbacks(Callbacks):
    """Reports every event of one watcher through the logging module."""

    def __init__(self, watcher, log: logging.Logger = logger):
        self.watcher = watcher
        self.log = log

    def _peer(self) -> str:
        resolved = self.watcher.resolved
        return resolved.ip if resolved is not None else "<unresolved>"

    def on_timeout(self) -> None:
        self.log.warning("%s: timeout", self.watcher.addr)

    def on_receive(self, result: ProbeResult) -> None:
        self.log.info("%s | %s: icmp_seq=%d ttl=%d time=%.3fms",
                      self.watcher.addr, self._peer(), self.watcher.sequence,
                      self.watcher.ttl, result.rtt_ms)

    def on_error(self, error: Exception) -> None:
        self.log.error("%s | %s: error: %s", self.watcher.addr, self._peer(), error)
