# alive/watch/state.py
import enum
import threading


class WatcherState(enum.Enum):
    IDLE = "idle"
    RESOLVING = "resolving"
    LISTENING = "listening"
    RUNNING = "running"
    STOPPED = "stopped"


class StopSignal:
    """One-shot signal. close() may be called any number of times from any thread."""

    def __init__(self):
        self._lock = threading.Lock()
        self._closed = False
        self._event = threading.Event()

    def close(self) -> bool:
        """Close the signal. True only for the call that actually closed it."""
        with self._lock:
            if self._closed:
                return False
            self._closed = True
            self._event.set()
            return True

    @property
    def closed(self) -> bool:
        return self._event.is_set()

    def wait(self, timeout: float | None = None) -> bool:
        return self._event.wait(timeout)
