# alive/errors.py


class WatcherError(Exception):
    """Base class for everything the watcher raises on purpose."""


class ResolutionError(WatcherError):
    pass


class TransportError(WatcherError):
    pass


class WatcherStateError(WatcherError):
    """Raised when an operation is called in a state that forbids it (e.g. a mutator while running)."""


class ConfigError(WatcherError):
    pass


class ProbeError(WatcherError):
    """
    A single probe cycle failed. Never fatal: the loop reports it through
    on_error and moves on to the next tick.
    """

    def __init__(self, message: str, sequence: int | None = None, ttl: int | None = None):
        super().__init__(message)
        self.message = message
        self.sequence = sequence
        self.ttl = ttl

    def __str__(self) -> str:
        if self.sequence is None:
            return self.message
        return f"{self.message} : icmp_seq={self.sequence} ttl={self.ttl}"


class ShortWriteError(ProbeError):
    pass


class ProbeIOError(ProbeError):
    pass


class ProbeTimeoutError(ProbeError):
    pass


class DecodeError(ProbeError):
    pass


class UnexpectedReplyError(ProbeError):
    def __init__(self, message: str, reply_type: int | None = None, peer=None,
                 sequence: int | None = None, ttl: int | None = None):
        super().__init__(message, sequence=sequence, ttl=ttl)
        self.reply_type = reply_type
        self.peer = peer
