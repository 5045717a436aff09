# alive/prober/base.py
from abc import ABC, abstractmethod

from alive.schemas import ResolvedAddress


class Channel(ABC):
    """An open ICMP-capable socket owned by exactly one watcher."""

    @abstractmethod
    def send(self, data: bytes, destination: tuple) -> int:
        """Write one ICMP message and return the number of bytes written."""
        raise NotImplementedError

    @abstractmethod
    def receive(self, bufsize: int, deadline: float) -> tuple[bytes, object]:
        """
        Block for one ICMP message (IP header already stripped), at most
        deadline seconds. Raises TimeoutError when nothing arrives in time,
        OSError on any other read failure.
        """
        raise NotImplementedError

    @abstractmethod
    def set_ttl(self, ttl: int) -> None:
        raise NotImplementedError

    def close(self) -> None:
        pass


class Transport(ABC):
    @abstractmethod
    def resolve(self, address: str) -> ResolvedAddress:
        """Look address up and classify it as IPv4 or IPv6. Raises ResolutionError."""
        raise NotImplementedError

    @abstractmethod
    def open(self, ip_version: int, privileged: bool, source: str) -> Channel:
        """Open a raw (privileged) or datagram ICMP channel. Raises TransportError."""
        raise NotImplementedError
