# alive/prober/fake.py
import ipaddress
import time
from collections import deque
from dataclasses import dataclass

from alive.errors import ResolutionError
from alive.prober.base import Channel, Transport
from alive.prober.codec import ECHO_REPLY, Message, decode_reply, encode_message
from alive.schemas import ResolvedAddress


@dataclass
class FakeReply:
    delay: float = 0.0
    data: bytes | None = None           # None -> echo the request back
    error: Exception | None = None      # raised from receive() instead of replying


def echo_reply_for(request: bytes, ip_version: int = 4) -> bytes:
    req = decode_reply(request, ip_version)
    reply = Message(
        type=ECHO_REPLY[ip_version],
        code=0,
        identifier=req.identifier,
        sequence=req.sequence,
        data=req.data,
    )
    return encode_message(reply, ip_version)


class FakeChannel(Channel):
    """
    script: iterable of FakeReply (or None for "no reply") consumed one per send.
    Once the script runs dry, `default` is used for every send; default=None
    means every probe times out.
    """
    def __init__(self, script=None, default=None, peer=("192.0.2.1", 0),
                 write_limit=None, clock=time.monotonic, sleep=time.sleep):
        self.script = deque(script or [])
        self.default = default
        self.peer = peer
        self.write_limit = write_limit
        self.clock = clock
        self.sleep = sleep

        self.ip_version = 4
        self.ttl = None
        self.closed = False
        self.sent = []          # (timestamp, packet, destination)
        self._pending = None

    def send(self, data: bytes, destination: tuple) -> int:
        self.sent.append((self.clock(), data, destination))
        self._pending = self.script.popleft() if self.script else self.default
        if self.write_limit is not None:
            return min(len(data), self.write_limit)
        return len(data)

    def receive(self, bufsize: int, deadline: float) -> tuple[bytes, object]:
        pending, self._pending = self._pending, None
        if pending is None or pending.delay > deadline:
            self.sleep(max(0.0, deadline))
            raise TimeoutError("i/o timeout")
        if pending.error is not None:
            raise pending.error

        self.sleep(pending.delay)
        data = pending.data
        if data is None:
            data = echo_reply_for(self.sent[-1][1], self.ip_version)
        return data[:bufsize], self.peer

    def set_ttl(self, ttl: int) -> None:
        self.ttl = ttl

    def close(self) -> None:
        self.closed = True


class FakeTransport(Transport):
    """
    addresses: dict[name -> ip]. IP literals always resolve; any other name
    that is not in the map fails with ResolutionError.
    """
    def __init__(self, channel=None, addresses=None, open_error=None):
        self.channel = channel if channel is not None else FakeChannel()
        self.addresses = dict(addresses or {})
        self.open_error = open_error
        self.opened = []        # (ip_version, privileged, source)

    def resolve(self, address: str) -> ResolvedAddress:
        if not address:
            raise ResolutionError("address cannot be empty")
        try:
            ip = ipaddress.ip_address(self.addresses.get(address, address))
        except ValueError as e:
            raise ResolutionError(f"cannot resolve {address}: no such host") from e
        if ip.version == 4:
            return ResolvedAddress(str(ip), 4, (str(ip), 0))
        return ResolvedAddress(str(ip), 6, (str(ip), 0, 0, 0))

    def open(self, ip_version: int, privileged: bool, source: str) -> Channel:
        self.opened.append((ip_version, privileged, source))
        if self.open_error is not None:
            raise self.open_error
        self.channel.ip_version = ip_version
        return self.channel
