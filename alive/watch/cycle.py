# alive/watch/cycle.py
import time

from alive.errors import (
    DecodeError,
    ProbeIOError,
    ProbeTimeoutError,
    ShortWriteError,
    UnexpectedReplyError,
)
from alive.prober.base import Channel
from alive.prober.codec import classify_reply, decode_reply, encode_echo_request, type_name
from alive.schemas import ProbeResult, ResolvedAddress

RECV_BUFFER_SIZE = 1500


def probe_once(channel: Channel, target: ResolvedAddress, *, identifier: int, sequence: int,
               size: int = 0, ttl: int | None = None, read_deadline: float = 1.0,
               clock=time.monotonic) -> ProbeResult:
    """
    Send one echo request to target and wait up to read_deadline for the reply.

    Returns a ProbeResult for an echo reply. Every failure is raised as a
    ProbeError subclass carrying sequence and ttl.
    """
    # raw and datagram ICMP sockets take the same sockaddr
    dst = target.sockaddr
    packet = encode_echo_request(identifier, sequence, size, target.version)

    start = clock()
    try:
        n = channel.send(packet, dst)
    except OSError as e:
        raise ProbeIOError(f"write to {target}: {e}", sequence, ttl) from e
    if n != len(packet):
        raise ShortWriteError(f"got {n}; want {len(packet)}", sequence, ttl)

    try:
        reply, peer = channel.receive(max(RECV_BUFFER_SIZE, len(packet) + 60), read_deadline)
    except TimeoutError as e:
        raise ProbeTimeoutError(f"read from {target}: i/o timeout", sequence, ttl) from e
    except OSError as e:
        raise ProbeIOError(f"read from {target}: {e}", sequence, ttl) from e
    duration = clock() - start

    try:
        msg = decode_reply(reply, target.version)
    except DecodeError as e:
        raise DecodeError(e.message, sequence, ttl) from e

    if classify_reply(msg, target.version) != "echo_reply":
        raise UnexpectedReplyError(
            f"got {type_name(msg.type, target.version)} (code {msg.code}) from {_peer_ip(peer)}; want echo reply",
            reply_type=msg.type, peer=peer, sequence=sequence, ttl=ttl,
        )
    return ProbeResult(message=msg, duration=duration, peer=peer)


def _peer_ip(peer) -> str:
    if isinstance(peer, tuple) and peer:
        return str(peer[0])
    return str(peer)
