# alive/prober/codec.py
"""
Echo message codec.

Builds outbound echo requests and parses whatever comes back on the ICMP
channel. Only the ICMP message itself is handled here; IP headers are
stripped by the channel before bytes reach decode_reply.
"""
import struct
from dataclasses import dataclass

from alive.errors import DecodeError
from alive.schemas import ReplyKind

HEADER = struct.Struct("!BBH")      # type, code, checksum
ECHO = struct.Struct("!HH")         # identifier, sequence

FILLER = b"a"

ICMPV4_ECHO_REPLY = 0
ICMPV4_DEST_UNREACHABLE = 3
ICMPV4_ECHO_REQUEST = 8
ICMPV4_TIME_EXCEEDED = 11

ICMPV6_DEST_UNREACHABLE = 1
ICMPV6_PACKET_TOO_BIG = 2
ICMPV6_TIME_EXCEEDED = 3
ICMPV6_ECHO_REQUEST = 128
ICMPV6_ECHO_REPLY = 129

ECHO_REQUEST = {4: ICMPV4_ECHO_REQUEST, 6: ICMPV6_ECHO_REQUEST}
ECHO_REPLY = {4: ICMPV4_ECHO_REPLY, 6: ICMPV6_ECHO_REPLY}

_TYPE_NAMES = {
    4: {
        ICMPV4_ECHO_REPLY: "echo reply",
        ICMPV4_DEST_UNREACHABLE: "destination unreachable",
        5: "redirect",
        ICMPV4_ECHO_REQUEST: "echo request",
        ICMPV4_TIME_EXCEEDED: "time exceeded",
        12: "parameter problem",
    },
    6: {
        ICMPV6_DEST_UNREACHABLE: "destination unreachable",
        ICMPV6_PACKET_TOO_BIG: "packet too big",
        ICMPV6_TIME_EXCEEDED: "time exceeded",
        4: "parameter problem",
        ICMPV6_ECHO_REQUEST: "echo request",
        ICMPV6_ECHO_REPLY: "echo reply",
    },
}


@dataclass
class Message:
    type: int
    code: int = 0
    checksum: int = 0
    # only set for echo request/reply
    identifier: int | None = None
    sequence: int | None = None
    # echo payload, or the rest of the message after the 4-byte header
    data: bytes = b""

    @property
    def is_echo(self) -> bool:
        return self.identifier is not None


def type_name(icmp_type: int, ip_version: int = 4) -> str:
    return _TYPE_NAMES.get(ip_version, {}).get(icmp_type, f"type {icmp_type}")


def checksum(data: bytes) -> int:
    """Internet checksum (RFC 1071)."""
    if len(data) % 2:
        data += b"\x00"

    total = 0
    for i in range(0, len(data), 2):
        total += (data[i] << 8) + data[i + 1]

    while total >> 16:
        total = (total & 0xFFFF) + (total >> 16)
    return ~total & 0xFFFF


def encode_message(msg: Message, ip_version: int = 4) -> bytes:
    if msg.identifier is not None:
        body = ECHO.pack(msg.identifier & 0xFFFF, (msg.sequence or 0) & 0xFFFF) + msg.data
    else:
        body = msg.data

    packet = HEADER.pack(msg.type, msg.code, 0) + body
    if ip_version == 6:
        # the kernel fills the ICMPv6 checksum, it needs the pseudo-header
        return packet
    csum = checksum(packet)
    return HEADER.pack(msg.type, msg.code, csum) + body


def encode_echo_request(identifier: int, sequence: int, size: int, ip_version: int = 4) -> bytes:
    msg = Message(
        type=ECHO_REQUEST[ip_version],
        code=0,
        identifier=identifier,
        sequence=sequence,
        data=FILLER * max(0, int(size)),
    )
    return encode_message(msg, ip_version)


def decode_reply(data: bytes, ip_version: int = 4) -> Message:
    if len(data) < HEADER.size + ECHO.size:
        raise DecodeError(f"message too short: {len(data)} bytes")

    icmp_type, code, csum = HEADER.unpack_from(data)
    if icmp_type in (ECHO_REPLY[ip_version], ECHO_REQUEST[ip_version]):
        ident, seq = ECHO.unpack_from(data, HEADER.size)
        return Message(icmp_type, code, csum, ident, seq, bytes(data[HEADER.size + ECHO.size:]))
    return Message(icmp_type, code, csum, data=bytes(data[HEADER.size:]))


def classify_reply(msg: Message, ip_version: int = 4) -> ReplyKind:
    if msg.type == ECHO_REPLY[ip_version]:
        return "echo_reply"
    return "unexpected"
