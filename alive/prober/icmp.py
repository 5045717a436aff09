# alive/prober/icmp.py
import logging
import socket
import sys

from alive.config import DEFAULT_SOURCE
from alive.errors import ResolutionError, TransportError
from alive.prober.base import Channel, Transport
from alive.schemas import ResolvedAddress

logger = logging.getLogger(__name__)

_FAMILY = {4: socket.AF_INET, 6: socket.AF_INET6}
_PROTO = {4: socket.IPPROTO_ICMP, 6: socket.IPPROTO_ICMPV6}


def strip_ip_header(data: bytes) -> bytes:
    """Drop a leading IPv4 header, if there is one."""
    if len(data) >= 20 and data[0] >> 4 == 4:
        ihl = (data[0] & 0x0F) * 4
        return data[ihl:]
    return data


class IcmpChannel(Channel):
    def __init__(self, sock: socket.socket, ip_version: int, privileged: bool):
        self.sock = sock
        self.ip_version = ip_version
        self.privileged = privileged
        # raw IPv4 sockets hand us the IP header; macOS does it for datagram ICMP too
        self.has_ip_header = ip_version == 4 and (privileged or sys.platform == "darwin")

    def send(self, data: bytes, destination: tuple) -> int:
        return self.sock.sendto(data, destination)

    def receive(self, bufsize: int, deadline: float) -> tuple[bytes, object]:
        if deadline <= 0:
            raise TimeoutError("read deadline already passed")
        self.sock.settimeout(deadline)
        data, peer = self.sock.recvfrom(bufsize)
        if self.has_ip_header:
            data = strip_ip_header(data)
        return data, peer

    def set_ttl(self, ttl: int) -> None:
        if self.ip_version == 4:
            self.sock.setsockopt(socket.IPPROTO_IP, socket.IP_TTL, ttl)
        else:
            self.sock.setsockopt(socket.IPPROTO_IPV6, socket.IPV6_UNICAST_HOPS, ttl)

    def close(self) -> None:
        self.sock.close()


class IcmpTransport(Transport):
    """
    Real sockets. Privileged mode opens SOCK_RAW (needs root or CAP_NET_RAW);
    unprivileged mode opens a SOCK_DGRAM ICMP "ping socket", which on Linux
    requires the process group to be inside net.ipv4.ping_group_range.
    """

    def resolve(self, address: str) -> ResolvedAddress:
        if not address:
            raise ResolutionError("address cannot be empty")
        try:
            infos = socket.getaddrinfo(address, None, socket.AF_UNSPEC, socket.SOCK_DGRAM)
        except (socket.gaierror, UnicodeError) as e:
            raise ResolutionError(f"cannot resolve {address}: {e}") from e

        for family, _type, _proto, _canon, sockaddr in infos:
            if family == socket.AF_INET:
                version = 4
            elif family == socket.AF_INET6:
                version = 6
            else:
                continue
            resolved = ResolvedAddress(ip=sockaddr[0], version=version, sockaddr=sockaddr)
            logger.debug("resolved %s to %s (IPv%d)", address, resolved.ip, version)
            return resolved
        raise ResolutionError(f"cannot resolve {address}: no IPv4 or IPv6 address")

    def open(self, ip_version: int, privileged: bool, source: str) -> Channel:
        if ip_version not in _FAMILY:
            raise TransportError(f"unsupported IP version {ip_version}")
        if ip_version == 6 and source == DEFAULT_SOURCE:
            source = "::"

        kind = socket.SOCK_RAW if privileged else socket.SOCK_DGRAM
        try:
            sock = socket.socket(_FAMILY[ip_version], kind, _PROTO[ip_version])
        except PermissionError as e:
            hint = "run as root" if privileged else "check net.ipv4.ping_group_range"
            raise TransportError(f"cannot open ICMP socket ({hint}): {e}") from e
        except OSError as e:
            raise TransportError(f"cannot open ICMP socket: {e}") from e

        try:
            sock.bind((source, 0))
        except OSError as e:
            sock.close()
            raise TransportError(f"cannot listen on {source}: {e}") from e

        logger.debug("listening on %s (IPv%d, %s)", source, ip_version,
                     "raw" if privileged else "datagram")
        return IcmpChannel(sock, ip_version, privileged)
