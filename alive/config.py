# alive/config.py
import math
import re
from dataclasses import dataclass, field

import yaml

from alive.errors import ConfigError

# Listen on all IPv4 interfaces unless told otherwise
DEFAULT_SOURCE = "0.0.0.0"


@dataclass
class Settings:
    interval: float = 1.0           # seconds between probes
    timeout: float = math.inf       # global "no useful reply" ticker
    read_deadline: float = 1.0      # per-cycle wait for a reply
    size: int = 0                   # payload bytes
    ttl: int = 64
    source: str = DEFAULT_SOURCE
    privileged: bool = False        # raw ICMP vs datagram ICMP socket


_DURATION_UNITS = {
    "ns": 1e-9,
    "us": 1e-6,
    "µs": 1e-6,
    "μs": 1e-6,
    "ms": 1e-3,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
}

_DURATION_PART_RE = re.compile(r"(\d+(?:\.\d*)?|\.\d+)(ns|us|µs|μs|ms|s|m|h)")


def parse_duration(text) -> float:
    """
    Parse a duration like "200ms", "1.5s" or "1m30s" and return seconds.
    Bare numbers are accepted as seconds; a bare "0" is zero.
    """
    if isinstance(text, (int, float)) and not isinstance(text, bool):
        return float(text)
    if not isinstance(text, str) or not text.strip():
        raise ConfigError(f"invalid duration {text!r}")

    s = text.strip()
    sign = 1.0
    if s[0] in "+-":
        sign = -1.0 if s[0] == "-" else 1.0
        s = s[1:]
    if s == "0":
        return 0.0

    total = 0.0
    pos = 0
    while pos < len(s):
        m = _DURATION_PART_RE.match(s, pos)
        if not m:
            raise ConfigError(f"invalid duration {text!r}")
        total += float(m.group(1)) * _DURATION_UNITS[m.group(2)]
        pos = m.end()
    if pos == 0:
        raise ConfigError(f"invalid duration {text!r}")
    return sign * total


@dataclass
class HostConfig:
    addr: str
    interval: str = "1s"
    read_timeout: str = "1s"
    size: int = 0
    ttl: int = 64

    def to_settings(self, privileged: bool = False, source: str = DEFAULT_SOURCE) -> Settings:
        return Settings(
            interval=parse_duration(self.interval),
            read_deadline=parse_duration(self.read_timeout),
            size=int(self.size),
            ttl=int(self.ttl),
            source=source,
            privileged=privileged,
        )


@dataclass
class Config:
    hosts: list[HostConfig] = field(default_factory=list)


def _host_from_dict(raw: dict) -> HostConfig:
    if not isinstance(raw, dict):
        raise ConfigError(f"host entry must be a mapping, got {raw!r}")
    if not raw.get("addr"):
        raise ConfigError(f"host entry missing 'addr': {raw!r}")
    host = HostConfig(
        addr=str(raw["addr"]),
        interval=raw.get("interval", "1s"),
        read_timeout=raw.get("read-timeout", "1s"),
        size=raw.get("packet-size", 0),
        ttl=raw.get("ttl", 64),
    )
    # fail at load time rather than when the watcher starts
    for key, value in (("interval", host.interval), ("read-timeout", host.read_timeout)):
        if not parse_duration(value) > 0:
            raise ConfigError(f"{host.addr}: {key} must be positive, got {value!r}")
    if not isinstance(host.ttl, int) or isinstance(host.ttl, bool) or not 1 <= host.ttl <= 255:
        raise ConfigError(f"{host.addr}: ttl must be in 1..255, got {host.ttl!r}")
    if not isinstance(host.size, int) or isinstance(host.size, bool) or host.size < 0:
        raise ConfigError(f"{host.addr}: packet-size must be a non-negative integer, got {host.size!r}")
    return host


def load_config(data: str) -> Config:
    try:
        raw = yaml.safe_load(data) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"cannot parse config: {e}") from e
    if not isinstance(raw, dict):
        raise ConfigError("config root must be a mapping")
    hosts = raw.get("hosts") or []
    return Config(hosts=[_host_from_dict(h) for h in hosts])


def read_config(path: str) -> Config:
    """Read and parse the YAML host list at path."""
    with open(path, "r", encoding="utf-8") as f:
        return load_config(f.read())
