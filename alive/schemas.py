# alive/schemas.py
from dataclasses import dataclass
from typing import Any, Literal

ReplyKind = Literal["echo_reply", "unexpected"]


@dataclass(frozen=True)
class ResolvedAddress:
    ip: str
    version: int            # 4 | 6
    sockaddr: tuple         # ready to hand to socket.sendto

    def __str__(self) -> str:
        return self.ip


@dataclass
class ProbeResult:
    message: Any            # alive.prober.codec.Message
    duration: float         # seconds, send -> reply read
    peer: Any = None

    @property
    def rtt_ms(self) -> float:
        return self.duration * 1000.0
