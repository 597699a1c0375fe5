"""Probe data models"""
from dataclasses import dataclass
from enum import Enum
from typing import Optional


class AddressFamily(Enum):
    """Address family requested for a probe target"""
    IPV4 = "IPv4"
    IPV6 = "IPv6"


@dataclass(frozen=True)
class ProbeTarget:
    """A host to probe, pinned to one address family"""
    host: str
    family: AddressFamily


@dataclass(frozen=True)
class ProbeSettings:
    """Probe configuration; interval and timeout are in seconds"""
    count: int = 10
    interval: float = 0.01
    timeout: float = 3.0
    concurrency: int = 10
    privileged: bool = True


class ProbeError(Exception):
    """Per-target failure: the host could not be resolved or no socket could be opened"""


@dataclass
class ProbeResult:
    """Outcome of probing one target during one scrape"""
    target: ProbeTarget
    address: str = ""
    min_ms: float = 0.0
    avg_ms: float = 0.0
    max_ms: float = 0.0
    packet_loss: float = 0.0
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def failed(cls, target: ProbeTarget, error: str, address: str = "") -> "ProbeResult":
        return cls(target=target, address=address, error=error)

    @classmethod
    def from_round_trips(cls, target: ProbeTarget, address: str, sent: int, round_trips_ms) -> "ProbeResult":
        """Aggregate the round trips of received replies into loss and latency statistics.

        Latencies are truncated to whole microseconds before conversion back to
        milliseconds. When nothing came back the latencies stay at zero and the
        loss is 100%.
        """
        micros = [int(rtt * 1000) for rtt in round_trips_ms]
        received = min(len(micros), sent)
        loss = (sent - received) / sent * 100.0 if sent > 0 else 100.0

        if not micros:
            return cls(target=target, address=address, packet_loss=loss)

        return cls(
            target=target,
            address=address,
            min_ms=min(micros) / 1000.0,
            avg_ms=(sum(micros) // len(micros)) / 1000.0,
            max_ms=max(micros) / 1000.0,
            packet_loss=loss,
        )
