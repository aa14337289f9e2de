"""Shared dataclasses for measurements."""

from __future__ import annotations

import posixpath
from dataclasses import dataclass, field
from datetime import timedelta
from typing import Any, Dict, Optional

from ..errors import ProbeStepError

_SPEED_UNITS = (
    (1_000_000_000, "Gbps"),
    (1_000_000, "Mbps"),
    (1_000, "Kbps"),
)


class Speed(int):
    """Bandwidth in bits per second."""

    def __new__(cls, value: int = 0) -> "Speed":
        value = int(value)
        if value < 0:
            raise ValueError(f"speed cannot be negative: {value}")
        return super().__new__(cls, value)

    def __str__(self) -> str:
        for factor, unit in _SPEED_UNITS:
            if self >= factor:
                return f"{self / factor:.1f} {unit}"
        return f"{int(self)} bps"

    def __repr__(self) -> str:
        return f"Speed({int(self)})"


@dataclass(frozen=True)
class Server:
    host: str
    display_name: str
    url: str = ""
    sponsor: Optional[str] = None
    country: Optional[str] = None
    server_id: Optional[int] = None
    distance_km: Optional[float] = None
    raw: Dict[str, Any] = field(default_factory=dict, compare=False, hash=False, repr=False)

    @property
    def latency_url(self) -> str:
        if not self.url:
            return f"http://{self.host}/speedtest/latency.txt"
        return posixpath.dirname(self.url) + "/latency.txt"

    def __str__(self) -> str:
        return f"{self.host} ({self.display_name})"


@dataclass(frozen=True)
class ProbeOutcome:
    download_speed: Speed
    upload_speed: Speed
    ping: timedelta
    error: Optional[ProbeStepError] = None

    @classmethod
    def failed(cls, error: ProbeStepError) -> "ProbeOutcome":
        return cls(Speed(0), Speed(0), timedelta(0), error)

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def ping_ms(self) -> float:
        return self.ping / timedelta(milliseconds=1)

    def __str__(self) -> str:
        if self.error is not None:
            return f"Failed speedtest: {self.error}"
        return (
            f"Download: {self.download_speed}  "
            f"Upload: {self.upload_speed}  "
            f"Ping: {self.ping_ms:.1f} ms"
        )


@dataclass(frozen=True)
class MetricSample:
    name: str
    value: float
