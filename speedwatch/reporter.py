"""Report probe outcomes as DogStatsD histograms."""

from __future__ import annotations

import logging
from typing import Callable, List, Optional, Protocol, Sequence

from datadog.dogstatsd import DogStatsd

from .config import StatsdConfig
from .errors import ReportError
from .measurements.models import MetricSample, ProbeOutcome

LOGGER = logging.getLogger(__name__)

SAMPLE_NAMES = ("download", "upload", "ping")
BOOT_COUNTER = "boot"


class MetricsSink(Protocol):
    def histogram(self, name: str, value: float) -> None:
        ...

    def increment(self, name: str) -> None:
        ...

    def close(self) -> None:
        ...


def build_tags(server_host: str, server_location: str, network_name: str) -> List[str]:
    return [
        f"speedtest.server:{server_host}",
        f"speedtest.location:{server_location}",
        f"speedtest.network_name:{network_name}",
    ]


class StatsdSink:
    """MetricsSink writing to a Datadog agent with a fixed namespace and tag set.

    DogStatsd logs and drops packets it cannot send instead of raising. Its
    dropped-packet telemetry counters are compared around every send so that a
    dropped packet surfaces as ``OSError``.
    """

    def __init__(self, config: StatsdConfig, tags: Sequence[str], client: Optional[DogStatsd] = None):
        self.config = config
        self.tags = list(tags)
        self.client = client or DogStatsd(
            host=config.host,
            port=config.port,
            namespace=config.namespace,
            constant_tags=self.tags,
            disable_buffering=True,
            disable_telemetry=False,
        )

    def _dropped(self) -> int:
        # packets_dropped_writer exists from datadog 0.45 on
        return getattr(self.client, "packets_dropped", 0) + getattr(self.client, "packets_dropped_writer", 0)

    def _checked(self, name: str, send: Callable[[], None]) -> None:
        before = self._dropped()
        send()
        if self._dropped() > before:
            raise OSError(f"statsd packet for '{name}' dropped (agent {self.config.host}:{self.config.port})")

    def histogram(self, name: str, value: float) -> None:
        self._checked(name, lambda: self.client.histogram(name, value))

    def increment(self, name: str) -> None:
        self._checked(name, lambda: self.client.increment(name))

    def close(self) -> None:
        self.client.flush()
        self.client.close_socket()


def samples_for(outcome: ProbeOutcome) -> List[MetricSample]:
    values = {
        "download": float(outcome.download_speed),
        "upload": float(outcome.upload_speed),
        "ping": outcome.ping_ms,
    }
    return [MetricSample(name, values[name]) for name in SAMPLE_NAMES]


class MetricsReporter:
    def __init__(self, sink: MetricsSink) -> None:
        self.sink = sink

    def boot(self) -> None:
        try:
            self.sink.increment(BOOT_COUNTER)
        except Exception as exc:  # pylint: disable=broad-except
            raise ReportError(BOOT_COUNTER, exc) from exc

    def report(self, outcome: ProbeOutcome) -> None:
        """Emit download, upload and ping in order; stop at the first failure."""

        if not outcome.ok:
            raise ValueError("refusing to report a failed probe outcome")

        for sample in samples_for(outcome):
            try:
                self.sink.histogram(sample.name, sample.value)
            except Exception as exc:  # pylint: disable=broad-except
                raise ReportError(sample.name, exc) from exc

    def close(self) -> None:
        try:
            self.sink.close()
        except Exception as exc:  # pylint: disable=broad-except
            LOGGER.warning("Failed to flush metrics sink: %s", exc)
