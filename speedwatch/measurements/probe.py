"""Sequential download/upload/ping probe against a fixed server."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import timedelta
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from ..errors import ProbeStepError
from .catalog import ServerCatalog
from .models import ProbeOutcome, Server, Speed

LOGGER = logging.getLogger(__name__)

Step = Tuple[str, Callable[[], Any]]


@dataclass(frozen=True)
class StepResult:
    step: str
    value: Any = None
    error: Optional[ProbeStepError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def run_steps(steps: Sequence[Step]) -> List[StepResult]:
    """Run named steps in order, stopping after the first one that raises."""

    results: List[StepResult] = []
    for name, action in steps:
        try:
            results.append(StepResult(name, value=action()))
        except Exception as exc:  # pylint: disable=broad-except
            results.append(StepResult(name, error=ProbeStepError(name, exc)))
            break
    return results


class ProbeClient:
    """Measures bandwidth and latency against one server for its whole lifetime."""

    def __init__(
        self,
        server: Server,
        catalog: ServerCatalog,
        duration_seconds: int = 1,
        ping_count: int = 3,
    ) -> None:
        self.server = server
        self.catalog = catalog
        self.duration_seconds = duration_seconds
        self.ping_count = ping_count

    @property
    def host(self) -> str:
        return self.server.host

    @property
    def location(self) -> str:
        return self.server.display_name

    def _download(self) -> Speed:
        return Speed(self.catalog.measure_downstream(self.server, self.duration_seconds))

    def _upload(self) -> Speed:
        return Speed(self.catalog.measure_upstream(self.server, self.duration_seconds))

    def _ping(self) -> timedelta:
        latency = self.catalog.ping_server(self.server, self.ping_count)
        if latency < timedelta(0):
            raise ValueError(f"negative latency {latency}")
        return latency

    def run_probe(self) -> ProbeOutcome:
        results = run_steps(
            [
                ("download", self._download),
                ("upload", self._upload),
                ("ping", self._ping),
            ]
        )
        failure = next((result for result in results if not result.ok), None)
        if failure is not None:
            LOGGER.debug("Probe against %s stopped at %s", self.host, failure.step)
            return ProbeOutcome.failed(failure.error)

        values: Dict[str, Any] = {result.step: result.value for result in results}
        return ProbeOutcome(
            download_speed=values["download"],
            upload_speed=values["upload"],
            ping=values["ping"],
        )
