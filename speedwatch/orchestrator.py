"""Wires server selection, probing, reporting and scheduling together."""

from __future__ import annotations

import logging
from typing import Callable, Optional, Sequence

from .config import AppConfig, StatsdConfig
from .errors import FatalCycleError, ReportError
from .measurements.catalog import ServerCatalog, SpeedtestNetCatalog
from .measurements.models import ProbeOutcome
from .measurements.probe import ProbeClient
from .measurements.selector import ServerSelector
from .netinfo import detect_network_name
from .reporter import MetricsReporter, MetricsSink, StatsdSink, build_tags
from .scheduler import SchedulerService

LOGGER = logging.getLogger(__name__)

SinkFactory = Callable[[StatsdConfig, Sequence[str]], MetricsSink]


class Orchestrator:
    def __init__(
        self,
        config: AppConfig,
        catalog: Optional[ServerCatalog] = None,
        sink_factory: SinkFactory = StatsdSink,
    ) -> None:
        self.config = config
        self.catalog = catalog or SpeedtestNetCatalog(config.catalog)
        self.sink_factory = sink_factory
        self.probe_client: Optional[ProbeClient] = None
        self.reporter: Optional[MetricsReporter] = None
        self.scheduler: Optional[SchedulerService] = None

    @property
    def network_name(self) -> str:
        return self.config.network.name or detect_network_name()

    def start(self) -> None:
        """Select a server and prepare the probe client and reporter."""

        selector = ServerSelector(
            self.catalog,
            blacklist=self.config.server_blacklist,
            limit=self.config.catalog.candidate_limit,
        )
        server = selector.select()
        self.probe_client = ProbeClient(
            server,
            self.catalog,
            duration_seconds=self.config.probe.duration_seconds,
            ping_count=self.config.probe.ping_count,
        )

        network = self.network_name
        sink = self.sink_factory(
            self.config.statsd,
            build_tags(server.host, server.display_name, network),
        )
        self.reporter = MetricsReporter(sink)

        LOGGER.info("Monitoring network %s", network)
        LOGGER.info(
            "Polling server %s in %s every %ss",
            self.probe_client.host,
            self.probe_client.location,
            self.config.schedule.poll_interval_seconds,
        )
        self.reporter.boot()

    def run_cycle(self) -> ProbeOutcome:
        """Run and report one probe. Failures raise FatalCycleError unless configured otherwise."""

        if self.probe_client is None or self.reporter is None:
            raise RuntimeError("Orchestrator.start() must be called before run_cycle()")

        outcome = self.probe_client.run_probe()
        if not outcome.ok:
            LOGGER.error("%s", outcome)
            self._fail(outcome.error)
            return outcome

        LOGGER.info("%s", outcome)
        try:
            self.reporter.report(outcome)
        except ReportError as exc:
            LOGGER.error("%s", exc)
            self._fail(exc)
        return outcome

    def _fail(self, error: Exception) -> None:
        if self.config.schedule.exit_on_failure:
            raise FatalCycleError(error) from error
        LOGGER.warning("Continuing with the next scheduled cycle")

    def close(self) -> None:
        """Flush and close the metrics sink."""

        if self.reporter is not None:
            self.reporter.close()

    def run(self) -> None:
        try:
            self.start()
            self.scheduler = SchedulerService(
                self.config.schedule.poll_interval_seconds,
                self.run_cycle,
            )
            self.scheduler.run_forever()
        finally:
            self.close()
