"""speedtest.net server catalog and raw measurements."""

from __future__ import annotations

import logging
import statistics
import time
from datetime import timedelta
from typing import Any, Dict, List, Optional, Protocol

import requests
import speedtest

from ..config import CatalogConfig
from ..errors import CatalogError, MeasurementError
from .models import Server

LOGGER = logging.getLogger(__name__)


class ServerCatalog(Protocol):
    def fetch_servers(self) -> List[Server]:
        ...

    def ping_server(self, server: Server, count: int) -> timedelta:
        ...

    def measure_downstream(self, server: Server, seconds: int) -> int:
        ...

    def measure_upstream(self, server: Server, seconds: int) -> int:
        ...


def server_from_record(record: Dict[str, Any]) -> Server:
    """Build a Server from a speedtest-cli server dictionary."""

    try:
        host = record["host"]
    except KeyError as exc:
        raise CatalogError(f"server record without host: {record!r}") from exc
    server_id = record.get("id")
    distance = record.get("d")
    return Server(
        host=host,
        display_name=record.get("name") or host,
        url=record.get("url", ""),
        sponsor=record.get("sponsor"),
        country=record.get("country"),
        server_id=int(server_id) if server_id is not None else None,
        distance_km=float(distance) if distance is not None else None,
        raw=dict(record),
    )


def _record_for(server: Server) -> Dict[str, Any]:
    if server.raw:
        return dict(server.raw)
    return {
        "url": server.url,
        "host": server.host,
        "name": server.display_name,
        "sponsor": server.sponsor,
        "country": server.country,
        "id": server.server_id,
        "d": server.distance_km,
    }


class SpeedtestNetCatalog:
    """ServerCatalog backed by speedtest-cli and plain HTTP latency checks."""

    def __init__(self, config: CatalogConfig, session: Optional[requests.Session] = None):
        self.config = config
        self.session = session or requests.Session()
        self._client: Optional[speedtest.Speedtest] = None

    def _speedtest(self) -> speedtest.Speedtest:
        if self._client is None:
            LOGGER.info("Fetching speedtest.net configuration...")
            self._client = speedtest.Speedtest(timeout=self.config.timeout, secure=self.config.secure)
        return self._client

    def fetch_servers(self) -> List[Server]:
        try:
            client = self._speedtest()
            client.get_servers(exclude=list(self.config.exclude_ids) or None)
            records = client.get_closest_servers(limit=self.config.candidate_limit)
        except (speedtest.SpeedtestException, requests.RequestException) as exc:
            raise CatalogError(f"Failed to fetch speedtest servers: {exc}") from exc

        servers = [server_from_record(record) for record in records]
        LOGGER.debug("Catalog returned %d candidate servers", len(servers))
        return servers

    def ping_server(self, server: Server, count: int) -> timedelta:
        if count < 1:
            raise ValueError("ping count must be at least 1")

        samples = []
        for attempt in range(count):
            started = time.perf_counter()
            try:
                response = self.session.get(
                    server.latency_url,
                    params={"x": f"{time.time() * 1000:.0f}.{attempt}"},
                    timeout=self.config.timeout,
                )
                response.raise_for_status()
            except requests.RequestException as exc:
                raise MeasurementError(f"ping to {server.host} failed: {exc}") from exc
            elapsed = time.perf_counter() - started
            if response.text.strip() != "test=test":
                raise MeasurementError(f"unexpected latency response from {server.host}")
            samples.append(elapsed)

        return timedelta(seconds=statistics.median(samples))

    def _target(self, server: Server) -> speedtest.Speedtest:
        client = self._speedtest()
        if client.results.server.get("host") != server.host:
            LOGGER.debug("Pointing speedtest client at %s", server.host)
            client.get_best_server([_record_for(server)])
        return client

    def measure_downstream(self, server: Server, seconds: int) -> int:
        try:
            client = self._target(server)
            client.config["length"]["download"] = seconds
            return int(client.download())
        except (speedtest.SpeedtestException, requests.RequestException, OSError) as exc:
            raise MeasurementError(str(exc)) from exc

    def measure_upstream(self, server: Server, seconds: int) -> int:
        try:
            client = self._target(server)
            client.config["length"]["upload"] = seconds
            return int(client.upload())
        except (speedtest.SpeedtestException, requests.RequestException, OSError) as exc:
            raise MeasurementError(str(exc)) from exc
