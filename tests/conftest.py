"""
Shared pytest fixtures for speedwatch tests.
"""

from datetime import timedelta
from pathlib import Path

import pytest

from speedwatch.config import load_config
from speedwatch.measurements.models import Server


class StubCatalog:
    """ServerCatalog double with scripted results and call recording.

    Any scripted value that is an exception instance is raised instead of
    returned.
    """

    def __init__(
        self,
        servers=None,
        download=100_000_000,
        upload=20_000_000,
        ping=timedelta(milliseconds=15),
        unreachable=(),
    ):
        self.servers = list(servers or [])
        self.download = download
        self.upload = upload
        self.ping = ping
        self.unreachable = set(unreachable)
        self.calls = []

    def fetch_servers(self):
        self.calls.append(("fetch",))
        return list(self.servers)

    def ping_server(self, server, count):
        self.calls.append(("ping", server.host, count))
        if server.host in self.unreachable:
            raise ConnectionError(f"{server.host} unreachable")
        return self._value(self.ping)

    def measure_downstream(self, server, seconds):
        self.calls.append(("download", server.host, seconds))
        return self._value(self.download)

    def measure_upstream(self, server, seconds):
        self.calls.append(("upload", server.host, seconds))
        return self._value(self.upload)

    def count(self, kind):
        return sum(1 for call in self.calls if call[0] == kind)

    @staticmethod
    def _value(value):
        if isinstance(value, Exception):
            raise value
        return value


class RecordingSink:
    def __init__(self, fail_on=None):
        self.fail_on = fail_on
        self.histograms = []
        self.counters = []
        self.closed = False

    def histogram(self, name, value):
        if name == self.fail_on:
            raise OSError("agent unreachable")
        self.histograms.append((name, value))

    def increment(self, name):
        if name == self.fail_on:
            raise OSError("agent unreachable")
        self.counters.append(name)

    def close(self):
        if self.fail_on == "close":
            raise OSError("agent unreachable")
        self.closed = True


@pytest.fixture
def servers():
    return [
        Server(host="near.example.net:8080", display_name="Nearville"),
        Server(host="mid.example.net:8080", display_name="Midtown"),
        Server(host="far.example.net:8080", display_name="Faraway"),
    ]


@pytest.fixture
def stub_catalog(servers):
    return StubCatalog(servers=servers)


@pytest.fixture
def app_config(tmp_path: Path):
    config_file = tmp_path / "speedwatch.yaml"
    config_file.write_text("network:\n  name: test-net\n", encoding="utf-8")
    return load_config(str(config_file))
