"""Server catalog, selection and probing."""

from .catalog import ServerCatalog, SpeedtestNetCatalog
from .models import MetricSample, ProbeOutcome, Server, Speed
from .probe import ProbeClient
from .selector import ServerSelector, select_server

__all__ = [
    "MetricSample",
    "ProbeClient",
    "ProbeOutcome",
    "Server",
    "ServerCatalog",
    "ServerSelector",
    "Speed",
    "SpeedtestNetCatalog",
    "select_server",
]
