"""Configuration loading helpers for the speedtest agent."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import FrozenSet, List, Optional, Tuple

import yaml

from .errors import ConfigError

LOGGER = logging.getLogger(__name__)

DEFAULT_CONFIG_NAME = "speedwatch.yaml"


@dataclass
class PathsConfig:
    logs_dir: Path


@dataclass
class CatalogConfig:
    candidate_limit: int = 5
    exclude_ids: List[int] = field(default_factory=list)
    timeout: float = 10.0
    secure: bool = False


@dataclass
class ProbeConfig:
    duration_seconds: int = 1
    ping_count: int = 3


@dataclass
class ScheduleConfig:
    poll_interval_seconds: float = 30.0
    exit_on_failure: bool = True


@dataclass
class StatsdConfig:
    host: str = "localhost"
    port: int = 8125
    namespace: str = "speedtest"


@dataclass
class NetworkConfig:
    name: Optional[str] = None


@dataclass
class LoggingConfig:
    level: str = "INFO"
    file_name: str = "speedwatch.log"
    max_bytes: int = 5 * 1024 * 1024
    backup_count: int = 5
    console: bool = True


@dataclass
class AppConfig:
    root_dir: Path
    paths: PathsConfig
    server_blacklist: FrozenSet[str]
    catalog: CatalogConfig
    probe: ProbeConfig
    schedule: ScheduleConfig
    statsd: StatsdConfig
    network: NetworkConfig
    logging: LoggingConfig

    def validate(self) -> "AppConfig":
        if self.schedule.poll_interval_seconds <= 0:
            raise ConfigError("schedule.poll_interval_seconds must be positive")
        if self.probe.duration_seconds <= 0:
            raise ConfigError("probe.duration_seconds must be positive")
        if self.probe.ping_count < 1:
            raise ConfigError("probe.ping_count must be at least 1")
        if self.catalog.candidate_limit < 1:
            raise ConfigError("catalog.candidate_limit must be at least 1")
        if not 0 < self.statsd.port < 65536:
            raise ConfigError(f"statsd.port out of range: {self.statsd.port}")
        if self.logging.max_bytes < 0 or self.logging.backup_count < 0:
            raise ConfigError("logging.max_bytes and logging.backup_count cannot be negative")
        return self


SECTION_NAMES = frozenset(
    {"paths", "server_blacklist", "catalog", "probe", "schedule", "statsd", "network", "logging"}
)

# dataclass field annotations are strings under postponed evaluation
_TYPE_CHECKS = {
    "int": lambda v: isinstance(v, int) and not isinstance(v, bool),
    "float": lambda v: isinstance(v, (int, float)) and not isinstance(v, bool),
    "bool": lambda v: isinstance(v, bool),
    "str": lambda v: isinstance(v, str),
    "Optional[str]": lambda v: v is None or isinstance(v, str),
    "List[int]": lambda v: isinstance(v, list)
    and all(isinstance(i, int) and not isinstance(i, bool) for i in v),
}


def _mapping(data: dict, name: str, known) -> dict:
    raw = data.get(name)
    if raw is None:
        return {}
    if not isinstance(raw, dict):
        raise ConfigError(f"Section '{name}' must be a mapping")
    unknown = sorted(set(raw) - set(known), key=str)
    if unknown:
        raise ConfigError(f"Unknown keys in '{name}': {', '.join(map(str, unknown))}")
    return raw


def _section(cls, data: dict, name: str):
    types = {f.name: f.type for f in fields(cls)}
    raw = _mapping(data, name, types)
    values = {}
    for key, value in raw.items():
        expected = types[key]
        if not _TYPE_CHECKS[expected](value):
            raise ConfigError(f"{name}.{key} must be {expected}, got {type(value).__name__} {value!r}")
        values[key] = float(value) if expected == "float" else value
    return cls(**values)


def _paths(root_dir: Path, data: dict) -> PathsConfig:
    raw = _mapping(data, "paths", {"logs_dir"})
    logs_dir = raw.get("logs_dir", "logs")
    if not isinstance(logs_dir, str):
        raise ConfigError(f"paths.logs_dir must be str, got {type(logs_dir).__name__}")
    return PathsConfig(logs_dir=_as_path(root_dir, logs_dir))


def _as_path(base: Path, maybe_path: Optional[str]) -> Path:
    if not maybe_path:
        raise ConfigError("Path configuration entries cannot be empty")
    return (base / maybe_path).resolve()


def _blacklist(raw) -> FrozenSet[str]:
    if raw is None:
        return frozenset()
    if isinstance(raw, str) or not isinstance(raw, (list, tuple, set)):
        raise ConfigError("server_blacklist must be a list of hosts")
    return frozenset(str(host).strip() for host in raw if str(host).strip())


def load_config(path: Optional[str] = None) -> AppConfig:
    """Load configuration from a YAML file, falling back to defaults if it is missing."""

    source_path = Path(path) if path else Path.cwd() / DEFAULT_CONFIG_NAME
    root_dir = source_path.resolve().parent

    if source_path.exists():
        LOGGER.info("Reading config from %s", source_path)
        try:
            with source_path.open("r", encoding="utf-8") as handle:
                data = yaml.safe_load(handle) or {}
        except yaml.YAMLError as exc:
            raise ConfigError(f"Failed to parse config {source_path}: {exc}") from exc
        if not isinstance(data, dict):
            raise ConfigError(f"Config {source_path} must contain a mapping")
    else:
        LOGGER.info("No config at %s, using default configuration", source_path)
        data = {}

    unknown = sorted(set(data) - SECTION_NAMES, key=str)
    if unknown:
        raise ConfigError(f"Unknown top-level keys in {source_path}: {', '.join(map(str, unknown))}")

    config = AppConfig(
        root_dir=root_dir,
        paths=_paths(root_dir, data),
        server_blacklist=_blacklist(data.get("server_blacklist")),
        catalog=_section(CatalogConfig, data, "catalog"),
        probe=_section(ProbeConfig, data, "probe"),
        schedule=_section(ScheduleConfig, data, "schedule"),
        statsd=_section(StatsdConfig, data, "statsd"),
        network=_section(NetworkConfig, data, "network"),
        logging=_section(LoggingConfig, data, "logging"),
    )
    return config.validate()


def parse_statsd_address(address: str) -> Tuple[str, int]:
    host, sep, port = address.rpartition(":")
    if not sep or not host:
        raise ConfigError(f"statsd address must look like host:port, got '{address}'")
    try:
        return host, int(port)
    except ValueError as exc:
        raise ConfigError(f"Invalid statsd port in '{address}'") from exc


def apply_overrides(
    config: AppConfig,
    statsd_address: Optional[str] = None,
    network_name: Optional[str] = None,
    poll_seconds: Optional[float] = None,
    log_level: Optional[str] = None,
    log_file: Optional[str] = None,
) -> AppConfig:
    """Return a copy of ``config`` with command line overrides applied."""

    if statsd_address:
        host, port = parse_statsd_address(statsd_address)
        config = replace(config, statsd=replace(config.statsd, host=host, port=port))
    if network_name:
        config = replace(config, network=NetworkConfig(name=network_name))
    if poll_seconds is not None:
        config = replace(config, schedule=replace(config.schedule, poll_interval_seconds=poll_seconds))
    if log_level:
        config = replace(config, logging=replace(config.logging, level=log_level))
    if log_file:
        config = replace(config, logging=replace(config.logging, file_name=log_file))
    return config.validate()
