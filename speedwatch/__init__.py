"""Application bootstrap helpers."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from .config import AppConfig, apply_overrides, load_config
from .logging_setup import configure_logging
from .orchestrator import Orchestrator


class ApplicationContext:
    """Holds shared singletons for the agent."""

    def __init__(self, config: AppConfig):
        self.config = config
        self.log_path = configure_logging(config)
        self.orchestrator = Orchestrator(config)

    def start(self) -> None:
        self.orchestrator.run()


def bootstrap(config_path: Optional[str] = None, **overrides) -> ApplicationContext:
    """Load configuration, apply command line overrides and wire dependencies."""

    config_file = Path(config_path).resolve() if config_path else None
    config = load_config(str(config_file)) if config_file else load_config()
    return ApplicationContext(apply_overrides(config, **overrides))
