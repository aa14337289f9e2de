"""Entry point for running the speedtest agent."""

from __future__ import annotations

import argparse
import logging
import sys

from speedwatch import bootstrap
from speedwatch.config import DEFAULT_CONFIG_NAME
from speedwatch.errors import SpeedwatchError

LOGGER = logging.getLogger("speedwatch")


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Report speedtest.net results to a Datadog agent")
    parser.add_argument("--config", default=DEFAULT_CONFIG_NAME, help="Path to the YAML config file")
    parser.add_argument("--statsd-address", default=None, help="Datadog agent address, host:port")
    parser.add_argument("--network-name", default=None, help="Label for the local network")
    parser.add_argument("--poll", type=float, default=None, help="Seconds between speed tests")
    parser.add_argument("--log-level", default=None, help="Override the configured log level")
    parser.add_argument("--log-file", default=None, help="Log file, relative to the logs directory unless absolute")
    return parser.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(argv)
    try:
        context = bootstrap(
            args.config,
            statsd_address=args.statsd_address,
            network_name=args.network_name,
            poll_seconds=args.poll,
            log_level=args.log_level,
            log_file=args.log_file,
        )
        context.start()
    except SpeedwatchError as exc:
        LOGGER.critical("%s", exc)
        return 1
    except KeyboardInterrupt:
        LOGGER.info("Interrupted, exiting")
    return 0


if __name__ == "__main__":
    sys.exit(main())
