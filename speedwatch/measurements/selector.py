"""Closest usable server selection."""

from __future__ import annotations

import logging
from datetime import timedelta
from typing import AbstractSet, Callable, Iterable, Optional

from ..errors import NoAvailableServerError
from .catalog import ServerCatalog
from .models import Server

LOGGER = logging.getLogger(__name__)

DEFAULT_CANDIDATE_LIMIT = 5

Pinger = Callable[[Server, int], timedelta]


def select_server(
    candidates: Iterable[Server],
    blacklist: AbstractSet[str],
    pinger: Pinger,
    limit: int = DEFAULT_CANDIDATE_LIMIT,
) -> Server:
    """Return the first non-blacklisted candidate that answers a single ping.

    Candidates are expected in proximity order. Blacklisted hosts are skipped
    without being probed; at most ``limit`` of the remaining ones are tried.
    """

    examined = 0
    for server in candidates:
        if server.host in blacklist:
            LOGGER.debug("Skipping blacklisted server %s", server.host)
            continue
        if examined >= limit:
            break
        examined += 1
        try:
            latency = pinger(server, 1)
        except Exception as exc:  # pylint: disable=broad-except
            LOGGER.warning("Failed to connect to %s, trying another. Error: %s", server.host, exc)
            continue
        LOGGER.info("Selected %s (%.1f ms)", server, latency / timedelta(milliseconds=1))
        return server

    raise NoAvailableServerError(examined)


class ServerSelector:
    def __init__(
        self,
        catalog: ServerCatalog,
        blacklist: AbstractSet[str] = frozenset(),
        limit: int = DEFAULT_CANDIDATE_LIMIT,
    ) -> None:
        self.catalog = catalog
        self.blacklist = frozenset(blacklist)
        self.limit = limit

    def select(self, candidates: Optional[Iterable[Server]] = None) -> Server:
        if candidates is None:
            LOGGER.info("Finding the closest server...")
            candidates = self.catalog.fetch_servers()
        return select_server(candidates, self.blacklist, self.catalog.ping_server, self.limit)
