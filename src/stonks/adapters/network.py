"""Connectivity probe run before each scrape cycle."""

from __future__ import annotations

import socket
from logging import getLogger

log = getLogger(__name__)


def has_network_connection(host: str) -> bool:
    """Return whether ``host`` resolves; a failed DNS lookup counts as offline."""

    try:
        socket.getaddrinfo(host, None)
    except (OSError, UnicodeError) as exc:
        log.debug("Connectivity probe for %s failed: %s", host, exc)
        return False
    return True
