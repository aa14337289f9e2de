"""Local network identification."""

from __future__ import annotations

import logging
import platform
import socket
import subprocess
from typing import List, Optional

LOGGER = logging.getLogger(__name__)


def _run(command: List[str]) -> Optional[str]:
    try:
        result = subprocess.run(command, capture_output=True, text=True, timeout=5)
    except (OSError, subprocess.SubprocessError) as e:
        LOGGER.debug(f"{command[0]} unavailable: {e}")
        return None
    if result.returncode != 0:
        return None
    return result.stdout


def _ssid_from_nmcli(output: str) -> Optional[str]:
    for line in output.splitlines():
        active, _, ssid = line.partition(":")
        if active == "yes" and ssid:
            return ssid
    return None


def _ssid_from_networksetup(output: str) -> Optional[str]:
    # "Current Wi-Fi Network: home"
    _, sep, ssid = output.partition(": ")
    if not sep:
        return None
    return ssid.strip() or None


def detect_wifi_name() -> Optional[str]:
    """Return the SSID of the active wireless network, if any."""

    if platform.system() == "Darwin":
        output = _run(["networksetup", "-getairportnetwork", "en0"])
        return _ssid_from_networksetup(output) if output else None

    output = _run(["iwgetid", "-r"])
    if output and output.strip():
        return output.strip()

    output = _run(["nmcli", "-t", "-f", "active,ssid", "dev", "wifi"])
    return _ssid_from_nmcli(output) if output else None


def detect_network_name() -> str:
    """Best-effort label for the local network: the wifi SSID, else the hostname."""

    ssid = detect_wifi_name()
    if ssid:
        return ssid
    hostname = socket.gethostname()
    LOGGER.debug("No wifi network detected, labelling by hostname %s", hostname)
    return hostname
