"""Tests for local network labelling."""

from __future__ import annotations

import subprocess

from speedwatch import netinfo


def fake_run(outputs):
    """subprocess.run replacement keyed by executable name."""

    def run(command, **kwargs):
        result = outputs.get(command[0])
        if result is None:
            raise FileNotFoundError(command[0])
        returncode, stdout = result
        return subprocess.CompletedProcess(command, returncode, stdout=stdout, stderr="")

    return run


def test_iwgetid_wins(monkeypatch):
    monkeypatch.setattr(netinfo.platform, "system", lambda: "Linux")
    monkeypatch.setattr(netinfo.subprocess, "run", fake_run({"iwgetid": (0, "HomeWifi\n")}))
    assert netinfo.detect_network_name() == "HomeWifi"


def test_nmcli_fallback(monkeypatch):
    monkeypatch.setattr(netinfo.platform, "system", lambda: "Linux")
    monkeypatch.setattr(
        netinfo.subprocess,
        "run",
        fake_run({"iwgetid": (255, ""), "nmcli": (0, "no:Neighbour\nyes:Office\n")}),
    )
    assert netinfo.detect_network_name() == "Office"


def test_macos(monkeypatch):
    monkeypatch.setattr(netinfo.platform, "system", lambda: "Darwin")
    monkeypatch.setattr(
        netinfo.subprocess,
        "run",
        fake_run({"networksetup": (0, "Current Wi-Fi Network: Cafe\n")}),
    )
    assert netinfo.detect_wifi_name() == "Cafe"


def test_hostname_when_no_wifi(monkeypatch):
    monkeypatch.setattr(netinfo.platform, "system", lambda: "Linux")
    monkeypatch.setattr(netinfo.subprocess, "run", fake_run({}))
    monkeypatch.setattr(netinfo.socket, "gethostname", lambda: "wired-box")
    assert netinfo.detect_network_name() == "wired-box"
