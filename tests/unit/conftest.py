"""Conftest for unit tests directory.

Blocks real reverse DNS for every unit test so nothing leaves the machine
when a test forgets to inject a resolver.
"""

from __future__ import annotations

import socket

import pytest


@pytest.fixture(autouse=True)
def _no_real_dns(monkeypatch):
    def _blocked(ip):
        raise socket.herror(1, f"real DNS disabled in tests: {ip}")

    monkeypatch.setattr(socket, "gethostbyaddr", _blocked)
