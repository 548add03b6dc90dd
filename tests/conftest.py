"""Shared pytest fixtures and configuration for all tests."""

from __future__ import annotations

import os
import random

import pytest
from helpers import CRAWLER_HOST, CRAWLER_IP, OTHER_HOST, OTHER_IP, make_resolver

from directgate import GateConfig, direct_access_gate


@pytest.fixture(autouse=True)
def _clean_directgate_env(monkeypatch):
    """Keep ``DIRECTGATE_*`` variables from the outer environment out of tests."""
    for name in list(os.environ):
        if name.startswith("DIRECTGATE_"):
            monkeypatch.delenv(name, raising=False)


@pytest.fixture
def resolver():
    """Fake reverse DNS knowing one crawler and one ordinary host."""
    return make_resolver({CRAWLER_IP: CRAWLER_HOST, OTHER_IP: OTHER_HOST})


@pytest.fixture
def make_gate(resolver):
    """Factory building a gate with a fake resolver and a seeded RNG.

    Keyword arguments are ``GateConfig`` fields.
    """

    def _make(**options):
        return direct_access_gate(
            GateConfig(**options), resolver=resolver, rng=random.Random(1234)
        )

    return _make


@pytest.fixture
def gate(make_gate):
    """A gate with default options."""
    return make_gate()
