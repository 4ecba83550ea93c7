from __future__ import annotations

import os

import pytest

from .helpers import FakeConnector


@pytest.fixture(autouse=True)
def _clean_ldap_env(monkeypatch):
    """Keep LDAP_* variables of the host environment out of Configuration."""
    for name in list(os.environ):
        if name.startswith("LDAP_"):
            monkeypatch.delenv(name, raising=False)


@pytest.fixture
def fake_connector():
    return FakeConnector()
