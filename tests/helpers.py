from __future__ import annotations

from typing import Optional
from unittest.mock import MagicMock

from ldapfacade import LdapServer


class FakeConnector:
    """Connector handing out mock ldap3 connections.

    ``error`` makes open() fail like a rejected bind, ``search_error`` makes
    every search on the returned connections raise.
    """

    def __init__(self, error: Optional[Exception] = None, search_error: Optional[Exception] = None) -> None:
        self.error = error
        self.search_error = search_error
        self.opened: list[MagicMock] = []
        self.response: list[dict] = []
        self.result: dict = {"result": 0, "description": "success"}

    def open(self, server):
        if self.error is not None:
            raise self.error
        conn = MagicMock(name=f"conn-{server.url}")
        if self.search_error is not None:
            conn.search.side_effect = self.search_error
        else:
            conn.search.return_value = True
        conn.response = self.response
        conn.result = self.result
        self.opened.append(conn)
        return conn


def spy_server(url: str, working: bool = True, **kwargs) -> LdapServer:
    """Real LdapServer with probes stubbed out and close() spied on."""
    server = LdapServer(url, **kwargs)
    server.get_addresses = MagicMock(return_value=["127.0.0.1"])
    server.is_working = MagicMock(return_value=working)
    server.close = MagicMock(wraps=server.close)
    return server


def live_server(url: str, connector: FakeConnector, reachable: bool = True, **kwargs) -> LdapServer:
    """Real LdapServer talking to a fake connector; only the TCP probe is stubbed."""
    server = LdapServer(url, connector=connector, **kwargs)
    server.is_reachable = MagicMock(return_value=reachable)
    server.close = MagicMock(wraps=server.close)
    return server


def entry(dn: str, **attributes) -> dict:
    return {"type": "searchResEntry", "dn": dn, "attributes": attributes}
