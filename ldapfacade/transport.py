"""Directory transport capability used by :class:`~ldapfacade.server.LdapServer`.

Network access is kept behind two small seams so that servers can be
exercised without real I/O:

- a *resolver*: ``Callable[[str], list[str]]`` turning a host name into
  addresses (raises :class:`UnknownHostError`);
- a *connector*: object with ``open(server) -> ldap3.Connection`` returning
  an opened and bound connection.
"""
from __future__ import annotations

import logging
import socket
import ssl
from typing import TYPE_CHECKING, Any, Callable, Protocol

from ldap3 import NONE, Connection, Server, Tls
from ldap3.core.exceptions import LDAPBindError, LDAPException

from .exceptions import UnknownHostError
from .utils.net import looks_like_ip, ms_to_seconds, resolve_hostname_with_dns

if TYPE_CHECKING:
    from .server import LdapServer

logger = logging.getLogger(__name__)

Resolver = Callable[[str], list[str]]


class Connector(Protocol):
    def open(self, server: "LdapServer") -> Connection: ...


def system_resolver(host: str) -> list[str]:
    """Resolve host via the system resolver (getaddrinfo)."""
    try:
        infos = socket.getaddrinfo(host, None, proto=socket.IPPROTO_TCP)
    except socket.gaierror as e:
        raise UnknownHostError(host, str(e)) from e
    out: list[str] = []
    for info in infos:
        addr = str(info[4][0])
        if addr not in out:
            out.append(addr)
    if not out:
        raise UnknownHostError(host)
    return out


def dns_resolver(dns_server: str) -> Resolver:
    """Resolver that queries a specific DNS server (dnspython)."""

    def resolve(host: str) -> list[str]:
        if looks_like_ip(host):
            return [host]
        addrs = resolve_hostname_with_dns(host, dns_server)
        if not addrs:
            raise UnknownHostError(host, f"not resolvable via DNS server {dns_server}")
        return addrs

    return resolve


class Ldap3Connector:
    """Opens ldap3 connections (simple bind, or anonymous when no user is set)."""

    def __init__(self, tls_validate: bool = False, ca_certs_file: str = "") -> None:
        self.tls_validate = tls_validate
        self.ca_certs_file = ca_certs_file

    def _tls(self) -> Tls:
        tls_kwargs: dict[str, Any] = {
            "validate": ssl.CERT_REQUIRED if self.tls_validate else ssl.CERT_NONE,
        }
        # Custom CA only matters when verification is enabled.
        if self.tls_validate and self.ca_certs_file:
            tls_kwargs["ca_certs_file"] = self.ca_certs_file
        return Tls(**tls_kwargs)

    def open(self, server: "LdapServer") -> Connection:
        srv = Server(
            host=server.name,
            port=server.port,
            use_ssl=server.use_ssl,
            get_info=NONE,
            tls=self._tls(),
            connect_timeout=ms_to_seconds(server.get_connect_timeout()),
        )
        conn = Connection(
            srv,
            user=server.username,
            password=server.password,
            auto_bind=False,
            receive_timeout=ms_to_seconds(server.get_read_timeout()),
        )
        conn.open()
        if not conn.bind():
            res = dict(conn.result or {})
            try:
                conn.unbind()
            except LDAPException as e:
                logger.debug("unbind after failed bind to %s: %s", server.url, e)
            raise LDAPBindError(
                f"bind to {server.url} failed: {res.get('description', '')} {res.get('message', '')}".strip()
            )
        return conn
