from __future__ import annotations

import logging
import time
from typing import Optional, Sequence
from urllib.parse import urlsplit

from ldap3 import ALL_ATTRIBUTES, SUBTREE, Connection
from ldap3.core.exceptions import LDAPCommunicationError, LDAPException

from .exceptions import LdapCommunicationError, UnknownHostError
from .search import SearchControls
from .transport import Connector, Ldap3Connector, Resolver, system_resolver
from .utils.net import ms_to_seconds
from .utils.tcp_probe import tcp_probe

logger = logging.getLogger(__name__)


class LdapServer:
    """One LDAP server of the pool, identified by its URL.

    Timeouts are in milliseconds; ``None`` means "not set explicitly", which
    lets the facade fill them in from the configuration.
    """

    DEFAULT_PORT = 389
    DEFAULT_LDAPS_PORT = 636
    DEFAULT_INTERVAL = 10 * 1000
    # used by the TCP probe when no connect timeout is set
    DEFAULT_CONNECT_TIMEOUT = 3 * 1000

    def __init__(
        self,
        url: str,
        username: Optional[str] = None,
        password: Optional[str] = None,
        connect_timeout: Optional[int] = None,
        read_timeout: Optional[int] = None,
        interval: int = DEFAULT_INTERVAL,
        resolver: Optional[Resolver] = None,
        connector: Optional[Connector] = None,
    ) -> None:
        self.url = url
        self.username = username
        self.password = password
        self.connect_timeout = connect_timeout
        self.read_timeout = read_timeout
        self.interval = interval
        self.resolver = resolver
        self.connector = connector

        self._parts = urlsplit(url)
        self._conn: Connection | None = None
        # monotonic() of the last failed connect, 0 when healthy
        self._error_timestamp = 0.0

    @property
    def name(self) -> str:
        return self._parts.hostname or ""

    @property
    def use_ssl(self) -> bool:
        return (self._parts.scheme or "").lower() == "ldaps"

    @property
    def port(self) -> int:
        if self._parts.port:
            return self._parts.port
        return self.DEFAULT_LDAPS_PORT if self.use_ssl else self.DEFAULT_PORT

    def get_connect_timeout(self) -> Optional[int]:
        return self.connect_timeout

    def set_connect_timeout(self, value: Optional[int]) -> None:
        self.connect_timeout = value

    def get_read_timeout(self) -> Optional[int]:
        return self.read_timeout

    def set_read_timeout(self, value: Optional[int]) -> None:
        self.read_timeout = value

    def get_addresses(self, resolver: Optional[Resolver] = None) -> list[str]:
        """Resolve the server host. Raises UnknownHostError."""
        resolve = resolver or self.resolver or system_resolver
        return resolve(self.name)

    def is_reachable(self) -> bool:
        """True if any address of the host accepts a TCP connection within connect timeout."""
        try:
            addresses = self.get_addresses()
        except UnknownHostError as e:
            logger.warning("LDAP server %s cannot be resolved: %s", self.url, e)
            return False

        timeout_s = ms_to_seconds(self.connect_timeout) or self.DEFAULT_CONNECT_TIMEOUT / 1000.0
        for address in addresses:
            if tcp_probe(address, self.port, timeout_s):
                return True
            logger.debug("LDAP server %s: address %s port %d not reachable", self.url, address, self.port)
        return False

    def is_working(self) -> bool:
        """True if the server has an open connection or a new one can be bound now."""
        if self._conn is None:
            return self.connect() is not None
        return True

    def _recently_failed(self) -> bool:
        if not self._error_timestamp:
            return False
        return (time.monotonic() - self._error_timestamp) * 1000 < self.interval

    def connect(self) -> Connection | None:
        if self._conn is not None:
            return self._conn

        if self._recently_failed():
            logger.debug("LDAP server %s is down, waiting for retry interval", self.url)
            return None

        logger.info("Connecting to LDAP server %s", self)
        if not self.is_reachable():
            logger.warning("LDAP server %s is not reachable", self)
            self._error_timestamp = time.monotonic()
            return None

        connector = self.connector or Ldap3Connector()
        try:
            self._conn = connector.open(self)
        except LDAPException as e:
            logger.warning("LDAP server %s is not responding: %s", self, e)
            self._error_timestamp = time.monotonic()
            self._conn = None
            return None

        self._error_timestamp = 0.0
        logger.info("Connected to LDAP server %s", self)
        return self._conn

    def reconnect(self) -> Connection | None:
        logger.info("Reconnecting to LDAP server %s", self)
        self.close()
        return self.connect()

    def search(
        self,
        base: str,
        search_filter: str,
        controls: SearchControls,
        attributes: Optional[Sequence[str]] = None,
        _reconnected: bool = False,
    ) -> tuple[list[dict], dict]:
        """Subtree search on this server.

        Returns ``(entries, result)`` where entries are the ``searchResEntry``
        items of the ldap3 response. A lost connection is re-established once;
        LdapCommunicationError is raised if that does not help.
        """
        if not self.is_working():
            if _reconnected:
                raise LdapCommunicationError(f"Unable to reconnect to LDAP server {self.url}")
            self.reconnect()
            return self.search(base, search_filter, controls, attributes, True)

        conn = self._conn
        try:
            conn.search(
                search_base=base,
                search_filter=search_filter,
                search_scope=SUBTREE,
                attributes=list(attributes) if attributes else ALL_ATTRIBUTES,
                size_limit=controls.count_limit,
                time_limit=controls.time_limit_seconds,
            )
        except LDAPCommunicationError as e:
            if _reconnected:
                raise LdapCommunicationError(f"Communication with LDAP server {self.url} failed: {e}") from e
            logger.warning("Communication error on LDAP server %s, reconnecting: %s", self.url, e)
            self.reconnect()
            return self.search(base, search_filter, controls, attributes, True)

        entries = [r for r in (conn.response or []) if r.get("type") == "searchResEntry"]
        return entries, dict(conn.result or {})

    def close(self) -> None:
        """Release the connection. Safe to call repeatedly or when never opened."""
        conn, self._conn = self._conn, None
        if conn is None:
            return
        try:
            conn.unbind()
        except LDAPException as e:
            logger.warning("Cannot close connection to LDAP server %s: %s", self.url, e)

    @property
    def is_open(self) -> bool:
        return self._conn is not None

    def __str__(self) -> str:
        s = self.url
        if self.connect_timeout and self.connect_timeout > 0:
            s += f", connect timeout: {self.connect_timeout}"
        if self.read_timeout and self.read_timeout > 0:
            s += f", read timeout: {self.read_timeout}"
        return s

    def __repr__(self) -> str:
        return f"LdapServer({self.url!r})"
