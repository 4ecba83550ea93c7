from __future__ import annotations

import logging
import time
from typing import Any, Iterable, Optional, Sequence

from ldap3.core.exceptions import LDAPException
from ldap3.core.results import (
    RESULT_NO_SUCH_OBJECT,
    RESULT_SIZE_LIMIT_EXCEEDED,
    RESULT_SUCCESS,
    RESULT_TIME_LIMIT_EXCEEDED,
)

from .config import Configuration
from .exceptions import LdapCommunicationError, LdapException, LdapNameNotFoundError, NotConfiguredError
from .search import (
    AttributeMapper,
    ContentAttributeMapper,
    LdapSearchResult,
    SearchControls,
    get_search_description,
)
from .server import LdapServer
from .transport import Ldap3Connector, dns_resolver

logger = logging.getLogger(__name__)


class LdapFacade:
    """Search facade over an ordered pool of LDAP servers.

    On construction the configuration is copied (search limits, search base,
    timeouts inherited by servers without their own) and the pool is checked:
    the first working server becomes the active one, every other server is
    closed. Searches go to the active server and fail over to the next
    working one on errors.
    """

    def __init__(self, configuration: Configuration) -> None:
        self._servers: list[LdapServer] = list(configuration.get_servers())
        self._search_controls = SearchControls(
            time_limit=configuration.get_search_timeout(),
            count_limit=configuration.get_count_limit(),
        )
        self._search_base = configuration.get_search_base()
        self._interval = configuration.get_interval()

        self._active = -1
        # monotonic() of the last failed rotation over the whole pool
        self._error_timestamp = 0.0
        self._reported = False

        resolver = dns_resolver(configuration.dns_server) if configuration.dns_server else None
        connector = Ldap3Connector(
            tls_validate=configuration.tls_validate,
            ca_certs_file=configuration.ca_certs_file,
        )
        for server in self._servers:
            if server.get_connect_timeout() is None:
                server.set_connect_timeout(configuration.get_connect_timeout())
            if server.get_read_timeout() is None:
                server.set_read_timeout(configuration.get_read_timeout())
            if server.resolver is None and resolver is not None:
                server.resolver = resolver
            if server.connector is None:
                server.connector = connector

        self.prepare_servers()

    def get_search_controls(self) -> SearchControls:
        return self._search_controls

    def get_servers(self) -> list[LdapServer]:
        return list(self._servers)

    def get_search_base(self) -> Optional[str]:
        return self._search_base

    def get_active_server(self) -> Optional[LdapServer]:
        if self._active == -1:
            return None
        return self._servers[self._active]

    def prepare_servers(self) -> None:
        """Select the first working server and close all the others."""
        logger.debug("Checking %d LDAP server(s)", len(self._servers))
        self._active = -1
        for i, server in enumerate(self._servers):
            if server.is_working():
                self._active = i
                break

        logger.debug("Closing unused LDAP servers")
        for i, server in enumerate(self._servers):
            if i != self._active:
                server.close()

        active = self.get_active_server()
        if active is not None:
            logger.info("LDAP server check done (current server: %s)", active)
        else:
            logger.warning("LDAP server check done, no working server in the pool")

    def is_configured(self) -> bool:
        return bool(self._servers) and bool(self._search_base) and self._active != -1

    def _next_server(self, failed: int) -> int:
        """Index of the next working server after ``failed`` (round robin), -1 if none."""
        n = len(self._servers)
        for step in range(1, n + 1):
            i = (failed + step) % n
            if self._servers[i].is_working():
                return i
        return -1

    def _fail_over(self) -> None:
        failed = self._active
        self._servers[failed].close()
        self._active = self._next_server(failed)
        if self._active != -1:
            logger.info("Switched to LDAP server %s", self._servers[self._active])

    def _pool_broken(self) -> bool:
        if not self._error_timestamp:
            return False
        return (time.monotonic() - self._error_timestamp) * 1000 < self._interval

    def search(
        self,
        dn: Optional[str],
        search_filter: str,
        attributes: Optional[Sequence[str]] = None,
        mapper: Optional[AttributeMapper] = None,
    ) -> list[LdapSearchResult]:
        """Search ``dn`` (or the configured search base) on the active server.

        Empty ``attributes`` means all attributes. Entry attributes are turned
        into ``LdapSearchResult.attrs`` by ``mapper`` (ContentAttributeMapper
        by default).
        """
        if self._pool_broken():
            if not self._reported:
                self._reported = True
                logger.error("LDAP server pool is still broken")
            raise LdapException("LDAP server pool is still broken")

        if not self.is_configured():
            logger.error("LDAP is not configured")
            raise NotConfiguredError("LDAP is not configured")

        if mapper is None:
            mapper = ContentAttributeMapper()
        base = dn or self._search_base
        last_error: Optional[Exception] = None

        for _ in range(len(self._servers)):
            server = self._servers[self._active]
            try:
                entries, result = server.search(base, search_filter, self._search_controls, attributes)
            except LdapCommunicationError as e:
                logger.warning("Communication error received on server %s, reconnecting to next server: %s", server, e)
                last_error = e
                self._fail_over()
            except LDAPException as e:
                logger.error(
                    "An arbitrary LDAP error occurred on server %s when searching for %s: %s",
                    server, get_search_description(base, search_filter, attributes), e,
                )
                last_error = e
                self._fail_over()
            else:
                code = result.get("result", RESULT_SUCCESS)
                if code == RESULT_NO_SUCH_OBJECT:
                    logger.warning(
                        "The LDAP name for search '%s' was not found on server %s",
                        get_search_description(base, search_filter, attributes), server,
                    )
                    raise LdapNameNotFoundError("The LDAP name was not found.")
                if code == RESULT_SIZE_LIMIT_EXCEEDED:
                    # ldap3 keeps the entries received before the limit hit
                    logger.warning(
                        "The maximum size of the LDAP result has exceeded on server %s (%s), returning %d entries",
                        server, get_search_description(base, search_filter, attributes), len(entries),
                    )
                if code in (RESULT_SUCCESS, RESULT_SIZE_LIMIT_EXCEEDED):
                    self._recovered()
                    return [LdapSearchResult(e.get("dn", ""), mapper(e.get("attributes") or {})) for e in entries]

                if code == RESULT_TIME_LIMIT_EXCEEDED:
                    logger.error("The LDAP server %s did not respond within the time limit", server)
                else:
                    logger.error(
                        "LDAP search '%s' on server %s failed: %s",
                        get_search_description(base, search_filter, attributes),
                        server, result.get("description") or code,
                    )
                last_error = LdapException(f"search failed on {server.url}: {result.get('description') or code}")
                self._fail_over()

            if self._active == -1:
                break

        self._error_timestamp = time.monotonic()
        self._reported = False
        logger.error("Tried all LDAP servers in a pool but no server works")
        raise LdapException("Tried all LDAP servers in a pool but no server works") from last_error

    def _recovered(self) -> None:
        self._reported = False
        if self._error_timestamp:
            self._error_timestamp = 0.0
            logger.info("LDAP server pool recovered")

    def lookup(
        self,
        dn: Optional[str],
        search_filter: str,
        attributes: Optional[Sequence[str]] = None,
        mapper: Optional[AttributeMapper] = None,
    ) -> Optional[LdapSearchResult]:
        """First entry matching the search, or None."""
        results = self.search(dn, search_filter, attributes, mapper)
        if not results:
            logger.debug("No entry for %s", get_search_description(dn, search_filter, attributes))
            return None
        return results[0]

    def lookup_ldap_content(
        self,
        dn: Optional[str],
        search_filter: str,
        values: Optional[Iterable[str]] = None,
    ) -> Optional[LdapSearchResult]:
        attributes = list(values) if values is not None else None
        return self.lookup(dn, search_filter, attributes, ContentAttributeMapper(attributes))

    get_search_description = staticmethod(get_search_description)

    def close(self) -> None:
        for server in self._servers:
            server.close()
        self._active = -1

    def __enter__(self) -> "LdapFacade":
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()

    def _working_server(self) -> Optional[LdapServer]:
        """Active server if still working, else the first working server of the pool."""
        active = self.get_active_server()
        if active is not None and active.is_working():
            return active
        for server in self._servers:
            if server is not active and server.is_working():
                return server
        return None

    def __str__(self) -> str:
        working = self._working_server()
        server = str(working) if working is not None else "no active server"
        return f"{{server={server}, searchBase={self._search_base}}}"
