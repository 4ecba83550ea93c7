from __future__ import annotations


class LdapException(Exception):
    """Base error raised by the LDAP facade."""


class NotConfiguredError(LdapException):
    """Search attempted while no active server (or no search base) is set."""


class UnknownHostError(LdapException):
    """Host name of an LDAP server could not be resolved."""

    def __init__(self, host: str, reason: str = "") -> None:
        self.host = host
        msg = f"Unknown host '{host}'"
        if reason:
            msg += f": {reason}"
        super().__init__(msg)


class LdapCommunicationError(LdapException):
    """Server could not be reached even after a reconnect."""


class LdapNameNotFoundError(LdapException):
    """Search base DN does not exist on the server."""
