"""LDAP server pool facade.

Public API:
    - Configuration, load_configuration
    - LdapServer
    - LdapFacade
    - SearchControls, LdapSearchResult, ContentAttributeMapper, get_search_description
    - LdapException and subclasses
"""

from .config import Configuration, load_configuration
from .exceptions import (
    LdapCommunicationError,
    LdapException,
    LdapNameNotFoundError,
    NotConfiguredError,
    UnknownHostError,
)
from .facade import LdapFacade
from .search import ContentAttributeMapper, LdapSearchResult, SearchControls, get_search_description
from .server import LdapServer

__all__ = [
    "Configuration",
    "load_configuration",
    "LdapServer",
    "LdapFacade",
    "SearchControls",
    "LdapSearchResult",
    "ContentAttributeMapper",
    "get_search_description",
    "LdapException",
    "NotConfiguredError",
    "UnknownHostError",
    "LdapCommunicationError",
    "LdapNameNotFoundError",
]
