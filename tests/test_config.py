from __future__ import annotations

import pytest
from pydantic import ValidationError

from ldapfacade import Configuration, LdapServer, load_configuration


def test_defaults():
    config = Configuration()
    assert config.get_servers() == []
    assert config.get_search_base() is None
    assert config.get_search_timeout() == 0
    assert config.get_count_limit() == 0
    assert config.get_connect_timeout() == 0
    assert config.get_read_timeout() == 0
    assert config.get_interval() == LdapServer.DEFAULT_INTERVAL


def test_from_environment(monkeypatch):
    monkeypatch.setenv("LDAP_SERVERS", "ldap://foo.com, ldaps://bar.com:1636")
    monkeypatch.setenv("LDAP_SEARCH_BASE", "dc=foo,dc=com")
    monkeypatch.setenv("LDAP_SEARCH_TIMEOUT", "1234")
    monkeypatch.setenv("LDAP_COUNT_LIMIT", "32")
    monkeypatch.setenv("LDAP_CONNECT_TIMEOUT", "42")
    monkeypatch.setenv("LDAP_READ_TIMEOUT", "24")

    config = Configuration()
    assert [s.url for s in config.get_servers()] == ["ldap://foo.com", "ldaps://bar.com:1636"]
    assert config.get_search_base() == "dc=foo,dc=com"
    assert (config.get_search_timeout(), config.get_count_limit()) == (1234, 32)
    assert (config.get_connect_timeout(), config.get_read_timeout()) == (42, 24)


def test_servers_coercion():
    existing = LdapServer("ldap://foo.com")
    config = Configuration(
        servers=[existing, "ldap://bar.com", {"url": "ldap://baz.com", "username": "cn=reader", "connect_timeout": 7}]
    )
    servers = config.get_servers()
    assert servers[0] is existing
    assert servers[1].url == "ldap://bar.com"
    assert (servers[2].username, servers[2].get_connect_timeout()) == ("cn=reader", 7)


def test_servers_rejects_garbage():
    with pytest.raises(ValidationError):
        Configuration(servers=[42])


@pytest.mark.parametrize("field", ["search_timeout", "count_limit", "connect_timeout", "read_timeout", "interval"])
def test_negative_values_rejected(field):
    with pytest.raises(ValidationError):
        Configuration(**{field: -1})


def test_load_configuration_is_cached(monkeypatch):
    load_configuration.cache_clear()
    monkeypatch.setenv("LDAP_SEARCH_BASE", "dc=foo,dc=com")
    try:
        first = load_configuration()
        assert first.get_search_base() == "dc=foo,dc=com"
        assert load_configuration() is first
    finally:
        load_configuration.cache_clear()
