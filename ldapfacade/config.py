from __future__ import annotations

from functools import lru_cache
from typing import Annotated, Any, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode

from .server import LdapServer


class Configuration(BaseSettings):
    """LDAP pool settings.

    Timeouts and the search time limit are in milliseconds, 0 means "no limit".
    ``LDAP_SERVERS`` takes a comma separated list of URLs.
    """

    servers: Annotated[list[LdapServer], NoDecode] = Field(default_factory=list, alias="LDAP_SERVERS")
    search_base: Optional[str] = Field(None, alias="LDAP_SEARCH_BASE")

    search_timeout: int = Field(0, alias="LDAP_SEARCH_TIMEOUT")
    count_limit: int = Field(0, alias="LDAP_COUNT_LIMIT")
    connect_timeout: int = Field(0, alias="LDAP_CONNECT_TIMEOUT")
    read_timeout: int = Field(0, alias="LDAP_READ_TIMEOUT")
    interval: int = Field(LdapServer.DEFAULT_INTERVAL, alias="LDAP_INTERVAL")

    # Resolution / TLS (optional)
    dns_server: str = Field("", alias="LDAP_DNS_SERVER")
    tls_validate: bool = Field(False, alias="LDAP_TLS_VALIDATE")
    ca_certs_file: str = Field("", alias="LDAP_CA_CERTS_FILE")

    class Config:
        populate_by_name = True
        arbitrary_types_allowed = True

    @field_validator("servers", mode="before")
    @classmethod
    def _coerce_servers(cls, v: Any) -> list[LdapServer]:
        if v is None or v == "":
            return []
        if isinstance(v, str):
            v = [x.strip() for x in v.split(",") if x.strip()]
        out: list[LdapServer] = []
        for item in v:
            if isinstance(item, LdapServer):
                out.append(item)
            elif isinstance(item, str):
                out.append(LdapServer(item))
            elif isinstance(item, dict):
                out.append(LdapServer(**item))
            else:
                raise ValueError(f"unsupported LDAP server definition: {item!r}")
        return out

    @field_validator("search_timeout", "count_limit", "connect_timeout", "read_timeout", "interval")
    @classmethod
    def _non_negative(cls, v: int) -> int:
        if v < 0:
            raise ValueError("must be >= 0")
        return v

    def get_servers(self) -> list[LdapServer]:
        return self.servers

    def get_search_base(self) -> Optional[str]:
        return self.search_base

    def get_search_timeout(self) -> int:
        return self.search_timeout

    def get_count_limit(self) -> int:
        return self.count_limit

    def get_connect_timeout(self) -> int:
        return self.connect_timeout

    def get_read_timeout(self) -> int:
        return self.read_timeout

    def get_interval(self) -> int:
        return self.interval


@lru_cache(maxsize=1)
def load_configuration() -> Configuration:
    return Configuration()
