from __future__ import annotations

import ipaddress
import logging

import dns.exception
import dns.resolver

logger = logging.getLogger(__name__)


def looks_like_ip(s: str) -> bool:
    try:
        ipaddress.ip_address((s or "").strip())
        return True
    except ValueError:
        return False


def ms_to_seconds(ms: int | None) -> float | None:
    """Millisecond timeout -> socket/ldap3 seconds. None or 0 means "no timeout"."""
    if not ms or ms <= 0:
        return None
    return ms / 1000.0


def resolve_hostname_with_dns(hostname: str, dns_server: str, timeout_s: float = 5.0) -> list[str]:
    """Resolve hostname using a specific DNS server.

    Queries A records first, then AAAA. Returns an empty list when nothing
    could be resolved; the reason is logged.
    """
    if not dns_server:
        return []

    resolver = dns.resolver.Resolver(configure=False)
    resolver.nameservers = [dns_server]
    resolver.timeout = timeout_s
    resolver.lifetime = timeout_s

    out: list[str] = []
    for rdtype in ("A", "AAAA"):
        try:
            answers = resolver.resolve(hostname, rdtype)
        except dns.resolver.NXDOMAIN:
            logger.warning("DNS: host '%s' not found on DNS server %s", hostname, dns_server)
            return []
        except dns.resolver.NoAnswer:
            logger.debug("DNS: server %s returned no %s record for '%s'", dns_server, rdtype, hostname)
            continue
        except dns.resolver.NoNameservers:
            logger.warning("DNS: all name servers (%s) failed for '%s'", dns_server, hostname)
            return []
        except dns.exception.Timeout:
            logger.warning("DNS: query to %s for '%s' timed out", dns_server, hostname)
            return []
        out.extend(str(r) for r in answers)
    return out
