from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Callable, Generic, Iterable, Optional, Sequence, TypeVar

T = TypeVar("T")

AttributeMapper = Callable[[dict], T]


@dataclass(frozen=True)
class SearchControls:
    """Limits applied to every directory search.

    ``time_limit`` is in milliseconds, ``count_limit`` is the maximum number
    of entries. Zero means "no limit" for both.
    """

    time_limit: int = 0
    count_limit: int = 0

    @property
    def time_limit_seconds(self) -> int:
        # ldap3 takes whole seconds.
        if self.time_limit <= 0:
            return 0
        return math.ceil(self.time_limit / 1000)


@dataclass
class LdapSearchResult(Generic[T]):
    dn: str
    attrs: T


def get_search_description(dn: Optional[str], search_filter: str, attributes: Optional[Sequence[str]] = None) -> str:
    """Human readable description of a search request (used in log messages)."""
    desc = f"DN: {dn}, filter: {search_filter}"
    if attributes:
        desc += ", attributes: " + ",".join(attributes)
    return desc


def _to_str(v: Any) -> str:
    if isinstance(v, (bytes, bytearray)):
        return bytes(v).decode("utf-8", errors="replace")
    return str(v)


class ContentAttributeMapper:
    """Map ldap3 entry attributes to ``{name: {values}}``.

    When ``values`` is given only those attribute names are kept.
    """

    def __init__(self, values: Optional[Iterable[str]] = None) -> None:
        self.values = set(values) if values is not None else None

    def __call__(self, attributes: dict) -> dict[str, set[str]]:
        out: dict[str, set[str]] = {}
        for name, raw in (attributes or {}).items():
            if self.values is not None and name not in self.values:
                continue
            bucket = out.setdefault(name, set())
            if isinstance(raw, (list, tuple, set)):
                bucket.update(_to_str(x) for x in raw)
            elif raw is not None:
                bucket.add(_to_str(raw))
        return out
