from __future__ import annotations

import pytest

from ldapfacade import ContentAttributeMapper, SearchControls, get_search_description


def test_search_description():
    assert get_search_description("foo", "bar", ["Bilbo", "Frodo"]) == "DN: foo, filter: bar, attributes: Bilbo,Frodo"
    assert get_search_description("foo", "bar", None) == "DN: foo, filter: bar"
    assert get_search_description("foo", "bar", []) == "DN: foo, filter: bar"
    assert get_search_description("foo", "bar", ("Sam",)) == "DN: foo, filter: bar, attributes: Sam"


@pytest.mark.parametrize("ms, seconds", [(0, 0), (1, 1), (1000, 1), (1001, 2), (5000, 5)])
def test_time_limit_seconds(ms, seconds):
    assert SearchControls(time_limit=ms, count_limit=0).time_limit_seconds == seconds


def test_content_mapper_collects_values():
    mapper = ContentAttributeMapper()
    attrs = {
        "uid": ["bilbo"],
        "memberOf": ["cn=a", "cn=b", "cn=a"],
        "mail": "bilbo@shire.me",
        "jpegPhoto": b"\xff",
        "empty": None,
    }
    assert mapper(attrs) == {
        "uid": {"bilbo"},
        "memberOf": {"cn=a", "cn=b"},
        "mail": {"bilbo@shire.me"},
        "jpegPhoto": {"\ufffd"},
        "empty": set(),
    }


def test_content_mapper_keeps_only_requested_values():
    mapper = ContentAttributeMapper(["uid"])
    assert mapper({"uid": ["bilbo"], "cn": ["Bilbo"]}) == {"uid": {"bilbo"}}
    assert mapper({}) == {}
