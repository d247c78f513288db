"""条目互动名称解析测试。"""

import pytest

from statusgate.status.domain.models import Verb
from statusgate.status.services.activities import ACTIVITY_NAMES, parse_activity


@pytest.mark.parametrize(
    ("name", "expected"),
    [
        ("like", (Verb.like, False)),
        ("undislike", (Verb.dislike, True)),
        ("attendmaybe", (Verb.attendmaybe, False)),
        ("unattendno", (Verb.attendno, True)),
        ("post", None),
        ("unpost", None),
        ("ununlike", None),
    ],
)
def test_parse_activity(name, expected):
    assert parse_activity(name) == expected


def test_activity_names():
    assert ACTIVITY_NAMES == ("like", "dislike", "attendyes", "attendno", "attendmaybe")
