"""发帖频率限制测试。"""

from datetime import datetime, timezone

import pytest

from statusgate.api.errors import TooManyRequests
from statusgate.status.throttle import PostingThrottle

NOW = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


class FakePosts:
    """按统计窗口天数返回预设数量。"""

    def __init__(self, counts: dict[int, int]) -> None:
        self.counts = counts
        self.calls: list[int] = []

    async def count_wall_roots_since(self, uid: int, since: datetime) -> int:
        days = (NOW - since).days
        self.calls.append(days)
        return self.counts.get(days, 0)


async def test_no_limits_skip_counting():
    posts = FakePosts({1: 100})

    await PostingThrottle(posts).check(1, NOW)

    assert posts.calls == []


async def test_daily_limit_reached():
    throttle = PostingThrottle(FakePosts({1: 3}), day=3)

    with pytest.raises(TooManyRequests) as exc_info:
        await throttle.check(1, NOW)

    assert exc_info.value.error == "Daily posting limit of 3 posts reached. The post was rejected."
    assert exc_info.value.code == 429


async def test_below_limit_passes():
    posts = FakePosts({1: 2, 7: 5})

    await PostingThrottle(posts, day=3, week=6).check(1, NOW)

    assert posts.calls == [1, 7]


async def test_weekly_limit_checked_after_daily():
    throttle = PostingThrottle(FakePosts({1: 1, 7: 10}), day=5, week=10, month=100)

    with pytest.raises(TooManyRequests, match="Weekly posting limit of 10"):
        await throttle.check(1, NOW)


async def test_monthly_limit():
    throttle = PostingThrottle(FakePosts({30: 31}), month=30)

    with pytest.raises(TooManyRequests, match="Monthly"):
        await throttle.check(1, NOW)
