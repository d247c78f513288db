"""发帖频率限制。"""

import logging
from datetime import datetime, timedelta, timezone

from statusgate.api.errors import TooManyRequests
from statusgate.status.infrastructure.repository import PostRepository

logger = logging.getLogger(__name__)


class PostingThrottle:
    """按日、周、月统计账户发布的根条目数量，依次检查，第一个超限的生效。"""

    def __init__(self, posts: PostRepository, day: int = 0, week: int = 0, month: int = 0) -> None:
        self.posts = posts
        self.limits = (
            ("Daily", day, timedelta(days=1)),
            ("Weekly", week, timedelta(days=7)),
            ("Monthly", month, timedelta(days=30)),
        )

    async def check(self, uid: int, now: datetime | None = None) -> None:
        """检查账户是否超出发帖上限。

        Raises:
            TooManyRequests: 超出任一上限
        """
        now = now or datetime.now(timezone.utc)
        for label, limit, period in self.limits:
            if limit <= 0:
                continue
            posted = await self.posts.count_wall_roots_since(uid, now - period)
            if posted >= limit:
                logger.debug(f"{label} posting limit reached for user {uid}")
                raise TooManyRequests(
                    f"{label} posting limit of {limit} posts reached. The post was rejected."
                )
