"""回复链解析。"""

import logging

from statusgate.status.domain.models import InReplyTo, Post
from statusgate.status.infrastructure.repository import PostRepository
from statusgate.status.urls import nick_from_url

logger = logging.getLogger(__name__)


class ThreadResolver:
    """确定条目的回复目标（条目 ID 与作者）。"""

    def __init__(self, posts: PostRepository) -> None:
        self.posts = posts

    async def resolve(self, post: Post) -> InReplyTo:
        """解析回复目标。

        直接回复对象就是自身或条目本身是会话根时不是回复。
        解析结果指回条目自身属于数据异常，此时清空全部字段。

        Args:
            post: 条目

        Returns:
            InReplyTo: 回复目标，不是回复时字段全为 None
        """
        if post.thr_parent == post.uri or post.parent == post.id:
            return InReplyTo()

        status_id = await self.posts.find_id_by_uri(post.uid, post.thr_parent)
        if status_id is None:
            status_id = post.parent

        if status_id == post.id:
            logger.debug(f"回复目标指向自身，已忽略: id={post.id}, reply_to={status_id}")
            return InReplyTo()

        in_reply_to = InReplyTo(status_id=status_id, status_id_str=str(status_id))

        author = await self.posts.author_of(status_id)
        if author is not None:
            nick = author.nick or nick_from_url(author.url) or ""
            in_reply_to.screen_name = nick or author.name
            in_reply_to.user_id = author.id
            in_reply_to.user_id_str = str(author.id)

        return in_reply_to
