"""转发重建。

识别正文中的转发包装标记，从其属性还原被转发的原始条目。
"""

import logging
import re
from datetime import datetime

from pydantic import BaseModel
from returns.result import Failure, Result, Success

from statusgate.status.domain.models import Post, as_utc
from statusgate.status.markup import parse_attributes

logger = logging.getLogger(__name__)

SHARE_PATTERN = re.compile(r"\[share(.*?)\]\s?(.*?)\s?\[/share\]\s?", re.IGNORECASE | re.DOTALL)

REQUIRED_ATTRIBUTES = ("profile", "author", "avatar", "posted")


class NotAReshare(Exception):
    """条目不是（完整的）转发。"""

    def __init__(self, message: str, missing_fields: list[str] | None = None) -> None:
        self.message = message
        self.missing_fields = missing_fields or []
        super().__init__(message)


class ResharedPost(BaseModel):
    """从包装标记中还原出的转发内容。"""

    body: str
    author: str
    profile: str
    avatar: str
    link: str = ""
    posted: str

    def as_post(self, original: Post) -> Post:
        """生成替代条目：沿用原条目的 ID 与可见性，替换作者、正文、时间和永久链接。"""
        created = original.created
        try:
            created = as_utc(datetime.fromisoformat(self.posted.strip()))
        except ValueError:
            logger.warning(f"无法解析转发时间 {self.posted!r}，沿用原条目时间: id={original.id}")

        return original.model_copy(
            update={
                "body": self.body,
                "author_name": self.author,
                "author_link": self.profile,
                "author_avatar": self.avatar,
                "plink": self.link,
                "created": created,
                "edited": created,
            }
        )


def detect_reshare(body: str) -> Result[ResharedPost, NotAReshare]:
    """检测转发包装。

    包装之外的文字保留在还原的正文中。
    任一必需属性或还原后的正文为空时视为不是转发。

    Args:
        body: 条目正文

    Returns:
        Result[ResharedPost, NotAReshare]: 成功时返回还原的转发内容
    """
    stripped = body.strip()
    match = SHARE_PATTERN.search(stripped)
    if match is None:
        return Failure(NotAReshare("No share wrapper"))

    attributes = parse_attributes(match.group(1))
    shared_body = SHARE_PATTERN.sub(lambda found: found.group(2), stripped)

    missing = [name for name in REQUIRED_ATTRIBUTES if not attributes.get(name)]
    if not shared_body:
        missing.insert(0, "body")
    if missing:
        return Failure(
            NotAReshare(f"Missing share attributes: {', '.join(missing)}", missing)
        )

    return Success(
        ResharedPost(
            body=shared_body,
            author=attributes["author"],
            profile=attributes["profile"],
            avatar=attributes["avatar"],
            link=attributes.get("link", ""),
            posted=attributes["posted"],
        )
    )


def share_header(post: Post) -> str:
    """为转发生成包装标记的开头部分。"""

    def quoted(value: str) -> str:
        return value.replace("'", "&#039;")

    posted = as_utc(post.created).strftime("%Y-%m-%d %H:%M:%S")
    return (
        f"[share author='{quoted(post.author_name)}'"
        f" profile='{quoted(post.author_link)}'"
        f" avatar='{quoted(post.author_avatar)}'"
        f" link='{quoted(post.plink)}'"
        f" posted='{posted}'"
        f" guid='{quoted(post.guid)}']"
    )
