"""条目互动服务：赞、踩与活动出席表态。"""

import logging
import uuid
from datetime import datetime, timezone

from statusgate.auth.domain.models import UserDomain
from statusgate.status.domain.models import Network, Verb
from statusgate.status.infrastructure.repository import ContactRepository, PostRepository

logger = logging.getLogger(__name__)

# 同组动词互斥，新表态会替换同组中已有的表态
VERB_GROUPS = (
    (Verb.like, Verb.dislike),
    (Verb.attendyes, Verb.attendno, Verb.attendmaybe),
)

PHRASES = {
    Verb.like: "likes",
    Verb.dislike: "doesn't like",
    Verb.attendyes: "is attending",
    Verb.attendno: "is not attending",
    Verb.attendmaybe: "might attend",
}

ACTIVITY_NAMES = tuple(verb.name for group in VERB_GROUPS for verb in group)


def parse_activity(name: str) -> tuple[Verb, bool] | None:
    """解析互动名称，返回动词及是否为撤销（un 前缀）。"""
    undo = name.startswith("un")
    verb_name = name[2:] if undo else name
    if verb_name not in ACTIVITY_NAMES:
        return None
    return Verb[verb_name], undo


def _group_of(verb: Verb) -> tuple[Verb, ...]:
    return next(group for group in VERB_GROUPS if verb in group)


class ActivityService:
    """条目互动服务。"""

    def __init__(self, posts: PostRepository, contacts: ContactRepository, base_url: str) -> None:
        self.posts = posts
        self.contacts = contacts
        self.base_url = base_url

    async def apply(self, user: UserDomain, item_id: int, name: str) -> bool:
        """对条目表态或撤销表态。

        重复同一表态不会产生第二条记录。

        Args:
            user: 当前账户
            item_id: 目标条目 ID
            name: 互动名称，如 like、unattendyes

        Returns:
            bool: 条目存在且操作完成时为 True
        """
        parsed = parse_activity(name)
        if parsed is None:
            logger.warning(f"未知的互动类型: {name}")
            return False
        verb, undo = parsed

        target = await self.posts.get_visible(item_id, user.id)
        contact = await self.contacts.get_self(user.id)
        if target is None or contact is None:
            logger.info(f"互动目标不存在: item={item_id}, uid={user.id}")
            return False

        verbs = [member.value for member in _group_of(verb)]
        removed = await self.posts.remove_activities(user.id, target.uri, contact.url, verbs)
        if undo:
            logger.info(f"互动已撤销: {name}, item={item_id}, removed={removed}")
            return True

        guid = uuid.uuid4().hex
        now = datetime.now(timezone.utc)
        await self.posts.create(
            uid=user.id,
            guid=guid,
            uri=f"{self.base_url}/objects/{guid}",
            parent=target.parent,
            thr_parent=target.uri,
            contact_id=contact.id,
            author_id=contact.id,
            author_name=contact.name,
            author_link=contact.url,
            author_avatar=contact.micro,
            owner_name=contact.name,
            owner_link=contact.url,
            owner_avatar=contact.micro,
            body=f"[url={contact.url}]{contact.name}[/url] {PHRASES[verb]} "
            f"[url={target.plink}]{target.author_name}'s post[/url]",
            verb=verb.value,
            network=Network.dfrn.value,
            plink=f"{self.base_url}/display/{guid}",
            created=now,
            edited=now,
            wall=target.wall,
            unseen=False,
        )
        logger.info(f"互动已添加: {name}, item={item_id}, uid={user.id}")
        return True
