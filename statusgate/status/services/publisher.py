"""状态发布服务。

负责通过 API 新建条目（原创、回复、转发）与删除条目。
"""

import logging
import uuid
from datetime import datetime, timezone

from statusgate.api.errors import BadRequest, Forbidden, InternalServerError
from statusgate.auth.domain.models import UserDomain
from statusgate.status.domain.models import Actor, Network, Post, Verb
from statusgate.status.infrastructure.repository import ContactRepository, PostRepository
from statusgate.status.reshare import share_header
from statusgate.status.throttle import PostingThrottle
from statusgate.status.validator import StatusDraft

logger = logging.getLogger(__name__)


def api_source(params: dict[str, str], user_agent: str) -> str:
    """客户端名称：优先 source 参数，其次识别已知客户端，否则为 api。"""
    source = (params.get("source") or "").strip()
    if source:
        return source
    if "Twidere" in user_agent:
        return "Twidere"
    logger.debug(f"Unrecognized user-agent {user_agent}")
    return "api"


class StatusPublisher:
    """状态发布服务。"""

    def __init__(
        self,
        posts: PostRepository,
        contacts: ContactRepository,
        throttle: PostingThrottle,
        base_url: str,
    ) -> None:
        self.posts = posts
        self.contacts = contacts
        self.throttle = throttle
        self.base_url = base_url

    async def _own_contact(self, user: UserDomain) -> Actor:
        contact = await self.contacts.get_self(user.id)
        if contact is None:
            logger.error(f"账户缺少自身联系人记录: uid={user.id}")
            raise InternalServerError("Account has no profile contact")
        return contact

    async def _parent_of(self, user: UserDomain, draft: StatusDraft) -> Post:
        if draft.parent_id is not None:
            parent = await self.posts.get_visible(draft.parent_id, user.id)
        else:
            parent = await self.posts.get_by_uri(user.id, draft.parent_uri)
        if parent is None:
            raise BadRequest("Unable to locate original post.")
        return parent

    async def publish(self, user: UserDomain, draft: StatusDraft) -> Post:
        """发布状态。

        原创条目先检查发帖频率，回复挂到被回复条目所在的会话下。

        Args:
            user: 当前账户
            draft: 验证过的发布参数

        Returns:
            Post: 新条目

        Raises:
            TooManyRequests: 超出发帖上限
            BadRequest: 找不到被回复的条目
        """
        contact = await self._own_contact(user)

        guid = uuid.uuid4().hex
        uri = f"{self.base_url}/objects/{guid}"
        now = datetime.now(timezone.utc)

        if draft.is_reply:
            parent = await self._parent_of(user, draft)
            thread = {"parent": parent.parent, "thr_parent": parent.uri, "wall": parent.wall}
        else:
            await self.throttle.check(user.id, now)
            thread = {"parent": 0, "thr_parent": uri, "wall": True}

        post = await self.posts.create(
            uid=user.id,
            guid=guid,
            uri=uri,
            contact_id=contact.id,
            author_id=contact.id,
            author_name=contact.name,
            author_link=contact.url,
            author_avatar=contact.micro,
            owner_name=contact.name,
            owner_link=contact.url,
            owner_avatar=contact.micro,
            title=draft.title,
            body=draft.body,
            app=draft.source,
            verb=Verb.post.value,
            network=Network.dfrn.value,
            coord=draft.coord,
            plink=f"{self.base_url}/display/{guid}",
            created=now,
            edited=now,
            unseen=False,
            **thread,
        )
        logger.info(f"状态已发布: id={post.id}, uid={user.id}, reply={draft.is_reply}")
        return post

    async def reshare(self, user: UserDomain, item_id: int, source: str) -> Post:
        """转发一条公开条目。

        条目本身已是转发时沿用其包装，否则用原条目生成新的包装。

        Raises:
            Forbidden: 条目不存在、不公开或正文为空
        """
        original = await self.posts.get_public(item_id)
        if original is None or not original.body:
            raise Forbidden()

        if "[/share]" in original.body:
            body = original.body[max(original.body.find("[share"), 0):]
        else:
            body = share_header(original) + original.body + "[/share]"

        return await self.publish(user, StatusDraft(body=body, source=source))

    async def delete(self, user: UserDomain, item_id: int) -> None:
        await self.posts.mark_deleted(item_id, user.id)
        logger.info(f"条目已删除: id={item_id}, uid={user.id}")
