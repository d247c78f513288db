"""状态数据访问层。

组件和端点只通过这里的仓储读写条目、联系人、私信和图片元数据。
"""

import logging
from collections.abc import Iterable
from datetime import datetime, timezone

from sqlalchemy import Select, and_, delete, func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from statusgate.database.models import User as UserOrm
from statusgate.status.domain.models import (
    Actor,
    Mail,
    PaginationWindow,
    PhotoInfo,
    Post,
    Verb,
)
from statusgate.status.infrastructure.models import (
    ContactOrm,
    ItemOrm,
    MailOrm,
    PhotoOrm,
)
from statusgate.status.urls import normalise_link

logger = logging.getLogger(__name__)


def _blocked_contacts() -> Select:
    """被屏蔽且不在待定状态的联系人。"""
    return select(ContactOrm.id).where(ContactOrm.blocked, ~ContactOrm.pending)


def _public_acl():
    return and_(
        ItemOrm.allow_cid == "",
        ItemOrm.allow_gid == "",
        ItemOrm.deny_cid == "",
        ItemOrm.deny_gid == "",
        ~ItemOrm.private,
    )


def _windowed(stmt: Select, window: PaginationWindow, ascending: bool = False) -> Select:
    """应用分页窗口：ID 范围、排序、偏移与条数。"""
    stmt = stmt.where(ItemOrm.id > window.since_id)
    if window.max_id > 0:
        stmt = stmt.where(ItemOrm.id <= window.max_id)
    order = ItemOrm.id.asc() if ascending else ItemOrm.id.desc()
    return stmt.order_by(order).offset(window.offset).limit(window.limit)


class PostRepository:
    """条目数据操作。"""

    def __init__(self, session: AsyncSession):
        self._session = session

    def _visible_posts(self) -> Select:
        return select(ItemOrm).where(
            ItemOrm.verb == Verb.post.value,
            ItemOrm.visible,
            ~ItemOrm.moderated,
            ~ItemOrm.deleted,
            ItemOrm.contact_id.not_in(_blocked_contacts()),
        )

    async def _all(self, stmt: Select) -> list[Post]:
        result = await self._session.execute(stmt)
        return [Post.from_orm(item) for item in result.scalars().all()]

    async def get(self, item_id: int, uid: int | None = None) -> Post | None:
        """按 ID 获取条目（不过滤可见性）。"""
        stmt = select(ItemOrm).where(ItemOrm.id == item_id)
        if uid is not None:
            stmt = stmt.where(ItemOrm.uid == uid)
        result = await self._session.execute(stmt.limit(1))
        item = result.scalar_one_or_none()
        return Post.from_orm(item) if item else None

    async def get_visible(self, item_id: int, uid: int) -> Post | None:
        """获取账户可见的一条发布类条目。"""
        posts = await self._all(
            self._visible_posts().where(ItemOrm.uid == uid, ItemOrm.id == item_id)
        )
        return posts[0] if posts else None

    async def get_public(self, item_id: int) -> Post | None:
        """获取任意账户下公开可见的条目（用于转发）。"""
        stmt = select(ItemOrm).where(
            ItemOrm.id == item_id,
            ItemOrm.visible,
            ~ItemOrm.moderated,
            ~ItemOrm.deleted,
            _public_acl(),
        )
        result = await self._session.execute(stmt.limit(1))
        item = result.scalar_one_or_none()
        return Post.from_orm(item) if item else None

    async def find_id_by_uri(self, uid: int, uri: str) -> int | None:
        result = await self._session.execute(
            select(ItemOrm.id).where(ItemOrm.uid == uid, ItemOrm.uri == uri).limit(1)
        )
        return result.scalar_one_or_none()

    async def get_by_uri(self, uid: int, uri: str) -> Post | None:
        result = await self._session.execute(
            select(ItemOrm).where(ItemOrm.uid == uid, ItemOrm.uri == uri).limit(1)
        )
        item = result.scalar_one_or_none()
        return Post.from_orm(item) if item else None

    async def author_of(self, item_id: int) -> Actor | None:
        """获取条目作者的联系人记录。"""
        result = await self._session.execute(
            select(ContactOrm)
            .join(ItemOrm, ContactOrm.id == ItemOrm.author_id)
            .where(ItemOrm.id == item_id)
            .limit(1)
        )
        contact = result.scalar_one_or_none()
        return Actor.from_orm(contact) if contact else None

    async def thread_root_of(self, item_id: int) -> int | None:
        result = await self._session.execute(
            select(ItemOrm.parent).where(ItemOrm.id == item_id).limit(1)
        )
        return result.scalar_one_or_none()

    async def timeline(
        self,
        uid: int,
        window: PaginationWindow,
        *,
        exclude_replies: bool = False,
        conversation_id: int = 0,
        contact_id: int | None = None,
        wall_only: bool = False,
        starred_only: bool = False,
        ascending: bool = False,
    ) -> list[Post]:
        """账户范围内的条目列表。

        Args:
            uid: 账户 ID
            window: 分页窗口
            exclude_replies: 只保留会话根条目
            conversation_id: 只保留某个会话
            contact_id: 只保留某个联系人的条目
            wall_only: 只保留本人墙上的条目
            starred_only: 只保留收藏的条目
            ascending: 按 ID 升序（会话列表）

        Returns:
            list[Post]: 条目列表
        """
        stmt = self._visible_posts().where(ItemOrm.uid == uid)
        if exclude_replies:
            stmt = stmt.where(ItemOrm.parent == ItemOrm.id)
        if conversation_id > 0:
            stmt = stmt.where(ItemOrm.parent == conversation_id)
        if contact_id is not None:
            stmt = stmt.where(ItemOrm.contact_id == contact_id)
        if wall_only:
            stmt = stmt.where(ItemOrm.wall)
        if starred_only:
            stmt = stmt.where(ItemOrm.starred)
        return await self._all(_windowed(stmt, window, ascending))

    async def public_timeline(
        self,
        window: PaginationWindow,
        *,
        exclude_replies: bool = False,
        conversation_id: int = 0,
    ) -> list[Post]:
        """全站公开墙上条目，排除隐藏墙的账户。"""
        hidden = select(UserOrm.id).where(UserOrm.hidewall)
        stmt = self._visible_posts().where(
            ItemOrm.uid.not_in(hidden), _public_acl(), ItemOrm.wall
        )
        if exclude_replies:
            stmt = stmt.where(ItemOrm.parent == ItemOrm.id)
        if conversation_id > 0:
            stmt = stmt.where(ItemOrm.parent == conversation_id)
        return await self._all(_windowed(stmt, window))

    async def mentions(
        self, uid: int, own_links: Iterable[str], window: PaginationWindow
    ) -> list[Post]:
        """提及账户的会话中、由他人发布的条目。"""
        mentioned_threads = select(ItemOrm.id).where(
            ItemOrm.uid == uid, ItemOrm.id == ItemOrm.parent, ItemOrm.mention
        )
        stmt = self._visible_posts().where(
            ItemOrm.uid == uid,
            ItemOrm.author_link.not_in(list(own_links)),
            ItemOrm.parent.in_(mentioned_threads),
        )
        return await self._all(_windowed(stmt, window))

    async def last_status(
        self, uid: int, contact_id: int, url: str, public_only: bool = False
    ) -> Post | None:
        """某个联系人最近一条作为作者或所有者出现的条目。"""
        links = [url, normalise_link(url)]
        stmt = select(ItemOrm).where(
            ItemOrm.uid == uid,
            ItemOrm.contact_id == contact_id,
            ItemOrm.verb == Verb.post.value,
            ~ItemOrm.deleted,
            or_(ItemOrm.author_link.in_(links), ItemOrm.owner_link.in_(links)),
        )
        if public_only:
            stmt = stmt.where(_public_acl())
        result = await self._session.execute(stmt.order_by(ItemOrm.id.desc()).limit(1))
        item = result.scalar_one_or_none()
        return Post.from_orm(item) if item else None

    async def activities(self, uid: int, uri: str) -> list[Post]:
        """回复到指定 URI 的可见活动条目（赞、踩、出席等）。"""
        return await self._all(
            select(ItemOrm)
            .where(
                ItemOrm.uid == uid,
                ItemOrm.thr_parent == uri,
                ItemOrm.verb != Verb.post.value,
                ItemOrm.visible,
                ~ItemOrm.deleted,
            )
            .order_by(ItemOrm.id.asc())
        )

    async def remove_activities(
        self, uid: int, uri: str, author_link: str, verbs: Iterable[str]
    ) -> int:
        """删除某参与者对条目的指定类型活动，返回删除数量。"""
        now = datetime.now(timezone.utc)
        result = await self._session.execute(
            update(ItemOrm)
            .where(
                ItemOrm.uid == uid,
                ItemOrm.thr_parent == uri,
                ItemOrm.author_link == author_link,
                ItemOrm.verb.in_(list(verbs)),
                ~ItemOrm.deleted,
            )
            .values(deleted=True, edited=now)
        )
        await self._session.flush()
        return result.rowcount or 0

    async def count_wall_roots_since(self, uid: int, since: datetime) -> int:
        """统计某时间之后账户发布的根条目数量。"""
        result = await self._session.execute(
            select(func.count())
            .select_from(ItemOrm)
            .where(
                ItemOrm.uid == uid,
                ItemOrm.wall,
                ItemOrm.created > since,
                ItemOrm.id == ItemOrm.parent,
            )
        )
        return int(result.scalar_one())

    async def create(self, **fields) -> Post:
        """插入条目。未指定 parent 时条目自身即为会话根。"""
        item = ItemOrm(**fields)
        self._session.add(item)
        await self._session.flush()
        if not item.parent:
            item.parent = item.id
            await self._session.flush()
        logger.debug(f"条目已创建: id={item.id}, uid={item.uid}")
        return Post.from_orm(item)

    async def set_starred(self, item_id: int, uid: int, starred: bool) -> None:
        await self._session.execute(
            update(ItemOrm)
            .where(ItemOrm.id == item_id, ItemOrm.uid == uid)
            .values(starred=starred)
        )
        await self._session.flush()

    async def mark_seen(self, item_ids: list[int]) -> int:
        """将条目标记为已读，返回实际更新的数量。"""
        if not item_ids:
            return 0
        result = await self._session.execute(
            update(ItemOrm)
            .where(ItemOrm.id.in_(item_ids), ItemOrm.unseen)
            .values(unseen=False)
        )
        await self._session.flush()
        return result.rowcount or 0

    async def mark_deleted(self, item_id: int, uid: int) -> None:
        """删除条目；删除根条目时一并删除整个会话。"""
        now = datetime.now(timezone.utc)
        await self._session.execute(
            update(ItemOrm)
            .where(
                ItemOrm.uid == uid,
                or_(ItemOrm.id == item_id, ItemOrm.parent == item_id),
            )
            .values(deleted=True, edited=now)
        )
        await self._session.flush()


class ContactRepository:
    """联系人数据操作。"""

    def __init__(self, session: AsyncSession):
        self._session = session

    async def _all(self, stmt: Select) -> list[Actor]:
        result = await self._session.execute(stmt)
        return [Actor.from_orm(contact) for contact in result.scalars().all()]

    async def get(self, contact_id: int) -> Actor | None:
        contact = await self._session.get(ContactOrm, contact_id)
        return Actor.from_orm(contact) if contact else None

    async def find_by_nurl(self, nurl: str, uid: int | None = None) -> list[Actor]:
        stmt = select(ContactOrm).where(ContactOrm.nurl == nurl)
        if uid is not None:
            stmt = stmt.where(ContactOrm.uid == uid)
        return await self._all(stmt.order_by(ContactOrm.id))

    async def find_by_nick(self, nick: str, uid: int | None = None) -> list[Actor]:
        stmt = select(ContactOrm).where(ContactOrm.nick == nick)
        if uid is not None:
            stmt = stmt.where(ContactOrm.uid == uid)
        return await self._all(stmt.order_by(ContactOrm.id))

    async def get_self(self, uid: int) -> Actor | None:
        """账户自身的联系人记录。"""
        contacts = await self._all(
            select(ContactOrm).where(ContactOrm.uid == uid, ContactOrm.is_self).limit(1)
        )
        return contacts[0] if contacts else None

    async def get_public(self, contact_id: int) -> Actor | None:
        """按公共 ID 获取公共缓存中的联系人。"""
        contacts = await self._all(
            select(ContactOrm).where(ContactOrm.uid == 0, ContactOrm.id == contact_id).limit(1)
        )
        return contacts[0] if contacts else None

    async def get_public_by_url(self, url: str) -> Actor | None:
        contacts = await self._all(
            select(ContactOrm)
            .where(ContactOrm.uid == 0, ContactOrm.nurl == normalise_link(url))
            .limit(1)
        )
        return contacts[0] if contacts else None

    async def public_id_for(self, actor: Actor) -> int:
        """获取联系人在公共缓存中的 ID，不存在时按该记录建立缓存。"""
        public = await self.get_public_by_url(actor.url)
        if public is not None:
            return public.id

        contact = ContactOrm(
            uid=0,
            url=actor.url,
            nurl=normalise_link(actor.url),
            name=actor.name,
            nick=actor.nick,
            micro=actor.micro,
            location=actor.location,
            about=actor.about,
            network=actor.network,
        )
        self._session.add(contact)
        await self._session.flush()
        logger.debug(f"已为 {actor.url} 建立公共联系人缓存: id={contact.id}")
        return contact.id

    async def id_for_url(self, url: str, uid: int) -> int:
        """账户下指向某地址的联系人 ID，不存在时返回 0。"""
        result = await self._session.execute(
            select(ContactOrm.id)
            .where(ContactOrm.uid == uid, ContactOrm.nurl == normalise_link(url))
            .limit(1)
        )
        return result.scalar_one_or_none() or 0

    async def related(self, uid: int, relations: Iterable[int]) -> list[Actor]:
        """账户下指定关系的联系人，按昵称排序。"""
        return await self._all(
            select(ContactOrm)
            .where(
                ContactOrm.uid == uid,
                ~ContactOrm.is_self,
                or_(~ContactOrm.blocked, ContactOrm.pending),
                ContactOrm.rel.in_(list(relations)),
            )
            .order_by(ContactOrm.nick)
        )

    async def related_public_ids(self, uid: int, relations: Iterable[int]) -> list[int]:
        """账户下指定关系联系人对应的公共 ID。"""
        public = select(ContactOrm.id, ContactOrm.nurl).where(ContactOrm.uid == 0).subquery()
        result = await self._session.execute(
            select(public.c.id)
            .join(ContactOrm, ContactOrm.nurl == public.c.nurl)
            .where(
                ContactOrm.uid == uid,
                ~ContactOrm.is_self,
                ContactOrm.rel.in_(list(relations)),
            )
            .order_by(public.c.id)
        )
        return list(result.scalars().all())

    async def search_public(self, query: str) -> list[Actor]:
        """按名称搜索公共联系人，无结果时再按昵称搜索。"""
        by_name = await self._all(
            select(ContactOrm).where(ContactOrm.uid == 0, ContactOrm.name == query)
        )
        if by_name:
            return by_name
        return await self._all(
            select(ContactOrm).where(ContactOrm.uid == 0, ContactOrm.nick == query)
        )


class MailRepository:
    """私信数据操作。"""

    def __init__(self, session: AsyncSession):
        self._session = session

    async def box(
        self,
        uid: int,
        box: str,
        profile_url: str,
        window: PaginationWindow,
        *,
        parent_uri: str = "",
        contact_id: int | None = None,
        screen_name: str = "",
    ) -> list[tuple[Mail, str]]:
        """按信箱类型列出私信。

        Args:
            uid: 账户 ID
            box: inbox、sentbox、all 或 conversation
            profile_url: 账户主页地址，用于区分收发
            window: 分页窗口
            parent_uri: conversation 信箱的会话 URI
            contact_id: 按联系人过滤
            screen_name: 按联系人昵称过滤

        Returns:
            list[tuple[Mail, str]]: (私信, 对方联系人标准化地址)
        """
        stmt = (
            select(MailOrm, ContactOrm.nurl)
            .join(ContactOrm, ContactOrm.id == MailOrm.contact_id)
            .where(MailOrm.uid == uid, MailOrm.id > window.since_id)
        )
        if box == "sentbox":
            stmt = stmt.where(MailOrm.from_url == profile_url)
        elif box == "inbox":
            stmt = stmt.where(MailOrm.from_url != profile_url)
        elif box == "conversation":
            stmt = stmt.where(MailOrm.parent_uri == parent_uri)

        if window.max_id > 0:
            stmt = stmt.where(MailOrm.id <= window.max_id)
        if contact_id is not None:
            stmt = stmt.where(MailOrm.contact_id == contact_id)
        elif screen_name:
            stmt = stmt.where(ContactOrm.nick == screen_name)

        stmt = stmt.order_by(MailOrm.id.desc()).offset(window.offset).limit(window.limit)
        result = await self._session.execute(stmt)
        return [(Mail.from_orm(mail), nurl) for mail, nurl in result.all()]

    def _owned(self, uid: int, mail_id: int, parent_uri: str = "") -> list:
        conditions = [MailOrm.uid == uid, MailOrm.id == mail_id]
        if parent_uri:
            conditions.append(MailOrm.parent_uri == parent_uri)
        return conditions

    async def get(self, uid: int, mail_id: int, parent_uri: str = "") -> tuple[Mail, str] | None:
        """获取账户的一条私信及对方联系人标准化地址。"""
        result = await self._session.execute(
            select(MailOrm, ContactOrm.nurl)
            .join(ContactOrm, ContactOrm.id == MailOrm.contact_id)
            .where(*self._owned(uid, mail_id, parent_uri))
            .limit(1)
        )
        row = result.first()
        return (Mail.from_orm(row[0]), row[1]) if row else None

    async def search(self, uid: int, text: str) -> list[tuple[Mail, str]]:
        """正文包含指定文本的私信，按 ID 降序。"""
        result = await self._session.execute(
            select(MailOrm, ContactOrm.nurl)
            .join(ContactOrm, ContactOrm.id == MailOrm.contact_id)
            .where(MailOrm.uid == uid, MailOrm.body.contains(text, autoescape=True))
            .order_by(MailOrm.id.desc())
        )
        return [(Mail.from_orm(mail), nurl) for mail, nurl in result.all()]

    async def create(self, **fields) -> Mail:
        mail = MailOrm(**fields)
        self._session.add(mail)
        await self._session.flush()
        logger.debug(f"私信已保存: id={mail.id}, uid={mail.uid}")
        return Mail.from_orm(mail)

    async def mark_seen(self, uid: int, mail_id: int) -> int:
        result = await self._session.execute(
            update(MailOrm).where(*self._owned(uid, mail_id)).values(seen=True)
        )
        await self._session.flush()
        return result.rowcount or 0

    async def delete(self, uid: int, mail_id: int, parent_uri: str = "") -> int:
        """删除私信，返回删除数量。"""
        result = await self._session.execute(
            delete(MailOrm).where(*self._owned(uid, mail_id, parent_uri))
        )
        await self._session.flush()
        return result.rowcount or 0


class PhotoRepository:
    """图片元数据查询。"""

    def __init__(self, session: AsyncSession):
        self._session = session

    async def get_many(self, urls: Iterable[str]) -> dict[str, PhotoInfo]:
        """批量查询图片元数据。

        Returns:
            dict[str, PhotoInfo]: 地址到元数据的映射，未知地址不出现
        """
        wanted = list(dict.fromkeys(urls))
        if not wanted:
            return {}
        result = await self._session.execute(select(PhotoOrm).where(PhotoOrm.url.in_(wanted)))
        return {
            photo.url: PhotoInfo.model_validate(photo) for photo in result.scalars().all()
        }
