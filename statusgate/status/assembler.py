"""状态视图组装。

把条目与其作者、回复目标、转换后的内容、互动和地理信息
组装为客户端使用的状态视图。
"""

import logging

from returns.result import Success

from statusgate.api.errors import BadRequest
from statusgate.status.actors import ActorResolver, strip_internal
from statusgate.status.content import ContentTransformer
from statusgate.status.domain.models import (
    ConvertedItem,
    PhotoInfo,
    Post,
    Verb,
    api_date,
    network_to_name,
)
from statusgate.status.entities import image_urls
from statusgate.status.infrastructure.repository import PhotoRepository, PostRepository
from statusgate.status.reshare import detect_reshare
from statusgate.status.threads import ThreadResolver

logger = logging.getLogger(__name__)

ACTIVITY_KINDS = {
    Verb.like.value: "like",
    Verb.dislike.value: "dislike",
    Verb.attendyes.value: "attendyes",
    Verb.attendno.value: "attendno",
    Verb.attendmaybe.value: "attendmaybe",
}


def annotate_source(source: str, network: str) -> str:
    """在客户端名称后标注来源网络。"""
    if not network:
        return source
    name = network_to_name(network)
    if source == "web":
        return name
    if name != source:
        return f"{source} ({name})".strip()
    return source


def geo_fields(coord: str, fmt: str) -> dict:
    """地理信息字段。XML 使用 georss:point，其余格式使用 GeoJSON 点。"""
    key = "georss:point" if fmt == "xml" else "geo"
    parts = coord.split(" ") if coord else []
    if len(parts) != 2:
        return {key: None}
    if fmt == "xml":
        return {key: coord}
    try:
        return {key: {"type": "Point", "coordinates": [float(parts[0]), float(parts[1])]}}
    except ValueError:
        logger.debug(f"无法解析坐标: {coord!r}")
        return {key: None}


class StatusAssembler:
    """状态视图组装器。

    每个请求创建一个实例，作者视图在实例内按主页地址缓存。
    """

    def __init__(
        self,
        posts: PostRepository,
        photos: PhotoRepository,
        actors: ActorResolver,
        threads: ThreadResolver,
        transformer: ContentTransformer,
    ) -> None:
        self.posts = posts
        self.photos = photos
        self.actors = actors
        self.threads = threads
        self.transformer = transformer
        self._users: dict[tuple[int | None, str], dict] = {}

    async def _photos_for(self, body: str) -> dict[str, PhotoInfo]:
        return await self.photos.get_many(image_urls(body))

    async def _convert(self, post: Post, include_entities: bool) -> ConvertedItem:
        photos = await self._photos_for(post.body)
        return self.transformer.convert(post, include_entities, photos)

    async def user_for(self, uid: int | None, url: str) -> dict:
        """按主页地址解析用户视图（含内部字段）。

        Raises:
            BadRequest: 找不到参与者
        """
        key = (uid, url)
        if key not in self._users:
            self._users[key] = await self.actors.resolve(uid, url)
        return dict(self._users[key])

    async def item_users(self, post: Post, uid: int | None) -> tuple[dict, dict]:
        """条目的作者与所有者视图。

        只有会话根条目单独解析所有者，其余条目的所有者就是作者。
        """
        author = await self.user_for(uid, post.author_link)
        author["protected"] = not post.is_public

        if post.thr_parent == post.uri:
            owner = await self.user_for(uid, post.owner_link)
        else:
            owner = author
        return author, owner

    async def activities(self, post: Post, fmt: str = "json") -> dict:
        """条目收到的赞、踩与出席回应，按类型列出参与者。"""
        result: dict[str, list[dict]] = {kind: [] for kind in ACTIVITY_KINDS.values()}

        for activity in await self.posts.activities(post.uid, post.uri):
            kind = ACTIVITY_KINDS.get(activity.verb)
            if kind is None:
                continue
            try:
                user = await self.user_for(post.uid, activity.author_link)
            except BadRequest:
                logger.debug(f"互动参与者不存在，已跳过: {activity.author_link}")
                continue
            result[kind].append(strip_internal(user))

        if fmt == "xml":
            return {f"friendica:{kind}": users for kind, users in result.items()}
        return result

    async def format_items(
        self,
        posts: list[Post],
        uid: int | None,
        *,
        fmt: str = "json",
        include_entities: bool = False,
        filter_user: int | None = None,
    ) -> list[dict]:
        """组装状态视图列表。

        Args:
            posts: 条目列表
            uid: 当前 API 账户 ID
            fmt: 输出格式
            include_entities: 是否输出实体
            filter_user: 只保留作者公共 ID 等于该值的条目

        Returns:
            list[dict]: 状态视图列表
        """
        statuses = []
        for post in posts:
            author, owner = await self.item_users(post, uid)
            if filter_user is not None and author["id"] != filter_user:
                continue
            statuses.append(await self._format_item(post, uid, author, owner, fmt, include_entities))
        return statuses

    async def _format_item(
        self,
        post: Post,
        uid: int | None,
        author: dict,
        owner: dict,
        fmt: str,
        include_entities: bool,
    ) -> dict:
        in_reply_to = await self.threads.resolve(post)
        converted = await self._convert(post, include_entities)
        geo = geo_fields(post.coord, fmt)

        status = {
            "text": converted.text,
            "truncated": False,
            "created_at": api_date(post.created),
            "in_reply_to_status_id": in_reply_to.status_id,
            "in_reply_to_status_id_str": in_reply_to.status_id_str,
            "source": annotate_source(post.app or "web", post.network),
            "id": post.id,
            "id_str": str(post.id),
            "in_reply_to_user_id": in_reply_to.user_id,
            "in_reply_to_user_id_str": in_reply_to.user_id_str,
            "in_reply_to_screen_name": in_reply_to.screen_name,
            **geo,
            "favorited": post.starred,
            "user": strip_internal(author),
            "friendica_owner": strip_internal(owner),
            "statusnet_html": converted.html,
            "statusnet_conversation_id": post.parent,
            "friendica_activities": await self.activities(post, fmt),
        }
        if converted.attachments:
            status["attachments"] = converted.attachments
        if converted.entities:
            status["entities"] = converted.entities

        # 转发只对会话根条目有效
        if post.is_root:
            retweeted = await self._retweeted_status(post, uid, status, fmt, include_entities)
            if retweeted is not None:
                status["retweeted_status"] = retweeted

        return status

    async def _retweeted_status(
        self,
        post: Post,
        uid: int | None,
        status: dict,
        fmt: str,
        include_entities: bool,
    ) -> dict | None:
        result = detect_reshare(post.body)
        if not isinstance(result, Success):
            return None

        reshared = result.unwrap().as_post(post)
        retweeted = dict(status)
        try:
            retweeted["user"] = strip_internal(await self.user_for(uid, reshared.author_link))
        except BadRequest:
            logger.debug(f"转发作者不存在: {reshared.author_link}")
            retweeted["user"] = {}

        converted = await self._convert(reshared, include_entities)
        retweeted["text"] = converted.text
        retweeted["statusnet_html"] = converted.html
        retweeted["friendica_activities"] = await self.activities(reshared, fmt)
        retweeted["created_at"] = api_date(reshared.created)
        retweeted.pop("attachments", None)
        retweeted.pop("entities", None)
        if converted.attachments:
            retweeted["attachments"] = converted.attachments
        if converted.entities:
            retweeted["entities"] = converted.entities
        return retweeted

    async def last_status(
        self,
        user_info: dict,
        uid: int,
        *,
        fmt: str = "json",
        include_entities: bool = False,
    ) -> dict | None:
        """参与者最近一条公开条目的状态视图（不含 user 字段）。

        Args:
            user_info: 参与者视图（含内部字段 cid）
            uid: 当前 API 账户 ID
            fmt: 输出格式
            include_entities: 是否输出实体

        Returns:
            dict | None: 状态视图，没有条目时为 None
        """
        post = await self.posts.last_status(
            uid, user_info.get("cid", 0), user_info["url"], public_only=True
        )
        if post is None:
            return None

        in_reply_to = await self.threads.resolve(post)
        converted = await self._convert(post, include_entities)

        status = {
            "created_at": api_date(post.created),
            "id": post.id,
            "id_str": str(post.id),
            "text": converted.text,
            "source": annotate_source(post.app or "web", post.network),
            "truncated": False,
            "in_reply_to_status_id": in_reply_to.status_id,
            "in_reply_to_status_id_str": in_reply_to.status_id_str,
            "in_reply_to_user_id": in_reply_to.user_id,
            "in_reply_to_user_id_str": in_reply_to.user_id_str,
            "in_reply_to_screen_name": in_reply_to.screen_name,
            **geo_fields(post.coord, fmt),
            "coordinates": "",
            "place": "",
            "contributors": "",
            "is_quote_status": False,
            "retweet_count": 0,
            "favorite_count": 0,
            "favorited": post.starred,
            "retweeted": False,
            "possibly_sensitive": False,
            "lang": "",
            "statusnet_html": converted.html,
            "statusnet_conversation_id": post.parent,
        }
        if converted.attachments:
            status["attachments"] = converted.attachments
        if converted.entities:
            status["entities"] = converted.entities
        return status
