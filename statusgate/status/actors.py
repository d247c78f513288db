"""参与者解析。

根据显式引用、请求参数、路径参数或当前账户定位目标联系人，
并生成客户端使用的用户视图。
"""

import logging

from statusgate.api.errors import BadRequest, Unauthorized
from statusgate.auth.infrastructure.repository import UserRepository
from statusgate.status.domain.models import (
    Actor,
    Network,
    api_date,
    network_to_name,
)
from statusgate.status.infrastructure.models import ContactRelation
from statusgate.status.infrastructure.repository import ContactRepository
from statusgate.status.urls import nick_from_url, normalise_link

logger = logging.getLogger(__name__)

# 多条候选记录时按网络优先级选择
NETWORK_PRIORITY = (
    Network.dfrn.value,
    Network.diaspora.value,
    Network.ostatus.value,
    Network.pumpio.value,
    Network.twitter.value,
)

# 仅供内部使用、输出前需要移除的字段
INTERNAL_USER_FIELDS = ("uid", "self")


def best_contact(contacts: list[Actor]) -> Actor | None:
    """在同一参与者的多条联系人记录中挑选最合适的一条。"""
    if not contacts:
        return None

    for contact in contacts:
        if contact.network == "":
            return contact.model_copy(update={"network": Network.dfrn.value})

    for network in NETWORK_PRIORITY:
        for contact in reversed(contacts):
            if contact.network == network:
                return contact

    return contacts[0]


def strip_internal(user: dict) -> dict:
    """移除用户视图中的内部字段。"""
    return {key: value for key, value in user.items() if key not in INTERNAL_USER_FIELDS}


class ActorResolver:
    """参与者解析器。"""

    def __init__(
        self,
        contacts: ContactRepository,
        users: UserRepository,
        realm: str = "Statusgate",
    ) -> None:
        self.contacts = contacts
        self.users = users
        self.realm = realm

    async def nick_for(self, url: str) -> str | None:
        """推导主页地址对应的昵称：优先公共缓存，其次从地址推导。"""
        public = await self.contacts.get_public_by_url(url)
        if public is not None and public.nick:
            return public.nick
        return nick_from_url(url)

    async def _url_for_public_id(self, public_id: int) -> str:
        public = await self.contacts.get_public(public_id)
        if public is None:
            raise BadRequest("User not found.")
        return public.url

    async def resolve(
        self,
        uid: int | None,
        contact_ref: int | str | None = None,
        *,
        user_id: str | None = None,
        screen_name: str | None = None,
        profileurl: str | None = None,
        path_arg: str | None = None,
    ) -> dict:
        """解析目标参与者并返回用户视图。

        查找顺序：显式引用、user_id、screen_name、profileurl、路径参数，
        都没有时为当前账户自身。

        Args:
            uid: 当前 API 账户 ID，未登录为 None
            contact_ref: 公共 ID 或主页地址
            user_id: 请求参数 user_id（公共 ID）
            screen_name: 请求参数 screen_name
            profileurl: 请求参数 profileurl
            path_arg: 端点路径之后的参数

        Returns:
            dict: 用户视图（含内部字段 uid、self）

        Raises:
            BadRequest: 找不到参与者
            Unauthorized: 未指定目标且未登录
        """
        url = ""
        nick = ""

        if contact_ref is not None and str(contact_ref) != "":
            ref = str(contact_ref)
            if ref.isdigit() and int(ref) != 0:
                url = await self._url_for_public_id(int(ref))
            else:
                url = ref
        elif user_id:
            if not str(user_id).isdigit():
                raise BadRequest("User not found.")
            url = await self._url_for_public_id(int(user_id))
        elif screen_name:
            nick = screen_name
        elif profileurl:
            url = profileurl
        elif path_arg:
            arg = path_arg.split(".", 1)[0]
            if arg.isdigit():
                url = await self._url_for_public_id(int(arg))
            else:
                nick = arg

        logger.debug(f"解析参与者: url={url!r}, nick={nick!r}, uid={uid}")

        # 未登录时只在公共缓存中查找
        scope = uid if uid is not None else 0
        if url:
            candidates = await self.contacts.find_by_nurl(normalise_link(url), scope)
        elif nick:
            candidates = await self.contacts.find_by_nick(nick, scope)
        else:
            if uid is None:
                raise Unauthorized("This API requires login", realm=self.realm)
            own = await self.contacts.get_self(uid)
            candidates = [own] if own is not None else []

        contact = best_contact(candidates)
        if contact is None:
            return await self._public_view(url, uid)
        return await self._contact_view(contact)

    async def _public_view(self, url: str, uid: int | None) -> dict:
        """从公共联系人缓存生成用户视图，社交计数固定为 0。"""
        public = await self.contacts.get_public_by_url(url) if url else None
        if public is None:
            raise BadRequest("User not found.")

        network_name = network_to_name(public.network)
        nick = public.nick
        if not nick or public.name == nick:
            nick = await self.nick_for(public.url) or nick

        return {
            "id": public.id,
            "id_str": str(public.id),
            "name": public.name,
            "screen_name": nick or public.name,
            "location": public.location or network_name,
            "description": public.about,
            "profile_image_url": public.micro,
            "profile_image_url_https": public.micro,
            "url": public.url,
            "protected": False,
            "followers_count": 0,
            "friends_count": 0,
            "listed_count": 0,
            "created_at": api_date(public.created),
            "favourites_count": 0,
            "utc_offset": 0,
            "time_zone": "UTC",
            "geo_enabled": False,
            "verified": False,
            "statuses_count": 0,
            "lang": "",
            "contributors_enabled": False,
            "is_translator": False,
            "is_translation_enabled": False,
            "following": False,
            "follow_request_sent": False,
            "statusnet_blocking": False,
            "notifications": False,
            "statusnet_profile_url": public.url,
            "uid": 0,
            "cid": await self.contacts.id_for_url(public.url, uid) if uid else 0,
            "self": False,
            "network": public.network,
        }

    async def _contact_view(self, contact: Actor) -> dict:
        """从账户联系人记录生成用户视图。"""
        location = ""
        description = None
        if contact.is_self:
            if not contact.network:
                contact = contact.model_copy(update={"network": Network.dfrn.value})
            account = await self.users.get_user_by_id(contact.uid)
            location = account.default_location if account else ""
            description = contact.about

        nick = contact.nick
        if not nick or contact.name == nick:
            nick = await self.nick_for(contact.url) or nick

        network_name = network_to_name(contact.network)
        public_id = await self.contacts.public_id_for(contact)

        return {
            "id": public_id,
            "id_str": str(public_id),
            "name": contact.name or nick,
            "screen_name": nick or contact.name,
            "location": location if contact.is_self else network_name,
            "description": description,
            "profile_image_url": contact.micro,
            "profile_image_url_https": contact.micro,
            "url": contact.url,
            "protected": False,
            "followers_count": 0,
            "friends_count": 0,
            "listed_count": 0,
            "created_at": api_date(contact.created),
            "favourites_count": 0,
            "utc_offset": "0",
            "time_zone": "UTC",
            "geo_enabled": False,
            "verified": True,
            "statuses_count": 0,
            "lang": "",
            "contributors_enabled": False,
            "is_translator": False,
            "is_translation_enabled": False,
            "following": contact.rel in (ContactRelation.follower, ContactRelation.friend),
            "follow_request_sent": False,
            "statusnet_blocking": False,
            "notifications": False,
            "statusnet_profile_url": contact.url,
            "uid": contact.uid,
            "cid": contact.id,
            "self": contact.is_self,
            "network": contact.network,
        }
