"""用户端点：用户资料、搜索、关注与粉丝。"""

import logging

from statusgate.api.context import ApiResult, RequestContext
from statusgate.api.errors import BadRequest
from statusgate.api.registry import EndpointRegistry
from statusgate.status.actors import strip_internal
from statusgate.status.infrastructure.models import ContactRelation

logger = logging.getLogger(__name__)

FRIEND_RELATIONS = (ContactRelation.sharing, ContactRelation.friend)
FOLLOWER_RELATIONS = (ContactRelation.follower, ContactRelation.friend)


async def show(ctx: RequestContext) -> ApiResult:
    """用户资料，附带其最近一条公开状态。"""
    user_info = await ctx.resolve_user()
    if ctx.uid is not None:
        status = await ctx.assembler.last_status(
            user_info, ctx.uid, fmt=ctx.fmt, include_entities=ctx.include_entities
        )
        if status is not None:
            user_info["status"] = status
    return ApiResult("user", {"user": strip_internal(user_info)})


async def search(ctx: RequestContext) -> ApiResult:
    """按名称（其次昵称）在公共联系人中搜索。"""
    query = (ctx.query.get("q") or "").strip()
    if not query:
        raise BadRequest("User not found.")

    contacts = await ctx.contacts.search_public(query)
    if not contacts:
        raise BadRequest("User not found.")

    users = [strip_internal(await ctx.actors.resolve(ctx.uid, contact.id)) for contact in contacts]
    return ApiResult("users", {"user": users})


async def _related_users(ctx: RequestContext, relations: tuple[int, ...]) -> ApiResult | None:
    # 部分客户端会带 cursor=undefined 反复请求，不予处理
    if ctx.query.get("cursor") == "undefined":
        return None

    user_info = await ctx.resolve_user()
    users = []
    if user_info["self"]:
        for contact in await ctx.contacts.related(ctx.uid, relations):
            try:
                users.append(strip_internal(await ctx.actors.resolve(ctx.uid, contact.url)))
            except BadRequest:
                logger.debug(f"联系人无法解析，已跳过: {contact.url}")
    return ApiResult("users", {"user": users})


async def friends(ctx: RequestContext) -> ApiResult | None:
    """当前账户关注的人。"""
    return await _related_users(ctx, FRIEND_RELATIONS)


async def followers(ctx: RequestContext) -> ApiResult | None:
    """关注当前账户的人。"""
    return await _related_users(ctx, FOLLOWER_RELATIONS)


async def _related_ids(ctx: RequestContext, relations: tuple[int, ...]) -> ApiResult:
    user_info = await ctx.resolve_user()
    ids: list = []
    if user_info["self"]:
        ids = await ctx.contacts.related_public_ids(ctx.uid, relations)
    if ctx.flag("stringify_ids"):
        ids = [str(contact_id) for contact_id in ids]
    return ApiResult("ids", {"id": ids})


async def friends_ids(ctx: RequestContext) -> ApiResult:
    return await _related_ids(ctx, FRIEND_RELATIONS)


async def followers_ids(ctx: RequestContext) -> ApiResult:
    return await _related_ids(ctx, FOLLOWER_RELATIONS)


def register(registry: EndpointRegistry) -> None:
    registry.register("users/show", show)
    registry.register("externalprofile/show", show)
    registry.register("users/search", search)
    registry.register("statuses/friends", friends, auth=True)
    registry.register("statuses/followers", followers, auth=True)
    registry.register("friends/ids", friends_ids, auth=True)
    registry.register("followers/ids", followers_ids, auth=True)
