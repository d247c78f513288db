"""状态相关端点：时间线、单条状态、会话、发布、转发与删除。"""

import logging

from returns.result import Failure, Success

from statusgate.api.context import ApiResult, RequestContext
from statusgate.api.endpoints.common import listing, requested_id
from statusgate.api.errors import BadRequest
from statusgate.api.registry import DELETE, POST, EndpointRegistry
from statusgate.status.services.publisher import StatusPublisher, api_source
from statusgate.status.throttle import PostingThrottle
from statusgate.status.validator import StatusUpdateValidator

logger = logging.getLogger(__name__)

NO_SUCH_STATUS = "There is no status with this id."


def _publisher(ctx: RequestContext) -> StatusPublisher:
    settings = ctx.settings
    throttle = PostingThrottle(
        ctx.posts,
        day=settings.throttle_limit_day,
        week=settings.throttle_limit_week,
        month=settings.throttle_limit_month,
    )
    return StatusPublisher(ctx.posts, ctx.contacts, throttle, settings.base_url)


async def _single(ctx: RequestContext, post) -> ApiResult:
    statuses = await ctx.assembler.format_items(
        [post], ctx.uid, fmt=ctx.fmt, include_entities=ctx.include_entities
    )
    return ApiResult("status", {"status": statuses[0]})


async def home_timeline(ctx: RequestContext) -> ApiResult:
    """账户的网络时间线，返回的条目标记为已读。"""
    user_info = await ctx.own_user()
    posts = await ctx.posts.timeline(
        ctx.uid,
        ctx.window(),
        exclude_replies=ctx.flag("exclude_replies"),
        conversation_id=ctx.int_param("conversation_id"),
    )
    statuses = await ctx.assembler.format_items(
        posts, ctx.uid, fmt=ctx.fmt, include_entities=ctx.include_entities
    )
    marked = await ctx.posts.mark_seen([post.id for post in posts])
    logger.debug(f"已标记 {marked} 条为已读")
    return listing(ctx, "statuses", "status", statuses, user_info)


async def public_timeline(ctx: RequestContext) -> ApiResult:
    """全站公开时间线。"""
    user_info = await ctx.own_user()
    posts = await ctx.posts.public_timeline(
        ctx.window(),
        exclude_replies=ctx.flag("exclude_replies"),
        conversation_id=ctx.int_param("conversation_id"),
    )
    statuses = await ctx.assembler.format_items(
        posts, ctx.uid, fmt=ctx.fmt, include_entities=ctx.include_entities
    )
    return listing(ctx, "statuses", "status", statuses, user_info)


async def user_timeline(ctx: RequestContext) -> ApiResult:
    """某个参与者的条目；查看自己时只包含墙上的条目。"""
    user_info = await ctx.resolve_user()
    posts = await ctx.posts.timeline(
        ctx.uid,
        ctx.window(),
        exclude_replies=ctx.flag("exclude_replies"),
        conversation_id=ctx.int_param("conversation_id"),
        contact_id=user_info["cid"],
        wall_only=bool(user_info["self"]),
    )
    statuses = await ctx.assembler.format_items(
        posts,
        ctx.uid,
        fmt=ctx.fmt,
        include_entities=ctx.include_entities,
        filter_user=user_info["id"],
    )
    return listing(ctx, "statuses", "status", statuses, user_info)


async def mentions(ctx: RequestContext) -> ApiResult:
    """提及当前账户的会话中由他人发布的条目。"""
    user_info = await ctx.own_user()
    profile = f"{ctx.settings.hostname}/profile/{ctx.user.nickname}".replace("www.", "")
    own_links = [f"https://{profile}", f"http://{profile}"]

    posts = await ctx.posts.mentions(ctx.uid, own_links, ctx.window())
    statuses = await ctx.assembler.format_items(
        posts, ctx.uid, fmt=ctx.fmt, include_entities=ctx.include_entities
    )
    return listing(ctx, "statuses", "status", statuses, user_info)


async def show(ctx: RequestContext) -> ApiResult:
    """单条状态；带 conversation 参数时返回以该条为根的整个会话。"""
    item_id = requested_id(ctx)
    logger.debug(f"statuses/show: {item_id}")

    if ctx.flag("conversation"):
        posts = await ctx.posts.timeline(
            ctx.uid, ctx.window(), conversation_id=item_id, ascending=True
        )
        if not posts:
            raise BadRequest(NO_SUCH_STATUS)
        statuses = await ctx.assembler.format_items(
            posts, ctx.uid, fmt=ctx.fmt, include_entities=ctx.include_entities
        )
        return ApiResult("statuses", {"status": statuses})

    post = await ctx.posts.get_visible(item_id, ctx.uid) if item_id else None
    if post is None:
        raise BadRequest(NO_SUCH_STATUS)
    return await _single(ctx, post)


async def conversation(ctx: RequestContext) -> ApiResult:
    """条目所在会话的全部条目，按 ID 升序分页。"""
    item_id = requested_id(ctx)
    root = await ctx.posts.thread_root_of(item_id) if item_id else None
    conversation_id = root or item_id
    logger.debug(f"conversation/show: {item_id} -> {conversation_id}")

    posts = []
    if conversation_id:
        posts = await ctx.posts.timeline(
            ctx.uid, ctx.window(), conversation_id=conversation_id, ascending=True
        )
    if not posts:
        raise BadRequest(NO_SUCH_STATUS)

    statuses = await ctx.assembler.format_items(
        posts, ctx.uid, fmt=ctx.fmt, include_entities=ctx.include_entities
    )
    return ApiResult("statuses", {"status": statuses})


async def update(ctx: RequestContext) -> ApiResult:
    """发布状态或回复。"""
    params = {**ctx.params, "source": api_source(ctx.params, ctx.headers.get("user-agent", ""))}
    validator = StatusUpdateValidator(ctx.settings.max_import_size)

    match validator.validate(params):
        case Failure(error):
            logger.warning(f"状态参数无效: {error.message}")
            raise BadRequest(error.message)
        case Success(draft):
            post = await _publisher(ctx).publish(ctx.user, draft)

    return await _single(ctx, post)


async def retweet(ctx: RequestContext) -> ApiResult:
    """转发一条公开条目。"""
    item_id = requested_id(ctx)
    logger.debug(f"statuses/retweet: {item_id}")
    source = api_source(ctx.params, ctx.headers.get("user-agent", ""))
    post = await _publisher(ctx).reshare(ctx.user, item_id, source)
    return await _single(ctx, post)


async def destroy(ctx: RequestContext) -> ApiResult:
    """删除条目，返回删除前的状态。"""
    item_id = requested_id(ctx)
    logger.debug(f"statuses/destroy: {item_id}")
    result = await show(ctx)
    await _publisher(ctx).delete(ctx.user, item_id)
    return result


def register(registry: EndpointRegistry) -> None:
    registry.register("statuses/home_timeline", home_timeline, auth=True)
    registry.register("statuses/friends_timeline", home_timeline, auth=True)
    registry.register("statuses/public_timeline", public_timeline, auth=True)
    registry.register("statuses/user_timeline", user_timeline, auth=True)
    registry.register("statuses/mentions", mentions, auth=True)
    registry.register("statuses/replies", mentions, auth=True)
    registry.register("statuses/show", show, auth=True)
    registry.register("conversation/show", conversation, auth=True)
    registry.register("statusnet/conversation", conversation, auth=True)
    registry.register("statuses/update", update, auth=True, methods=POST)
    registry.register("statuses/update_with_media", update, auth=True, methods=POST)
    registry.register("statuses/retweet", retweet, auth=True, methods=POST)
    registry.register("statuses/destroy", destroy, auth=True, methods=DELETE)
