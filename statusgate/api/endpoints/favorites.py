"""收藏端点。收藏是账户私有的，只能查看自己的收藏。"""

import logging

from statusgate.api.context import ApiResult, RequestContext
from statusgate.api.endpoints.common import listing
from statusgate.api.errors import BadRequest
from statusgate.api.registry import DELETE, POST, EndpointRegistry

logger = logging.getLogger(__name__)

ACTIONS = {"create": True, "destroy": False}


async def favorites(ctx: RequestContext) -> ApiResult:
    """收藏列表，查看他人时为空。"""
    user_info = await ctx.resolve_user()
    logger.debug(f"favorites: self={user_info['self']}")

    statuses: list[dict] = []
    if user_info["self"]:
        posts = await ctx.posts.timeline(ctx.uid, ctx.window(), starred_only=True)
        statuses = await ctx.assembler.format_items(
            posts, ctx.uid, fmt=ctx.fmt, include_entities=ctx.include_entities
        )
    return listing(ctx, "statuses", "status", statuses, user_info)


async def create_destroy(ctx: RequestContext) -> ApiResult:
    """收藏或取消收藏，动作取自 favorites 之后的路径段。"""
    segments = ctx.path.split("/")
    position = segments.index("favorites") + 1
    if position >= len(segments):
        raise BadRequest("Invalid request.")

    action = segments[position]
    remaining = segments[position + 1:]
    raw_id = remaining[0] if remaining else (ctx.param("id") or "")
    item_id = int(raw_id) if raw_id.strip().isdigit() else 0

    post = await ctx.posts.get(item_id, ctx.uid) if item_id else None
    if post is None:
        raise BadRequest("Invalid item.")

    if action not in ACTIONS:
        raise BadRequest(f"Invalid action {action}")

    starred = ACTIONS[action]
    await ctx.posts.set_starred(post.id, ctx.uid, starred)
    post = post.model_copy(update={"starred": starred})

    user_info = await ctx.own_user()
    statuses = await ctx.assembler.format_items(
        [post], ctx.uid, fmt=ctx.fmt, include_entities=ctx.include_entities
    )
    return listing(ctx, "status", "status", statuses[0], user_info)


def register(registry: EndpointRegistry) -> None:
    registry.register("favorites", favorites, auth=True)
    registry.register("favorites/create", create_destroy, auth=True, methods=POST)
    registry.register("favorites/destroy", create_destroy, auth=True, methods=DELETE)
