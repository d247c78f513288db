"""条目互动端点：friendica/activity/<互动名称>。"""

import logging
from functools import partial

from statusgate.api.context import ApiResult, RequestContext
from statusgate.api.endpoints.common import requested_id
from statusgate.api.errors import BadRequest
from statusgate.api.registry import POST, EndpointRegistry
from statusgate.status.services.activities import ACTIVITY_NAMES, ActivityService

logger = logging.getLogger(__name__)


async def apply_activity(ctx: RequestContext, name: str) -> ApiResult:
    """对条目表态或撤销表态，成功时返回 ok。"""
    item_id = requested_id(ctx)
    logger.debug(f"friendica/activity/{name}: {item_id}")

    service = ActivityService(ctx.posts, ctx.contacts, ctx.settings.base_url)
    if not await service.apply(ctx.user, item_id, name):
        raise BadRequest("Error adding activity")
    return ApiResult("ok", {"ok": "true" if ctx.fmt == "xml" else "ok"})


def register(registry: EndpointRegistry) -> None:
    for verb_name in ACTIVITY_NAMES:
        for name in (verb_name, f"un{verb_name}"):
            registry.register(
                f"friendica/activity/{name}",
                partial(apply_activity, name=name),
                auth=True,
                methods=POST,
            )
