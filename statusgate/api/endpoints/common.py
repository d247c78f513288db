"""端点共用的辅助函数。"""

from datetime import datetime, timezone

from statusgate.api.context import ApiResult, RequestContext
from statusgate.status.actors import strip_internal
from statusgate.status.domain.models import api_date

FEED_FORMATS = ("rss", "atom")


def _as_int(value: str | None) -> int:
    value = (value or "").split(".", 1)[0].strip()
    return int(value) if value.isdigit() else 0


def requested_id(ctx: RequestContext) -> int:
    """条目 ID：路径参数优先，其次 id 参数，最后是第二个路径参数（兼容部分客户端）。"""
    item_id = _as_int(ctx.path_arg)
    if item_id == 0:
        item_id = _as_int(ctx.param("id"))
    if item_id == 0 and len(ctx.path_args) > 1:
        item_id = _as_int(ctx.path_args[1])
    return item_id


def rss_extra(ctx: RequestContext, user_info: dict) -> dict:
    """RSS/Atom 输出在根元素下追加的频道信息。"""
    base_url = ctx.settings.base_url
    now = datetime.now(timezone.utc)
    return {
        "user": strip_internal(user_info),
        "rss": {
            "alternate": user_info.get("url", ""),
            "self": f"{base_url}/{ctx.request_uri}",
            "base": base_url,
            "updated": api_date(now),
            "atom_updated": now.strftime("%Y-%m-%dT%H:%M:%SZ"),
            "language": ctx.user.language if ctx.user else "",
            "logo": f"{base_url}/images/statusgate-32.png",
        },
    }


def listing(
    ctx: RequestContext,
    root_element: str,
    child: str,
    items,
    user_info: dict | None = None,
) -> ApiResult:
    """包装处理结果，RSS/Atom 输出时附加频道信息。"""
    extra = {}
    if ctx.fmt in FEED_FORMATS and user_info is not None:
        extra = rss_extra(ctx, user_info)
    return ApiResult(root_element, {child: items}, extra)
