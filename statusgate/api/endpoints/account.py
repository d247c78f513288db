"""账户与站点信息端点。"""

from datetime import datetime, timedelta, timezone

from statusgate.api.context import ApiResult, RequestContext
from statusgate.api.registry import EndpointRegistry
from statusgate.status.actors import strip_internal
from statusgate.status.domain.models import api_date

STATUSNET_VERSION = "0.9.7"
HOURLY_LIMIT = "150"


async def verify_credentials(ctx: RequestContext) -> ApiResult:
    """当前账户的用户视图，默认附带最近一条公开状态。"""
    user_info = await ctx.own_user()
    user_info.pop("verified", None)

    if not ctx.flag("skip_status"):
        status = await ctx.assembler.last_status(
            user_info, ctx.uid, fmt=ctx.fmt, include_entities=ctx.include_entities
        )
        if status is not None:
            user_info["status"] = status

    return ApiResult("user", {"user": strip_internal(user_info)})


async def rate_limit_status(ctx: RequestContext) -> ApiResult:
    reset = datetime.now(timezone.utc) + timedelta(hours=1)
    if ctx.fmt == "xml":
        data = {
            "remaining-hits": HOURLY_LIMIT,
            "hourly-limit": HOURLY_LIMIT,
            "reset-time": reset.strftime("%Y-%m-%dT%H:%M:%SZ"),
            "reset_time_in_seconds": int(reset.timestamp()),
        }
    else:
        data = {
            "reset_time_in_seconds": int(reset.timestamp()),
            "remaining_hits": HOURLY_LIMIT,
            "hourly_limit": HOURLY_LIMIT,
            "reset_time": api_date(reset),
        }
    return ApiResult("hash", {"hash": data})


async def help_test(ctx: RequestContext) -> ApiResult:
    return ApiResult("ok", {"ok": "true" if ctx.fmt == "xml" else "ok"})


async def config(ctx: RequestContext) -> ApiResult:
    """站点配置（StatusNet 兼容）。"""
    settings = ctx.settings
    ssl = "true" if settings.have_ssl else "false"
    site = {
        "name": settings.site_name,
        "server": settings.hostname,
        "theme": "default",
        "path": "",
        "logo": f"{settings.base_url}/images/statusgate-64.png",
        "fancy": True,
        "language": "en",
        "email": settings.admin_email,
        "broughtby": "",
        "broughtbyurl": "",
        "timezone": "UTC",
        "closed": "true" if settings.register_closed else "false",
        "inviteonly": False,
        "private": "true" if settings.block_public else "false",
        "textlimit": str(settings.max_import_size or 200000),
        "sslserver": settings.base_url.replace("http:", "https:") if settings.have_ssl else "",
        "ssl": ssl,
        "shorturllength": "30",
        "friendica": {
            "FRIENDICA_PLATFORM": "Statusgate",
            "FRIENDICA_VERSION": "0.1.0",
            "DFRN_PROTOCOL_VERSION": "2.23",
        },
    }
    return ApiResult("config", {"config": {"site": site}})


async def version(ctx: RequestContext) -> ApiResult:
    return ApiResult("version", {"version": STATUSNET_VERSION})


async def lists(ctx: RequestContext) -> ApiResult:
    """列表功能未提供，总是返回空列表。"""
    return ApiResult("lists", {"lists_list": []})


def register(registry: EndpointRegistry) -> None:
    registry.register("account/verify_credentials", verify_credentials, auth=True)
    registry.register("account/rate_limit_status", rate_limit_status, auth=True)
    registry.register("help/test", help_test)
    registry.register("statusnet/config", config)
    registry.register("gnusocial/config", config)
    registry.register("statusnet/version", version)
    registry.register("gnusocial/version", version)
    registry.register("lists", lists, auth=True)
