"""分页参数解析。"""

from collections.abc import Mapping

from statusgate.status.domain.models import PaginationWindow

DEFAULT_COUNT = 20


def _as_int(value: str | None, default: int) -> int:
    if value is None or str(value).strip() == "":
        return default
    try:
        return int(str(value).strip())
    except ValueError:
        return default


def window_from_params(
    params: Mapping[str, str],
    default_count: int = DEFAULT_COUNT,
) -> PaginationWindow:
    """将 since_id、max_id、count、page 转换为分页窗口。

    page 从 1 开始计数，转换为从 0 开始并截断到不小于 0；
    非法或非正的 count 使用默认值，负的 ID 视为未指定。

    Args:
        params: 请求参数
        default_count: 默认每页条数

    Returns:
        PaginationWindow: 分页窗口
    """
    count = _as_int(params.get("count"), default_count)
    if count <= 0:
        count = default_count

    page = max(_as_int(params.get("page"), 1) - 1, 0)

    return PaginationWindow(
        since_id=max(_as_int(params.get("since_id"), 0), 0),
        max_id=max(_as_int(params.get("max_id"), 0), 0),
        page=page,
        limit=count,
    )
