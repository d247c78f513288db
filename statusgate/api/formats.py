"""输出格式协商与编码。

根据路径后缀选择 json、xml、rss 或 atom，把处理器结果编码为响应正文。
"""

import json
import re
from typing import Any

from fastapi import Response
from lxml import etree

from statusgate.api.context import ApiResult
from statusgate.api.errors import HTTPFault

FORMATS = ("json", "xml", "rss", "atom")
DEFAULT_FORMAT = "json"

CONTENT_TYPES = {
    "json": "application/json",
    "xml": "text/xml",
    "rss": "application/rss+xml",
    "atom": "application/atom+xml",
}

XML_DECLARATION = '<?xml version="1.0" encoding="UTF-8"?>'

NAMESPACES = {
    None: "http://api.twitter.com",
    "statusnet": "http://status.net/schema/api/1/",
    "friendica": "http://friendi.ca/schema/api/1/",
    "georss": "http://www.georss.org/georss",
}

# 这些根元素不带命名空间
BARE_ROOTS = frozenset({"ok", "hash", "config", "version", "ids", "notes", "photos"})

# 列表字段中每个子元素的名称
LIST_ITEM_NAMES = {
    "attachments": "attachment",
    "hashtags": "hashtag",
    "symbols": "symbol",
    "urls": "url",
    "user_mentions": "user_mention",
    "media": "media",
    "indices": "indice",
    "coordinates": "coordinate",
    "friendica:like": "user",
    "friendica:dislike": "user",
    "friendica:attendyes": "user",
    "friendica:attendno": "user",
    "friendica:attendmaybe": "user",
    "search_results": "direct_message",
}

# 按字段前缀映射到命名空间
PREFIXED_KEYS = (("statusnet_", "statusnet"), ("friendica_", "friendica"))

_SUFFIX = re.compile(r"\.(json|xml|rss|atom)$")
_CALLBACK = re.compile(r"^[A-Za-z_$][\w$.]*$")


def detect_format(path: str) -> tuple[str, str]:
    """从路径后缀识别输出格式。

    Returns:
        tuple[str, str]: (格式, 去掉后缀的路径)
    """
    match = _SUFFIX.search(path)
    if match is None:
        return DEFAULT_FORMAT, path
    return match.group(1), path[: match.start()]


def _xml_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return ""
    return str(value)


def _qualified(key: str, nsmap: dict) -> str:
    """字段名转换为带命名空间的元素名。"""
    for prefix, namespace in PREFIXED_KEYS:
        if key.startswith(prefix):
            key = f"{namespace}:{key[len(prefix):]}"
            break

    if ":" in key:
        namespace, local = key.split(":", 1)
        if namespace in nsmap:
            return f"{{{nsmap[namespace]}}}{local}"
        return local
    if None in nsmap:
        return f"{{{nsmap[None]}}}{key}"
    return key


def _list_item_name(key: str) -> str:
    for prefix, namespace in PREFIXED_KEYS:
        if key.startswith(prefix):
            key = f"{namespace}:{key[len(prefix):]}"
    return LIST_ITEM_NAMES.get(key, "item")


def _append(parent: etree._Element, key: str, value: Any, nsmap: dict) -> None:
    element = etree.SubElement(parent, _qualified(key, nsmap))
    _fill(element, key, value, nsmap)


def _fill(element: etree._Element, key: str, value: Any, nsmap: dict) -> None:
    if isinstance(value, dict):
        for child_key, child_value in value.items():
            _append(element, child_key, child_value, nsmap)
    elif isinstance(value, (list, tuple)):
        child_name = _list_item_name(key)
        for item in value:
            _append(element, child_name, item, nsmap)
    else:
        element.text = _xml_value(value)


def to_xml(result: ApiResult) -> str:
    """生成 XML 文本（不含 XML 声明）。

    唯一子元素是列表时，每一项成为根元素下以子元素名命名的元素；
    是字典时，字段直接成为根元素的子元素；其它值作为根元素的文本。
    """
    nsmap = {} if result.root_element in BARE_ROOTS else dict(NAMESPACES)
    root = etree.Element(_qualified(result.root_element, nsmap), nsmap=nsmap or None)

    child_name, content = next(iter(result.data.items()))
    if isinstance(content, (list, tuple)):
        for item in content:
            _append(root, child_name, item, nsmap)
    else:
        _fill(root, child_name, content, nsmap)

    for key, value in result.extra.items():
        _append(root, key, value, nsmap)

    return etree.tostring(root, encoding="unicode")


def to_json(result: ApiResult, callback: str | None = None) -> str:
    """生成 JSON 文本，指定回调名时包装为 JSONP。"""
    body = json.dumps(result.payload, ensure_ascii=False)
    if callback and _CALLBACK.match(callback):
        body = f"{callback}({body})"
    return body


def render(
    result: ApiResult,
    fmt: str,
    callback: str | None = None,
    status_code: int = 200,
    headers: dict[str, str] | None = None,
) -> Response:
    """把处理器结果编码为响应。"""
    if fmt == "json":
        content = to_json(result, callback)
    elif fmt in ("rss", "atom"):
        content = f"{XML_DECLARATION}\n{to_xml(result)}"
    else:
        content = to_xml(result)

    return Response(
        content=content,
        status_code=status_code,
        media_type=CONTENT_TYPES.get(fmt, CONTENT_TYPES[DEFAULT_FORMAT]),
        headers=headers,
    )


def error_envelope(fault: HTTPFault, request_uri: str) -> ApiResult:
    """错误信封。

    XML 输出为 <status> 根元素下的 error、code、request；JSON 与成功结果一样
    只输出内层对象 {"error", "code", "request"}，不再包一层 "status"。
    """
    return ApiResult(
        "status",
        {
            "status": {
                "error": fault.error,
                "code": fault.status_line,
                "request": request_uri,
            }
        },
    )


def render_error(fault: HTTPFault, fmt: str, request_uri: str) -> Response:
    """把错误编码为与正常结果同格式的响应。"""
    return render(
        error_envelope(fault, request_uri),
        fmt,
        status_code=fault.code,
        headers=fault.headers,
    )
