"""链接处理工具。

标准化主页地址、生成显示用短链接、图片代理地址以及从主页地址推导昵称。
"""

import hashlib
import re
from urllib.parse import quote

DISPLAY_URL_LIMIT = 26

_NICK_PATTERNS = (
    re.compile(r"^https?://.*/profile/(.+)$", re.IGNORECASE),
    re.compile(r"^https?://.*/u/(.+)$", re.IGNORECASE),
    re.compile(r"^https?://(?:www\.)?twitter\.com/(.+)$", re.IGNORECASE),
)


def normalise_link(url: str) -> str:
    """标准化链接，用于联系人地址比较。

    https 统一为 http，去掉 www. 与末尾斜杠。
    """
    return url.replace("https:", "http:").replace("//www.", "//").rstrip("/")


def display_url(url: str) -> str:
    """生成显示用链接：去掉协议与 www.，过长时截断并加省略号。"""
    short = url.replace("http://www.", "").replace("https://www.", "")
    short = short.replace("http://", "").replace("https://", "")
    if len(short) > DISPLAY_URL_LIMIT:
        short = short[: DISPLAY_URL_LIMIT - 1] + "…"
    return short


def looks_like_url(title: str) -> bool:
    """链接标题本身是否为一个 URL。"""
    return "http://" in title or "https://" in title


def proxy_url(url: str, base_url: str, proxy_disabled: bool = False) -> str:
    """将外部图片地址改写为本站缓存代理地址。

    代理关闭、本站地址或非 http(s) 地址原样返回。
    """
    if proxy_disabled or not url:
        return url
    if url.startswith(base_url) or not url.lower().startswith(("http://", "https://")):
        return url
    digest = hashlib.sha1(url.encode("utf-8")).hexdigest()
    return f"{base_url}/proxy/{digest}?url={quote(url, safe='')}"


def nick_from_url(url: str) -> str | None:
    """从主页地址推导昵称，无法推导时返回 None。"""
    for pattern in _NICK_PATTERNS:
        match = pattern.match(url)
        if match:
            return match.group(1).strip("/")
    return None
