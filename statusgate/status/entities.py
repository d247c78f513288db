"""实体提取。

从纯文本与原始标记中提取链接、内联图片、话题标签和提及，
偏移量按 Unicode 码点计算。
"""

import re
from collections.abc import Mapping

from statusgate.status.domain.models import PhotoInfo
from statusgate.status.markup import URL_SEARCH, clean_picture_links, link_bare_urls
from statusgate.status.media import media_sizes
from statusgate.status.urls import display_url, looks_like_url, normalise_link, proxy_url

_FLAGS = re.IGNORECASE | re.DOTALL

_HASHTAG_LINK = re.compile(rf"#\[url=({URL_SEARCH})\](.*?)\[/url\]", _FLAGS)
_MENTION_LINK = re.compile(rf"@\[url=({URL_SEARCH})\](.*?)\[/url\]", _FLAGS)
_LINK = re.compile(rf"\[url=({URL_SEARCH})\](.*?)\[/url\]", _FLAGS)
_IMAGE = re.compile(r"\[img\](.*?)\[/img\]", _FLAGS)
_SIZED_IMAGE = re.compile(r"\[img=(\d*)x(\d*)\](.*?)\[/img\]", _FLAGS)

_EMBEDS = (
    (re.compile(rf"\[bookmark=({URL_SEARCH})\](.*?)\[/bookmark\]", _FLAGS), r"[url=\1]\2[/url]"),
    (re.compile(r"\[video\](.*?)\[/video\]", _FLAGS), r"[url=\1]\1[/url]"),
    (
        re.compile(r"\[youtube\]([A-Za-z0-9\-_=]+)(.*?)\[/youtube\]", _FLAGS),
        r"[url=https://www.youtube.com/watch?v=\1]https://www.youtube.com/watch?v=\1[/url]",
    ),
    (re.compile(r"\[youtube\](.*?)\[/youtube\]", _FLAGS), r"[url=\1]\1[/url]"),
    (
        re.compile(r"\[vimeo\]([0-9]+)(.*?)\[/vimeo\]", _FLAGS),
        r"[url=https://vimeo.com/\1]https://vimeo.com/\1[/url]",
    ),
    (re.compile(r"\[vimeo\](.*?)\[/vimeo\]", _FLAGS), r"[url=\1]\1[/url]"),
)


def image_urls(body: str) -> list[str]:
    """列出正文中的全部图片地址（含带尺寸写法），按出现顺序。"""
    return _IMAGE.findall(_SIZED_IMAGE.sub(r"[img]\3[/img]", body))


def _order_by_first_occurrence(text: str, needles: list[str]) -> list[int]:
    """按在文本中首次出现的位置排序，返回下标列表；找不到的丢弃。"""
    found = [(text.find(needle), index) for index, needle in enumerate(needles)]
    return [index for start, index in sorted(found) if start >= 0]


def _spans(text: str, needles: list[str]) -> list[tuple[int, int, int]]:
    """为每个片段查找位置。

    先按首次出现位置排序，再以单调推进的起点依次查找，
    重复的片段因此会匹配到后续的出现位置，结果区间互不重叠。

    Returns:
        list[tuple[int, int, int]]: (片段下标, 起始偏移, 结束偏移)
    """
    spans = []
    next_start = 0
    for index in _order_by_first_occurrence(text, needles):
        needle = needles[index]
        start = text.find(needle, next_start)
        if start < 0:
            continue
        end = start + len(needle)
        spans.append((index, start, end))
        next_start = end
    return spans


def normalize_markup(body: str) -> str:
    """提取前的标记规整：链接化裸地址，展开各类嵌入标记，去掉图片尺寸。"""
    body = clean_picture_links(body)
    body = link_bare_urls(body)
    for pattern, replacement in _EMBEDS:
        body = pattern.sub(replacement, body)
    return _SIZED_IMAGE.sub(r"[img]\3[/img]", body)


class EntityExtractor:
    """实体提取器。

    纯函数式组件，图片元数据由调用方预先查好传入。
    """

    def __init__(self, base_url: str, proxy_disabled: bool = False) -> None:
        """初始化提取器。

        Args:
            base_url: 站点根地址，用于生成代理地址
            proxy_disabled: 是否关闭图片代理
        """
        self.base_url = base_url
        self.proxy_disabled = proxy_disabled

    def proxy(self, url: str) -> str:
        return proxy_url(url, self.base_url, self.proxy_disabled)

    def proxify_images(self, text: str, body: str) -> str:
        """不输出实体时，把文本中的图片地址改写为代理地址。"""
        for url in image_urls(body):
            replacement = self.proxy(url)
            if replacement != url:
                text = text.replace(url, replacement)
        return text

    def extract(
        self,
        text: str,
        body: str,
        photos: Mapping[str, PhotoInfo] | None = None,
    ) -> dict:
        """提取实体。

        Args:
            text: 派生出的纯文本
            body: 原始标记正文
            photos: 图片地址到元数据的映射

        Returns:
            dict: hashtags、symbols、urls、user_mentions 以及可选的 media
        """
        photos = photos or {}
        markup = normalize_markup(body)

        entities: dict = {
            "hashtags": self._hashtags(text, markup),
            "symbols": [],
            "urls": [],
            "user_mentions": self._mentions(text, markup),
        }

        # 话题和提及已单独处理，不再作为普通链接
        markup = _HASHTAG_LINK.sub(r"#\2", markup)
        markup = _MENTION_LINK.sub(r"@\2", markup)

        entities["urls"] = self._urls(text, markup)

        media = self._media(text, markup, photos)
        if media:
            entities["media"] = media

        return entities

    def _hashtags(self, text: str, markup: str) -> list[dict]:
        tags = [match.group(2) for match in _HASHTAG_LINK.finditer(markup)]
        return [
            {"text": tags[index], "indices": [start, end]}
            for index, start, end in _spans(text, [f"#{tag}" for tag in tags])
        ]

    def _mentions(self, text: str, markup: str) -> list[dict]:
        matches = [(match.group(1), match.group(2)) for match in _MENTION_LINK.finditer(markup)]
        return [
            {
                "screen_name": matches[index][1],
                "name": matches[index][1],
                "url": matches[index][0],
                "indices": [start, end],
            }
            for index, start, end in _spans(text, [f"@{name}" for _, name in matches])
        ]

    def _urls(self, text: str, markup: str) -> list[dict]:
        links = [(match.group(1), match.group(2)) for match in _LINK.finditer(markup)]
        result = []
        for index, start, end in _spans(text, [url for url, _ in links]):
            url, title = links[index]
            shown = display_url(url) if looks_like_url(title) else title
            result.append(
                {
                    "url": url,
                    "expanded_url": url,
                    "display_url": shown,
                    "indices": [start, end],
                }
            )
        return result

    def _media(self, text: str, markup: str, photos: Mapping[str, PhotoInfo]) -> list[dict]:
        images = _IMAGE.findall(markup)
        result = []
        for index, start, end in _spans(text, images):
            url = images[index]
            photo = photos.get(url)
            if photo is None:
                continue

            media_url = self.proxy(url)
            result.append(
                {
                    "id": start + 1,
                    "id_str": str(start + 1),
                    "indices": [start, end],
                    "media_url": normalise_link(media_url),
                    "media_url_https": media_url,
                    "url": url,
                    "display_url": display_url(url),
                    "expanded_url": url,
                    "type": "photo",
                    "sizes": media_sizes(photo, self.proxy_disabled),
                }
            )
        return result
