"""内容转换。

将一条条目转换为客户端使用的纯文本、HTML、附件与实体。
"""

import logging
import re
from collections.abc import Mapping

from statusgate.status.domain.models import ConvertedItem, Network, PhotoInfo, Post
from statusgate.status.entities import EntityExtractor, image_urls
from statusgate.status.markup import (
    URL_SEARCH,
    MarkupRenderer,
    clean_picture_links,
    parse_attributes,
)

logger = logging.getLogger(__name__)

# 订阅源条目的纯文本上限（码点）
FEED_TEXT_LIMIT = 1000

_DATA_IMAGE = re.compile(r"data:image/([^;]+)[^=]+=*", re.MULTILINE)
_PREFIXED_LINK = re.compile(rf"([!#@])\[url=({URL_SEARCH})\](.*?)\[/url\]", re.IGNORECASE | re.DOTALL)
_TITLED_LINK = re.compile(rf"\[url=({URL_SEARCH})\](.*?)\[/url\]", re.IGNORECASE | re.DOTALL)
_ATTACHMENT = re.compile(r"\[attachment(.*?)\](.*?)\[/attachment\]", re.IGNORECASE | re.DOTALL)

# 兼容 HTML 解析能力有限的客户端：块级元素前后补换行
_BLOCK_BREAKS = [
    ("<blockquote>", "<br><blockquote>"),
    ("</blockquote>", "</blockquote><br>"),
] + [
    replacement
    for level in range(1, 7)
    for replacement in ((f"<h{level}>", f"<br><h{level}>"), (f"</h{level}>", f"</h{level}><br>"))
]


def clean_attachments(body: str) -> str:
    """简化附件块：保留附件之前的文字（为空时用附件标题）、附件地址与附件之后的文字。"""
    match = _ATTACHMENT.search(body)
    if match is None:
        return body

    attributes = parse_attributes(match.group(1))
    cleaned = body[: match.start()].strip() or attributes.get("title", "")
    if attributes.get("url"):
        cleaned += "\n" + attributes["url"]
    return cleaned + body[match.end():]


def clean_plain_items(body: str, include_entities: bool = False) -> str:
    """生成纯文本前的正文清理。

    Args:
        body: 原始正文
        include_entities: 请求是否要求输出实体

    Returns:
        str: 清理后的正文
    """
    body = clean_picture_links(body)
    body = _PREFIXED_LINK.sub(r"\1\3", body)

    # 输出实体时链接文字替换为链接本身，保证能在纯文本中定位
    if include_entities:
        body = _TITLED_LINK.sub(r"[url=\1]\1[/url]", body)

    return clean_attachments(body)


def collapse_breaks(statushtml: str) -> str:
    """合并连续换行标记并去掉首尾的换行标记。"""
    while "<br><br>" in statushtml:
        statushtml = statushtml.replace("<br><br>", "<br>")
    if statushtml.startswith("<br>"):
        statushtml = statushtml[4:]
    if statushtml.endswith("<br>"):
        statushtml = statushtml[:-4]
    return statushtml


class ContentTransformer:
    """内容转换器。"""

    def __init__(
        self,
        renderer: MarkupRenderer,
        extractor: EntityExtractor,
        base_url: str,
    ) -> None:
        self.renderer = renderer
        self.extractor = extractor
        self.base_url = base_url

    def attachments(self, body: str, photos: Mapping[str, PhotoInfo]) -> list[dict]:
        """列出正文中有元数据的图片附件。"""
        result = []
        for url in image_urls(body):
            photo = photos.get(url)
            if photo is not None:
                result.append({"url": url, "mimetype": photo.mimetype, "size": photo.filesize})
        return result

    def convert(
        self,
        post: Post,
        include_entities: bool = False,
        photos: Mapping[str, PhotoInfo] | None = None,
    ) -> ConvertedItem:
        """转换单条条目。

        Args:
            post: 条目
            include_entities: 是否输出实体
            photos: 图片地址到元数据的映射

        Returns:
            ConvertedItem: 文本、HTML、附件与实体
        """
        photos = photos or {}
        body = post.body

        statusbody = self.renderer.render(clean_plain_items(body, include_entities)).plaintext.strip()
        statusbody = _DATA_IMAGE.sub(f"{self.base_url}/display/{post.guid}", statusbody)

        title = post.title.strip()
        if title and title in statusbody:
            text = statusbody
        else:
            text = f"{title}\n\n{statusbody}".strip()

        is_feed = post.network == Network.feed.value
        if is_feed and len(text) > FEED_TEXT_LIMIT:
            text = text[:FEED_TEXT_LIMIT] + "... \n" + post.plink

        statushtml = self.renderer.render(body).html.strip()
        for search, replace in _BLOCK_BREAKS:
            statushtml = statushtml.replace(search, replace)
        if post.title:
            statushtml = f"<br><h4>{self.renderer.render(post.title).html}</h4><br>{statushtml}"
        statushtml = collapse_breaks(statushtml)

        # 无正文的订阅源条目只展示链接
        if is_feed and not body:
            statushtml += self.renderer.render(post.plink).html

        if include_entities:
            entities = self.extractor.extract(text, body, photos)
        else:
            text = self.extractor.proxify_images(text, body)
            entities = {}

        return ConvertedItem(
            text=text,
            html=statushtml,
            attachments=self.attachments(body, photos),
            entities=entities,
        )
