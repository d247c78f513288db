"""正文标记渲染。

定义标记渲染协议以及默认的 BBCode 渲染器，另提供属性列表解析等
在多个组件之间共享的标记处理函数。
"""

import html
import logging
import re
from dataclasses import dataclass
from typing import Protocol

from bs4 import BeautifulSoup

logger = logging.getLogger(__name__)

# 不含方括号的链接字符
URL_SEARCH = r"[^\[\]]*"

# 未包裹在链接标记中的裸链接
BARE_URL_PATTERN = re.compile(
    r"([^\]='\"]|^)(https?://[a-zA-Z0-9:/\-?&;.=_~#%$!+,@]+)",
    re.IGNORECASE | re.MULTILINE,
)

_PICTURE_LINK_PATTERN = re.compile(
    rf"\[url=({URL_SEARCH})\]\s*\[img(?:=\d*x\d*)?\](.*?)\[/img\]\s*\[/url\]",
    re.IGNORECASE | re.DOTALL,
)

_BLOCK_TAGS = ["blockquote", "h1", "h2", "h3", "h4", "h5", "h6", "p", "div", "pre"]


@dataclass(frozen=True)
class RenderedMarkup:
    """渲染结果。"""

    html: str
    plaintext: str


class MarkupRenderer(Protocol):
    """标记渲染协议：同一段标记同时输出 HTML 与纯文本。"""

    def render(self, markup: str) -> RenderedMarkup: ...


def parse_attributes(text: str) -> dict[str, str]:
    """解析形如 `author='a' profile="b" size=3` 的属性列表。

    单引号、双引号和无引号写法都可以，缺失或写错的属性直接忽略。
    值中的 HTML 实体会被解码。

    Args:
        text: 标签名之后、右方括号之前的属性文本

    Returns:
        dict[str, str]: 小写属性名到属性值的映射
    """
    attributes: dict[str, str] = {}
    pos = 0
    length = len(text)

    while pos < length:
        # 跳过空白
        while pos < length and text[pos].isspace():
            pos += 1
        name_start = pos
        while pos < length and (text[pos].isalnum() or text[pos] in "-_"):
            pos += 1
        name = text[name_start:pos].lower()

        if not name:
            pos += 1
            continue
        if pos >= length or text[pos] != "=":
            continue
        pos += 1

        if pos < length and text[pos] in "'\"":
            quote = text[pos]
            end = text.find(quote, pos + 1)
            if end == -1:
                # 引号未闭合，剩余部分作为值
                end = length
            value = text[pos + 1 : end]
            pos = end + 1
        else:
            value_start = pos
            while pos < length and not text[pos].isspace():
                pos += 1
            value = text[value_start:pos]

        # 同名属性以先出现的为准
        attributes.setdefault(name, html.unescape(value))

    return attributes


def clean_picture_links(text: str) -> str:
    """将 `[url=X][img]Y[/img][/url]` 形式的图片链接简化为 `[img]Y[/img]`。"""
    return _PICTURE_LINK_PATTERN.sub(r"[img]\2[/img]", text)


def link_bare_urls(text: str) -> str:
    """把裸链接转换为链接标记。"""
    return BARE_URL_PATTERN.sub(r"\1[url=\2]\2[/url]", text)


class BBCodeRenderer:
    """BBCode 渲染器。

    支持常用标签子集，纯文本由渲染出的 HTML 经 BeautifulSoup 展平得到。
    """

    _SIMPLE_TAGS = {
        "b": "strong",
        "i": "em",
        "u": "u",
        "s": "s",
        "code": "code",
        "center": "center",
        "quote": "blockquote",
        "h1": "h1",
        "h2": "h2",
        "h3": "h3",
        "h4": "h4",
        "h5": "h5",
        "h6": "h6",
    }

    _FLAGS = re.IGNORECASE | re.DOTALL

    def render(self, markup: str) -> RenderedMarkup:
        """渲染标记。

        Args:
            markup: BBCode 正文

        Returns:
            RenderedMarkup: HTML 与纯文本
        """
        rendered_html = self.to_html(markup)
        return RenderedMarkup(html=rendered_html, plaintext=self.to_plaintext(rendered_html))

    def to_html(self, markup: str) -> str:
        text = html.escape(markup.replace("\r\n", "\n"), quote=False)
        text = self._render_shares(text)
        text = self._render_attachments(text)
        text = self._render_embeds(text)
        text = link_bare_urls(text)

        text = re.sub(
            rf"\[url=({URL_SEARCH})\](.*?)\[/url\]",
            r'<a href="\1" target="_blank">\2</a>',
            text,
            flags=self._FLAGS,
        )
        text = re.sub(
            r"\[url\](.*?)\[/url\]",
            r'<a href="\1" target="_blank">\1</a>',
            text,
            flags=self._FLAGS,
        )
        text = re.sub(
            r"\[img(?:=\d*x\d*)?\](.*?)\[/img\]",
            r'<img src="\1" alt="Image/photo" />',
            text,
            flags=self._FLAGS,
        )

        for tag, element in self._SIMPLE_TAGS.items():
            text = re.sub(
                rf"\[{tag}\](.*?)\[/{tag}\]",
                rf"<{element}>\1</{element}>",
                text,
                flags=self._FLAGS,
            )

        return text.replace("\n", "<br>")

    @staticmethod
    def to_plaintext(rendered_html: str) -> str:
        """将 HTML 展平为纯文本，图片以其地址表示。"""
        soup = BeautifulSoup(rendered_html, "html.parser")

        for br in soup.find_all("br"):
            br.replace_with("\n")
        for img in soup.find_all("img"):
            img.replace_with(img.get("src", ""))
        for block in soup.find_all(_BLOCK_TAGS):
            block.insert_before("\n")
            block.insert_after("\n")

        text = soup.get_text()
        return re.sub(r"\n{3,}", "\n\n", text)

    def _render_shares(self, text: str) -> str:
        def replace(match: re.Match) -> str:
            attributes = parse_attributes(match.group(1))
            author = attributes.get("author", "")
            profile = attributes.get("profile", "")
            return f"\n♲ [url={profile}]{author}[/url]:\n{match.group(2)}"

        return re.sub(
            r"\[share(.*?)\]\s?(.*?)\s?\[/share\]", replace, text, flags=self._FLAGS
        )

    def _render_attachments(self, text: str) -> str:
        def replace(match: re.Match) -> str:
            attributes = parse_attributes(match.group(1))
            url = attributes.get("url", "")
            title = attributes.get("title") or url
            if not url:
                return match.group(2)
            return f"\n[url={url}]{title}[/url]\n"

        return re.sub(
            r"\[attachment(.*?)\](.*?)\[/attachment\]", replace, text, flags=self._FLAGS
        )

    def _render_embeds(self, text: str) -> str:
        text = re.sub(
            rf"\[bookmark=({URL_SEARCH})\](.*?)\[/bookmark\]",
            r"[url=\1]\2[/url]",
            text,
            flags=self._FLAGS,
        )
        text = re.sub(r"\[video\](.*?)\[/video\]", r"[url=\1]\1[/url]", text, flags=self._FLAGS)
        text = re.sub(
            r"\[youtube\]([A-Za-z0-9\-_=]+)(.*?)\[/youtube\]",
            r"[url=https://www.youtube.com/watch?v=\1]https://www.youtube.com/watch?v=\1[/url]",
            text,
            flags=self._FLAGS,
        )
        text = re.sub(
            r"\[vimeo\]([0-9]+)(.*?)\[/vimeo\]",
            r"[url=https://vimeo.com/\1]https://vimeo.com/\1[/url]",
            text,
            flags=self._FLAGS,
        )
        return text
