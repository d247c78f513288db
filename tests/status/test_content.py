"""内容转换测试。"""

from datetime import datetime, timezone

from statusgate.status.content import (
    FEED_TEXT_LIMIT,
    ContentTransformer,
    clean_attachments,
    clean_plain_items,
    collapse_breaks,
)
from statusgate.status.domain.models import PhotoInfo, Post
from statusgate.status.entities import EntityExtractor
from statusgate.status.markup import BBCodeRenderer

BASE_URL = "http://localhost:8000"


def _transformer() -> ContentTransformer:
    return ContentTransformer(BBCodeRenderer(), EntityExtractor(BASE_URL), BASE_URL)


def _post(body: str, **fields) -> Post:
    values = {
        "id": 1,
        "uid": 1,
        "uri": "urn:item:1",
        "parent": 1,
        "guid": "g1",
        "plink": f"{BASE_URL}/display/g1",
        "created": datetime(2024, 5, 1, tzinfo=timezone.utc),
        "body": body,
    }
    values.update(fields)
    return Post(**values)


def test_collapse_breaks():
    assert collapse_breaks("<br><br>a<br><br><br>b<br>") == "a<br>b"


def test_clean_plain_items_strips_prefixed_links():
    body = "#[url=http://h/tag]tag[/url] @[url=http://h/bob]bob[/url]"

    assert clean_plain_items(body) == "#tag @bob"


def test_clean_plain_items_with_entities_uses_link_targets():
    body = "[url=http://a.example/x]title[/url]"

    assert clean_plain_items(body, include_entities=True) == (
        "[url=http://a.example/x]http://a.example/x[/url]"
    )


def test_clean_attachments():
    body = "intro [attachment url='http://a/x' title='T']text[/attachment] after"

    assert clean_attachments(body) == "intro\nhttp://a/x after"
    assert clean_attachments("[attachment url='http://a/x' title='T'][/attachment]") == "T\nhttp://a/x"


def test_convert_plain_post():
    converted = _transformer().convert(_post("[b]Hi[/b] there"))

    assert converted.text == "Hi there"
    assert converted.html == "<strong>Hi</strong> there"
    assert converted.entities == {}
    assert converted.attachments == []


def test_convert_prepends_title():
    converted = _transformer().convert(_post("[b]Hi[/b] there", title="Greeting"))

    assert converted.text == "Greeting\n\nHi there"
    assert converted.html == "<h4>Greeting</h4><br><strong>Hi</strong> there"


def test_title_already_in_text_is_not_repeated():
    converted = _transformer().convert(_post("Greeting everyone", title="Greeting"))

    assert converted.text == "Greeting everyone"


def test_feed_text_is_truncated_with_permalink():
    post = _post("x" * (FEED_TEXT_LIMIT + 200), network="feed")

    converted = _transformer().convert(post)

    assert converted.text == "x" * FEED_TEXT_LIMIT + "... \n" + post.plink


def test_block_elements_get_line_breaks():
    converted = _transformer().convert(_post("intro[quote]cited[/quote]outro[h2]Head[/h2]end"))

    assert converted.html == (
        "intro<br><blockquote>cited</blockquote><br>outro<br><h2>Head</h2><br>end"
    )


def test_empty_feed_post_shows_permalink():
    post = _post("", network="feed")

    converted = _transformer().convert(post)

    assert converted.html == f'<a href="{post.plink}" target="_blank">{post.plink}</a>'


def test_empty_non_feed_post_has_no_html():
    assert _transformer().convert(_post("")).html == ""


def test_convert_with_entities_and_attachments():
    image = "http://img.example/a.jpg"
    photos = {image: PhotoInfo(url=image, width=100, height=80, mimetype="image/jpeg", filesize=2048)}

    converted = _transformer().convert(
        _post(f"look [img]{image}[/img]"), include_entities=True, photos=photos
    )

    assert converted.text == f"look {image}"
    assert converted.attachments == [{"url": image, "mimetype": "image/jpeg", "size": 2048}]
    assert converted.entities["media"][0]["indices"] == [5, 5 + len(image)]
