"""正文标记渲染测试。"""

from statusgate.status.markup import (
    BBCodeRenderer,
    clean_picture_links,
    link_bare_urls,
    parse_attributes,
)


def test_parse_attributes_quoting_styles():
    attributes = parse_attributes(" author='a b' profile=\"c\" size=3 broken")

    assert attributes == {"author": "a b", "profile": "c", "size": "3"}


def test_parse_attributes_decodes_entities_and_keeps_first():
    attributes = parse_attributes("author='O&#039;Brien' author='other'")

    assert attributes == {"author": "O'Brien"}


def test_parse_attributes_unterminated_quote():
    assert parse_attributes("title='open ended") == {"title": "open ended"}


def test_clean_picture_links():
    text = "[url=http://a/page][img]http://a/1.png[/img][/url]"

    assert clean_picture_links(text) == "[img]http://a/1.png[/img]"


def test_link_bare_urls_skips_tagged_links():
    text = "x http://a/b [url=http://c/d]d[/url]"

    assert link_bare_urls(text) == "x [url=http://a/b]http://a/b[/url] [url=http://c/d]d[/url]"


def test_render_basic_tags():
    rendered = BBCodeRenderer().render("[b]Hi[/b] [i]there[/i]")

    assert rendered.html == "<strong>Hi</strong> <em>there</em>"
    assert rendered.plaintext == "Hi there"


def test_render_link_and_image():
    rendered = BBCodeRenderer().render(
        "[url=http://a.example/c]link[/url]\n[img]http://a.example/1.png[/img]"
    )

    assert '<a href="http://a.example/c" target="_blank">link</a>' in rendered.html
    assert '<img src="http://a.example/1.png" alt="Image/photo" />' in rendered.html
    assert rendered.plaintext == "link\nhttp://a.example/1.png"


def test_render_escapes_html():
    rendered = BBCodeRenderer().render("<script>x</script>")

    assert "<script>" not in rendered.html
    assert rendered.plaintext == "<script>x</script>"


def test_render_share_block():
    rendered = BBCodeRenderer().render(
        "[share author='Bob' profile='http://r.example/bob']shared text[/share]"
    )

    assert "♲ Bob:" in rendered.plaintext
    assert "shared text" in rendered.plaintext
    assert '<a href="http://r.example/bob" target="_blank">Bob</a>' in rendered.html


def test_render_attachment_as_link():
    rendered = BBCodeRenderer().render(
        "[attachment type='link' url='http://a.example/x' title='A page']summary[/attachment]"
    )

    assert '<a href="http://a.example/x" target="_blank">A page</a>' in rendered.html
