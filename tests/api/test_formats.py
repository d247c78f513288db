"""输出格式编码测试。"""

import json

from statusgate.api.context import ApiResult
from statusgate.api.errors import BadRequest, Unauthorized
from statusgate.api.formats import (
    XML_DECLARATION,
    detect_format,
    error_envelope,
    render,
    render_error,
    to_json,
    to_xml,
)


def test_detect_format_strips_suffix():
    assert detect_format("statuses/show/5.xml") == ("xml", "statuses/show/5")
    assert detect_format("statuses/home_timeline.atom") == ("atom", "statuses/home_timeline")
    assert detect_format("help/test") == ("json", "help/test")
    assert detect_format("statuses/show/5.html") == ("json", "statuses/show/5.html")


def test_bare_root_has_no_namespaces():
    assert to_xml(ApiResult("ok", {"ok": "true"})) == "<ok>true</ok>"


def test_namespaced_root_declares_namespaces():
    xml = to_xml(ApiResult("user", {"user": {"id": 1}}))

    assert xml.startswith("<user ")
    assert 'xmlns="http://api.twitter.com"' in xml
    assert 'xmlns:statusnet="http://status.net/schema/api/1/"' in xml
    assert 'xmlns:friendica="http://friendi.ca/schema/api/1/"' in xml
    assert "<id>1</id>" in xml


def test_booleans_and_none_in_xml():
    xml = to_xml(ApiResult("status", {"status": {"favorited": True, "truncated": False, "geo": None}}))

    assert "<favorited>true</favorited>" in xml
    assert "<truncated>false</truncated>" in xml
    assert "<geo></geo>" in xml or "<geo/>" in xml


def test_list_content_repeats_child_element():
    xml = to_xml(ApiResult("statuses", {"status": [{"id": 1}, {"id": 2}]}))

    assert xml.count("<status>") == 2
    assert "<id>1</id>" in xml and "<id>2</id>" in xml


def test_prefixed_keys_use_namespace():
    xml = to_xml(ApiResult("status", {"status": {"statusnet_html": "<b>x</b>", "friendica_owner": {"id": 3}}}))

    assert "<statusnet:html>&lt;b&gt;x&lt;/b&gt;</statusnet:html>" in xml
    assert "<friendica:owner><id>3</id></friendica:owner>" in xml


def test_nested_list_item_names():
    xml = to_xml(ApiResult("status", {"status": {"entities": {"urls": [{"indices": [6, 26]}]}}}))

    assert "<urls><url><indices><indice>6</indice><indice>26</indice></indices></url></urls>" in xml


def test_ids_list():
    assert to_xml(ApiResult("ids", {"id": [3, 5]})) == "<ids><id>3</id><id>5</id></ids>"


def test_extra_appended_to_root():
    result = ApiResult("statuses", {"status": []}, {"rss": {"base": "http://x"}})

    assert "<rss><base>http://x</base></rss>" in to_xml(result)


def test_json_emits_inner_value():
    result = ApiResult("statuses", {"status": [{"id": 1}]})

    assert json.loads(to_json(result)) == [{"id": 1}]


def test_jsonp_callback():
    assert to_json(ApiResult("ok", {"ok": "ok"}), "cb") == 'cb("ok")'
    assert to_json(ApiResult("ok", {"ok": "ok"}), "alert(1)") == '"ok"'


def test_render_content_types():
    result = ApiResult("ok", {"ok": "ok"})

    assert render(result, "json").media_type == "application/json"
    assert render(result, "xml").media_type == "text/xml"
    assert render(result, "rss").media_type == "application/rss+xml"
    assert render(result, "atom").media_type == "application/atom+xml"


def test_feed_formats_carry_xml_declaration():
    body = render(ApiResult("ok", {"ok": "true"}), "rss").body.decode("utf-8")

    assert body.startswith(XML_DECLARATION)
    assert not render(ApiResult("ok", {"ok": "true"}), "xml").body.decode("utf-8").startswith("<?xml")


def test_error_envelope():
    envelope = error_envelope(BadRequest("Invalid item."), "api/favorites/create.json")

    assert envelope.payload == {
        "error": "Invalid item.",
        "code": "400 Bad Request",
        "request": "api/favorites/create.json",
    }


def test_error_without_message_uses_description():
    envelope = error_envelope(BadRequest(), "api/x")

    assert envelope.payload["error"] == "Bad Request"


def test_render_error_keeps_status_and_headers():
    response = render_error(Unauthorized("This API requires login", realm="Site"), "xml", "api/x.xml")

    assert response.status_code == 401
    assert response.headers["www-authenticate"] == 'Basic realm="Site"'
    body = response.body.decode("utf-8")
    assert "<error>This API requires login</error>" in body
    assert "<code>401 Unauthorized</code>" in body


def test_json_error_is_not_wrapped_in_status():
    response = render_error(BadRequest("Invalid item."), "json", "api/favorites/create.json")

    assert json.loads(response.body) == {
        "error": "Invalid item.",
        "code": "400 Bad Request",
        "request": "api/favorites/create.json",
    }
