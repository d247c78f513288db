"""发布参数验证器测试。"""

from returns.result import Failure, Success

from statusgate.status.validator import StatusUpdateValidator


def _validate(params: dict, max_length: int = 200):
    return StatusUpdateValidator(max_length).validate(params)


def test_valid_status():
    result = _validate({"status": "  hello\r\nworld  ", "source": "Twidere"})

    assert isinstance(result, Success)
    draft = result.unwrap()
    assert draft.body == "hello\nworld"
    assert draft.source == "Twidere"
    assert not draft.is_reply


def test_missing_status():
    result = _validate({"status": "   "})

    assert isinstance(result, Failure)
    assert result.failure().missing_fields == ["status"]


def test_html_status_unsupported():
    result = _validate({"status": "x", "htmlstatus": "<b>x</b>"})

    assert isinstance(result, Failure)
    assert "HTML" in result.failure().message


def test_too_long():
    result = _validate({"status": "x" * 11}, max_length=10)

    assert isinstance(result, Failure)
    assert result.failure().message == "Status is longer than 10 characters"


def test_zero_max_length_means_unlimited():
    assert isinstance(_validate({"status": "x" * 5000}, max_length=0), Success)


def test_reply_by_id_and_by_uri():
    by_id = _validate({"status": "x", "in_reply_to_status_id": "42"}).unwrap()
    by_uri = _validate({"status": "x", "in_reply_to_status_id": "urn:item:42"}).unwrap()

    assert by_id.parent_id == 42 and by_id.is_reply
    assert by_uri.parent_id is None and by_uri.parent_uri == "urn:item:42" and by_uri.is_reply


def test_minus_one_is_not_a_reply():
    draft = _validate({"status": "x", "in_reply_to_status_id": "-1"}).unwrap()

    assert not draft.is_reply


def test_coordinates():
    draft = _validate({"status": "x", "lat": "52.5", "long": "13.4"}).unwrap()

    assert draft.coord == "52.5 13.4"
    assert isinstance(_validate({"status": "x", "lat": "north", "long": "13.4"}), Failure)
