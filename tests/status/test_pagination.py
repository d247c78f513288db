"""分页参数解析测试。"""

from statusgate.status.pagination import DEFAULT_COUNT, window_from_params


def test_defaults():
    window = window_from_params({})

    assert window.since_id == 0
    assert window.max_id == 0
    assert window.page == 0
    assert window.limit == DEFAULT_COUNT
    assert window.offset == 0


def test_page_is_one_based():
    window = window_from_params({"page": "3", "count": "20"})

    assert window.page == 2
    assert window.offset == 40


def test_page_zero_and_negative_clamp_to_first_page():
    assert window_from_params({"page": "0"}).page == 0
    assert window_from_params({"page": "-4"}).page == 0


def test_invalid_count_uses_default():
    assert window_from_params({"count": "abc"}).limit == DEFAULT_COUNT
    assert window_from_params({"count": "0"}).limit == DEFAULT_COUNT
    assert window_from_params({"count": "-5"}, default_count=50).limit == 50


def test_negative_ids_mean_unbounded():
    window = window_from_params({"since_id": "-1", "max_id": "-10"})

    assert window.since_id == 0
    assert window.max_id == 0


def test_admits():
    window = window_from_params({"since_id": "10", "max_id": "20"})

    assert not window.admits(10)
    assert window.admits(11)
    assert window.admits(20)
    assert not window.admits(21)
