"""回复链解析测试。"""

from datetime import datetime, timezone

from statusgate.status.domain.models import Actor, Post
from statusgate.status.threads import ThreadResolver

CREATED = datetime(2024, 5, 1, tzinfo=timezone.utc)


class FakePosts:
    def __init__(self, ids: dict[str, int], authors: dict[int, Actor]) -> None:
        self.ids = ids
        self.authors = authors

    async def find_id_by_uri(self, uid: int, uri: str) -> int | None:
        return self.ids.get(uri)

    async def author_of(self, item_id: int) -> Actor | None:
        return self.authors.get(item_id)


def _post(item_id: int, parent: int, uri: str, thr_parent: str) -> Post:
    return Post(id=item_id, uid=1, uri=uri, parent=parent, thr_parent=thr_parent, created=CREATED)


BOB = Actor(id=9, url="https://remote.example/profile/bob", nick="bob", name="Bob", created=CREATED)


async def test_root_post_is_not_a_reply():
    resolver = ThreadResolver(FakePosts({}, {}))

    in_reply_to = await resolver.resolve(_post(1, 1, "u1", "u1"))

    assert in_reply_to.is_empty
    assert in_reply_to.screen_name is None


async def test_reply_resolves_target_and_author():
    resolver = ThreadResolver(FakePosts({"u2": 2}, {2: BOB}))

    in_reply_to = await resolver.resolve(_post(3, 1, "u3", "u2"))

    assert in_reply_to.status_id == 2
    assert in_reply_to.status_id_str == "2"
    assert in_reply_to.user_id == 9
    assert in_reply_to.user_id_str == "9"
    assert in_reply_to.screen_name == "bob"


async def test_unknown_target_falls_back_to_thread_root():
    resolver = ThreadResolver(FakePosts({}, {}))

    in_reply_to = await resolver.resolve(_post(3, 1, "u3", "elsewhere"))

    assert in_reply_to.status_id == 1
    assert in_reply_to.user_id is None


async def test_reply_pointing_at_itself_is_ignored():
    resolver = ThreadResolver(FakePosts({"u1": 3}, {3: BOB}))

    in_reply_to = await resolver.resolve(_post(3, 1, "u3", "u1"))

    assert in_reply_to.is_empty
    assert in_reply_to.user_id is None
    assert in_reply_to.screen_name is None


async def test_author_nick_derived_from_url():
    author = BOB.model_copy(update={"nick": ""})
    resolver = ThreadResolver(FakePosts({"u2": 2}, {2: author}))

    in_reply_to = await resolver.resolve(_post(3, 1, "u3", "u2"))

    assert in_reply_to.screen_name == "bob"
