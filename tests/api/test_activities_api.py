"""条目互动端点测试。"""

from sqlalchemy import func, select

from statusgate.status.domain.models import Verb
from statusgate.status.infrastructure.models import ItemOrm


async def _activities(async_client, auth_headers, item_id: int) -> dict:
    status = (
        await async_client.get(f"/api/statuses/show/{item_id}.json", headers=auth_headers)
    ).json()
    return {
        kind: [user["screen_name"] for user in users]
        for kind, users in status["friendica_activities"].items()
    }


async def test_like_and_unlike(async_client, auth_headers, make_item):
    await make_item(5, "likeable")

    response = await async_client.post("/api/friendica/activity/like.json?id=5", headers=auth_headers)

    assert response.status_code == 200
    assert response.json() == "ok"
    assert (await _activities(async_client, auth_headers, 5))["like"] == ["alice"]

    response = await async_client.post("/api/friendica/activity/unlike.json?id=5", headers=auth_headers)

    assert response.status_code == 200
    assert (await _activities(async_client, auth_headers, 5))["like"] == []


async def test_repeated_like_is_recorded_once(async_client, async_session, auth_headers, make_item):
    await make_item(5, "likeable")

    for _ in range(2):
        await async_client.post("/api/friendica/activity/like.json?id=5", headers=auth_headers)

    count = await async_session.scalar(
        select(func.count())
        .select_from(ItemOrm)
        .where(ItemOrm.verb == Verb.like.value, ~ItemOrm.deleted)
    )
    assert count == 1


async def test_dislike_replaces_like(async_client, auth_headers, make_item):
    await make_item(5, "divisive")

    await async_client.post("/api/friendica/activity/like.json?id=5", headers=auth_headers)
    await async_client.post("/api/friendica/activity/dislike.json?id=5", headers=auth_headers)

    activities = await _activities(async_client, auth_headers, 5)
    assert activities["like"] == []
    assert activities["dislike"] == ["alice"]


async def test_attendance_keeps_like(async_client, auth_headers, make_item):
    await make_item(5, "party on friday")

    await async_client.post("/api/friendica/activity/like.json?id=5", headers=auth_headers)
    await async_client.post("/api/friendica/activity/attendmaybe.json?id=5", headers=auth_headers)
    await async_client.post("/api/friendica/activity/attendyes.json?id=5", headers=auth_headers)

    activities = await _activities(async_client, auth_headers, 5)
    assert activities["like"] == ["alice"]
    assert activities["attendyes"] == ["alice"]
    assert activities["attendmaybe"] == []


async def test_activity_on_missing_item(async_client, auth_headers):
    response = await async_client.post("/api/friendica/activity/like.json?id=999", headers=auth_headers)

    assert response.status_code == 400
    assert response.json()["error"] == "Error adding activity"


async def test_activity_xml_ok(async_client, auth_headers, make_item):
    await make_item(5, "likeable")

    response = await async_client.post("/api/friendica/activity/like.xml?id=5", headers=auth_headers)

    assert response.status_code == 200
    assert "<ok>true</ok>" in response.text


async def test_activity_requires_post(async_client, auth_headers, make_item):
    await make_item(5, "likeable")

    response = await async_client.get("/api/friendica/activity/like.json?id=5", headers=auth_headers)

    assert response.status_code == 405
