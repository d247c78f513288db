"""私信端点测试。"""

from datetime import datetime, timezone

import pytest
from sqlalchemy import select

from statusgate.status.infrastructure.models import ContactOrm, MailOrm


@pytest.fixture
async def mails(async_session, seeded):
    """bob 发给 alice 一条私信，alice 回复一条。"""
    user = seeded["user"]
    bob = seeded["bob"]
    received = MailOrm(
        uid=user.id,
        contact_id=bob.id,
        from_name="Bob",
        from_url=bob.url,
        title="Hi",
        body="How are [b]you[/b]?",
        uri="urn:mail:1",
        parent_uri="urn:mail:1",
        created=datetime(2024, 5, 1, 10, 0, tzinfo=timezone.utc),
    )
    sent = MailOrm(
        uid=user.id,
        contact_id=bob.id,
        from_name="Alice",
        from_url=seeded["self_contact"].url,
        title="Re: Hi",
        body="Fine, thanks",
        uri="urn:mail:2",
        parent_uri="urn:mail:1",
        seen=True,
        created=datetime(2024, 5, 1, 11, 0, tzinfo=timezone.utc),
    )
    async_session.add_all([received, sent])
    await async_session.commit()
    return received, sent


async def test_inbox(async_client, seeded, auth_headers, mails):
    messages = (await async_client.get("/api/direct_messages.json", headers=auth_headers)).json()

    assert len(messages) == 1
    message = messages[0]
    assert message["id"] == mails[0].id
    assert message["text"] == "Hi\nHow are you?"
    assert message["title"] == ""
    assert message["sender_screen_name"] == "bob"
    assert message["recipient_screen_name"] == "alice"
    assert message["sender"]["id"] == seeded["public_bob"].id
    assert message["friendica_seen"] is False
    assert message["friendica_parent_uri"] == "urn:mail:1"


async def test_sentbox(async_client, auth_headers, mails):
    messages = (
        await async_client.get("/api/direct_messages/sent.json", headers=auth_headers)
    ).json()

    assert [message["id"] for message in messages] == [mails[1].id]
    assert messages[0]["sender_screen_name"] == "alice"
    assert messages[0]["recipient_screen_name"] == "bob"


async def test_all_and_conversation(async_client, auth_headers, mails):
    everything = (
        await async_client.get("/api/direct_messages/all.json", headers=auth_headers)
    ).json()
    conversation = (
        await async_client.get(
            "/api/direct_messages/conversation.json",
            params={"uri": "urn:mail:1"},
            headers=auth_headers,
        )
    ).json()

    assert [message["id"] for message in everything] == [mails[1].id, mails[0].id]
    assert [message["id"] for message in conversation] == [mails[1].id, mails[0].id]


async def test_get_text_variants(async_client, auth_headers, mails):
    plain = (
        await async_client.get(
            "/api/direct_messages.json", params={"getText": "plain"}, headers=auth_headers
        )
    ).json()[0]
    html = (
        await async_client.get(
            "/api/direct_messages.json", params={"getText": "html"}, headers=auth_headers
        )
    ).json()[0]

    assert plain["text"] == "How are you?"
    assert plain["title"] == "Hi"
    assert html["text"] == "How are <strong>you</strong>?"


async def test_without_user_objects(async_client, auth_headers, mails):
    message = (
        await async_client.get(
            "/api/direct_messages.json", params={"getUserObjects": "false"}, headers=auth_headers
        )
    ).json()[0]

    assert "sender" not in message
    assert "recipient" not in message


async def test_verbose_empty_result(async_client, auth_headers, mails):
    response = await async_client.get(
        "/api/direct_messages/conversation.json",
        params={"uri": "urn:none", "friendica_verbose": "true"},
        headers=auth_headers,
    )

    assert response.json() == {"result": "error", "message": "no mails available"}


async def test_filter_by_unknown_user_id(async_client, auth_headers, mails):
    messages = (
        await async_client.get(
            "/api/direct_messages/all.json", params={"user_id": "abc"}, headers=auth_headers
        )
    ).json()

    assert messages == []


async def test_new_message_by_screen_name(async_client, async_session, seeded, auth_headers):
    response = await async_client.post(
        "/api/direct_messages/new.json",
        data={"screen_name": "bob", "text": "Lunch tomorrow at noon?"},
        headers=auth_headers,
    )

    assert response.status_code == 200
    message = response.json()
    assert message["sender_screen_name"] == "alice"
    assert message["recipient_screen_name"] == "bob"
    assert message["recipient_id"] == seeded["public_bob"].id

    mail = await async_session.scalar(select(MailOrm).where(MailOrm.id == message["id"]))
    assert mail.title == "Lunch tomo..."
    assert mail.contact_id == seeded["bob"].id
    assert mail.parent_uri == mail.uri
    assert mail.seen is True


async def test_new_message_reply_keeps_conversation(async_client, async_session, auth_headers, mails):
    response = await async_client.post(
        "/api/direct_messages/new.json",
        data={"screen_name": "bob", "text": "One more thing", "replyto": str(mails[0].id)},
        headers=auth_headers,
    )

    mail = await async_session.scalar(select(MailOrm).where(MailOrm.id == response.json()["id"]))
    assert mail.parent_uri == "urn:mail:1"
    assert mail.title == "Hi"


async def test_new_message_to_unknown_screen_name(async_client, auth_headers, seeded):
    response = await async_client.post(
        "/api/direct_messages/new.json",
        data={"screen_name": "nobody", "text": "hello"},
        headers=auth_headers,
    )

    assert response.status_code == 400
    assert response.json()["error"] == "User not found."


async def test_new_message_to_stranger_reports_error_code(
    async_client, async_session, auth_headers, seeded
):
    stranger = ContactOrm(
        uid=0,
        url="https://far.example/profile/carol",
        nurl="http://far.example/profile/carol",
        nick="carol",
        name="Carol",
        network="dfrn",
    )
    async_session.add(stranger)
    await async_session.commit()

    response = await async_client.post(
        "/api/direct_messages/new.json",
        data={"user_id": str(stranger.id), "text": "hello"},
        headers=auth_headers,
    )

    assert response.status_code == 200
    assert response.json() == {"error": -1}


async def test_new_message_without_text(async_client, auth_headers, seeded):
    response = await async_client.post(
        "/api/direct_messages/new.json", data={"screen_name": "bob"}, headers=auth_headers
    )

    assert response.status_code == 500


async def test_destroy_returns_deleted_message(async_client, async_session, auth_headers, mails):
    response = await async_client.post(
        f"/api/direct_messages/destroy.json?id={mails[0].id}", headers=auth_headers
    )

    assert response.status_code == 200
    assert response.json()["id"] == mails[0].id
    assert await async_session.scalar(select(MailOrm).where(MailOrm.id == mails[0].id)) is None


async def test_destroy_verbose(async_client, auth_headers, mails):
    missing = await async_client.post(
        "/api/direct_messages/destroy.json?id=999&friendica_verbose=true", headers=auth_headers
    )
    wrong_parent = await async_client.post(
        f"/api/direct_messages/destroy.json?id={mails[0].id}"
        "&friendica_parenturi=urn:other&friendica_verbose=true",
        headers=auth_headers,
    )
    deleted = await async_client.post(
        f"/api/direct_messages/destroy.json?id={mails[0].id}"
        "&friendica_parenturi=urn:mail:1&friendica_verbose=true",
        headers=auth_headers,
    )

    assert missing.json() == {"result": "error", "message": "message id not in database"}
    assert wrong_parent.json() == {"result": "error", "message": "message id not in database"}
    assert deleted.json() == {"result": "ok", "message": "message deleted"}


async def test_destroy_without_id(async_client, auth_headers, mails):
    plain = await async_client.post("/api/direct_messages/destroy.json", headers=auth_headers)
    verbose = await async_client.post(
        "/api/direct_messages/destroy.json?friendica_verbose=true", headers=auth_headers
    )

    assert plain.status_code == 400
    assert plain.json()["error"] == "Message id not specified"
    assert verbose.json() == {
        "result": "error",
        "message": "message id or parenturi not specified",
    }


async def test_set_seen(async_client, async_session, auth_headers, mails):
    response = await async_client.post(
        f"/api/friendica/direct_messages_setseen.json?id={mails[0].id}", headers=auth_headers
    )
    missing = await async_client.post(
        "/api/friendica/direct_messages_setseen.json?id=999", headers=auth_headers
    )

    assert response.json() == {"result": "ok", "message": "message set to seen"}
    assert missing.json() == {"result": "error", "message": "message id not in database"}
    seen = await async_session.scalar(select(MailOrm.seen).where(MailOrm.id == mails[0].id))
    assert seen is True


async def test_search(async_client, auth_headers, mails):
    found = (
        await async_client.get(
            "/api/friendica/direct_messages_search.json",
            params={"searchstring": "thanks"},
            headers=auth_headers,
        )
    ).json()
    nothing = (
        await async_client.get(
            "/api/friendica/direct_messages_search.json",
            params={"searchstring": "elephant"},
            headers=auth_headers,
        )
    ).json()

    assert found["success"] is True
    assert [message["id"] for message in found["search_results"]] == [mails[1].id]
    assert found["search_results"][0]["sender_screen_name"] == "alice"
    assert nothing == {"success": False, "search_results": "nothing found"}


async def test_search_without_searchstring(async_client, auth_headers, mails):
    response = await async_client.get(
        "/api/friendica/direct_messages_search.json", headers=auth_headers
    )

    assert response.json() == {"result": "error", "message": "searchstring not specified"}
