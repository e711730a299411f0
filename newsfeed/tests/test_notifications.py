import pytest
from fastapi import BackgroundTasks
from sqlalchemy import select

from newsfeed.models.notification import Notification
from newsfeed.repositories import communities as community_repo
from newsfeed.repositories import follows as follow_repo
from newsfeed.repositories import posts as post_repo
from newsfeed.schemas.notification_schema import NotificationCreate, NotificationMode, NotificationRef
from newsfeed.services.notification_service import (
    NotificationDispatcher,
    create_notification,
    notification_url,
    preview,
)
from newsfeed.websocket.manager import ws_manager


def test_preview_keeps_short_text():
    assert preview("short") == "short"
    assert preview("x" * 200) == "x" * 200


def test_preview_truncates_long_text():
    shortened = preview("y" * 250)

    assert len(shortened) == 200
    assert shortened.endswith("...")
    assert shortened[:197] == "y" * 197


def test_notification_urls():
    assert notification_url(NotificationRef(mode=NotificationMode.POST, ref_id=7)) == "https://socio.africa/post/7/"
    assert (
        notification_url(NotificationRef(mode=NotificationMode.COMMENT, ref_id=3, post_id=7))
        == "https://socio.africa/post/7/#3"
    )
    assert (
        notification_url(NotificationRef(mode=NotificationMode.REACT, ref_id=7, post_id=7))
        == "https://socio.africa/post/7/#7"
    )
    assert notification_url(NotificationRef(mode=NotificationMode.FOLLOW, ref_id=2)) == "https://socio.africa/profile/2"


@pytest.mark.asyncio
async def test_post_notifies_followers(test_client, test_db, viewer, make_user):
    author = await make_user("author")
    fan = await make_user("fan")
    stranger = await make_user("stranger")
    await follow_repo.create_follow(test_db, fan.id, author.id)
    await test_db.commit()

    viewer.login(author)
    long_text = "z" * 300
    response = await test_client.post("/api/v1/posts", data={"content": long_text})
    assert response.status_code == 201
    post_id = response.json()["id"]

    rows = (await test_db.execute(select(Notification))).scalars().all()
    assert [n.user_id for n in rows] == [fan.id]
    assert rows[0].ref_mode == "post"
    assert rows[0].ref_id == post_id
    assert rows[0].content == preview(long_text)
    assert stranger.id not in [n.user_id for n in rows]


@pytest.mark.asyncio
async def test_private_post_notifies_nobody(test_client, test_db, viewer, make_user):
    author = await make_user("author")
    fan = await make_user("fan")
    await follow_repo.create_follow(test_db, fan.id, author.id)
    await test_db.commit()

    viewer.login(author)
    await test_client.post("/api/v1/posts", data={"content": "secret", "visibility_mode": "private"})

    assert (await test_db.execute(select(Notification))).scalars().all() == []


@pytest.mark.asyncio
async def test_community_post_notifies_members(test_client, test_db, viewer, make_user):
    author = await make_user("author")
    member = await make_user("member")
    follower = await make_user("follower")
    community = await community_repo.create_community(test_db, name="Club", description="d")
    await community_repo.create_membership(test_db, author.id, community.id, role="super_admin")
    await community_repo.create_membership(test_db, member.id, community.id)
    await follow_repo.create_follow(test_db, follower.id, author.id)
    await test_db.commit()

    viewer.login(author)
    response = await test_client.post(
        "/api/v1/posts",
        data={"content": "club news", "visibility_mode": "community", "community_id": str(community.id)},
    )
    assert response.status_code == 201

    rows = (await test_db.execute(select(Notification))).scalars().all()
    assert [n.user_id for n in rows] == [member.id]


@pytest.mark.asyncio
async def test_notification_endpoints(test_client, test_db, viewer, make_user):
    alice = await make_user("alice")
    bob = await make_user("bob")
    post = await post_repo.create_post(test_db, user_id=alice.id, content="hello")
    await test_db.commit()

    ref = NotificationRef(mode=NotificationMode.REACT, ref_id=post.id, post_id=post.id)
    first = await create_notification(
        test_db, NotificationCreate(user_id=alice.id, initiated_by=bob.id, content="Bob Tester liked your post", ref=ref)
    )
    second = await create_notification(
        test_db, NotificationCreate(user_id=alice.id, initiated_by=bob.id, content="again", ref=ref)
    )
    others = await create_notification(
        test_db, NotificationCreate(user_id=bob.id, initiated_by=alice.id, content="for bob", ref=ref)
    )

    viewer.login(alice)
    data = (await test_client.get("/api/v1/notifications")).json()
    assert [n["id"] for n in data] == [second.id, first.id]
    assert data[1]["initiated_by"]["username"] == "bob"
    assert data[1]["url"] == f"https://socio.africa/post/{post.id}/#{post.id}"
    assert all(n["read"] is False for n in data)

    response = await test_client.put(f"/api/v1/notifications/{first.id}/read")
    assert response.status_code == 200
    assert response.json()["read"] is True

    response = await test_client.put(f"/api/v1/notifications/{others.id}/read")
    assert response.status_code == 404

    response = await test_client.put("/api/v1/notifications/read-all")
    assert response.json()["message"] == "Marked 1 notifications as read"

    data = (await test_client.get("/api/v1/notifications")).json()
    assert all(n["read"] is True for n in data)


@pytest.mark.asyncio
async def test_create_notification_pushes_to_live_connections(test_db, make_user, monkeypatch):
    alice = await make_user("alice")
    bob = await make_user("bob")
    pushed = []

    async def fake_send(user_id, payload):
        pushed.append((user_id, payload))
        return 1

    monkeypatch.setattr(ws_manager, "send_notification", fake_send)

    ref = NotificationRef(mode=NotificationMode.FOLLOW, ref_id=bob.id)
    await create_notification(
        test_db, NotificationCreate(user_id=alice.id, initiated_by=bob.id, content="followed", ref=ref)
    )

    assert len(pushed) == 1
    user_id, payload = pushed[0]
    assert user_id == alice.id
    assert payload["content"] == "followed"
    assert payload["url"] == f"https://socio.africa/profile/{bob.id}"


@pytest.mark.asyncio
async def test_dispatcher_swallows_job_failures(session_factory):
    dispatcher = NotificationDispatcher(BackgroundTasks(), session_factory)

    async def broken_job(db, **kwargs):
        raise RuntimeError("boom")

    await dispatcher._run(broken_job, post_id=1)


@pytest.mark.asyncio
async def test_dispatcher_schedules_in_background(session_factory, make_user):
    author = await make_user("author")
    fan = await make_user("fan")
    tasks = BackgroundTasks()
    dispatcher = NotificationDispatcher(tasks, session_factory)

    dispatcher.reaction_added(actor_id=fan.id, recipient_id=author.id, kind="like", target_id=5, post_id=5)
    assert len(tasks.tasks) == 1

    async with session_factory() as db:
        assert (await db.execute(select(Notification))).scalars().all() == []

    await tasks()

    async with session_factory() as db:
        notification = (await db.execute(select(Notification))).scalar_one()
    assert notification.content == "Fan Tester liked your post"
    assert notification.user_id == author.id
