import pytest
from sqlalchemy import select

from newsfeed.exceptions import NotFoundError
from newsfeed.models.notification import Notification
from newsfeed.models.reaction import Reaction
from newsfeed.repositories import comments as comment_repo
from newsfeed.repositories import posts as post_repo
from newsfeed.schemas.reaction_schema import ReactionKind
from newsfeed.services.reaction_service import ReactionService, aggregate_reactions
from newsfeed.services.share_service import ShareService


def _reactions(*pairs):
    return [Reaction(user_id=user_id, kind=kind) for user_id, kind in pairs]


def test_aggregate_counts_and_viewer_flags():
    reactions = _reactions((1, "like"), (2, "like"), (3, "dislike"))

    summary = aggregate_reactions(reactions, viewer_id=2)

    assert summary.like.count == 2
    assert summary.like.liked is True
    assert summary.dislike.count == 1
    assert summary.dislike.disliked is False


def test_aggregate_counts_do_not_depend_on_viewer():
    reactions = _reactions((1, "like"), (2, "dislike"), (3, "like"))

    for viewer_id in (None, 1, 2, 99):
        summary = aggregate_reactions(reactions, viewer_id)
        assert summary.like.count == 2
        assert summary.dislike.count == 1


def test_aggregate_anonymous_viewer_has_no_reactions():
    summary = aggregate_reactions(_reactions((1, "like"), (1, "dislike")), None)

    assert summary.like.liked is False
    assert summary.dislike.disliked is False


def test_aggregate_empty_list():
    summary = aggregate_reactions([], viewer_id=1)

    assert summary.model_dump() == {
        "like": {"count": 0, "liked": False},
        "dislike": {"count": 0, "disliked": False},
    }


@pytest.mark.asyncio
async def test_toggle_same_kind_twice_restores_reactions(test_db, make_user):
    author = await make_user("author")
    fan = await make_user("fan")
    post = await post_repo.create_post(test_db, user_id=author.id, content="hello")
    await test_db.commit()

    service = ReactionService(test_db)
    outcome, summary = await service.toggle_reaction(fan.id, ReactionKind.LIKE, post_id=post.id)
    assert outcome == "added"
    assert summary.like.count == 1 and summary.like.liked

    outcome, summary = await service.toggle_reaction(fan.id, ReactionKind.LIKE, post_id=post.id)
    assert outcome == "removed"
    assert summary.like.count == 0 and not summary.like.liked

    rows = (await test_db.execute(select(Reaction))).scalars().all()
    assert rows == []


@pytest.mark.asyncio
async def test_like_and_dislike_are_mutually_exclusive(test_db, make_user):
    author = await make_user("author")
    fan = await make_user("fan")
    post = await post_repo.create_post(test_db, user_id=author.id, content="hello")
    await test_db.commit()

    service = ReactionService(test_db)
    await service.toggle_reaction(fan.id, ReactionKind.LIKE, post_id=post.id)
    outcome, summary = await service.toggle_reaction(fan.id, ReactionKind.DISLIKE, post_id=post.id)

    assert outcome == "added"
    assert summary.like.count == 0
    assert summary.dislike.count == 1 and summary.dislike.disliked
    kinds = [r.kind for r in (await test_db.execute(select(Reaction))).scalars()]
    assert kinds == ["dislike"]


@pytest.mark.asyncio
async def test_toggle_on_comment(test_db, make_user):
    author = await make_user("author")
    post = await post_repo.create_post(test_db, user_id=author.id, content="hello")
    comment = await comment_repo.create_comment(test_db, post_id=post.id, user_id=author.id, content="first")
    await test_db.commit()

    outcome, summary = await ReactionService(test_db).toggle_reaction(
        author.id, ReactionKind.DISLIKE, comment_id=comment.id
    )

    assert outcome == "added"
    assert summary.dislike.count == 1
    reaction = (await test_db.execute(select(Reaction))).scalar_one()
    assert reaction.comment_id == comment.id and reaction.post_id is None


@pytest.mark.asyncio
async def test_toggle_missing_target(test_db, make_user):
    user = await make_user("someone")

    with pytest.raises(NotFoundError):
        await ReactionService(test_db).toggle_reaction(user.id, ReactionKind.LIKE, post_id=404)
    with pytest.raises(NotFoundError):
        await ReactionService(test_db).toggle_reaction(user.id, ReactionKind.LIKE, comment_id=404)


@pytest.mark.asyncio
async def test_like_through_api_notifies_author(test_client, test_db, viewer, make_user):
    author = await make_user("author")
    fan = await make_user("fan")
    onlooker = await make_user("onlooker")
    post = await post_repo.create_post(test_db, user_id=author.id, content="hello world")
    await test_db.commit()

    viewer.login(fan)
    response = await test_client.put("/api/v1/reactions", json={"post_id": post.id, "reaction": "like"})
    assert response.status_code == 200
    assert response.json()["outcome"] == "added"

    response = await test_client.get(f"/api/v1/posts/{post.id}")
    data = response.json()
    assert data["reactions"]["like"] == {"count": 1, "liked": True}
    assert data["reactions"]["dislike"] == {"count": 0, "disliked": False}

    viewer.login(onlooker)
    data = (await test_client.get(f"/api/v1/posts/{post.id}")).json()
    assert data["reactions"]["like"] == {"count": 1, "liked": False}

    notifications = (await test_db.execute(select(Notification))).scalars().all()
    assert len(notifications) == 1
    assert notifications[0].user_id == author.id
    assert notifications[0].initiated_by == fan.id
    assert notifications[0].ref_mode == "react"
    assert notifications[0].ref_id == post.id
    assert notifications[0].ref_post_id == post.id


@pytest.mark.asyncio
async def test_self_reaction_is_not_notified(test_client, test_db, viewer, make_user):
    author = await make_user("author")
    post = await post_repo.create_post(test_db, user_id=author.id, content="my own post")
    await test_db.commit()

    viewer.login(author)
    response = await test_client.put("/api/v1/reactions", json={"post_id": post.id, "reaction": "like"})
    assert response.status_code == 200

    notifications = (await test_db.execute(select(Notification))).scalars().all()
    assert notifications == []


@pytest.mark.asyncio
async def test_removing_a_reaction_is_not_notified(test_client, test_db, viewer, make_user):
    author = await make_user("author")
    fan = await make_user("fan")
    post = await post_repo.create_post(test_db, user_id=author.id, content="hello")
    await test_db.commit()

    viewer.login(fan)
    await test_client.put("/api/v1/reactions", json={"post_id": post.id, "reaction": "like"})
    response = await test_client.put("/api/v1/reactions", json={"post_id": post.id, "reaction": "like"})
    assert response.json()["outcome"] == "removed"

    notifications = (await test_db.execute(select(Notification))).scalars().all()
    assert len(notifications) == 1


@pytest.mark.asyncio
async def test_reaction_request_needs_exactly_one_target(test_client, viewer, make_user):
    viewer.login(await make_user("fan"))

    response = await test_client.put("/api/v1/reactions", json={"reaction": "like"})
    assert response.status_code == 422

    response = await test_client.put(
        "/api/v1/reactions", json={"post_id": 1, "comment_id": 1, "reaction": "like"}
    )
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_reaction_requires_authentication(test_client):
    response = await test_client.put("/api/v1/reactions", json={"post_id": 1, "reaction": "like"})
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_reacting_to_a_share_pointer_reacts_to_the_original(test_client, test_db, viewer, make_user):
    author = await make_user("author")
    sharer = await make_user("sharer")
    reader = await make_user("reader")
    original = await post_repo.create_post(test_db, user_id=author.id, content="spread this")
    await test_db.commit()
    _, pointer = await ShareService(test_db).toggle_share(sharer.id, original.id)

    viewer.login(reader)
    response = await test_client.put("/api/v1/reactions", json={"post_id": pointer.id, "reaction": "like"})
    assert response.json()["reactions"]["like"] == {"count": 1, "liked": True}

    for post_id in (pointer.id, original.id):
        data = (await test_client.get(f"/api/v1/posts/{post_id}")).json()
        assert data["reactions"]["like"] == {"count": 1, "liked": True}

    notifications = (await test_db.execute(select(Notification))).scalars().all()
    assert [(n.user_id, n.ref_id) for n in notifications] == [(author.id, original.id)]
