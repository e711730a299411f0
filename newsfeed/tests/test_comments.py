import pytest
from sqlalchemy import select

from newsfeed.models.notification import Notification
from newsfeed.repositories import comments as comment_repo
from newsfeed.repositories import posts as post_repo
from newsfeed.services.comment_service import CommentService


async def _post_with_comments(test_db, author_id):
    post = await post_repo.create_post(test_db, user_id=author_id, content="a post")
    first = await comment_repo.create_comment(test_db, post_id=post.id, user_id=author_id, content="1")
    second = await comment_repo.create_comment(
        test_db, post_id=post.id, user_id=author_id, content="2", parent_comment_id=first.id
    )
    third = await comment_repo.create_comment(
        test_db, post_id=post.id, user_id=author_id, content="3", parent_comment_id=second.id
    )
    await test_db.commit()
    return post, first, second, third


@pytest.mark.asyncio
async def test_comment_tree_drops_reply_to_reply(test_db, make_user):
    author = await make_user("author")
    post, first, second, third = await _post_with_comments(test_db, author.id)

    comments = await comment_repo.list_post_comments(test_db, post.id)
    tree = await CommentService(test_db).build_comment_tree(comments, author.id)

    assert [c.id for c in tree] == [first.id]
    assert [r.id for r in tree[0].replies] == [second.id]
    assert tree[0].replies[0].replies == []
    assert third.id not in [r.id for r in tree[0].replies]


@pytest.mark.asyncio
async def test_comment_tree_keeps_input_order(test_db, make_user):
    author = await make_user("author")
    post = await post_repo.create_post(test_db, user_id=author.id, content="a post")
    a = await comment_repo.create_comment(test_db, post_id=post.id, user_id=author.id, content="a")
    b = await comment_repo.create_comment(test_db, post_id=post.id, user_id=author.id, content="b")
    a1 = await comment_repo.create_comment(
        test_db, post_id=post.id, user_id=author.id, content="a1", parent_comment_id=a.id
    )
    b1 = await comment_repo.create_comment(
        test_db, post_id=post.id, user_id=author.id, content="b1", parent_comment_id=b.id
    )
    a2 = await comment_repo.create_comment(
        test_db, post_id=post.id, user_id=author.id, content="a2", parent_comment_id=a.id
    )
    await test_db.commit()

    comments = await comment_repo.list_post_comments(test_db, post.id)
    tree = await CommentService(test_db).build_comment_tree(comments)

    assert [c.id for c in tree] == [a.id, b.id]
    assert [r.id for r in tree[0].replies] == [a1.id, a2.id]
    assert [r.id for r in tree[1].replies] == [b1.id]


@pytest.mark.asyncio
async def test_comment_tree_empty(test_db):
    assert await CommentService(test_db).build_comment_tree([], None) == []


@pytest.mark.asyncio
async def test_comment_decoration(test_db, make_user):
    author = await make_user("author", image=None, bio="hi")
    post, first, _, _ = await _post_with_comments(test_db, author.id)

    parsed = await CommentService(test_db).parse_comment(first, None)

    assert parsed.user.username == "author"
    assert parsed.user.image is None
    assert parsed.bookmarked is False
    assert parsed.reactions.like.count == 0
    assert "password" not in parsed.user.model_dump()
    assert "email" not in parsed.user.model_dump()


@pytest.mark.asyncio
async def test_create_comment_and_reply(test_client, test_db, viewer, make_user):
    author = await make_user("author")
    commenter = await make_user("commenter")
    replier = await make_user("replier")
    post = await post_repo.create_post(test_db, user_id=author.id, content="a post")
    await test_db.commit()

    viewer.login(commenter)
    response = await test_client.post("/api/v1/comments", json={"post_id": post.id, "content": "nice"})
    assert response.status_code == 201
    comment = response.json()
    assert comment["user"]["username"] == "commenter"
    assert comment["replies"] == []

    viewer.login(replier)
    response = await test_client.post(
        "/api/v1/comments",
        json={"post_id": post.id, "content": "agreed", "parent_comment_id": comment["id"]},
    )
    assert response.status_code == 201

    response = await test_client.get(f"/api/v1/comments/{comment['id']}")
    assert response.status_code == 200
    assert [r["content"] for r in response.json()["replies"]] == ["agreed"]

    response = await test_client.get(f"/api/v1/posts/{post.id}")
    data = response.json()
    assert data["comments_count"] == 2
    assert len(data["comments"]) == 1
    assert data["comments"][0]["replies"][0]["user"]["username"] == "replier"


@pytest.mark.asyncio
async def test_parent_comment_must_belong_to_post(test_client, test_db, viewer, make_user):
    author = await make_user("author")
    post = await post_repo.create_post(test_db, user_id=author.id, content="one")
    other = await post_repo.create_post(test_db, user_id=author.id, content="two")
    foreign = await comment_repo.create_comment(test_db, post_id=other.id, user_id=author.id, content="x")
    await test_db.commit()

    viewer.login(author)
    response = await test_client.post(
        "/api/v1/comments",
        json={"post_id": post.id, "content": "reply", "parent_comment_id": foreign.id},
    )
    assert response.status_code == 404

    response = await test_client.post(
        "/api/v1/comments",
        json={"post_id": post.id, "content": "reply", "parent_comment_id": 999},
    )
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_comment_on_missing_post(test_client, viewer, make_user):
    viewer.login(await make_user("author"))

    response = await test_client.post("/api/v1/comments", json={"post_id": 999, "content": "hi"})
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_only_author_can_edit_comment(test_client, test_db, viewer, make_user):
    author = await make_user("author")
    stranger = await make_user("stranger")
    post = await post_repo.create_post(test_db, user_id=author.id, content="a post")
    comment = await comment_repo.create_comment(test_db, post_id=post.id, user_id=author.id, content="old")
    await test_db.commit()

    viewer.login(stranger)
    response = await test_client.put(f"/api/v1/comments/{comment.id}", json={"content": "hacked"})
    assert response.status_code == 403

    viewer.login(author)
    response = await test_client.put(f"/api/v1/comments/{comment.id}", json={"content": "new"})
    assert response.status_code == 200
    assert response.json()["content"] == "new"


@pytest.mark.asyncio
async def test_reply_notifies_parent_author_and_post_author(test_client, test_db, viewer, make_user):
    author = await make_user("author")
    commenter = await make_user("commenter")
    replier = await make_user("replier")
    post = await post_repo.create_post(test_db, user_id=author.id, content="a post")
    parent = await comment_repo.create_comment(test_db, post_id=post.id, user_id=commenter.id, content="c")
    await test_db.commit()

    viewer.login(replier)
    response = await test_client.post(
        "/api/v1/comments",
        json={"post_id": post.id, "content": "reply", "parent_comment_id": parent.id},
    )
    assert response.status_code == 201

    rows = (await test_db.execute(select(Notification).order_by(Notification.id))).scalars().all()
    assert sorted(n.user_id for n in rows) == sorted([author.id, commenter.id])
    assert all(n.ref_mode == "comment" and n.ref_post_id == post.id for n in rows)
    assert "replied to your comment" in next(n.content for n in rows if n.user_id == commenter.id)


@pytest.mark.asyncio
async def test_author_commenting_own_post_is_not_notified(test_client, test_db, viewer, make_user):
    author = await make_user("author")
    post = await post_repo.create_post(test_db, user_id=author.id, content="a post")
    await test_db.commit()

    viewer.login(author)
    await test_client.post("/api/v1/comments", json={"post_id": post.id, "content": "me"})

    rows = (await test_db.execute(select(Notification))).scalars().all()
    assert rows == []


@pytest.mark.asyncio
async def test_post_author_replied_to_gets_reply_and_comment_notifications(test_client, test_db, viewer, make_user):
    author = await make_user("author")
    replier = await make_user("replier")
    post = await post_repo.create_post(test_db, user_id=author.id, content="a post")
    parent = await comment_repo.create_comment(test_db, post_id=post.id, user_id=author.id, content="c")
    await test_db.commit()

    viewer.login(replier)
    response = await test_client.post(
        "/api/v1/comments",
        json={"post_id": post.id, "content": "reply", "parent_comment_id": parent.id},
    )
    assert response.status_code == 201

    rows = (await test_db.execute(select(Notification).order_by(Notification.id))).scalars().all()
    assert [n.user_id for n in rows] == [author.id, author.id]
    assert "replied to your comment" in rows[0].content
    assert "commented on your post" in rows[1].content
