import pytest

from newsfeed.repositories import comments as comment_repo
from newsfeed.repositories import posts as post_repo
from newsfeed.schemas.community_schema import CommunityCreate
from newsfeed.services.community_service import CommunityService
from newsfeed.services.share_service import ShareService


@pytest.mark.asyncio
async def test_search_posts_skips_private_posts_and_shares(test_client, test_db, make_user):
    alice = await make_user("alice")
    bob = await make_user("bob")
    public = await post_repo.create_post(test_db, user_id=alice.id, content="Lagos traffic today")
    await post_repo.create_post(test_db, user_id=alice.id, content="lagos secret", visibility_mode="private")
    await post_repo.create_post(test_db, user_id=alice.id, content="Abuja weather")
    await test_db.commit()
    await ShareService(test_db).toggle_share(bob.id, public.id)

    data = (await test_client.get("/api/v1/search/posts", params={"query": "LAGOS"})).json()

    assert [p["id"] for p in data] == [public.id]
    assert data[0]["user"]["username"] == "alice"


@pytest.mark.asyncio
async def test_search_comments(test_client, test_db, make_user):
    alice = await make_user("alice")
    post = await post_repo.create_post(test_db, user_id=alice.id, content="post")
    await comment_repo.create_comment(test_db, post_id=post.id, user_id=alice.id, content="great jollof")
    await comment_repo.create_comment(test_db, post_id=post.id, user_id=alice.id, content="meh")
    await test_db.commit()

    data = (await test_client.get("/api/v1/search/comments", params={"query": "jollof"})).json()

    assert [c["content"] for c in data] == ["great jollof"]


@pytest.mark.asyncio
async def test_search_users_by_name(test_client, make_user):
    await make_user("adaeze", first_name="Ada", last_name="Obi")
    await make_user("tunde", first_name="Tunde", last_name="Bakare")

    data = (await test_client.get("/api/v1/search/users", params={"query": "obi"})).json()
    assert [u["username"] for u in data] == ["adaeze"]
    assert "email" not in data[0]

    data = (await test_client.get("/api/v1/search/users", params={"query": "tun"})).json()
    assert [u["username"] for u in data] == ["tunde"]


@pytest.mark.asyncio
async def test_search_communities(test_client, test_db, make_user):
    owner = await make_user("owner")
    service = CommunityService(test_db)
    await service.create_community(owner.id, CommunityCreate(name="Python Lagos", description="d"))
    await service.create_community(owner.id, CommunityCreate(name="Gardening", description="d"))

    data = (await test_client.get("/api/v1/search/communities", params={"query": "python"})).json()

    assert [c["name"] for c in data] == ["Python Lagos"]
    assert data[0]["members_count"] == 1


@pytest.mark.asyncio
async def test_search_needs_a_query(test_client):
    response = await test_client.get("/api/v1/search/posts")
    assert response.status_code == 422
