import json

import httpx
import pytest
from httpx import AsyncClient, ASGITransport

from newsfeed.db.session import get_db
from newsfeed.exceptions import UnauthorizedError, UpstreamFailureError
from newsfeed.main import app
from newsfeed.schemas.auth_schema import TokenData
from newsfeed.services.auth_service import AuthClient, get_auth_client


class FakeCache:
    """In-memory stand-in for RedisService"""

    enabled = True

    def __init__(self):
        self.store = {}

    async def get(self, key):
        return self.store.get(key)

    async def set(self, key, value, expire=None):
        self.store[key] = value

    async def close(self):
        pass


def make_client(handler, cache=None) -> AuthClient:
    http = httpx.AsyncClient(transport=httpx.MockTransport(handler), base_url="http://auth.test")
    return AuthClient(http=http, cache=cache)


def identity_response(request: httpx.Request) -> httpx.Response:
    return httpx.Response(
        200,
        json={"data": {"user_id": 1, "username": "alice"}},
        headers=[("set-cookie", "access=new; Path=/"), ("authorization", "Bearer refreshed")],
    )


@pytest.mark.asyncio
async def test_validate_returns_identity_and_forwarded_headers():
    seen = []

    def handler(request):
        seen.append(json.loads(request.content))
        return identity_response(request)

    client = make_client(handler)
    identity, forwarded = await client.validate({"access": "old"}, {"authorization": "Bearer old"})

    assert identity == TokenData(user_id=1, username="alice")
    assert ("set-cookie", "access=new; Path=/") in forwarded
    assert ("authorization", "Bearer refreshed") in forwarded
    assert seen == [{"cookies": {"access": "old"}, "headers": {"authorization": "Bearer old"}}]


@pytest.mark.asyncio
async def test_validate_without_credentials_skips_the_service():
    calls = []

    def handler(request):
        calls.append(request)
        return identity_response(request)

    with pytest.raises(UnauthorizedError):
        await make_client(handler).validate({}, {})
    assert calls == []


@pytest.mark.asyncio
async def test_validate_rejected_token():
    client = make_client(lambda request: httpx.Response(401, json={"detail": "expired"}))

    with pytest.raises(UnauthorizedError):
        await client.validate({"access": "expired"}, {})


@pytest.mark.asyncio
async def test_validate_service_error():
    client = make_client(lambda request: httpx.Response(503))

    with pytest.raises(UpstreamFailureError):
        await client.validate({"access": "token"}, {})


@pytest.mark.asyncio
async def test_validate_unreachable_service():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(UpstreamFailureError):
        await make_client(handler).validate({"access": "token"}, {})


@pytest.mark.asyncio
async def test_validate_malformed_response():
    client = make_client(lambda request: httpx.Response(200, json={"unexpected": True}))

    with pytest.raises(UpstreamFailureError):
        await client.validate({"access": "token"}, {})


@pytest.mark.asyncio
async def test_validated_identity_is_cached():
    calls = []

    def handler(request):
        calls.append(request)
        return identity_response(request)

    client = make_client(handler, cache=FakeCache())
    first, _ = await client.validate({"access": "token"}, {})
    second, forwarded = await client.validate({"access": "token"}, {})

    assert first == second
    assert forwarded == []
    assert len(calls) == 1

    await client.validate({"access": "other"}, {})
    assert len(calls) == 2


@pytest.mark.asyncio
async def test_decode():
    def handler(request):
        assert request.url.path == "/api/token/decode"
        return httpx.Response(200, json={"user_id": 2, "username": "bob"})

    assert await make_client(handler).decode({"access": "token"}, {}) == TokenData(user_id=2, username="bob")
    assert await make_client(handler).decode({}, {}) is None


@pytest.mark.asyncio
async def test_decode_failures_mean_anonymous():
    def unreachable(request):
        raise httpx.ReadTimeout("slow", request=request)

    assert await make_client(unreachable).decode({"access": "token"}, {}) is None
    assert await make_client(lambda request: httpx.Response(401)).decode({"access": "token"}, {}) is None
    assert await make_client(lambda request: httpx.Response(200, text="not json")).decode({"access": "t"}, {}) is None


@pytest.mark.asyncio
async def test_protected_route_forwards_refreshed_credentials(session_factory, make_user):
    await make_user("alice")

    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_auth_client] = lambda: make_client(identity_response)
    try:
        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
            response = await client.get("/api/v1/notifications", headers={"Cookie": "access=old"})
    finally:
        app.dependency_overrides.clear()

    assert response.status_code == 200
    assert response.json() == []
    assert response.headers["set-cookie"] == "access=new; Path=/"
    assert response.headers["authorization"] == "Bearer refreshed"


@pytest.mark.asyncio
async def test_protected_route_rejects_anonymous_callers():
    app.dependency_overrides[get_auth_client] = lambda: make_client(identity_response)
    try:
        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
            response = await client.get("/api/v1/notifications")
    finally:
        app.dependency_overrides.clear()

    assert response.status_code == 401
    assert response.json() == {"detail": "Unauthorized user"}
