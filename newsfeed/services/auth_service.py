"""
Client for the external auth service and the FastAPI dependencies built on it.

Tokens are never inspected here: the service answers who the caller is, and
validated identities are cached in redis for a short while.
"""
from typing import Dict, List, Optional, Tuple
import hashlib
import logging

import httpx
from fastapi import Depends, Request, Response
from redis.exceptions import RedisError
from starlette.requests import HTTPConnection

from newsfeed.config import settings
from newsfeed.exceptions import UnauthorizedError, UpstreamFailureError
from newsfeed.schemas.auth_schema import TokenData, TokenValidationRequest
from newsfeed.services.redis_service import RedisService

logger = logging.getLogger(__name__)

CREDENTIAL_HEADERS = ("authorization", "refresh-token")
FORWARDED_HEADERS = ("set-cookie", "authorization", "refresh-token")


class AuthClient:
    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        http: Optional[httpx.AsyncClient] = None,
        cache: Optional[RedisService] = None,
        cache_ttl: Optional[int] = None,
    ):
        self.http = http or httpx.AsyncClient(
            base_url=base_url or settings.AUTH_SERVICE_URL,
            timeout=timeout or settings.AUTH_REQUEST_TIMEOUT,
        )
        self.cache = cache or RedisService()
        self.cache_ttl = cache_ttl or settings.AUTH_CACHE_TTL

    @staticmethod
    def _cache_key(payload: TokenValidationRequest) -> Optional[str]:
        if not payload.cookies and not payload.headers:
            return None
        return "auth:token:" + hashlib.sha256(payload.model_dump_json().encode()).hexdigest()

    async def _cached_identity(self, key: Optional[str]) -> Optional[TokenData]:
        if key is None or not self.cache.enabled:
            return None
        try:
            cached = await self.cache.get(key)
        except RedisError as e:
            logger.warning(f"Auth cache read failed: {e}")
            return None
        return TokenData.model_validate_json(cached) if cached else None

    async def _cache_identity(self, key: Optional[str], identity: TokenData) -> None:
        if key is None or not self.cache.enabled:
            return
        try:
            await self.cache.set(key, identity.model_dump_json(), expire=self.cache_ttl)
        except RedisError as e:
            logger.warning(f"Auth cache write failed: {e}")

    async def validate(
        self,
        cookies: Dict[str, str],
        headers: Dict[str, str],
    ) -> Tuple[TokenData, List[Tuple[str, str]]]:
        """
        Validate the caller's credentials.

        Returns the identity and the response headers to forward to the
        client (refreshed cookies or tokens).
        """
        payload = TokenValidationRequest(cookies=cookies, headers=headers)
        key = self._cache_key(payload)
        if key is None:
            raise UnauthorizedError()

        cached = await self._cached_identity(key)
        if cached:
            return cached, []

        try:
            response = await self.http.post("/api/token/validate", json=payload.model_dump())
        except httpx.HTTPError as e:
            logger.error(f"Auth service unreachable: {e}")
            raise UpstreamFailureError("Auth service unavailable")

        if response.status_code == 401:
            raise UnauthorizedError()
        if response.status_code >= 500:
            logger.error(f"Auth service error {response.status_code} on validate")
            raise UpstreamFailureError("Auth service unavailable")
        if response.status_code != 200:
            raise UnauthorizedError()

        try:
            identity = TokenData.model_validate(response.json()["data"])
        except (ValueError, KeyError, TypeError) as e:
            logger.error(f"Malformed auth service response: {e}")
            raise UpstreamFailureError("Auth service returned an invalid response")

        forwarded = [
            (name, value)
            for name in FORWARDED_HEADERS
            for value in response.headers.get_list(name)
        ]
        await self._cache_identity(key, identity)
        return identity, forwarded

    async def decode(self, cookies: Dict[str, str], headers: Dict[str, str]) -> Optional[TokenData]:
        """Best-effort identity for optional authentication; None means anonymous"""
        payload = TokenValidationRequest(cookies=cookies, headers=headers)
        key = self._cache_key(payload)
        if key is None:
            return None

        cached = await self._cached_identity(key)
        if cached:
            return cached

        try:
            response = await self.http.post("/api/token/decode", json=payload.model_dump())
            if response.status_code != 200:
                return None
            return TokenData.model_validate(response.json())
        except (httpx.HTTPError, ValueError) as e:
            logger.warning(f"Token decode failed, treating caller as anonymous: {e}")
            return None

    async def close(self):
        await self.http.aclose()
        await self.cache.close()


_auth_client: Optional[AuthClient] = None


def get_auth_client() -> AuthClient:
    global _auth_client
    if _auth_client is None:
        _auth_client = AuthClient()
    return _auth_client


async def close_auth_client():
    global _auth_client
    if _auth_client is not None:
        await _auth_client.close()
        _auth_client = None


def _credentials(connection: HTTPConnection) -> Tuple[Dict[str, str], Dict[str, str]]:
    headers = {
        name: connection.headers[name]
        for name in CREDENTIAL_HEADERS
        if name in connection.headers
    }
    return dict(connection.cookies), headers


async def get_current_user(
    request: Request,
    response: Response,
    client: AuthClient = Depends(get_auth_client),
) -> TokenData:
    """Dependency requiring an authenticated caller"""
    cookies, headers = _credentials(request)
    identity, forwarded = await client.validate(cookies, headers)
    for name, value in forwarded:
        response.headers.append(name, value)
    return identity


async def get_optional_user(
    connection: HTTPConnection,
    client: AuthClient = Depends(get_auth_client),
) -> Optional[TokenData]:
    """Dependency resolving the caller if they are signed in"""
    cookies, headers = _credentials(connection)
    return await client.decode(cookies, headers)
