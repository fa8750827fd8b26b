# services/token_service.py
"""
Access/refresh token handling.

Access tokens live 15 minutes, refresh tokens 7 days. Each is a JWT signed
with its own secret and carries only the user id. The current refresh token
of every user is kept in the cache, so deleting that entry revokes it.
"""

import hmac
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional, Tuple

import jwt
from fastapi import Response

from storefront.config import CookieSettings
from storefront.utils.logger import logger

ALGORITHM = "HS256"
ACCESS_TOKEN_TTL = timedelta(minutes=15)
REFRESH_TOKEN_TTL = timedelta(days=7)

ACCESS_COOKIE = "accessToken"
REFRESH_COOKIE = "refreshToken"
REFRESH_KEY_PREFIX = "refresh_token:"


class RefreshTokenError(Exception):
    """Raised when a refresh token cannot be used to mint an access token"""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


@dataclass
class TokenPair:
    access_token: str
    refresh_token: str


def refresh_token_key(user_id: int) -> str:
    return f"{REFRESH_KEY_PREFIX}{user_id}"


class TokenService:
    def __init__(self, access_secret: str, refresh_secret: str, cache, cookies: CookieSettings):
        self.access_secret = access_secret
        self.refresh_secret = refresh_secret
        self.cache = cache
        self.cookies = cookies

    def _encode(self, user_id: int, secret: str, ttl: timedelta) -> str:
        payload = {
            "userId": user_id,
            "exp": datetime.now(timezone.utc) + ttl
        }
        return jwt.encode(payload, secret, algorithm=ALGORITHM)

    def _decode(self, token: str, secret: str) -> int:
        payload = jwt.decode(token, secret, algorithms=[ALGORITHM], options={"require": ["exp"]})
        user_id = payload.get("userId")
        if not isinstance(user_id, int):
            raise jwt.InvalidTokenError("Token has no user id")
        return user_id

    def create_access_token(self, user_id: int) -> str:
        return self._encode(user_id, self.access_secret, ACCESS_TOKEN_TTL)

    def create_refresh_token(self, user_id: int) -> str:
        return self._encode(user_id, self.refresh_secret, REFRESH_TOKEN_TTL)

    def decode_access_token(self, token: str) -> int:
        """Return the user id, raising jwt.ExpiredSignatureError or jwt.InvalidTokenError"""
        return self._decode(token, self.access_secret)

    def decode_refresh_token(self, token: str) -> int:
        return self._decode(token, self.refresh_secret)

    async def issue_tokens(self, user_id: int) -> TokenPair:
        """Create a token pair and make its refresh token the trusted one for the user"""
        pair = TokenPair(
            access_token=self.create_access_token(user_id),
            refresh_token=self.create_refresh_token(user_id)
        )
        await self.cache.set(
            refresh_token_key(user_id),
            pair.refresh_token,
            ex=int(REFRESH_TOKEN_TTL.total_seconds())
        )
        return pair

    async def is_current_refresh_token(self, user_id: int, token: str) -> bool:
        stored = await self.cache.get(refresh_token_key(user_id))
        if stored is None:
            return False
        return hmac.compare_digest(stored.encode(), token.encode())

    async def refresh_access_token(self, refresh_token: str) -> Tuple[int, str]:
        """Verify a refresh token against the cache and mint a new access token"""
        try:
            user_id = self.decode_refresh_token(refresh_token)
        except jwt.PyJWTError as e:
            logger.info(f"Rejected refresh token: {e}")
            raise RefreshTokenError("Invalid refresh token - Please login again")

        if not await self.is_current_refresh_token(user_id, refresh_token):
            raise RefreshTokenError("Session invalidated - Login again")

        return user_id, self.create_access_token(user_id)

    async def revoke_refresh_token(self, user_id: int) -> bool:
        return await self.cache.delete(refresh_token_key(user_id))

    def _set_cookie(self, response: Response, key: str, value: str, ttl: timedelta) -> None:
        response.set_cookie(
            key,
            value,
            max_age=int(ttl.total_seconds()),
            httponly=self.cookies.httponly,
            secure=self.cookies.secure,
            samesite=self.cookies.samesite
        )

    def set_access_cookie(self, response: Response, access_token: str) -> None:
        self._set_cookie(response, ACCESS_COOKIE, access_token, ACCESS_TOKEN_TTL)

    def set_auth_cookies(self, response: Response, pair: TokenPair) -> None:
        self.set_access_cookie(response, pair.access_token)
        self._set_cookie(response, REFRESH_COOKIE, pair.refresh_token, REFRESH_TOKEN_TTL)

    def clear_auth_cookies(self, response: Response) -> None:
        for key in (ACCESS_COOKIE, REFRESH_COOKIE):
            response.delete_cookie(
                key,
                httponly=self.cookies.httponly,
                secure=self.cookies.secure,
                samesite=self.cookies.samesite
            )

    def user_id_from_refresh_cookie(self, refresh_token: Optional[str]) -> Optional[int]:
        """Best-effort decode used on logout, where a bad token is not an error"""
        if not refresh_token:
            return None
        try:
            return self.decode_refresh_token(refresh_token)
        except jwt.PyJWTError as e:
            logger.warning(f"Ignoring unusable refresh token on logout: {e}")
            return None
