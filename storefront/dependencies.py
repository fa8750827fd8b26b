from fastapi import Depends, HTTPException, Request, Response
from sqlalchemy.orm import Session
import jwt

from storefront.crud import user as user_crud
from storefront.database import get_db
from storefront.models.user import User
from storefront.services.token_service import (
    ACCESS_COOKIE, REFRESH_COOKIE, RefreshTokenError, TokenService
)
from storefront.utils.logger import logger


def get_cache(request: Request):
    return request.app.state.cache


def get_token_service(request: Request) -> TokenService:
    return request.app.state.token_service


def get_media_service(request: Request):
    return request.app.state.media_service


async def get_current_user(
    request: Request,
    response: Response,
    db: Session = Depends(get_db),
    tokens: TokenService = Depends(get_token_service)
) -> User:
    """
    Authenticate the request from its cookies.

    A valid access token is enough. When the access token has expired (or its
    cookie is already gone) the refresh token is checked against the cache and,
    if it is still the current one, a new access token cookie is set on the
    response and the request goes through.
    """
    access_token = request.cookies.get(ACCESS_COOKIE)
    refresh_token = request.cookies.get(REFRESH_COOKIE)

    if not access_token and not refresh_token:
        raise HTTPException(status_code=401, detail="Unauthorized - No tokens provided")

    if access_token:
        try:
            user_id = tokens.decode_access_token(access_token)
            user = user_crud.get_user(db, user_id)
            if not user:
                raise HTTPException(status_code=401, detail="User not found")
            return user
        except jwt.ExpiredSignatureError:
            logger.info("Access token expired, trying refresh token")
        except jwt.InvalidTokenError:
            raise HTTPException(status_code=401, detail="Unauthorized - Invalid token")

    if not refresh_token:
        raise HTTPException(status_code=401, detail="Session expired - Login again")

    try:
        user_id, new_access_token = await tokens.refresh_access_token(refresh_token)
    except RefreshTokenError as e:
        raise HTTPException(status_code=401, detail=e.message)
    except Exception as e:
        logger.error(f"Error refreshing access token: {e}")
        raise HTTPException(status_code=401, detail="Unauthorized - Authentication failed")

    user = user_crud.get_user(db, user_id)
    if not user:
        raise HTTPException(status_code=401, detail="User not found")

    tokens.set_access_cookie(response, new_access_token)
    return user


def get_admin_user(user: User = Depends(get_current_user)) -> User:
    if not user.is_admin:
        raise HTTPException(status_code=403, detail="Access denied - Admin only")
    return user
