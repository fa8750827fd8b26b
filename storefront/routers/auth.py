# routers/auth.py
"""
Signup, login, logout and token refresh.

Both tokens travel as http-only cookies; the response bodies only carry
the public user fields.
"""

from fastapi import APIRouter, Depends, HTTPException, Request, Response
from sqlalchemy.orm import Session

from storefront.crud import user as user_crud
from storefront.database import get_db
from storefront.dependencies import get_current_user, get_token_service
from storefront.models.user import User
from storefront.schemas.response import MessageResponse
from storefront.schemas.user import UserLogin, UserProfile, UserSignup
from storefront.services.password_service import verify_password
from storefront.services.token_service import REFRESH_COOKIE, RefreshTokenError, TokenService
from storefront.utils.logger import logger

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/signup", response_model=UserProfile, status_code=201)
async def signup(
    payload: UserSignup,
    response: Response,
    db: Session = Depends(get_db),
    tokens: TokenService = Depends(get_token_service)
):
    """Create an account and start a session"""
    try:
        if user_crud.get_user_by_email(db, payload.email):
            raise HTTPException(status_code=400, detail="User already exists")

        user = user_crud.create_user(db, payload)
        pair = await tokens.issue_tokens(user.id)
        tokens.set_auth_cookies(response, pair)

        logger.info(f"User {user.id} signed up")
        return user
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error in signup: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.post("/login", response_model=UserProfile)
async def login(
    payload: UserLogin,
    response: Response,
    db: Session = Depends(get_db),
    tokens: TokenService = Depends(get_token_service)
):
    try:
        user = user_crud.get_user_by_email(db, payload.email)
        if not user or not verify_password(payload.password, user.password):
            raise HTTPException(status_code=400, detail="Invalid email or password")

        pair = await tokens.issue_tokens(user.id)
        tokens.set_auth_cookies(response, pair)
        return user
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error in login: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.post("/logout", response_model=MessageResponse)
async def logout(
    request: Request,
    response: Response,
    tokens: TokenService = Depends(get_token_service)
):
    """Revoke the refresh token and clear both cookies"""
    try:
        user_id = tokens.user_id_from_refresh_cookie(request.cookies.get(REFRESH_COOKIE))
        if user_id is not None:
            await tokens.revoke_refresh_token(user_id)
            logger.info(f"User {user_id} logged out")

        tokens.clear_auth_cookies(response)
        return {"message": "Logged out successfully"}
    except Exception as e:
        logger.error(f"Error in logout: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.post("/refresh-token", response_model=MessageResponse)
async def refresh_token(
    request: Request,
    response: Response,
    tokens: TokenService = Depends(get_token_service)
):
    """Mint a new access token from the refresh token cookie"""
    token = request.cookies.get(REFRESH_COOKIE)
    if not token:
        raise HTTPException(status_code=401, detail="No refresh token provided")

    try:
        _, access_token = await tokens.refresh_access_token(token)
    except RefreshTokenError as e:
        raise HTTPException(status_code=401, detail=e.message)
    except Exception as e:
        logger.error(f"Error in refresh token: {e}")
        raise HTTPException(status_code=500, detail=str(e))

    tokens.set_access_cookie(response, access_token)
    return {"message": "Token refreshed successfully"}


@router.get("/profile", response_model=UserProfile)
async def get_profile(user: User = Depends(get_current_user)):
    return user
