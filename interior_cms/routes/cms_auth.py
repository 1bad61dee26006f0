"""
Admin login, logout and session status.
Sign-in is delegated to Supabase Auth; a successful sign-in issues a CMS
token in an httpOnly cookie (and in the response body for header use).
"""
from fastapi import APIRouter, Depends, Header, HTTPException, Request, Response, status
from typing import Optional
import logging

from interior_cms.errors import ConfigurationError
from interior_cms.schemas import LoginRequest, SessionResponse, TokenResponse
from interior_cms.services.auth import InvalidCredentialsError, admin_session
from interior_cms.utils.jwt_auth import (
    ACCESS_TOKEN_EXPIRE_MINUTES,
    TOKEN_COOKIE_NAME,
    create_access_token,
    extract_token,
    verify_cms_token,
    verify_token,
)
from interior_cms.utils.rate_limit import RATE_LIMITS, limiter

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/cms/auth", tags=["CMS Auth"])


@router.post("/login", response_model=TokenResponse)
@limiter.limit(RATE_LIMITS["login"])
def login(request: Request, response: Response, credentials: LoginRequest):
    """
    Sign in with the admin email and password.

    Raises:
        HTTPException: 401 on wrong credentials, 503 if Supabase is not configured
    """
    try:
        admin_session.sign_in(credentials.email, credentials.password)
    except InvalidCredentialsError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"error": "Invalid credentials", "message": e.message}
        )
    except ConfigurationError as e:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail={"error": "Authentication not configured", "message": e.message}
        )

    expires_in = ACCESS_TOKEN_EXPIRE_MINUTES * 60
    token = create_access_token({"role": "admin", "sub": credentials.email})
    response.set_cookie(
        key=TOKEN_COOKIE_NAME,
        value=token,
        max_age=expires_in,
        httponly=True,
        samesite="lax",
    )
    return TokenResponse(access_token=token, expires_in=expires_in)


@router.post("/logout")
def logout(response: Response, payload: dict = Depends(verify_cms_token)):
    admin_session.sign_out()
    response.delete_cookie(TOKEN_COOKIE_NAME)
    logger.info(f"Logout: {payload.get('sub')}")
    return {"message": "Logged out"}


@router.get("/session", response_model=SessionResponse)
def get_session(request: Request, authorization: Optional[str] = Header(None)):
    """
    Whether the caller holds a usable admin token.
    The admin layout redirects to the login screen when this is false.
    """
    token = extract_token(request, authorization)
    if not token or not admin_session.authenticated:
        return SessionResponse(authenticated=False)

    try:
        payload = verify_token(token)
    except HTTPException:
        return SessionResponse(authenticated=False)

    return SessionResponse(authenticated=True, email=payload.get("sub"))
