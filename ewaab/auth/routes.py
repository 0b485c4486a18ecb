# =============================================================================
# Auth API Routes
# =============================================================================
#
# Endpoints:
#   POST /auth/login          - Email/username + password login
#   POST /auth/login-visitor  - Visitor code login
#   POST /refreshToken        - New access token from the refreshToken cookie
#   POST /auth/logout         - Clear auth cookies
#   POST /auth/revoke         - Revoke all sessions (self, or admin by email)
#   POST /auth/user-codes     - Admin creates a visitor code
#   GET  /auth/user-codes     - Admin lists visitor codes
#   DELETE /auth/user-codes/{id} - Admin deletes a visitor code
#   GET  /auth/me             - Current principal
#
# Cookies:
#   refreshToken (path /refreshToken) and media (path /media), httpOnly.
#   Secure + SameSite=strict in production, lax otherwise.
#
# =============================================================================

from __future__ import annotations

from datetime import datetime
import logging

from fastapi import APIRouter, Cookie, Depends, HTTPException, Response, status
from pydantic import BaseModel, EmailStr, Field

from ewaab.auth.context import Principal
from ewaab.auth.dependencies import (
    AuthServices,
    get_auth_services,
    get_principal,
    require_admin,
)
from ewaab.auth.errors import (
    AccountNotFoundError,
    EmailNotVerifiedError,
    InvalidCredentialsError,
    TokenError,
)
from ewaab.auth.login import (
    LoginResult,
    create_user_code,
    delete_user_code,
    list_user_codes,
    login,
    login_visitor,
)
from ewaab.auth.policies import verify_logged_in
from ewaab.config import Settings

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])
refresh_router = APIRouter(tags=["auth"])

REFRESH_COOKIE = "refreshToken"
REFRESH_COOKIE_PATH = "/refreshToken"
MEDIA_COOKIE = "media"
MEDIA_COOKIE_PATH = "/media"


# =============================================================================
# Request/Response Models
# =============================================================================

class LoginRequest(BaseModel):
    identifier: str = Field(min_length=1, description="Email or username")
    password: str


class VisitorLoginRequest(BaseModel):
    code: str = Field(min_length=1)


class RevokeRequest(BaseModel):
    email: EmailStr | None = None


class CreateUserCodeRequest(BaseModel):
    name: str = Field(min_length=1)


class LoginResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int
    account_id: str
    role: str


class RefreshResponse(BaseModel):
    data: str
    message: str


class RevokeResponse(BaseModel):
    message: str
    token_version: int


class UserCodeResponse(BaseModel):
    id: str
    name: str
    code: str


class UserCodeSummary(BaseModel):
    id: str
    name: str
    created_at: datetime


class PrincipalResponse(BaseModel):
    id: str | None
    role: str
    email_verified: bool


# =============================================================================
# Cookies
# =============================================================================

def _set_cookie(response: Response, settings: Settings, key: str, value: str, path: str, max_age: int) -> None:
    response.set_cookie(
        key=key,
        value=value,
        path=path,
        max_age=max_age,
        httponly=True,
        secure=settings.is_production,
        samesite="strict" if settings.is_production else "lax",
    )


def _set_media_cookie(response: Response, services: AuthServices, token: str) -> None:
    _set_cookie(
        response, services.settings, MEDIA_COOKIE, token, MEDIA_COOKIE_PATH,
        int(services.refresh.media_ttl.total_seconds()),
    )


def _set_login_cookies(response: Response, services: AuthServices, result: LoginResult) -> None:
    if result.refresh_token:
        _set_cookie(
            response, services.settings, REFRESH_COOKIE, result.refresh_token, REFRESH_COOKIE_PATH,
            int(services.refresh.refresh_ttl.total_seconds()),
        )
    _set_media_cookie(response, services, result.media_token)


def _login_response(result: LoginResult) -> LoginResponse:
    return LoginResponse(
        access_token=result.access_token,
        token_type=result.token_type,
        expires_in=result.expires_in,
        account_id=result.account_id,
        role=result.role.value,
    )


# =============================================================================
# Public Endpoints
# =============================================================================

@router.post("/login", response_model=LoginResponse)
async def login_route(
    data: LoginRequest,
    response: Response,
    services: AuthServices = Depends(get_auth_services),
):
    """
    Log in with email or username and password.

    The access token is returned in the body; refresh and media tokens
    are set as cookies.
    """
    try:
        result = await login(services.refresh, data.identifier, data.password)
    except InvalidCredentialsError:
        raise HTTPException(status_code=401, detail="Invalid username or password")
    except EmailNotVerifiedError:
        raise HTTPException(status_code=403, detail="Email is not verified")

    _set_login_cookies(response, services, result)
    return _login_response(result)


@router.post("/login-visitor", response_model=LoginResponse)
async def login_visitor_route(
    data: VisitorLoginRequest,
    response: Response,
    services: AuthServices = Depends(get_auth_services),
):
    """Log in with a visitor code."""
    try:
        result = await login_visitor(services.refresh, data.code)
    except InvalidCredentialsError:
        raise HTTPException(status_code=401, detail="Invalid user code")

    _set_login_cookies(response, services, result)
    return _login_response(result)


@refresh_router.post("/refreshToken", response_model=RefreshResponse)
async def refresh_token_route(
    response: Response,
    refresh_token: str | None = Cookie(default=None, alias=REFRESH_COOKIE),
    services: AuthServices = Depends(get_auth_services),
):
    """
    Use the refresh token cookie to get a new access token.

    Any failure is a 400 so the client knows to log in again.
    """
    if not refresh_token:
        raise HTTPException(status_code=400, detail="no refresh token provided")

    try:
        bundle = await services.refresh.handle_refresh(refresh_token)
    except (TokenError, AccountNotFoundError) as e:
        raise HTTPException(status_code=400, detail=str(e))

    _set_media_cookie(response, services, bundle.media_token)
    return RefreshResponse(data=bundle.access_token, message="got access token")


@router.post("/logout")
async def logout(response: Response):
    """
    Clear the refresh and media cookies.

    Outstanding tokens stay valid until they expire; use /auth/revoke
    to end every session.
    """
    response.delete_cookie(REFRESH_COOKIE, path=REFRESH_COOKIE_PATH)
    response.delete_cookie(MEDIA_COOKIE, path=MEDIA_COOKIE_PATH)
    return {"message": "Logged out successfully"}


# =============================================================================
# Protected Endpoints
# =============================================================================

@router.get("/me", response_model=PrincipalResponse)
async def get_current_principal(principal: Principal = Depends(get_principal)):
    """Who is making this request (guests included)."""
    return PrincipalResponse(
        id=principal.id,
        role=principal.role.value,
        email_verified=principal.email_verified,
    )


@router.post("/revoke", response_model=RevokeResponse)
async def revoke(
    data: RevokeRequest,
    principal: Principal = Depends(get_principal),
    services: AuthServices = Depends(get_auth_services),
):
    """
    Revoke every refresh token for an account.

    Without an email this revokes the caller's own sessions, which any
    durable account may do. Naming an account by email needs a verified
    email, and an admin unless it is the caller's own.
    """
    if not principal.is_authenticated:
        raise HTTPException(
            status_code=401, detail="not logged in", headers={"WWW-Authenticate": "Bearer"}
        )
    if not verify_logged_in(principal, check_email_verified=False):
        raise HTTPException(status_code=403, detail="visitors cannot do this")

    account_id = principal.id
    if data.email is not None:
        if not verify_logged_in(principal):
            raise HTTPException(status_code=403, detail="email is not verified")
        target = await services.accounts.find_account(data.email)
        if target is None:
            raise HTTPException(status_code=404, detail=f"cannot find user with email {data.email}")
        if target.id != principal.id and not principal.is_admin:
            raise HTTPException(status_code=403, detail="user not admin")
        account_id = target.id

    try:
        version = await services.refresh.revoke(account_id)
    except AccountNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))

    return RevokeResponse(message="revoked refresh tokens", token_version=version)


@router.post("/user-codes", response_model=UserCodeResponse, status_code=status.HTTP_201_CREATED)
async def create_user_code_route(
    data: CreateUserCodeRequest,
    principal: Principal = Depends(require_admin),
    services: AuthServices = Depends(get_auth_services),
):
    """Create a visitor code. The plaintext code is only returned here."""
    record, code = await create_user_code(services.refresh, data.name)
    logger.info("Admin %s created visitor code %s", principal.id, record.id)
    return UserCodeResponse(id=record.id, name=record.name, code=code)


@router.get("/user-codes", response_model=list[UserCodeSummary])
async def list_user_codes_route(
    principal: Principal = Depends(require_admin),
    services: AuthServices = Depends(get_auth_services),
):
    records = await list_user_codes(services.refresh)
    return [UserCodeSummary(id=r.id, name=r.name, created_at=r.created_at) for r in records]


@router.delete("/user-codes/{code_id}")
async def delete_user_code_route(
    code_id: str,
    principal: Principal = Depends(require_admin),
    services: AuthServices = Depends(get_auth_services),
):
    """Delete a visitor code. Its sessions end once their access tokens run out."""
    try:
        await delete_user_code(services.refresh, code_id)
    except AccountNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))

    logger.info("Admin %s deleted visitor code %s", principal.id, code_id)
    return {"message": "deleted user code"}
