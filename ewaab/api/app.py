"""
FastAPI application for the ewaab backend.

Only the auth surface lives here; content resolvers mount their own
routers and share the AuthServices on `app.state.auth`.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from ewaab import __version__
from ewaab.auth import auth_router, refresh_router
from ewaab.auth.dependencies import AuthServices
from ewaab.auth.errors import AuthError, ResourceNotFoundError, TokenError
from ewaab.auth.jwt import CodecConfig, TokenCodec
from ewaab.auth.refresh import RefreshManager
from ewaab.config import Settings, configure_logging, get_settings
from ewaab.integrations.sentry import capture_exception, init_sentry
from ewaab.storage import (
    InMemoryAccountStore,
    InMemoryResourceLookup,
    RedisTokenVersionStore,
)
from ewaab.storage.base import AccountStore, ResourceLookup, TokenVersionStore

logger = logging.getLogger(__name__)


# =============================================================================
# Services
# =============================================================================


def build_auth_services(
    settings: Settings,
    accounts: AccountStore | None = None,
    versions: TokenVersionStore | None = None,
    resources: ResourceLookup | None = None,
) -> AuthServices:
    """
    Wire the auth core together.

    Without explicit stores this falls back to in-memory ones, with token
    versions in Redis when REDIS_URL is set.
    """
    if accounts is None:
        accounts = InMemoryAccountStore()
    if versions is None:
        if settings.redis_url:
            versions = RedisTokenVersionStore(settings.redis_url)
        elif isinstance(accounts, TokenVersionStore):
            versions = accounts
        else:
            raise ValueError("no token version store available; set REDIS_URL")

    codec = TokenCodec(CodecConfig.from_settings(settings))
    return AuthServices(
        settings=settings,
        codec=codec,
        accounts=accounts,
        versions=versions,
        resources=resources or InMemoryResourceLookup(),
        refresh=RefreshManager(codec, accounts, versions, settings),
    )


# =============================================================================
# App Setup
# =============================================================================


def create_app(settings: Settings | None = None, services: AuthServices | None = None) -> FastAPI:
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        configure_logging(settings)
        init_sentry(settings)
        if not settings.jwt_secret_key:
            logger.warning("JWT_SECRET_KEY is not set - no tokens can be issued")
        logger.info("ewaab API starting in %s mode", settings.environment)

        yield

        versions = app.state.auth.versions
        if isinstance(versions, RedisTokenVersionStore):
            await versions.close()
        logger.info("ewaab API shutting down")

    app = FastAPI(
        title="ewaab API",
        description="Authentication and authorization for the ewaab network",
        version=__version__,
        debug=settings.debug,
        lifespan=lifespan,
    )
    app.state.auth = services or build_auth_services(settings)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(auth_router)
    app.include_router(refresh_router)

    # =========================================================================
    # Error handlers
    # =========================================================================

    @app.exception_handler(TokenError)
    async def token_error_handler(request: Request, exc: TokenError):
        return JSONResponse(
            status_code=401,
            content={"detail": str(exc)},
            headers={"WWW-Authenticate": "Bearer"},
        )

    @app.exception_handler(ResourceNotFoundError)
    async def not_found_handler(request: Request, exc: ResourceNotFoundError):
        return JSONResponse(status_code=404, content={"detail": str(exc)})

    @app.exception_handler(AuthError)
    async def auth_error_handler(request: Request, exc: AuthError):
        # Anything else reaching here is a caller bug, not a user error
        capture_exception(exc, path=request.url.path)
        return JSONResponse(status_code=500, content={"detail": "internal authorization error"})

    @app.get("/health")
    async def health():
        return {"status": "ok", "version": __version__}

    return app
