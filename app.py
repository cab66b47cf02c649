"""
FastAPI application factory.
create_app() is the single entry point for building the app.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator, Mapping, Optional

from fastapi import FastAPI
from starlette.middleware.sessions import SessionMiddleware

from config import AppSettings
from errors import register_error_handlers
from infrastructure.http_client import HttpClient
from routes.confirm_routes import router as confirm_router
from services.recaptcha import GuardCheck, ReCaptcha
from shared.logging import setup_logging


def create_app(
    settings: Optional[AppSettings] = None,
    guards: Optional[Mapping[Optional[str], GuardCheck]] = None,
    http_client: Optional[HttpClient] = None,
) -> FastAPI:
    """Create and return a fully configured FastAPI application.

    ``guards`` maps guard names (None for the default guard) to predicates
    telling whether a request is authenticated on that guard.
    """
    if settings is None:
        settings = AppSettings()

    setup_logging(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        # ── Startup ──────────────────────────────────────────────────────────
        client = http_client or HttpClient(
            timeout=settings.client.timeout,
            http2=settings.client.http2,
            user_agent=f"{settings.app_name}/1.0",
        )
        app.state.settings = settings
        app.state.http_client = client
        app.state.recaptcha = ReCaptcha(settings, client, guards=guards)

        yield

        # ── Shutdown ─────────────────────────────────────────────────────────
        # An injected client belongs to the caller
        if http_client is None:
            await client.aclose()

    app = FastAPI(
        title=settings.app_name,
        version="1.0.0",
        redoc_url=None,
        lifespan=lifespan,
    )

    app.add_middleware(
        SessionMiddleware,
        secret_key=settings.secret_key,
        https_only=settings.is_production,
    )

    register_error_handlers(app)
    app.include_router(confirm_router)

    return app
