"""
FastAPI dependency providers.

All injectable dependencies are defined here as plain functions used with
FastAPI's Depends() system. Route handlers read the score verdict of the
current request through is_human / is_robot.
"""

from __future__ import annotations

from fastapi import Request

from config import AppSettings
from infrastructure.recaptcha.response import ChallengeResponse
from middleware.context import ChallengeContext, service_of
from services.recaptcha import ReCaptcha


def get_settings(request: Request) -> AppSettings:
    """Return the AppSettings instance stored on app.state."""
    return request.app.state.settings


def get_recaptcha(request: Request) -> ReCaptcha:
    """Return the ReCaptcha service stored on app.state."""
    return service_of(request)


def current_response(request: Request) -> ChallengeResponse:
    """Return the challenge started for this request (LookupError if none)."""
    return ChallengeContext.of(request).response()


async def is_human(request: Request) -> bool:
    return await current_response(request).is_human()


async def is_robot(request: Request) -> bool:
    return await current_response(request).is_robot()
