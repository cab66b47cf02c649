"""
Request helpers shared by the verification middleware.

Inputs are read from the query string, then overlaid with the JSON or form
body. The merged mapping is cached on ``request.state`` so several
middleware on one route parse the body once.
"""

from __future__ import annotations

from typing import Any, MutableMapping, Optional

from fastapi import Request

from errors import ConfigurationError, MissingChallengeError, back_url
from schemas.models.challenge import DEFAULT_INPUT

MISSING_MESSAGE = "The reCAPTCHA challenge is missing or has not been completed."

_FORM_TYPES = ("application/x-www-form-urlencoded", "multipart/form-data")


def normalize_input(name: Optional[str]) -> str:
    if name is None or name.lower() == "null" or not name:
        return DEFAULT_INPUT
    return name


def normalize_action(action: Optional[str]) -> Optional[str]:
    if action is None or action.lower() == "null" or not action:
        return None
    return action


async def request_inputs(request: Request) -> dict[str, Any]:
    cached = getattr(request.state, "recaptcha_inputs", None)
    if cached is not None:
        return cached

    inputs: dict[str, Any] = dict(request.query_params)
    content_type = request.headers.get("content-type", "")

    if content_type.startswith("application/json"):
        try:
            body = await request.json()
        except ValueError:
            body = None
        if isinstance(body, dict):
            inputs.update(body)
    elif content_type.startswith(_FORM_TYPES):
        form = await request.form()
        inputs.update(form.items())

    request.state.recaptcha_inputs = inputs
    return inputs


async def read_input(request: Request, name: str) -> Optional[str]:
    value = (await request_inputs(request)).get(name)
    return None if value is None else str(value)


async def has_input(request: Request, name: str) -> bool:
    return name in await request_inputs(request)


async def is_filled(request: Request, name: str) -> bool:
    value = await read_input(request, name)
    return value is not None and value.strip() != ""


async def ensure_challenge_is_present(request: Request, input_name: str) -> None:
    if not await is_filled(request, input_name):
        raise MissingChallengeError(
            input_name, [MISSING_MESSAGE], redirect_to=back_url(request)
        )


def session_of(request: Request) -> MutableMapping:
    if "session" not in request.scope:
        raise ConfigurationError(
            "Remembering reCAPTCHA challenges requires SessionMiddleware."
        )
    return request.session
