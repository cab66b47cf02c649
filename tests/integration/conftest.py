"""
Fixtures for the route-level reCAPTCHA tests.

build_app() wires the real application (session, error handlers, confirm
routes) around the mocked HttpClient from the root conftest and adds a few
protected routes. No network connection is made.
"""

import pytest
from fastapi import Depends, Request
from fastapi.testclient import TestClient

from app import create_app
from builders import ReCaptchaDeclaration
from dependencies import current_response, is_robot
from middleware.registry import recaptcha

GUARDS = {
    None: lambda request: request.headers.get("x-user") == "1",
    "api": lambda request: request.headers.get("x-api-user") == "1",
}


def _add_test_routes(app) -> None:
    @app.get("/_session")
    async def read_session(request: Request) -> dict:
        return dict(request.session)

    @app.post(
        "/v2/checkbox",
        dependencies=[Depends(recaptcha(ReCaptchaDeclaration.checkbox()))],
    )
    async def v2_checkbox() -> dict:
        return {"ok": True}

    @app.post(
        "/v2/remember",
        dependencies=[Depends(recaptcha(ReCaptchaDeclaration.checkbox().remember(10)))],
    )
    async def v2_remember() -> dict:
        return {"ok": True}

    @app.post(
        "/v2/forever",
        dependencies=[Depends(recaptcha(ReCaptchaDeclaration.checkbox().remember_forever()))],
    )
    async def v2_forever() -> dict:
        return {"ok": True}

    @app.post(
        "/v2/no-remember",
        dependencies=[Depends(recaptcha(ReCaptchaDeclaration.checkbox().dont_remember()))],
    )
    async def v2_no_remember() -> dict:
        return {"ok": True}

    @app.post(
        "/v2/custom-input",
        dependencies=[Depends(recaptcha(ReCaptchaDeclaration.invisible().input("captcha")))],
    )
    async def v2_custom_input() -> dict:
        return {"ok": True}

    @app.post(
        "/v2/guests",
        dependencies=[Depends(recaptcha(ReCaptchaDeclaration.android().for_guests("api")))],
    )
    async def v2_guests() -> dict:
        return {"ok": True}

    @app.post(
        "/v2/default-guard",
        dependencies=[Depends(recaptcha(ReCaptchaDeclaration.checkbox().for_guests()))],
    )
    async def v2_default_guard() -> dict:
        return {"ok": True}

    @app.post(
        "/v2/misused",
        dependencies=[Depends(recaptcha("recaptcha:score"))],
    )
    async def v2_misused() -> dict:
        return {"ok": True}

    @app.post(
        "/score",
        dependencies=[Depends(recaptcha(ReCaptchaDeclaration.score(0.5).action("login")))],
    )
    async def score(request: Request) -> dict:
        response = current_response(request)
        return {"human": await response.is_human(), "score": await response.get("score")}

    @app.post(
        "/score/guests",
        dependencies=[Depends(recaptcha(ReCaptchaDeclaration.score(0.5).for_guests("api")))],
    )
    async def score_guests(request: Request) -> dict:
        return {"human": await current_response(request).is_human()}

    @app.post(
        "/score/verdict",
        dependencies=[Depends(recaptcha(ReCaptchaDeclaration.score()))],
    )
    async def score_verdict(robot: bool = Depends(is_robot)) -> dict:
        return {"robot": robot}

    @app.post(
        "/score/unread",
        dependencies=[Depends(recaptcha(ReCaptchaDeclaration.score()))],
    )
    async def score_unread() -> dict:
        return {"ok": True}

    @app.get(
        "/protected",
        dependencies=[Depends(recaptcha("recaptcha.confirm"))],
    )
    async def protected() -> dict:
        return {"ok": True}

    @app.get(
        "/protected/guarded",
        dependencies=[Depends(recaptcha("recaptcha.confirm:recaptcha.confirm,null"))],
    )
    async def protected_guarded() -> dict:
        return {"ok": True}

    @app.get(
        "/protected/custom",
        dependencies=[Depends(recaptcha("recaptcha.confirm:/elsewhere"))],
    )
    async def protected_custom() -> dict:
        return {"ok": True}


@pytest.fixture
def build_app(http, make_settings):
    """``build_app(enable=True, remember={...})`` returns a started TestClient."""
    clients = []

    def _build(**settings_overrides) -> TestClient:
        app = create_app(
            settings=make_settings(**settings_overrides),
            guards=GUARDS,
            http_client=http,
        )
        _add_test_routes(app)
        client = TestClient(app, follow_redirects=False)
        client.__enter__()
        clients.append(client)
        return client

    yield _build

    for client in clients:
        client.__exit__(None, None, None)
