"""
reCAPTCHA confirmation form.

GET  /recaptcha/confirm  checkbox challenge page (route name "recaptcha.confirm")
POST /recaptcha/confirm  verifies the checkbox, remembers it, and returns the
                         visitor to the URL stored by ConfirmReCaptcha.
"""

from __future__ import annotations

import os

from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse, RedirectResponse
from jinja2 import Environment, FileSystemLoader, select_autoescape

from dependencies import get_recaptcha, get_settings
from errors import FLASHED_ERRORS_KEY
from middleware.confirm import INTENDED_KEY
from middleware.verify_v2 import VerifyReCaptchaV2
from schemas.models.challenge import DEFAULT_INPUT, ChallengeVariant
from services.recaptcha import ReCaptcha

_TEMPLATE_DIR = os.path.join(
    os.path.dirname(os.path.dirname(__file__)), "templates", "recaptcha"
)

_jinja = Environment(
    loader=FileSystemLoader(_TEMPLATE_DIR),
    autoescape=select_autoescape(["html", "xml"]),
)

router = APIRouter(prefix="/recaptcha", tags=["recaptcha"])


@router.get("/confirm", name="recaptcha.confirm", response_class=HTMLResponse)
async def show_confirmation(
    request: Request, service: ReCaptcha = Depends(get_recaptcha)
) -> HTMLResponse:
    errors: dict = {}
    if "session" in request.scope:
        errors = request.session.pop(FLASHED_ERRORS_KEY, None) or {}

    html = _jinja.get_template("confirm.html").render(
        title="Please confirm you are human",
        message="Complete the challenge below to continue.",
        submit="Confirm",
        action=request.url_for("recaptcha.confirm.submit").path,
        site_key=service.site_key(ChallengeVariant.CHECKBOX),
        errors=errors.get(DEFAULT_INPUT, []),
    )
    return HTMLResponse(html)


async def verify_confirmation(request: Request) -> None:
    """Checkbox challenge remembered for the configured minutes of this app."""
    settings = get_settings(request)
    await VerifyReCaptchaV2(get_recaptcha(request)).handle(
        request,
        ChallengeVariant.CHECKBOX.value,
        str(settings.remember.minutes),
    )


@router.post(
    "/confirm",
    name="recaptcha.confirm.submit",
    dependencies=[Depends(verify_confirmation)],
)
async def confirm(request: Request) -> RedirectResponse:
    settings = get_settings(request)
    intended = request.session.pop(INTENDED_KEY, None) or settings.home_url
    return RedirectResponse(intended, status_code=303)
