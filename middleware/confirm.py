"""
Sends visitors to the reCAPTCHA confirmation form before a protected route.

Visitors authenticated on one of the guards pass straight through, as do
those who already confirmed a challenge that is still remembered.
"""

from __future__ import annotations

from fastapi import Request
from starlette.routing import NoMatchFound

from errors import ConfigurationError, ConfirmationRequired
from middleware.guards import is_auth
from middleware.helpers import session_of
from services.recaptcha import ReCaptcha

# Session key holding the URL to return to after confirming
INTENDED_KEY = "url.intended"


class ConfirmReCaptcha:
    ALIAS = "recaptcha.confirm"

    def __init__(self, service: ReCaptcha) -> None:
        self.service = service
        self.settings = service.settings

    async def handle(
        self,
        request: Request,
        route: str = "recaptcha.confirm",
        *guards: str,
    ) -> None:
        if is_auth(request, guards, self.service.guards):
            return

        session = session_of(request)
        if self.settings.remember.enabled and self.service.remember_store(session).has_remember():
            return

        session[INTENDED_KEY] = str(request.url)
        raise ConfirmationRequired(self.confirmation_url(request, route))

    def confirmation_url(self, request: Request, route: str) -> str:
        if route.lower() == "null":
            route = "recaptcha.confirm"
        if route.startswith("/"):
            return route
        try:
            return str(request.url_for(route))
        except NoMatchFound:
            raise ConfigurationError(
                f"The confirmation route [{route}] is not defined."
            ) from None
