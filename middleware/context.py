"""
Request-scoped challenge context.

Each request gets one ChallengeContext on ``request.state.recaptcha``. It
holds the client chosen for this request (the real one, or the service's
fake) and the current ChallengeResponse, which handlers and the score
middleware's terminate phase read after verification started.
"""

from __future__ import annotations

from typing import Optional

from fastapi import Request

from errors import ConfigurationError, back_url
from infrastructure.recaptcha.fake import FakeReCaptchaClient
from infrastructure.recaptcha.protocol import ChallengeClient
from infrastructure.recaptcha.response import ChallengeResponse
from schemas.models.challenge import ChallengeVariant
from services.recaptcha import ReCaptcha
from shared.ip_utils import get_client_ip


class ChallengeContext:
    def __init__(self, request: Request, service: ReCaptcha) -> None:
        self.request = request
        self.service = service
        self.client: ChallengeClient = service.client
        self._response: Optional[ChallengeResponse] = None

    @classmethod
    def of(cls, request: Request) -> "ChallengeContext":
        """Return the context of *request*, creating it on first access."""
        context = getattr(request.state, "recaptcha", None)
        if context is None:
            context = cls(request, service_of(request))
            request.state.recaptcha = context
        return context

    def use_fake(self) -> FakeReCaptchaClient:
        """Answer every challenge of this request with the service's fake."""
        fake = self.service.fake()
        self.client = fake
        return fake

    @property
    def is_faking(self) -> bool:
        return isinstance(self.client, FakeReCaptchaClient)

    def challenge(
        self,
        token: Optional[str],
        variant: ChallengeVariant,
        input_name: str,
        action: Optional[str] = None,
    ) -> ChallengeResponse:
        """Start a verification and keep it as the current response."""
        response = self.client.get_challenge(
            token, get_client_ip(self.request), variant, input_name, action
        )
        response.redirect_to = back_url(self.request)
        self._response = response
        return response

    def has_response(self) -> bool:
        return self._response is not None

    def response(self) -> ChallengeResponse:
        if self._response is None:
            raise LookupError("No reCAPTCHA response was started for this request.")
        return self._response


def service_of(request: Request) -> ReCaptcha:
    service = getattr(request.app.state, "recaptcha", None)
    if service is None:
        raise ConfigurationError("The ReCaptcha service is not registered on app.state.")
    return service
