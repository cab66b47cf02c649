"""
Verification of reCAPTCHA v3 (score) challenges.

The verification is started but not awaited: the route handler decides when
to read the verdict through the request context. Authenticated visitors,
disabled or faked configurations and test runs are answered by the fake
client instead. Once the response has been sent, terminate() cancels a call
the handler never waited for.
"""

from __future__ import annotations

from typing import Optional

from fastapi import Request

from errors import ConfigurationError
from middleware.context import ChallengeContext
from middleware.guards import is_auth
from middleware.helpers import (
    ensure_challenge_is_present,
    has_input,
    normalize_action,
    normalize_input,
    read_input,
)
from schemas.models.challenge import DEFAULT_INPUT, ChallengeVariant
from services.recaptcha import ReCaptcha
from shared.logging import get_logger

log = get_logger(__name__)

ROBOT_INPUT = "is_robot"


class VerifyReCaptchaV3:
    ALIAS = "recaptcha.score"

    def __init__(self, service: ReCaptcha) -> None:
        self.service = service
        self.settings = service.settings

    async def handle(
        self,
        request: Request,
        threshold: Optional[str] = "null",
        action: Optional[str] = "null",
        input: str = DEFAULT_INPUT,
        *guards: str,
    ) -> None:
        input_name = normalize_input(input)
        context = ChallengeContext.of(request)

        if self.should_fake(request, guards):
            await self.fake_response_score(request, context)
        else:
            await ensure_challenge_is_present(request, input_name)

        token = await read_input(request, input_name)
        context.challenge(
            token, ChallengeVariant.SCORE, input_name, normalize_action(action)
        ).set_threshold(self.normalize_threshold(threshold))

    def should_fake(self, request: Request, guards: tuple[Optional[str], ...]) -> bool:
        recaptcha = self.settings.recaptcha
        return (
            is_auth(request, guards, self.service.guards)
            or not recaptcha.enable
            or recaptcha.fake
            or recaptcha.testing
        )

    async def fake_response_score(self, request: Request, context: ChallengeContext) -> None:
        fake = context.use_fake()

        # While faking, the form decides the verdict through the "is_robot" input.
        if self.settings.recaptcha.fake and fake.score is None:
            fake.score = 0.0 if await has_input(request, ROBOT_INPUT) else 1.0
            log.debug("recaptcha_fake_score", score=fake.score)

    def normalize_threshold(self, threshold: Optional[str]) -> float:
        if threshold is None or str(threshold).lower() == "null":
            return float(self.settings.recaptcha.threshold)
        try:
            return float(threshold)
        except ValueError:
            raise ConfigurationError(
                f"Invalid reCAPTCHA threshold [{threshold}]."
            ) from None

    def terminate(self, request: Request) -> None:
        """Cancel the verification if the handler never waited for it."""
        context = getattr(request.state, "recaptcha", None)
        if context is not None and context.has_response():
            context.response().terminate()
