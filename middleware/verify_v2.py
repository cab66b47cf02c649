"""
Verification of reCAPTCHA v2 challenges (checkbox, invisible, android).

The challenge is awaited before the route handler runs, so an invalid token
never reaches it. A successful challenge may be remembered in the session,
letting the same visitor skip the next checks until it expires.
"""

from __future__ import annotations

from typing import Optional

from fastapi import Request

from errors import ConfigurationError
from middleware.context import ChallengeContext
from middleware.guards import is_guest
from middleware.helpers import (
    ensure_challenge_is_present,
    normalize_input,
    read_input,
    session_of,
)
from schemas.models.challenge import DEFAULT_INPUT, ChallengeVariant
from services.recaptcha import ReCaptcha
from services.remember import RememberStore
from shared.logging import get_logger

log = get_logger(__name__)


class VerifyReCaptchaV2:
    ALIAS = "recaptcha"

    def __init__(self, service: ReCaptcha) -> None:
        self.service = service
        self.settings = service.settings

    async def handle(
        self,
        request: Request,
        variant: str,
        remember: str = "null",
        input: str = DEFAULT_INPUT,
        *guards: str,
    ) -> None:
        """Verify the challenge of *request*; raises when it fails."""
        variant = self.ensure_valid_variant(variant)
        remember = str(remember)

        if not self.should_check_recaptcha(request, remember, guards):
            return

        input_name = normalize_input(input)
        await ensure_challenge_is_present(request, input_name)

        context = ChallengeContext.of(request)
        token = await read_input(request, input_name)
        await context.challenge(token, variant, input_name).wait()

        if self.should_check_remember(remember):
            self.remember_store(request).store_remember(remember)

    def ensure_valid_variant(self, variant: str) -> ChallengeVariant:
        try:
            resolved = ChallengeVariant(str(variant).lower())
        except ValueError:
            raise ConfigurationError(
                f"The reCAPTCHA variant [{variant}] is not supported."
            ) from None
        if resolved.is_score:
            raise ConfigurationError(
                "Use the [recaptcha.score] middleware to capture score-driven challenges."
            )
        return resolved

    def should_check_recaptcha(
        self, request: Request, remember: str, guards: tuple[Optional[str], ...]
    ) -> bool:
        recaptcha = self.settings.recaptcha
        if not recaptcha.enable or recaptcha.fake:
            log.debug("recaptcha_skipped", reason="disabled" if not recaptcha.enable else "fake")
            return False

        if self.should_check_remember(remember) and self.remember_store(request).has_remember():
            log.debug("recaptcha_skipped", reason="remembered")
            return False

        return is_guest(request, guards, self.service.guards)

    def should_check_remember(self, remember: str) -> bool:
        if remember.lower() == "null":
            return self.settings.remember.enabled
        return remember.lower() != "false"

    def remember_store(self, request: Request) -> RememberStore:
        return self.service.remember_store(session_of(request))
