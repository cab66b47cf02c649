"""
ReCaptcha service: the application-wide entry point for challenges.

Built once in the app lifespan and stored on ``app.state.recaptcha``. It owns
the real client, the shared fake (created lazily, kept for the lifetime of
the service so a faked score survives across requests), the guard checks
used for guest-only enforcement, and the factory for per-session remember
stores.
"""

from __future__ import annotations

import time
from typing import Callable, Mapping, MutableMapping, Optional

from fastapi import Request

from config import AppSettings
from infrastructure.http_client import HttpClient
from infrastructure.recaptcha.client import ReCaptchaClient
from infrastructure.recaptcha.fake import FakeReCaptchaClient
from schemas.models.challenge import ChallengeVariant
from services.remember import RememberStore
from shared.logging import get_logger

log = get_logger(__name__)

GuardCheck = Callable[[Request], bool]


class ReCaptcha:
    def __init__(
        self,
        settings: AppSettings,
        http_client: HttpClient,
        guards: Optional[Mapping[Optional[str], GuardCheck]] = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.settings = settings
        self.client = ReCaptchaClient(settings, http_client)
        self.guards: dict[Optional[str], GuardCheck] = dict(guards or {})
        self.clock = clock
        self._fake: Optional[FakeReCaptchaClient] = None

    @property
    def is_faked(self) -> bool:
        return self._fake is not None

    def fake(self) -> FakeReCaptchaClient:
        """Return the shared fake client, creating it on first use."""
        if self._fake is None:
            self._fake = FakeReCaptchaClient()
            log.info("recaptcha_faked")
        return self._fake

    def refake(self, score: Optional[float] = None) -> FakeReCaptchaClient:
        """Replace the shared fake, dropping any score it carried."""
        self._fake = FakeReCaptchaClient(score)
        return self._fake

    def site_key(self, variant: ChallengeVariant) -> str:
        return self.client.site_key(variant)

    def remember_store(self, session: MutableMapping) -> RememberStore:
        remember = self.settings.remember
        return RememberStore(
            session, key=remember.key, minutes=remember.minutes, clock=self.clock
        )
