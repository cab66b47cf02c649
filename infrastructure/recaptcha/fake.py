"""Fake ChallengeClient that answers locally with a successful verification."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from infrastructure.recaptcha.response import ChallengeResponse
from schemas.models.challenge import CHALLENGE_TS_FORMAT, ChallengeVariant


class FakeReCaptchaClient:
    """Resolves every challenge as successful, scored 1.0 unless told otherwise.

    The score is kept on the instance, so a fake shared by the application
    keeps answering with the same score until it is faked again.
    """

    def __init__(self, score: Optional[float] = None) -> None:
        self.score = score
        self.calls = 0

    def get_challenge(
        self,
        token: Optional[str],
        ip: str,
        variant: ChallengeVariant,
        input_name: str,
        action: Optional[str] = None,
    ) -> ChallengeResponse:
        self.calls += 1
        return ChallengeResponse(
            self._payload(),
            input_name,
            variant=ChallengeVariant(variant),
        )

    async def _payload(self) -> dict:
        return {
            "success": True,
            "action": None,
            "hostname": None,
            "apk_package_name": None,
            "challenge_ts": datetime.now(timezone.utc).strftime(CHALLENGE_TS_FORMAT),
            "score": 1.0 if self.score is None else self.score,
        }

    def fake_score(self, score: float) -> None:
        self.score = score

    def fake_robot(self) -> None:
        self.fake_score(0.0)

    def fake_human(self) -> None:
        self.fake_score(1.0)
