"""ChallengeClient protocol implemented by the real and fake clients."""

from typing import Optional, Protocol

from infrastructure.recaptcha.response import ChallengeResponse
from schemas.models.challenge import ChallengeVariant


class ChallengeClient(Protocol):
    def get_challenge(
        self,
        token: Optional[str],
        ip: str,
        variant: ChallengeVariant,
        input_name: str,
        action: Optional[str] = None,
    ) -> ChallengeResponse: ...
