"""
Challenge variants and the verification payload returned by reCAPTCHA.

VerificationPayload is a typed record of the documented `siteverify` fields.
Anything else the server sends is kept in `model_extra` and remains readable
through ChallengeResponse.get().
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

# The name of the input for a reCAPTCHA frontend response.
DEFAULT_INPUT = "g-recaptcha-response"

# Timestamp format of "challenge_ts" (ISO-8601, Zulu).
CHALLENGE_TS_FORMAT = "%Y-%m-%dT%H:%M:%SZ"


class ChallengeVariant(str, Enum):
    CHECKBOX = "checkbox"
    INVISIBLE = "invisible"
    ANDROID = "android"
    SCORE = "score"

    @property
    def is_score(self) -> bool:
        return self is ChallengeVariant.SCORE


class VerificationPayload(BaseModel):
    """Body of a `siteverify` reply."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    success: Any = False
    hostname: Optional[str] = None
    challenge_ts: Optional[str] = None
    apk_package_name: Optional[str] = None
    action: Optional[str] = None
    score: Optional[float] = None
    error_codes: list[str] = Field(
        default_factory=list,
        validation_alias=AliasChoices("error-codes", "error_codes", "errors"),
        serialization_alias="error-codes",
    )

    @property
    def succeeded(self) -> bool:
        # Only a literal JSON true counts; "true" or 1 do not.
        return self.success is True

    def challenged_at(self) -> Optional[datetime]:
        if not self.challenge_ts:
            return None
        try:
            parsed = datetime.strptime(self.challenge_ts, CHALLENGE_TS_FORMAT)
        except ValueError:
            # Fakes and some clients send offsets (+00:00) or fractions
            parsed = datetime.fromisoformat(self.challenge_ts.replace("Z", "+00:00"))
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=timezone.utc)
        return parsed

    def lookup(self, key: str, default: Any = None) -> Any:
        """Read a documented field or an extra one by its wire name."""
        if key in ("error-codes", "errors"):
            key = "error_codes"
        if key in type(self).model_fields:
            value = getattr(self, key)
        else:
            value = (self.model_extra or {}).get(key)
        return default if value is None else value
