"""
ChallengeResponse: a pending-then-resolved reCAPTCHA verification.

The outbound call is started before the response object exists; this object
wraps it in a single settle task that stores the payload and validates it
exactly once. The task moves Pending → Resolved and never back: awaiting it
again returns the same outcome, including the same validation error.

Nothing is readable until the call settles, so every accessor that touches
the payload awaits `wait()` first. `attributes` is the only raw view, and
stays empty while pending.
"""

from __future__ import annotations

import asyncio
from datetime import datetime
from typing import Any, Awaitable, Optional

from errors import ExpectationMismatchError, UpstreamRejectionError
from schemas.models.challenge import ChallengeVariant, VerificationPayload
from shared.logging import get_logger

log = get_logger(__name__)

DEFAULT_THRESHOLD = 0.5

ERROR_MESSAGE = "The reCAPTCHA challenge could not be verified: [{errors}]."
MATCH_MESSAGE = "The reCAPTCHA {key} does not match the expected value."


class ChallengeResponse:
    def __init__(
        self,
        request: Awaitable[dict],
        input_name: str,
        expected_action: Optional[str] = None,
        *,
        variant: ChallengeVariant = ChallengeVariant.CHECKBOX,
        hostname: Optional[str] = None,
        apk_package_name: Optional[str] = None,
        threshold: float = DEFAULT_THRESHOLD,
    ) -> None:
        self.input_name = input_name
        self.expected_action = expected_action
        self.variant = variant
        self.threshold = threshold
        self.redirect_to: Optional[str] = None

        self._constraints = {
            "hostname": hostname,
            "apk_package_name": apk_package_name,
        }
        self._attributes: dict[str, Any] = {}
        self._payload: Optional[VerificationPayload] = None

        self._request: asyncio.Future = asyncio.ensure_future(request)
        self._request.add_done_callback(_retrieve_outcome)
        self._promise: asyncio.Future = asyncio.ensure_future(self._settle())
        self._promise.add_done_callback(_retrieve_outcome)

    async def _settle(self) -> None:
        data = await self._request
        self._attributes = data if isinstance(data, dict) else {}
        self._payload = VerificationPayload.model_validate(self._attributes)
        self.validate()

    # ── State ───────────────────────────────────────────────────────────────

    def is_resolved(self) -> bool:
        return self._promise.done() and not self._promise.cancelled()

    def is_pending(self) -> bool:
        return not self._promise.done()

    async def wait(self) -> "ChallengeResponse":
        """Wait for the verification to settle; raises if it failed validation."""
        await self._promise
        return self

    def terminate(self) -> None:
        """Cancel the underlying call if it is still pending."""
        if not self._promise.done():
            self._request.cancel()
            self._promise.cancel()
            log.debug("recaptcha_response_terminated", variant=self.variant.value)

    # ── Validation ──────────────────────────────────────────────────────────

    def expectations(self) -> dict[str, str]:
        """Configured constraints plus the expected action, empty ones dropped."""
        expected = dict(self._constraints, action=self.expected_action)
        return {key: value for key, value in expected.items() if value}

    def validate(self) -> None:
        """Validates the resolved payload against the success flag and expectations."""
        payload = self._payload or VerificationPayload()

        if not payload.succeeded:
            log.info(
                "recaptcha_rejected",
                variant=self.variant.value,
                error_codes=payload.error_codes,
            )
            raise UpstreamRejectionError(
                self.input_name,
                [ERROR_MESSAGE.format(errors=", ".join(payload.error_codes))],
                redirect_to=self.redirect_to,
            )

        mismatches = {
            key: MATCH_MESSAGE.format(key=key.replace("_", " "))
            for key, value in self.expectations().items()
            if payload.lookup(key) != value
        }
        if mismatches:
            log.info(
                "recaptcha_expectation_mismatch",
                variant=self.variant.value,
                mismatched=sorted(mismatches),
            )
            raise ExpectationMismatchError(
                self.input_name, mismatches, redirect_to=self.redirect_to
            )

    # ── Score ───────────────────────────────────────────────────────────────

    def set_threshold(self, threshold: float) -> "ChallengeResponse":
        self.threshold = threshold
        return self

    async def is_human(self) -> bool:
        """Score challenges pass at or above the threshold; others always pass."""
        if not self.variant.is_score:
            return True
        payload = await self.payload()
        return (payload.score or 0.0) >= self.threshold

    async def is_robot(self) -> bool:
        return not await self.is_human()

    # ── Accessors ───────────────────────────────────────────────────────────

    @property
    def attributes(self) -> dict[str, Any]:
        """Raw payload without waiting; empty until the call settles."""
        return self._attributes

    async def payload(self) -> VerificationPayload:
        await self.wait()
        return self._payload

    async def get(self, key: str, default: Any = None) -> Any:
        return (await self.payload()).lookup(key, default)

    async def challenged_at(self) -> Optional[datetime]:
        return (await self.payload()).challenged_at()

    async def to_dict(self) -> dict[str, Any]:
        await self.wait()
        return dict(self._attributes)


def _retrieve_outcome(future: asyncio.Future) -> None:
    # Score responses may never be awaited by the handler; fetching the
    # exception here keeps asyncio from reporting it as unretrieved.
    if not future.cancelled():
        future.exception()
