"""reCAPTCHA implementation of ChallengeClient.

The verification POST is scheduled as an asyncio task and wrapped in a
ChallengeResponse straight away; callers decide when (or whether) to await
it. Transport failures are logged and settle as an empty payload, which the
response then rejects like any other unsuccessful verification.
"""

from __future__ import annotations

import asyncio
from typing import Optional

import httpx

from config import AppSettings
from errors import ConfigurationError
from infrastructure.http_client import HttpClient
from infrastructure.recaptcha.response import ChallengeResponse
from schemas.models.challenge import ChallengeVariant
from shared.logging import get_logger, hash_ip

log = get_logger(__name__)

SERVER_ENDPOINT = "https://www.google.com/recaptcha/api/siteverify"


class ReCaptchaClient:
    def __init__(self, settings: AppSettings, http_client: HttpClient) -> None:
        self._settings = settings
        self._http = http_client

    def get_challenge(
        self,
        token: Optional[str],
        ip: str,
        variant: ChallengeVariant,
        input_name: str,
        action: Optional[str] = None,
    ) -> ChallengeResponse:
        variant = ChallengeVariant(variant)
        request = asyncio.ensure_future(
            self._request(token or "", ip, self.secret(variant), variant)
        )
        return ChallengeResponse(
            request,
            input_name,
            action,
            variant=variant,
            hostname=self._settings.recaptcha.hostname,
            apk_package_name=self._settings.recaptcha.apk_package_name,
            threshold=self._settings.recaptcha.threshold,
        )

    def secret(self, variant: ChallengeVariant) -> str:
        secret = self._settings.credentials.secret(ChallengeVariant(variant).value)
        if not secret:
            raise ConfigurationError(
                f"The reCAPTCHA secret for [{ChallengeVariant(variant).value}] doesn't exist or is not set."
            )
        return secret

    def site_key(self, variant: ChallengeVariant) -> str:
        key = self._settings.credentials.key(ChallengeVariant(variant).value)
        if not key:
            raise ConfigurationError(
                f"The reCAPTCHA site key for [{ChallengeVariant(variant).value}] doesn't exist."
            )
        return key

    async def _request(
        self, token: str, ip: str, secret: str, variant: ChallengeVariant
    ) -> dict:
        try:
            response = await self._http.post(
                SERVER_ENDPOINT,
                data={"secret": secret, "response": token, "remoteip": ip},
            )
        except httpx.HTTPError as e:
            log.error(
                "recaptcha_request_failed",
                variant=variant.value,
                ip_hash=hash_ip(ip),
                error=str(e),
                error_type=type(e).__name__,
            )
            return {}

        if response.status_code != 200:
            log.error(
                "recaptcha_api_error",
                variant=variant.value,
                status_code=response.status_code,
                response_text=response.text[:200],
            )
            return {}

        try:
            data = response.json()
        except ValueError as e:
            log.error("recaptcha_invalid_json", variant=variant.value, error=str(e))
            return {}

        log.debug(
            "recaptcha_verified",
            variant=variant.value,
            success=data.get("success") if isinstance(data, dict) else None,
        )
        return data if isinstance(data, dict) else {}
