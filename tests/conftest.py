"""
Shared test configuration.

Patches dotenv so pydantic-settings never reads the project's real .env file
during tests, clears RECAPTCHA_* variables from the environment, and provides
a mocked HttpClient whose POST answers with a configurable siteverify body.
"""

import os
from unittest.mock import AsyncMock, MagicMock

import pytest

from config import (
    AppSettings,
    ClientSettings,
    CredentialsSettings,
    LoggingSettings,
    RecaptchaSettings,
    RememberSettings,
)


@pytest.fixture(autouse=True)
def disable_dotenv_loading(monkeypatch):
    """Prevent pydantic-settings from loading .env files in all tests."""
    import pydantic_settings.sources.providers.dotenv as ps_dotenv

    monkeypatch.setattr(ps_dotenv, "dotenv_values", lambda *a, **kw: {})
    for var in list(os.environ):
        if var.upper().startswith("RECAPTCHA_"):
            monkeypatch.delenv(var, raising=False)


def siteverify_reply(body=None, status_code=200) -> MagicMock:
    resp = MagicMock(status_code=status_code, text=str(body))
    resp.json.return_value = {"success": True} if body is None else body
    return resp


@pytest.fixture
def reply():
    """Factory for siteverify replies: ``reply({"success": False}, 200)``."""
    return siteverify_reply


@pytest.fixture
def http():
    """Mock HttpClient; set ``http.post.return_value`` to change the reply."""
    client = MagicMock()
    client.post = AsyncMock(return_value=siteverify_reply())
    client.aclose = AsyncMock()
    return client


@pytest.fixture
def make_settings():
    def _make(
        *,
        remember: dict | None = None,
        credentials: dict | None = None,
        **recaptcha,
    ) -> AppSettings:
        return AppSettings(
            secret_key="test-secret-key",
            recaptcha=RecaptchaSettings(**recaptcha),
            remember=RememberSettings(**(remember or {})),
            client=ClientSettings(http2=False),
            credentials=CredentialsSettings(**(credentials or {})),
            logging=LoggingSettings(),
        )

    return _make
