"""Unit tests for AppSettings and sub-configs."""

import pytest

from config import (
    TEST_V2_KEY,
    TEST_V2_SECRET,
    AppSettings,
    ClientSettings,
    CredentialsSettings,
    RecaptchaSettings,
    RememberSettings,
)


# ---------------------------------------------------------------------------
# RecaptchaSettings
# ---------------------------------------------------------------------------


class TestRecaptchaSettings:
    def test_defaults(self):
        s = RecaptchaSettings()
        assert s.enable is False
        assert s.fake is False
        assert s.testing is False
        assert s.hostname is None
        assert s.apk_package_name is None
        assert s.threshold == 0.5

    def test_loads_prefixed_env(self, monkeypatch):
        monkeypatch.setenv("RECAPTCHA_ENABLE", "true")
        monkeypatch.setenv("RECAPTCHA_HOSTNAME", "example.com")
        monkeypatch.setenv("RECAPTCHA_THRESHOLD", "0.7")
        s = RecaptchaSettings()
        assert s.enable is True
        assert s.hostname == "example.com"
        assert s.threshold == 0.7


class TestRememberSettings:
    def test_defaults(self):
        s = RememberSettings()
        assert s.enabled is False
        assert s.key == "_recaptcha"
        assert s.minutes == 10

    def test_loads_prefixed_env(self, monkeypatch):
        monkeypatch.setenv("RECAPTCHA_REMEMBER_ENABLED", "1")
        monkeypatch.setenv("RECAPTCHA_REMEMBER_KEY", "_challenge")
        monkeypatch.setenv("RECAPTCHA_REMEMBER_MINUTES", "0")
        s = RememberSettings()
        assert s.enabled is True
        assert s.key == "_challenge"
        assert s.minutes == 0


def test_client_defaults():
    s = ClientSettings()
    assert s.timeout == 5.0
    assert s.http2 is True


# ---------------------------------------------------------------------------
# CredentialsSettings
# ---------------------------------------------------------------------------


class TestCredentialsSettings:
    @pytest.mark.parametrize("variant", ["checkbox", "invisible", "android"])
    def test_v2_variants_default_to_test_keys(self, variant):
        s = CredentialsSettings()
        assert s.secret(variant) == TEST_V2_SECRET
        assert s.key(variant) == TEST_V2_KEY

    def test_score_has_no_default(self):
        s = CredentialsSettings()
        assert s.secret("score") is None
        assert s.key("score") is None

    def test_loads_score_from_env(self, monkeypatch):
        monkeypatch.setenv("RECAPTCHA_SCORE_SECRET", "server-side")
        monkeypatch.setenv("RECAPTCHA_SCORE_KEY", "client-side")
        s = CredentialsSettings()
        assert s.secret("score") == "server-side"
        assert s.key("score") == "client-side"

    def test_empty_secret_counts_as_missing(self, monkeypatch):
        monkeypatch.setenv("RECAPTCHA_CHECKBOX_SECRET", "")
        assert CredentialsSettings().secret("checkbox") is None

    def test_unknown_variant(self):
        assert CredentialsSettings().secret("enterprise") is None


# ---------------------------------------------------------------------------
# AppSettings
# ---------------------------------------------------------------------------


def test_sub_configs_populated():
    s = AppSettings()
    assert isinstance(s.recaptcha, RecaptchaSettings)
    assert isinstance(s.remember, RememberSettings)
    assert isinstance(s.client, ClientSettings)
    assert isinstance(s.credentials, CredentialsSettings)


def test_explicit_sub_config_kept():
    recaptcha = RecaptchaSettings(enable=True)
    assert AppSettings(recaptcha=recaptcha).recaptcha.enable is True


@pytest.mark.parametrize(
    "env, expected",
    [("production", True), ("development", False)],
    ids=["production", "development"],
)
def test_is_production(monkeypatch, env, expected):
    monkeypatch.setenv("ENV", env)
    assert AppSettings().is_production is expected
