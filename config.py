"""
Application configuration via pydantic-settings.

All settings are loaded from environment variables (and .env file).

reCAPTCHA settings use the RECAPTCHA_ prefix. The three v2 variants fall back
to Google's public testing keys, which always pass on "localhost"; the score
variant has no default and must be configured before it is used.
"""

from __future__ import annotations

from typing import Optional

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Google's reCAPTCHA v2 testing credentials.
TEST_V2_SECRET = "6LeIxAcTAAAAAGG-vFI1TnRWxMZNFuojJ4WifJWe"
TEST_V2_KEY = "6LeIxAcTAAAAAJcZVRqyHh71UMIEGNQ_MXjiZKhI"


class RecaptchaSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env", env_prefix="recaptcha_", extra="ignore"
    )

    # Main switch; keep disabled on local development unless testing responses
    enable: bool = False

    # Fake responses: v2 checks are bypassed, score checks read "is_robot".
    # The fake is shared by the whole app and its score sticks: the first
    # request with "is_robot" makes every later visitor a robot until
    # ReCaptcha.refake() runs. Never enable outside local development.
    fake: bool = False

    # Set while running the test-suite; score checks are always faked
    testing: bool = False

    # Constraints checked against the verification payload (empty = skip)
    hostname: Optional[str] = None
    apk_package_name: Optional[str] = None

    # Slicing point between bots and humans for score challenges
    threshold: float = 0.5


class RememberSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env", env_prefix="recaptcha_remember_", extra="ignore"
    )

    enabled: bool = False
    key: str = "_recaptcha"
    # Zero remembers the challenge until the session dies
    minutes: int = 10


class ClientSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env", env_prefix="recaptcha_client_", extra="ignore"
    )

    timeout: float = 5.0
    http2: bool = True


class CredentialsSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env", env_prefix="recaptcha_", extra="ignore"
    )

    checkbox_secret: Optional[str] = TEST_V2_SECRET
    checkbox_key: Optional[str] = TEST_V2_KEY

    invisible_secret: Optional[str] = TEST_V2_SECRET
    invisible_key: Optional[str] = TEST_V2_KEY

    android_secret: Optional[str] = TEST_V2_SECRET
    android_key: Optional[str] = TEST_V2_KEY

    score_secret: Optional[str] = None
    score_key: Optional[str] = None

    def secret(self, variant: str) -> Optional[str]:
        return getattr(self, f"{variant}_secret", None) or None

    def key(self, variant: str) -> Optional[str]:
        return getattr(self, f"{variant}_key", None) or None


class LoggingSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    log_level: str = "INFO"
    log_format: str = "console"  # "json" in production


class AppSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # Core
    secret_key: str = "change-me"
    env: str = "development"
    app_name: str = "recaptcha-guard"

    # Where the confirmation form sends users once they pass the challenge
    home_url: str = "/"

    # Sub-configs (composed via model_validator below)
    recaptcha: Optional[RecaptchaSettings] = None
    remember: Optional[RememberSettings] = None
    client: Optional[ClientSettings] = None
    credentials: Optional[CredentialsSettings] = None
    logging: Optional[LoggingSettings] = None

    @model_validator(mode="after")
    def _populate_sub_configs(self) -> "AppSettings":
        # Populate sub-configs from the same env/dotenv source
        if self.recaptcha is None:
            self.recaptcha = RecaptchaSettings()
        if self.remember is None:
            self.remember = RememberSettings()
        if self.client is None:
            self.client = ClientSettings()
        if self.credentials is None:
            self.credentials = CredentialsSettings()
        if self.logging is None:
            self.logging = LoggingSettings()

        return self

    @property
    def is_production(self) -> bool:
        return self.env == "production"
