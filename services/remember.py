"""
Session-backed memory of successful reCAPTCHA challenges.

The session holds a single value under the configured key: an integer epoch
expiry, or the FOREVER sentinel. Expired values are removed when read; there
is no background sweep. Integer 0 is an ordinary timestamp (long expired).
"""

from __future__ import annotations

import math
import time
from typing import Callable, MutableMapping, Optional, Union

from errors import ConfigurationError
from shared.logging import get_logger

log = get_logger(__name__)

FOREVER = "forever"

# Remember declarations that mean "until the session dies"
FOREVER_TOKENS = {"inf", "infinite", "forever"}

Remember = Union[int, float, str, None]


class RememberStore:
    def __init__(
        self,
        session: MutableMapping,
        key: str = "_recaptcha",
        minutes: int = 10,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._session = session
        self.key = key
        self.minutes = minutes
        self._clock = clock

    def has_remember(self) -> bool:
        """True while a stored challenge has not expired; drops it otherwise."""
        stored = self._session.get(self.key)
        if stored is None:
            return False
        if stored == FOREVER:
            return True
        if isinstance(stored, (int, float)) and not isinstance(stored, bool):
            if self._clock() < stored:
                return True

        self.forget()
        return False

    def store_remember(self, remember: Remember = None) -> Optional[Union[int, str]]:
        """Remember the challenge for the given minutes (or forever).

        Returns the stored value, or None when *remember* disables remembering.
        """
        value = self.expiry_for(remember)
        if value is None:
            return None
        self._session[self.key] = value
        log.debug("recaptcha_remembered", remember_key=self.key, expires=value)
        return value

    def forget(self) -> None:
        self._session.pop(self.key, None)

    def expiry_for(self, remember: Remember) -> Optional[Union[int, str]]:
        """Translate a remember declaration into the value kept in the session."""
        if isinstance(remember, str):
            remember = remember.strip().lower()
            if remember == "false":
                return None
            if remember == "null":
                remember = None
            elif remember in FOREVER_TOKENS:
                return FOREVER
            else:
                try:
                    remember = float(remember)
                except ValueError:
                    raise ConfigurationError(
                        f"Invalid reCAPTCHA remember declaration [{remember}]."
                    ) from None

        minutes = self.minutes if remember is None else remember
        if minutes == 0 or minutes == float("inf"):
            return FOREVER
        if not math.isfinite(minutes):
            raise ConfigurationError(
                f"Invalid reCAPTCHA remember declaration [{minutes}]."
            )
        return int(self._clock() + minutes * 60)
