"""
Middleware declarations: a fluent builder and its parser.

A declaration is the positional string a route uses to parametrize one of the
reCAPTCHA middleware aliases:

    recaptcha:<variant>[,<remember>[,<input>[,<guard>...]]]
    recaptcha.score:<threshold>[,<action>[,<input>[,<guard>...]]]
    recaptcha.confirm[:<route>[,<guard>...]]

Unset slots are written as "null". Trailing "null" slots are dropped unless
guards follow, because guards must stay in their positions.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

from config import RecaptchaSettings, RememberSettings
from errors import ConfigurationError
from schemas.models.challenge import ChallengeVariant

V2_ALIAS = "recaptcha"
SCORE_ALIAS = "recaptcha.score"
CONFIRM_ALIAS = "recaptcha.confirm"

NULL = "null"


class ReCaptchaDeclaration:
    """Builder for a reCAPTCHA middleware declaration string."""

    def __init__(
        self,
        variant: ChallengeVariant,
        input: str = NULL,
        threshold: str = NULL,
        action: str = NULL,
        remember: str = NULL,
        guards: Optional[list[str]] = None,
    ) -> None:
        self.variant = ChallengeVariant(variant)
        self._input = input
        self._threshold = threshold
        self._action = action
        self._remember = remember
        self._guards: list[str] = list(guards or [])

    @classmethod
    def checkbox(cls) -> "ReCaptchaDeclaration":
        return cls(ChallengeVariant.CHECKBOX)

    @classmethod
    def invisible(cls) -> "ReCaptchaDeclaration":
        return cls(ChallengeVariant.INVISIBLE)

    @classmethod
    def android(cls) -> "ReCaptchaDeclaration":
        return cls(ChallengeVariant.ANDROID)

    @classmethod
    def score(cls, threshold: Optional[float] = None) -> "ReCaptchaDeclaration":
        if threshold is None:
            threshold = RecaptchaSettings().threshold
        return cls(ChallengeVariant.SCORE).threshold(threshold)

    def input(self, name: str) -> "ReCaptchaDeclaration":
        self._input = name
        return self

    def for_guests(self, *guards: str) -> "ReCaptchaDeclaration":
        """Only challenge visitors not authenticated on these guards (default guard if none)."""
        self._guards = list(guards) or [NULL]
        return self

    def remember(self, minutes: Optional[int] = None) -> "ReCaptchaDeclaration":
        self._ensure_variant_is_correct("remember", score=False)
        if minutes is None:
            minutes = RememberSettings().minutes
        self._remember = str(int(minutes))
        return self

    def remember_forever(self) -> "ReCaptchaDeclaration":
        self._ensure_variant_is_correct("remember_forever", score=False)
        self._remember = "inf"
        return self

    def dont_remember(self) -> "ReCaptchaDeclaration":
        self._ensure_variant_is_correct("dont_remember", score=False)
        self._remember = "false"
        return self

    def threshold(self, threshold: float) -> "ReCaptchaDeclaration":
        self._ensure_variant_is_correct("threshold", score=True)
        clamped = max(0.0, min(1.0, float(threshold)))
        self._threshold = str(
            Decimal(str(clamped)).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP)
        )
        return self

    def action(self, action: str) -> "ReCaptchaDeclaration":
        self._ensure_variant_is_correct("action", score=True)
        self._action = action
        return self

    def _ensure_variant_is_correct(self, setter: str, *, score: bool) -> None:
        if self.variant.is_score is not score:
            raise ConfigurationError(
                f"You cannot set [{setter}] for a [{self.variant.value}] middleware."
            )

    def parameters(self) -> list[str]:
        if self.variant.is_score:
            base = [SCORE_ALIAS, self._threshold, self._action]
        else:
            base = [V2_ALIAS, self.variant.value, self._remember]
        return base + [self._input, *self._guards]

    def to_string(self) -> str:
        parameters = self.parameters()

        if not self._guards:
            while len(parameters) > 1 and parameters[-1] == NULL:
                parameters.pop()

        return ",".join(parameters).replace(",", ":", 1)

    def __str__(self) -> str:
        return self.to_string()


@dataclass
class Declaration:
    """A parsed middleware declaration."""

    alias: str
    parameters: list[str] = field(default_factory=list)

    def slot(self, index: int) -> str:
        if index < len(self.parameters) and self.parameters[index] != "":
            return self.parameters[index]
        return NULL

    @property
    def guards(self) -> list[str]:
        start = 1 if self.alias == CONFIRM_ALIAS else 3
        return self.parameters[start:]

    @property
    def variant(self) -> ChallengeVariant:
        if self.alias == SCORE_ALIAS:
            return ChallengeVariant.SCORE
        if self.alias != V2_ALIAS or not self.parameters:
            raise ConfigurationError(f"The declaration [{self}] has no challenge variant.")
        try:
            return ChallengeVariant(self.parameters[0])
        except ValueError:
            raise ConfigurationError(
                f"The reCAPTCHA variant [{self.parameters[0]}] is not supported."
            ) from None

    @property
    def remember(self) -> str:
        return self.slot(1) if self.alias == V2_ALIAS else NULL

    @property
    def threshold(self) -> Optional[float]:
        if self.alias != SCORE_ALIAS or self.slot(0) == NULL:
            return None
        return float(self.slot(0))

    @property
    def action(self) -> Optional[str]:
        if self.alias != SCORE_ALIAS or self.slot(1) == NULL:
            return None
        return self.slot(1)

    @property
    def input(self) -> str:
        return self.slot(2)

    @property
    def route(self) -> str:
        return self.slot(0) if self.alias == CONFIRM_ALIAS else NULL

    def __str__(self) -> str:
        if not self.parameters:
            return self.alias
        return f"{self.alias}:{','.join(self.parameters)}"


def parse_declaration(declaration: str) -> Declaration:
    """Split a declaration string into its alias and positional parameters."""
    alias, _, rest = declaration.strip().partition(":")
    if alias not in (V2_ALIAS, SCORE_ALIAS, CONFIRM_ALIAS):
        raise ConfigurationError(f"Unknown reCAPTCHA middleware alias [{alias}].")
    parameters = [part.strip() for part in rest.split(",")] if rest else []
    return Declaration(alias=alias, parameters=parameters)
