"""
Middleware declaration builders.

Routes describe their reCAPTCHA protection with a declaration string; the
builder produces it without hand-writing positional parameters and the
parser reads it back for the middleware registry.
"""

from .declaration import (
    CONFIRM_ALIAS,
    SCORE_ALIAS,
    V2_ALIAS,
    Declaration,
    ReCaptchaDeclaration,
    parse_declaration,
)

__all__ = [
    "CONFIRM_ALIAS",
    "SCORE_ALIAS",
    "V2_ALIAS",
    "Declaration",
    "ReCaptchaDeclaration",
    "parse_declaration",
]
