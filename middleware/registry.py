"""
Route-level registration of the reCAPTCHA middleware.

Each alias maps to a middleware class. ``recaptcha(declaration)`` turns a
declaration string (or builder) into a FastAPI dependency:

    @router.post(
        "/contact",
        dependencies=[Depends(recaptcha(ReCaptchaDeclaration.checkbox().remember()))],
    )

The score dependency yields, so its terminate phase runs once the route has
produced its response.
"""

from __future__ import annotations

from typing import AsyncIterator, Callable, Union

from fastapi import Request

from builders.declaration import (
    CONFIRM_ALIAS,
    SCORE_ALIAS,
    V2_ALIAS,
    ReCaptchaDeclaration,
    parse_declaration,
)
from middleware.confirm import ConfirmReCaptcha
from middleware.context import service_of
from middleware.verify_score import VerifyReCaptchaV3
from middleware.verify_v2 import VerifyReCaptchaV2

ALIASES = {
    V2_ALIAS: VerifyReCaptchaV2,
    SCORE_ALIAS: VerifyReCaptchaV3,
    CONFIRM_ALIAS: ConfirmReCaptcha,
}


def recaptcha(declaration: Union[str, ReCaptchaDeclaration]) -> Callable:
    """Build the FastAPI dependency for a middleware declaration."""
    parsed = parse_declaration(str(declaration))
    parameters = [parameter or "null" for parameter in parsed.parameters]

    if parsed.alias == V2_ALIAS:
        # Fail at import time on a declaration without a usable variant
        _ = parsed.variant

        async def verify_recaptcha(request: Request) -> None:
            await VerifyReCaptchaV2(service_of(request)).handle(request, *parameters)

        return verify_recaptcha

    if parsed.alias == SCORE_ALIAS:

        async def verify_recaptcha_score(request: Request) -> AsyncIterator[None]:
            middleware = VerifyReCaptchaV3(service_of(request))
            await middleware.handle(request, *parameters)
            try:
                yield
            finally:
                middleware.terminate(request)

        return verify_recaptcha_score

    async def confirm_recaptcha(request: Request) -> None:
        await ConfirmReCaptcha(service_of(request)).handle(request, *parameters)

    return confirm_recaptcha
