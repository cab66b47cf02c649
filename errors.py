"""
Application error hierarchy and FastAPI exception handlers.

AppError is the base for all typed errors. The global exception handler
converts AppError subclasses to consistent JSON responses.

ChallengeValidationError is user-facing: browsers are redirected back to the
form with the messages flashed into the session, JSON clients get a 422.
ConfigurationError marks a deployment mistake and surfaces as a 500.
"""

from __future__ import annotations

from typing import Any, Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, RedirectResponse

from shared.logging import get_logger

log = get_logger(__name__)

# Session key where challenge errors are flashed for the next page render
FLASHED_ERRORS_KEY = "_errors"


class AppError(Exception):
    """Base application error. All typed errors inherit from this."""

    status_code: int = 500
    error_code: str = "internal_error"

    def __init__(
        self,
        message: str,
        *,
        field: Optional[str] = None,
        details: Optional[Any] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.field = field
        self.details = details

    def to_dict(self) -> dict:
        payload: dict = {"error": self.message, "code": self.error_code}
        if self.field is not None:
            payload["field"] = self.field
        if self.details is not None:
            payload["details"] = self.details
        return payload


class ConfigurationError(AppError):
    status_code = 500
    error_code = "configuration_error"


class ValidationError(AppError):
    status_code = 400
    error_code = "validation_error"


class ChallengeValidationError(ValidationError):
    """A failed challenge, keyed to the input field that carried the token."""

    status_code = 422
    error_code = "challenge_failed"

    def __init__(
        self,
        field: str,
        messages: list[str],
        *,
        redirect_to: Optional[str] = None,
    ) -> None:
        super().__init__(messages[0] if messages else "", field=field)
        self.errors: dict[str, list[str]] = {field: list(messages)}
        self.redirect_to = redirect_to

    def to_dict(self) -> dict:
        payload = super().to_dict()
        payload["errors"] = self.errors
        return payload


class MissingChallengeError(ChallengeValidationError):
    error_code = "challenge_missing"


class UpstreamRejectionError(ChallengeValidationError):
    error_code = "challenge_rejected"


class ExpectationMismatchError(ChallengeValidationError):
    error_code = "challenge_mismatch"

    def __init__(
        self,
        field: str,
        mismatches: dict[str, str],
        *,
        redirect_to: Optional[str] = None,
    ) -> None:
        super().__init__(field, list(mismatches.values()), redirect_to=redirect_to)
        self.mismatches = mismatches
        self.details = sorted(mismatches)


class ConfirmationRequired(AppError):
    """Raised by the confirm middleware to send the user to the challenge form."""

    status_code = 303
    error_code = "confirmation_required"

    def __init__(self, location: str) -> None:
        super().__init__("reCAPTCHA confirmation required")
        self.location = location


def _wants_json(request: Request) -> bool:
    accept = request.headers.get("accept", "")
    content_type = request.headers.get("content-type", "")
    return "application/json" in accept or "application/json" in content_type


def back_url(request: Request, default: str = "/") -> str:
    """Return the referring location of the request, or *default*."""
    return request.headers.get("referer") or default


def register_error_handlers(app: FastAPI) -> None:
    """Register global exception handlers on the FastAPI app."""

    @app.exception_handler(ChallengeValidationError)
    async def challenge_error_handler(
        request: Request, exc: ChallengeValidationError
    ) -> JSONResponse | RedirectResponse:
        if _wants_json(request):
            return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

        if "session" in request.scope:
            request.session[FLASHED_ERRORS_KEY] = exc.errors
        return RedirectResponse(
            exc.redirect_to or back_url(request), status_code=303
        )

    @app.exception_handler(ConfirmationRequired)
    async def confirmation_handler(
        request: Request, exc: ConfirmationRequired
    ) -> RedirectResponse:
        return RedirectResponse(exc.location, status_code=exc.status_code)

    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
        if exc.status_code >= 500:
            log.error(
                "app_error",
                error=exc.message,
                error_code=exc.error_code,
                path=request.url.path,
            )
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(
        request: Request, exc: Exception
    ) -> JSONResponse:
        log.error(
            "unhandled_exception",
            error=str(exc),
            error_type=type(exc).__name__,
            path=request.url.path,
        )
        return JSONResponse(
            status_code=500,
            content={"error": "An internal server error occurred.", "code": "internal_error"},
        )
