"""
Guest-only enforcement against named authentication guards.

A guard is a predicate ``(Request) -> bool`` registered on the ReCaptcha
service. The literal "null" names the default guard; when no default is
registered, Starlette's AuthenticationMiddleware user is consulted.
"""

from __future__ import annotations

from typing import Mapping, Optional, Sequence

from fastapi import Request

from errors import ConfigurationError
from services.recaptcha import GuardCheck


def default_guard(request: Request) -> bool:
    if "user" not in request.scope:
        return False
    return bool(getattr(request.user, "is_authenticated", False))


def normalize_guards(guards: Sequence[Optional[str]]) -> list[Optional[str]]:
    return [None if guard is None or guard.lower() == "null" else guard for guard in guards]


def resolve_guard(checks: Mapping[Optional[str], GuardCheck], name: Optional[str]) -> GuardCheck:
    if name in checks:
        return checks[name]
    if name is None:
        return default_guard
    raise ConfigurationError(f"Auth guard [{name}] is not defined.")


def is_guest(
    request: Request,
    guards: Sequence[Optional[str]],
    checks: Mapping[Optional[str], GuardCheck],
) -> bool:
    """True unless the request is authenticated on any of the given guards."""
    for name in normalize_guards(guards):
        if resolve_guard(checks, name)(request):
            return False
    return True


def is_auth(
    request: Request,
    guards: Sequence[Optional[str]],
    checks: Mapping[Optional[str], GuardCheck],
) -> bool:
    return not is_guest(request, guards, checks)
