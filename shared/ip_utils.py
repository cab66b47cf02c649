"""
Client IP resolution for the ``remoteip`` field sent to siteverify.

Takes the ``Request`` explicitly so it is testable without an app.
"""

from __future__ import annotations

from fastapi import Request

# Proxy headers, most trusted first
_IP_HEADERS: tuple[str, ...] = (
    "CF-Connecting-IP",
    "True-Client-IP",
    "X-Forwarded-For",
    "X-Real-IP",
    "X-Client-IP",
)


def get_client_ip(request: Request) -> str:
    """Return the address of the user solving the challenge.

    The first non-empty proxy header wins; lists such as ``X-Forwarded-For``
    contribute their leftmost entry. Falls back to the socket peer, or ``""``
    when the request has no client (e.g. some test transports).
    """
    for header in _IP_HEADERS:
        value: str | None = request.headers.get(header)
        if value:
            ip = value.split(",")[0].strip()
            if ip:
                return ip

    return request.client.host if request.client else ""
