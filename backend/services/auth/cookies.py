"""HTTP cookie helpers for session token transport."""

from __future__ import annotations

from datetime import timedelta
from typing import Literal

from fastapi import Request, Response

from core import settings

SESSION_COOKIE = "auth_token"
COOKIE_PATH = "/"
COOKIE_SAMESITE: Literal["lax", "strict", "none"] = "lax"
COOKIE_SECURE = (
    settings.app_env.strip().lower() not in {"local", "test"}
    and not settings.allow_insecure_http_cookies
)


def _session_ttl() -> timedelta:
    return timedelta(minutes=settings.access_token_expire_minutes)


def set_session_cookie(response: Response, token: str) -> None:
    response.set_cookie(
        key=SESSION_COOKIE,
        value=token,
        httponly=True,
        secure=COOKIE_SECURE,
        samesite=COOKIE_SAMESITE,
        max_age=int(_session_ttl().total_seconds()),
        path=COOKIE_PATH,
    )


def clear_session_cookie(response: Response) -> None:
    response.delete_cookie(
        key=SESSION_COOKIE,
        path=COOKIE_PATH,
        secure=COOKIE_SECURE,
        samesite=COOKIE_SAMESITE,
    )


def _bearer_token(request: Request) -> str | None:
    authorization = request.headers.get("authorization")
    if not authorization:
        return None

    scheme, _, value = authorization.partition(" ")
    if scheme.lower() != "bearer":
        return None
    token = value.strip()
    return token or None


def token_from_request(request: Request) -> str | None:
    """Return the session token from the cookie, falling back to a Bearer header."""
    token = request.cookies.get(SESSION_COOKIE)
    if token:
        return token
    return _bearer_token(request)
