"""Authentication domain services."""

from .cookies import (
    SESSION_COOKIE,
    clear_session_cookie,
    set_session_cookie,
    token_from_request,
)
from .identity import (
    SessionIdentity,
    authenticate_user,
    find_user_by_email,
    normalize_email,
    verify_session_token,
)

__all__ = [
    "SESSION_COOKIE",
    "SessionIdentity",
    "authenticate_user",
    "clear_session_cookie",
    "find_user_by_email",
    "normalize_email",
    "set_session_cookie",
    "token_from_request",
    "verify_session_token",
]
