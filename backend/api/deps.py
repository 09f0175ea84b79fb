"""Shared FastAPI dependencies."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator, Awaitable, Callable

from fastapi import Depends, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from core import settings
from db.session import get_session
from models import User
from services.auth import SessionIdentity, token_from_request, verify_session_token
from services.rate_limiter import default_client_identifier, get_rate_limiter

logger = logging.getLogger(__name__)


async def get_db() -> AsyncIterator[AsyncSession]:
    async for session in get_session():
        yield session


def get_optional_identity(request: Request) -> SessionIdentity | None:
    """Identity of the viewer, or None for anonymous and invalid sessions."""
    token = token_from_request(request)
    if not token:
        return None
    return verify_session_token(token)


def get_viewer_id(
    identity: SessionIdentity | None = Depends(get_optional_identity),
) -> str | None:
    return identity.user_id if identity is not None else None


def get_current_identity(request: Request) -> SessionIdentity:
    token = token_from_request(request)
    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized",
        )
    identity = verify_session_token(token)
    if identity is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token",
        )
    return identity


async def get_current_user(
    identity: SessionIdentity = Depends(get_current_identity),
    session: AsyncSession = Depends(get_db),
) -> User:
    user = await session.get(User, identity.user_id)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token",
        )
    return user


def rate_limit(scope: str, limit_setting: str) -> Callable[..., Awaitable[None]]:
    """Build a dependency enforcing the fixed-window limit named by ``limit_setting``.

    Authenticated callers are keyed by user id, anonymous ones by client address.
    """

    async def _enforce(
        request: Request,
        viewer_id: str | None = Depends(get_viewer_id),
    ) -> None:
        max_requests = int(getattr(settings, limit_setting))
        identifier = f"user:{viewer_id}" if viewer_id else default_client_identifier(request)
        result = await get_rate_limiter().check(
            f"{scope}:{identifier}",
            max_requests,
            settings.rate_limit_window_seconds,
        )
        if not result.allowed:
            logger.info(
                "Rate limit exceeded",
                extra={"scope": scope, "client": identifier},
            )
            raise HTTPException(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                detail="Too many requests. Please try again later.",
                headers={"Retry-After": str(result.retry_after_seconds())},
            )

    return _enforce
