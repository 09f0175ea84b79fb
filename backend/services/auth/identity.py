"""Session identity resolution and credential checks."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, cast

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql import ColumnElement

from core import ACCESS_TOKEN_TYPE, decode_token, hash_password, needs_rehash, verify_password
from models import User


@dataclass(frozen=True)
class SessionIdentity:
    user_id: str
    email: str


def _eq(column: Any, value: Any) -> ColumnElement[bool]:
    return cast(ColumnElement[bool], column == value)


def normalize_email(value: str) -> str:
    return value.strip().lower()


def verify_session_token(token: str) -> SessionIdentity | None:
    """Return the identity carried by ``token`` or None if it is unusable."""
    try:
        payload = decode_token(token)
    except ValueError:
        return None

    if payload.get("type") != ACCESS_TOKEN_TYPE:
        return None
    subject = payload.get("sub")
    email = payload.get("email")
    if not isinstance(subject, str) or not subject.strip():
        return None
    if not isinstance(email, str):
        return None
    return SessionIdentity(user_id=subject.strip(), email=email)


async def find_user_by_email(session: AsyncSession, email: str) -> User | None:
    lowered_email_column = cast(Any, func.lower(cast(Any, User.email)))
    result = await session.execute(
        select(User).where(_eq(lowered_email_column, normalize_email(email))).limit(1)
    )
    return result.scalar_one_or_none()


async def authenticate_user(
    session: AsyncSession,
    email: str,
    password: str,
) -> User | None:
    """Return the user when the credentials match, upgrading stale hashes."""
    user = await find_user_by_email(session, email)
    if user is None or not verify_password(password, user.password_hash):
        return None
    if needs_rehash(user.password_hash):
        user.password_hash = hash_password(password)
        session.add(user)
        await session.commit()
    return user
