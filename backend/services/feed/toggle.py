"""Atomic like toggling."""

from __future__ import annotations

import logging
from typing import Any, cast

from sqlalchemy import and_, delete, insert
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql import ColumnElement

from db.errors import is_unique_violation
from models import Like, LikeTargetType
from models.common import utcnow
from .common import eq

logger = logging.getLogger(__name__)


def _like_key_filter(
    user_id: str,
    target_id: str,
    target_type: LikeTargetType,
) -> ColumnElement[bool]:
    return cast(
        ColumnElement[bool],
        and_(
            eq(Like.user_id, user_id),
            eq(Like.target_type, target_type.value),
            eq(Like.target_id, target_id),
        ),
    )


async def _toggle_once(
    session: AsyncSession,
    *,
    user_id: str,
    target_id: str,
    target_type: LikeTargetType,
) -> bool:
    delete_result = await session.execute(
        delete(Like).where(_like_key_filter(user_id, target_id, target_type))
    )
    if int(cast(Any, delete_result).rowcount or 0) > 0:
        await session.commit()
        return False

    await session.execute(
        insert(Like).values(
            user_id=user_id,
            target_type=target_type.value,
            target_id=target_id,
            created_at=utcnow(),
        )
    )
    await session.commit()
    return True


async def toggle_like(
    session: AsyncSession,
    *,
    user_id: str,
    target_id: str,
    target_type: LikeTargetType,
) -> bool:
    """Flip the like of ``user_id`` on the target and return the new state.

    The delete is conditional and the insert is guarded by the primary key, so
    a concurrent insert for the same key surfaces as a unique violation. The
    toggle is then retried once, which removes the row that won the race.
    """
    try:
        return await _toggle_once(
            session,
            user_id=user_id,
            target_id=target_id,
            target_type=target_type,
        )
    except IntegrityError as exc:
        await session.rollback()
        if not is_unique_violation(exc):
            raise
        logger.info(
            "Retrying like toggle after concurrent insert",
            extra={
                "user_id": user_id,
                "target_id": target_id,
                "target_type": target_type.value,
            },
        )

    try:
        return await _toggle_once(
            session,
            user_id=user_id,
            target_id=target_id,
            target_type=target_type,
        )
    except IntegrityError:
        await session.rollback()
        raise
