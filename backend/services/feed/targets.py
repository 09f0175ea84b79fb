"""Existence checks for like and reply targets."""

from __future__ import annotations

from typing import Any, cast

from fastapi import HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql import ColumnElement

from models import Comment, LikeTargetType, Post, Reply
from .common import eq

_TARGET_MODELS: dict[LikeTargetType, tuple[Any, str]] = {
    LikeTargetType.POST: (Post, "Post not found"),
    LikeTargetType.COMMENT: (Comment, "Comment not found"),
    LikeTargetType.REPLY: (Reply, "Reply not found"),
}


async def target_exists(
    session: AsyncSession,
    target_type: LikeTargetType,
    target_id: str,
) -> bool:
    model, _detail = _TARGET_MODELS[target_type]
    id_column = cast(ColumnElement[str], model.id)
    result = await session.execute(
        select(id_column).where(eq(id_column, target_id)).limit(1)
    )
    return result.scalar_one_or_none() is not None


async def require_target_exists(
    session: AsyncSession,
    target_type: LikeTargetType,
    target_id: str,
) -> None:
    """Raise 404 when the post, comment or reply does not exist."""
    if not await target_exists(session, target_type, target_id):
        _model, detail = _TARGET_MODELS[target_type]
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=detail)


async def require_post_exists(session: AsyncSession, post_id: str) -> None:
    await require_target_exists(session, LikeTargetType.POST, post_id)


async def require_comment_exists(session: AsyncSession, comment_id: str) -> None:
    await require_target_exists(session, LikeTargetType.COMMENT, comment_id)
