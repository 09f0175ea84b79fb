"""Batched like aggregation for posts, comments and replies.

``aggregate_likes`` resolves like counts, the viewer's own like state and a
bounded newest-first preview of likers for any number of targets with at most
two queries: one for the viewer's likes and one for the per-target totals and
previews. The preview is cut inside the database with a ``row_number()``
window so a heavily liked target never ships its whole like list.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any, cast

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql import ColumnElement

from models import Like, LikeTargetType, User
from .common import desc, eq
from .schemas import LikerView

DEFAULT_PREVIEW_LIMIT = 10


@dataclass
class LikeSummary:
    count: int = 0
    viewer_liked: bool = False
    preview: list[LikerView] = field(default_factory=list)


def _normalize_target_types(
    target_types: LikeTargetType | Iterable[LikeTargetType],
) -> list[str]:
    if isinstance(target_types, LikeTargetType):
        return [target_types.value]
    values = [LikeTargetType(target_type).value for target_type in target_types]
    if not values:
        raise ValueError("At least one like target type is required")
    return values


async def _load_viewer_likes(
    session: AsyncSession,
    scope: list[ColumnElement[bool]],
    viewer_id: str,
) -> set[str]:
    target_id_column = cast(ColumnElement[str], Like.target_id)
    result = await session.execute(
        select(target_id_column).where(*scope, eq(Like.user_id, viewer_id))
    )
    return set(result.scalars().all())


async def _load_counts(
    session: AsyncSession,
    scope: list[ColumnElement[bool]],
) -> dict[str, int]:
    target_id_column = cast(ColumnElement[str], Like.target_id)
    count_column = cast(Any, func.count())
    result = await session.execute(
        select(target_id_column, count_column).where(*scope).group_by(target_id_column)
    )
    return {target_id: int(total) for target_id, total in result.all()}


async def _load_counts_and_previews(
    session: AsyncSession,
    scope: list[ColumnElement[bool]],
    preview_limit: int,
) -> tuple[dict[str, int], dict[str, list[LikerView]]]:
    target_type_column = cast(Any, Like.target_type)
    target_id_column = cast(Any, Like.target_id)
    like_user_column = cast(Any, Like.user_id)
    like_created_at = cast(Any, Like.created_at)
    partition = (target_type_column, target_id_column)

    ranked = (
        select(
            target_id_column.label("target_id"),
            cast(Any, User.id).label("user_id"),
            cast(Any, User.email).label("email"),
            func.row_number()
            .over(
                partition_by=partition,
                order_by=(desc(like_created_at), desc(like_user_column)),
            )
            .label("like_rank"),
            func.count().over(partition_by=partition).label("like_total"),
        )
        .join(User, eq(User.id, Like.user_id))
        .where(*scope)
        .subquery("ranked_likes")
    )
    result = await session.execute(
        select(
            ranked.c.target_id,
            ranked.c.user_id,
            ranked.c.email,
            ranked.c.like_total,
        )
        .where(ranked.c.like_rank <= preview_limit)
        .order_by(ranked.c.target_id, ranked.c.like_rank)
    )

    counts: dict[str, int] = {}
    previews: dict[str, list[LikerView]] = {}
    for target_id, user_id, email, total in result.all():
        counts[target_id] = int(total)
        previews.setdefault(target_id, []).append(LikerView(id=user_id, email=email))
    return counts, previews


async def aggregate_likes(
    session: AsyncSession,
    target_ids: Iterable[str],
    target_types: LikeTargetType | Iterable[LikeTargetType],
    *,
    viewer_id: str | None = None,
    preview_limit: int = DEFAULT_PREVIEW_LIMIT,
) -> dict[str, LikeSummary]:
    """Return a summary for every id in ``target_ids``.

    Targets without likes are included with a zero count and empty preview.
    A ``preview_limit`` of 0 skips the liker projection and only counts.
    """
    if preview_limit < 0:
        raise ValueError("preview_limit must be non-negative")

    ordered_ids = list(dict.fromkeys(target_ids))
    if not ordered_ids:
        return {}

    type_values = _normalize_target_types(target_types)
    scope = [
        cast(ColumnElement[bool], cast(Any, Like.target_type).in_(type_values)),
        cast(ColumnElement[bool], cast(Any, Like.target_id).in_(ordered_ids)),
    ]

    liked_ids: set[str] = set()
    if viewer_id is not None:
        liked_ids = await _load_viewer_likes(session, scope, viewer_id)

    if preview_limit == 0:
        counts = await _load_counts(session, scope)
        previews: dict[str, list[LikerView]] = {}
    else:
        counts, previews = await _load_counts_and_previews(session, scope, preview_limit)

    return {
        target_id: LikeSummary(
            count=counts.get(target_id, 0),
            viewer_liked=target_id in liked_ids,
            preview=previews.get(target_id, []),
        )
        for target_id in ordered_ids
    }
