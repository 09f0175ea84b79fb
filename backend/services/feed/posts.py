"""Cursor-paginated post feed assembly."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, cast

from sqlalchemy import and_, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql import ColumnElement

from models import LikeTargetType, Post, User
from .common import desc, ensure_aware, eq, is_canonical_uuid, lt
from .cursor import FeedCursor, decode_cursor, encode_cursor
from .likes import DEFAULT_PREVIEW_LIMIT, LikeSummary, aggregate_likes
from .schemas import AuthorView, PostView

FeedPostRow = tuple[Post, str]


@dataclass
class FeedPage:
    posts: list[PostView] = field(default_factory=list)
    next_cursor: str | None = None
    has_more: bool = False


def build_post_view(
    post: Post,
    author_email: str,
    summary: LikeSummary | None = None,
) -> PostView:
    summary = summary or LikeSummary()
    return PostView(
        id=post.id,
        content=post.content,
        image_url=post.image_url,
        created_at=ensure_aware(post.created_at),
        updated_at=ensure_aware(post.updated_at),
        author=AuthorView(id=post.author_id, email=author_email),
        like_count=summary.count,
        is_liked=summary.viewer_liked,
        liked_by=summary.preview,
    )


async def resolve_cursor(
    session: AsyncSession,
    raw_cursor: str | None,
) -> FeedCursor | None:
    """Turn a client cursor into a feed boundary.

    Composite tokens decode without touching the database. A bare post id is
    still accepted and resolved to its key; unknown ids start from the top.
    """
    if not raw_cursor:
        return None
    decoded = decode_cursor(raw_cursor)
    if decoded is not None:
        return decoded

    candidate = raw_cursor.strip()
    if not is_canonical_uuid(candidate):
        return None
    created_at_column = cast(ColumnElement[Any], Post.created_at)
    result = await session.execute(
        select(created_at_column).where(eq(Post.id, candidate)).limit(1)
    )
    created_at = result.scalar_one_or_none()
    if created_at is None:
        return None
    return FeedCursor(created_at=ensure_aware(created_at), post_id=candidate)


def build_cursor_filter(cursor: FeedCursor) -> ColumnElement[bool]:
    """Rows strictly after ``cursor`` in ``created_at desc, id desc`` order."""
    return cast(
        ColumnElement[bool],
        or_(
            lt(Post.created_at, cursor.created_at),
            and_(
                eq(Post.created_at, cursor.created_at),
                lt(Post.id, cursor.post_id),
            ),
        ),
    )


async def get_feed_page(
    session: AsyncSession,
    *,
    cursor: str | None,
    page_size: int,
    viewer_id: str | None = None,
    include_preview: bool = True,
    preview_limit: int = DEFAULT_PREVIEW_LIMIT,
) -> FeedPage:
    """Return one page of the global feed, newest first."""
    if page_size < 1:
        raise ValueError("page_size must be positive")

    boundary = await resolve_cursor(session, cursor)

    post_entity = cast(Any, Post)
    author_email_column = cast(ColumnElement[str], User.email)
    query = (
        select(post_entity, author_email_column)
        .join(User, eq(User.id, Post.author_id))
        .order_by(
            desc(Post.created_at),
            desc(Post.id),
        )
        .limit(page_size + 1)
    )
    if boundary is not None:
        query = query.where(build_cursor_filter(boundary))

    result = await session.execute(query)
    rows = cast(list[FeedPostRow], result.all())
    has_more = len(rows) > page_size
    if has_more:
        rows = rows[:page_size]

    summaries = await aggregate_likes(
        session,
        [post.id for post, _email in rows],
        LikeTargetType.POST,
        viewer_id=viewer_id,
        preview_limit=preview_limit if include_preview else 0,
    )
    posts = [
        build_post_view(post, author_email, summaries.get(post.id))
        for post, author_email in rows
    ]

    next_cursor = None
    if has_more and rows:
        last_post = rows[-1][0]
        next_cursor = encode_cursor(last_post.created_at, last_post.id)
    return FeedPage(posts=posts, next_cursor=next_cursor, has_more=has_more)
