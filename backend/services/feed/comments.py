"""Comment and reply tree assembly for a single post."""

from __future__ import annotations

from typing import Any, cast

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import aliased

from models import Comment, LikeTargetType, Reply, User
from .common import asc, ensure_aware, eq
from .likes import DEFAULT_PREVIEW_LIMIT, LikeSummary, aggregate_likes
from .schemas import AuthorView, CommentView, ReplyView

COMMENT_TREE_TARGET_TYPES = (LikeTargetType.COMMENT, LikeTargetType.REPLY)


def build_reply_view(
    reply: Reply,
    author_email: str,
    summary: LikeSummary | None = None,
) -> ReplyView:
    summary = summary or LikeSummary()
    return ReplyView(
        id=reply.id,
        content=reply.content,
        created_at=ensure_aware(reply.created_at),
        author=AuthorView(id=reply.author_id, email=author_email),
        like_count=summary.count,
        is_liked=summary.viewer_liked,
        liked_by=summary.preview,
    )


def build_comment_view(
    comment: Comment,
    author_email: str,
    summary: LikeSummary | None = None,
    replies: list[ReplyView] | None = None,
) -> CommentView:
    summary = summary or LikeSummary()
    return CommentView(
        id=comment.id,
        content=comment.content,
        created_at=ensure_aware(comment.created_at),
        author=AuthorView(id=comment.author_id, email=author_email),
        like_count=summary.count,
        is_liked=summary.viewer_liked,
        liked_by=summary.preview,
        replies=replies or [],
    )


async def get_comment_tree(
    session: AsyncSession,
    post_id: str,
    *,
    viewer_id: str | None = None,
    preview_limit: int = DEFAULT_PREVIEW_LIMIT,
) -> list[CommentView]:
    """Return every comment of ``post_id`` oldest first, each with its replies."""
    comment_author = aliased(User, name="comment_author")
    reply_author = aliased(User, name="reply_author")
    comment_author_any = cast(Any, comment_author)
    reply_author_any = cast(Any, reply_author)

    result = await session.execute(
        select(
            cast(Any, Comment),
            comment_author_any.email,
            cast(Any, Reply),
            reply_author_any.email,
        )
        .join(comment_author, eq(comment_author_any.id, Comment.author_id))
        .outerjoin(Reply, eq(Reply.comment_id, Comment.id))
        .outerjoin(reply_author, eq(reply_author_any.id, Reply.author_id))
        .where(eq(Comment.post_id, post_id))
        .order_by(
            asc(Comment.created_at),
            asc(Comment.id),
            asc(Reply.created_at),
            asc(Reply.id),
        )
    )

    comments: dict[str, tuple[Comment, str]] = {}
    replies_by_comment: dict[str, list[tuple[Reply, str]]] = {}
    for comment, comment_email, reply, reply_email in result.all():
        if comment.id not in comments:
            comments[comment.id] = (comment, comment_email)
            replies_by_comment[comment.id] = []
        if reply is not None:
            replies_by_comment[comment.id].append((reply, reply_email))

    target_ids = list(comments)
    for reply_rows in replies_by_comment.values():
        target_ids.extend(reply.id for reply, _email in reply_rows)

    summaries = await aggregate_likes(
        session,
        target_ids,
        COMMENT_TREE_TARGET_TYPES,
        viewer_id=viewer_id,
        preview_limit=preview_limit,
    )

    return [
        build_comment_view(
            comment,
            comment_email,
            summaries.get(comment_id),
            replies=[
                build_reply_view(reply, reply_email, summaries.get(reply.id))
                for reply, reply_email in replies_by_comment[comment_id]
            ],
        )
        for comment_id, (comment, comment_email) in comments.items()
    ]
