"""Reply creation and comment like endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from api.deps import get_current_user, get_db, rate_limit
from models import LikeTargetType, Reply, User
from services.feed import build_reply_view, require_comment_exists, toggle_like
from services.feed.schemas import LikeToggleResponse, ReplyCreateRequest, ReplyCreateResponse

router = APIRouter(prefix="/comments", tags=["comments"])


@router.post(
    "/{comment_id}/replies",
    status_code=status.HTTP_201_CREATED,
    response_model=ReplyCreateResponse,
    response_model_by_alias=True,
    dependencies=[Depends(rate_limit("reply:create", "reply_create_rate_limit"))],
)
async def create_reply(
    comment_id: str,
    payload: ReplyCreateRequest,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_db),
) -> ReplyCreateResponse:
    await require_comment_exists(session, comment_id)

    reply = Reply(comment_id=comment_id, author_id=current_user.id, content=payload.content)
    session.add(reply)
    await session.commit()
    await session.refresh(reply)

    return ReplyCreateResponse(
        message="Reply created successfully",
        reply=build_reply_view(reply, current_user.email),
    )


@router.post(
    "/{comment_id}/like",
    response_model=LikeToggleResponse,
    response_model_by_alias=True,
    dependencies=[Depends(rate_limit("like:toggle", "like_toggle_rate_limit"))],
)
async def toggle_comment_like(
    comment_id: str,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_db),
) -> LikeToggleResponse:
    await require_comment_exists(session, comment_id)
    liked = await toggle_like(
        session,
        user_id=current_user.id,
        target_id=comment_id,
        target_type=LikeTargetType.COMMENT,
    )
    return LikeToggleResponse(
        message="Comment liked" if liked else "Comment unliked",
        liked=liked,
    )
