"""Reply like endpoint."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from api.deps import get_current_user, get_db, rate_limit
from models import LikeTargetType, User
from services.feed import require_target_exists, toggle_like
from services.feed.schemas import LikeToggleResponse

router = APIRouter(prefix="/replies", tags=["replies"])


@router.post(
    "/{reply_id}/like",
    response_model=LikeToggleResponse,
    response_model_by_alias=True,
    dependencies=[Depends(rate_limit("like:toggle", "like_toggle_rate_limit"))],
)
async def toggle_reply_like(
    reply_id: str,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_db),
) -> LikeToggleResponse:
    await require_target_exists(session, LikeTargetType.REPLY, reply_id)
    liked = await toggle_like(
        session,
        user_id=current_user.id,
        target_id=reply_id,
        target_type=LikeTargetType.REPLY,
    )
    return LikeToggleResponse(
        message="Reply liked" if liked else "Reply unliked",
        liked=liked,
    )
