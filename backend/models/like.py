"""Like model shared by posts, comments and replies."""

from __future__ import annotations

from datetime import datetime
from enum import Enum

from sqlalchemy import Column, DateTime, ForeignKey, Index, String, func
from sqlmodel import Field, SQLModel

from .common import utcnow


class LikeTargetType(str, Enum):
    POST = "post"
    COMMENT = "comment"
    REPLY = "reply"


class Like(SQLModel, table=True):
    """Tracks which users liked which target. One row per (user, target)."""

    __tablename__ = "likes"
    __table_args__ = (
        Index("ix_likes_target_created_at", "target_type", "target_id", "created_at"),
    )

    user_id: str = Field(
        sa_column=Column(
            String(36),
            ForeignKey("users.id", ondelete="CASCADE"),
            primary_key=True,
        )
    )
    target_type: str = Field(
        sa_column=Column(String(16), primary_key=True)
    )
    # Polymorphic reference; existence is checked by the caller before toggling.
    target_id: str = Field(
        sa_column=Column(String(36), primary_key=True)
    )
    created_at: datetime = Field(
        default_factory=utcnow,
        sa_column=Column(
            DateTime(timezone=True), server_default=func.now(), nullable=False
        ),
    )
