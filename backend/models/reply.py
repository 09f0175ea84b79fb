"""Reply model."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import Column, DateTime, ForeignKey, Index, String, Text, func
from sqlmodel import Field, SQLModel

from .common import new_id, utcnow


class Reply(SQLModel, table=True):
    """Answer to a comment. Replies never nest further."""

    __tablename__ = "replies"
    __table_args__ = (
        Index("ix_replies_comment_created_at", "comment_id", "created_at"),
    )

    id: str = Field(default_factory=new_id, sa_column=Column(String(36), primary_key=True))
    comment_id: str = Field(
        sa_column=Column(
            String(36),
            ForeignKey("comments.id", ondelete="CASCADE"),
            nullable=False,
        )
    )
    author_id: str = Field(
        sa_column=Column(
            String(36),
            ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
        )
    )
    content: str = Field(sa_column=Column(Text, nullable=False))
    created_at: datetime = Field(
        default_factory=utcnow,
        sa_column=Column(
            DateTime(timezone=True), server_default=func.now(), nullable=False
        ),
    )
