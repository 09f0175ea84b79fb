"""SQLModel models package."""

from .comment import Comment
from .like import Like, LikeTargetType
from .post import Post
from .reply import Reply
from .user import User

__all__ = [
    "User",
    "Post",
    "Comment",
    "Reply",
    "Like",
    "LikeTargetType",
]
