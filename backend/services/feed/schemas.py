"""Feed API payload schemas."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator
from pydantic.alias_generators import to_camel
from pydantic_core import PydanticCustomError

MAX_POST_CONTENT_LENGTH = 10_000
MAX_COMMENT_CONTENT_LENGTH = 10_000


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class AuthorView(CamelModel):
    id: str
    email: str


class LikerView(CamelModel):
    id: str
    email: str


class ReplyView(CamelModel):
    id: str
    content: str
    created_at: datetime
    author: AuthorView
    like_count: int = 0
    is_liked: bool = False
    liked_by: list[LikerView] = Field(default_factory=list)


class CommentView(ReplyView):
    replies: list[ReplyView] = Field(default_factory=list)


class PostView(CamelModel):
    id: str
    content: str | None = None
    image_url: str | None = None
    created_at: datetime
    updated_at: datetime
    author: AuthorView
    like_count: int = 0
    is_liked: bool = False
    liked_by: list[LikerView] = Field(default_factory=list)


class PaginationView(CamelModel):
    next_cursor: str | None = None
    has_more: bool = False


class PostListResponse(CamelModel):
    posts: list[PostView]
    pagination: PaginationView


class PostCreateResponse(CamelModel):
    message: str
    post: PostView


class CommentListResponse(CamelModel):
    comments: list[CommentView]


class CommentCreateResponse(CamelModel):
    message: str
    comment: CommentView


class ReplyCreateResponse(CamelModel):
    message: str
    reply: ReplyView


class LikeToggleResponse(CamelModel):
    message: str
    liked: bool


class PostCreateRequest(BaseModel):
    """Validated form fields of a new post. ``has_image`` must precede ``content``."""

    has_image: bool = False
    content: str | None = Field(default=None, validate_default=True)

    @field_validator("content")
    @classmethod
    def _normalize_content(cls, value: str | None, info: ValidationInfo) -> str | None:
        normalized = value.strip() if value is not None else ""
        if len(normalized) > MAX_POST_CONTENT_LENGTH:
            raise PydanticCustomError(
                "content_too_long",
                "Content must be at most {max_length} characters",
                {"max_length": MAX_POST_CONTENT_LENGTH},
            )
        if not normalized and not info.data.get("has_image", False):
            raise PydanticCustomError(
                "content_or_image_required",
                "Either content or image is required",
            )
        return normalized or None


def _require_text(value: str, *, empty_message: str) -> str:
    normalized = value.strip()
    if not normalized:
        raise PydanticCustomError("content_empty", empty_message)
    if len(normalized) > MAX_COMMENT_CONTENT_LENGTH:
        raise PydanticCustomError(
            "content_too_long",
            "Content must be at most {max_length} characters",
            {"max_length": MAX_COMMENT_CONTENT_LENGTH},
        )
    return normalized


class CommentCreateRequest(BaseModel):
    content: str

    @field_validator("content")
    @classmethod
    def _normalize_content(cls, value: str) -> str:
        return _require_text(value, empty_message="Comment cannot be empty")


class ReplyCreateRequest(BaseModel):
    content: str

    @field_validator("content")
    @classmethod
    def _normalize_content(cls, value: str) -> str:
        return _require_text(value, empty_message="Reply cannot be empty")
