"""Post feed, creation, like and comment endpoints."""

from __future__ import annotations

import asyncio
import logging
from typing import Annotated
from uuid import uuid4

from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, UploadFile, status
from fastapi.exceptions import RequestValidationError
from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from api.deps import get_current_user, get_db, get_viewer_id, rate_limit
from core import settings
from models import Comment, LikeTargetType, Post, User
from services import (
    UnsupportedImageTypeError,
    UploadTooLargeError,
    delete_object,
    public_object_url,
    put_object,
    read_image_upload,
)
from services.feed import (
    build_comment_view,
    build_post_view,
    get_comment_tree,
    get_feed_page,
    require_post_exists,
    toggle_like,
)
from services.feed.schemas import (
    CommentCreateRequest,
    CommentCreateResponse,
    CommentListResponse,
    LikeToggleResponse,
    PaginationView,
    PostCreateRequest,
    PostCreateResponse,
    PostListResponse,
)
from .pagination import parse_page_size

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/posts", tags=["posts"])


@router.get("", response_model=PostListResponse, response_model_by_alias=True)
async def list_posts(
    cursor: Annotated[str | None, Query()] = None,
    limit: Annotated[str | None, Query()] = None,
    preview: Annotated[bool, Query()] = True,
    viewer_id: str | None = Depends(get_viewer_id),
    session: AsyncSession = Depends(get_db),
) -> PostListResponse:
    page = await get_feed_page(
        session,
        cursor=cursor,
        page_size=parse_page_size(limit),
        viewer_id=viewer_id,
        include_preview=preview,
        preview_limit=settings.like_preview_limit,
    )
    return PostListResponse(
        posts=page.posts,
        pagination=PaginationView(next_cursor=page.next_cursor, has_more=page.has_more),
    )


@router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    response_model=PostCreateResponse,
    response_model_by_alias=True,
    dependencies=[Depends(rate_limit("post:create", "post_create_rate_limit"))],
)
async def create_post(
    content: Annotated[str | None, Form()] = None,
    image: Annotated[UploadFile | None, File()] = None,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_db),
) -> PostCreateResponse:
    try:
        upload = await read_image_upload(image, settings.upload_max_bytes)
    except UploadTooLargeError as exc:
        raise HTTPException(
            status_code=status.HTTP_413_CONTENT_TOO_LARGE,
            detail=str(exc),
        ) from exc
    except UnsupportedImageTypeError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        ) from exc

    try:
        payload = PostCreateRequest(has_image=upload is not None, content=content)
    except ValidationError as exc:
        raise RequestValidationError(exc.errors()) from exc

    # A rollback expires current_user; its columns are read once here.
    author_id = current_user.id
    author_email = current_user.email
    object_key: str | None = None
    image_url: str | None = None
    if upload is not None:
        object_key = f"posts/{author_id}/{uuid4()}.{upload.extension}"
        await asyncio.to_thread(put_object, object_key, upload.data, upload.content_type)
        image_url = public_object_url(object_key)

    post = Post(author_id=author_id, content=payload.content, image_url=image_url)
    session.add(post)
    try:
        await session.commit()
    except SQLAlchemyError as exc:
        await session.rollback()
        if object_key is not None:
            try:
                await asyncio.to_thread(delete_object, object_key)
            except Exception:
                logger.warning(
                    "Failed to clean up uploaded post image",
                    extra={"object_key": object_key},
                    exc_info=True,
                )
        logger.error(
            "Failed to persist post",
            extra={"author_id": author_id},
            exc_info=exc,
        )
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to create post",
        ) from exc

    await session.refresh(post)
    return PostCreateResponse(
        message="Post created successfully",
        post=build_post_view(post, author_email),
    )


@router.post(
    "/{post_id}/like",
    response_model=LikeToggleResponse,
    response_model_by_alias=True,
    dependencies=[Depends(rate_limit("like:toggle", "like_toggle_rate_limit"))],
)
async def toggle_post_like(
    post_id: str,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_db),
) -> LikeToggleResponse:
    await require_post_exists(session, post_id)
    liked = await toggle_like(
        session,
        user_id=current_user.id,
        target_id=post_id,
        target_type=LikeTargetType.POST,
    )
    return LikeToggleResponse(
        message="Post liked" if liked else "Post unliked",
        liked=liked,
    )


@router.get(
    "/{post_id}/comments",
    response_model=CommentListResponse,
    response_model_by_alias=True,
    dependencies=[Depends(rate_limit("comment:list", "comment_list_rate_limit"))],
)
async def list_post_comments(
    post_id: str,
    viewer_id: str | None = Depends(get_viewer_id),
    session: AsyncSession = Depends(get_db),
) -> CommentListResponse:
    await require_post_exists(session, post_id)
    comments = await get_comment_tree(
        session,
        post_id,
        viewer_id=viewer_id,
        preview_limit=settings.like_preview_limit,
    )
    return CommentListResponse(comments=comments)


@router.post(
    "/{post_id}/comments",
    status_code=status.HTTP_201_CREATED,
    response_model=CommentCreateResponse,
    response_model_by_alias=True,
    dependencies=[Depends(rate_limit("comment:create", "comment_create_rate_limit"))],
)
async def create_comment(
    post_id: str,
    payload: CommentCreateRequest,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_db),
) -> CommentCreateResponse:
    await require_post_exists(session, post_id)

    comment = Comment(post_id=post_id, author_id=current_user.id, content=payload.content)
    session.add(comment)
    await session.commit()
    await session.refresh(comment)

    return CommentCreateResponse(
        message="Comment created successfully",
        comment=build_comment_view(comment, current_user.email),
    )
