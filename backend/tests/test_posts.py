"""Tests for post creation."""

import logging
from typing import Any
from uuid import uuid4

import pytest
from httpx import AsyncClient
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from api.v1 import posts as posts_api
from core.config import settings
from models import Post
from services import storage

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 64


class DummyMinio:
    def __init__(self) -> None:
        self.stored: dict[str, bytes] = {}
        self.removed: list[str] = []

    def bucket_exists(self, bucket_name: str) -> bool:
        return True

    def make_bucket(self, bucket_name: str) -> None:
        return None

    def put_object(self, bucket_name, object_name, data, length, content_type=None):
        self.stored[object_name] = data.read()

    def remove_object(self, bucket_name, object_name):
        self.removed.append(object_name)


@pytest.fixture()
def dummy_minio(monkeypatch: pytest.MonkeyPatch) -> DummyMinio:
    client = DummyMinio()
    monkeypatch.setattr(storage, "get_minio_client", lambda: client)
    return client


@pytest.mark.asyncio
async def test_create_text_post(
    async_client: AsyncClient,
    db_session: AsyncSession,
    make_user,
    headers_for,
):
    author = await make_user("author")

    response = await async_client.post(
        "/api/v1/posts",
        data={"content": "  Hello feed  "},
        headers=headers_for(author),
    )

    assert response.status_code == 201
    body = response.json()
    assert body["message"] == "Post created successfully"
    post = body["post"]
    assert post["content"] == "Hello feed"
    assert post["imageUrl"] is None
    assert post["author"] == {"id": author.id, "email": author.email}
    assert post["likeCount"] == 0
    assert post["isLiked"] is False
    assert post["likedBy"] == []

    stored = (await db_session.execute(select(Post))).scalar_one()
    assert stored.id == post["id"]

    feed = (await async_client.get("/api/v1/posts")).json()
    assert [item["id"] for item in feed["posts"]] == [post["id"]]


@pytest.mark.asyncio
async def test_create_image_post(
    async_client: AsyncClient,
    make_user,
    headers_for,
    dummy_minio: DummyMinio,
):
    author = await make_user("author")

    response = await async_client.post(
        "/api/v1/posts",
        files={"image": ("photo.png", PNG_BYTES, "image/png")},
        headers=headers_for(author),
    )

    assert response.status_code == 201
    post = response.json()["post"]
    assert post["content"] is None
    (object_key,) = dummy_minio.stored
    assert object_key.startswith(f"posts/{author.id}/")
    assert object_key.endswith(".png")
    assert dummy_minio.stored[object_key] == PNG_BYTES
    assert post["imageUrl"] == f"{settings.media_base_url.rstrip('/')}/{object_key}"


@pytest.mark.asyncio
async def test_create_post_requires_content_or_image(
    async_client: AsyncClient,
    make_user,
    headers_for,
):
    author = await make_user("author")

    empty = await async_client.post(
        "/api/v1/posts",
        data={"content": "   "},
        headers=headers_for(author),
    )

    assert empty.status_code == 400
    assert empty.json() == {
        "message": "Validation failed",
        "errors": {"content": ["Either content or image is required"]},
    }


@pytest.mark.asyncio
async def test_create_post_rejects_unsupported_file_type(
    async_client: AsyncClient,
    make_user,
    headers_for,
    dummy_minio: DummyMinio,
):
    author = await make_user("author")

    response = await async_client.post(
        "/api/v1/posts",
        data={"content": "see attachment"},
        files={"image": ("notes.pdf", b"%PDF-1.7", "application/pdf")},
        headers=headers_for(author),
    )

    assert response.status_code == 400
    assert "Invalid file type" in response.json()["message"]
    assert dummy_minio.stored == {}


@pytest.mark.asyncio
async def test_create_post_rejects_oversized_upload(
    async_client: AsyncClient,
    make_user,
    headers_for,
    dummy_minio: DummyMinio,
    monkeypatch: pytest.MonkeyPatch,
):
    monkeypatch.setattr(settings, "upload_max_bytes", 16)
    author = await make_user("author")

    response = await async_client.post(
        "/api/v1/posts",
        files={"image": ("photo.png", PNG_BYTES, "image/png")},
        headers=headers_for(author),
    )

    assert response.status_code == 413
    assert dummy_minio.stored == {}


@pytest.mark.asyncio
async def test_create_post_requires_authentication(async_client: AsyncClient):
    response = await async_client.post("/api/v1/posts", data={"content": "anonymous"})

    assert response.status_code == 401
    assert response.json() == {"message": "Unauthorized"}


@pytest.mark.asyncio
async def test_failed_commit_removes_uploaded_image(
    async_client: AsyncClient,
    make_user,
    headers_for,
    dummy_minio: DummyMinio,
    monkeypatch: pytest.MonkeyPatch,
    caplog: pytest.LogCaptureFixture,
):
    author = await make_user("author")

    async def failing_commit(self: Any) -> None:
        raise SQLAlchemyError("disk full")

    monkeypatch.setattr(AsyncSession, "commit", failing_commit)
    caplog.set_level(logging.ERROR, logger=posts_api.__name__)

    response = await async_client.post(
        "/api/v1/posts",
        data={"content": "doomed"},
        files={"image": ("photo.png", PNG_BYTES, "image/png")},
        headers=headers_for(author),
    )

    assert response.status_code == 500
    assert response.json() == {"message": "Failed to create post"}
    assert len(dummy_minio.stored) == 1
    assert dummy_minio.removed == list(dummy_minio.stored)
    (record,) = [r for r in caplog.records if r.getMessage() == "Failed to persist post"]
    assert getattr(record, "author_id") == author.id
    assert record.exc_info is not None
    assert isinstance(record.exc_info[1], SQLAlchemyError)


@pytest.mark.asyncio
async def test_failed_commit_of_text_post_is_logged_with_author(
    async_client: AsyncClient,
    db_session: AsyncSession,
    make_user,
    headers_for,
    monkeypatch: pytest.MonkeyPatch,
    caplog: pytest.LogCaptureFixture,
):
    author = await make_user("author")

    async def failing_commit(self: Any) -> None:
        raise SQLAlchemyError("disk full")

    monkeypatch.setattr(AsyncSession, "commit", failing_commit)
    caplog.set_level(logging.ERROR)

    response = await async_client.post(
        "/api/v1/posts",
        data={"content": "doomed"},
        headers=headers_for(author),
    )

    assert response.status_code == 500
    assert response.json() == {"message": "Failed to create post"}
    messages = [record.getMessage() for record in caplog.records]
    assert "Failed to persist post" in messages
    assert "Unhandled error while serving request" not in messages
    assert (await db_session.execute(select(Post))).scalars().all() == []


@pytest.mark.asyncio
async def test_database_errors_are_not_leaked(
    async_client: AsyncClient,
    monkeypatch: pytest.MonkeyPatch,
):
    async def broken_feed(*args: Any, **kwargs: Any):
        raise SQLAlchemyError("relation posts does not exist at 10.0.0.5")

    monkeypatch.setattr(posts_api, "get_feed_page", broken_feed)

    response = await async_client.get("/api/v1/posts")

    assert response.status_code == 500
    assert response.json() == {"message": "Internal server error"}


@pytest.mark.asyncio
async def test_post_creation_is_rate_limited(
    async_client: AsyncClient,
    make_user,
    headers_for,
    monkeypatch: pytest.MonkeyPatch,
):
    monkeypatch.setattr(settings, "post_create_rate_limit", 1)
    author = await make_user("author")
    headers = headers_for(author)

    first = await async_client.post("/api/v1/posts", data={"content": "one"}, headers=headers)
    second = await async_client.post("/api/v1/posts", data={"content": "two"}, headers=headers)

    assert first.status_code == 201
    assert second.status_code == 429
    assert int(second.headers["retry-after"]) >= 1


@pytest.mark.asyncio
async def test_health(async_client: AsyncClient):
    response = await async_client.get("/api/v1/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


@pytest.mark.asyncio
async def test_unknown_post_like_id_is_404(
    async_client: AsyncClient,
    make_user,
    headers_for,
):
    author = await make_user("author")

    response = await async_client.post(
        f"/api/v1/posts/{uuid4()}/like",
        headers=headers_for(author),
    )

    assert response.status_code == 404
