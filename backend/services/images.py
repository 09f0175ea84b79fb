"""Validation of uploaded post images."""

from __future__ import annotations

from dataclasses import dataclass

from fastapi import UploadFile

IMAGE_EXTENSIONS = {
    "image/jpeg": "jpg",
    "image/jpg": "jpg",
    "image/png": "png",
    "image/gif": "gif",
    "image/webp": "webp",
}
READ_CHUNK_SIZE = 64 * 1024


class UploadTooLargeError(ValueError):
    """Raised when an upload exceeds the configured byte limit."""


class UnsupportedImageTypeError(ValueError):
    """Raised when an upload is not one of the accepted image types."""


@dataclass(frozen=True)
class ImageUpload:
    data: bytes
    content_type: str
    extension: str


async def read_upload_file(upload: UploadFile, max_bytes: int) -> bytes:
    """Read an upload in chunks, refusing anything larger than ``max_bytes``."""
    chunks: list[bytes] = []
    total = 0
    while True:
        chunk = await upload.read(READ_CHUNK_SIZE)
        if not chunk:
            break
        total += len(chunk)
        if total > max_bytes:
            raise UploadTooLargeError(
                f"File size exceeds {max_bytes // (1024 * 1024)}MB limit."
            )
        chunks.append(chunk)
    return b"".join(chunks)


async def read_image_upload(upload: UploadFile | None, max_bytes: int) -> ImageUpload | None:
    """Return the validated image, or None when no file was sent."""
    if upload is None:
        return None

    data = await read_upload_file(upload, max_bytes)
    if not data:
        return None

    content_type = (upload.content_type or "").split(";", 1)[0].strip().lower()
    extension = IMAGE_EXTENSIONS.get(content_type)
    if extension is None:
        raise UnsupportedImageTypeError(
            "Invalid file type. Only JPEG, PNG, GIF, and WebP images are allowed."
        )
    return ImageUpload(data=data, content_type=content_type, extension=extension)
