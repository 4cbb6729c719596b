"""Image storage on Cloudinary.

Uploads are validated server-side (size, MIME type, magic bytes) before any
bytes leave the process. The Cloudinary SDK is synchronous, so calls run in
the default executor and are bounded by a timeout. The executor thread cannot
be cancelled, so an upload that lands after its timeout deletes itself.
"""

from __future__ import annotations

import asyncio
import io
import logging
import re
import threading
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any
from urllib.parse import urlparse

import cloudinary
import cloudinary.api
import cloudinary.exceptions
import cloudinary.uploader

from resto_pulse.core.settings import settings
from resto_pulse.services.results import (
    ErrorKind,
    QuotaExceededError,
    ServiceResult,
    TransientError,
    ValidationError,
)

logger = logging.getLogger(__name__)

ALLOWED_IMAGE_TYPES = ("image/jpeg", "image/jpg", "image/png", "image/webp")

_TRANSFORMATION_SEGMENT = re.compile(r"^[a-z]_")
_VERSION_SEGMENT = re.compile(r"^v\d+$")


@dataclass(frozen=True)
class StoredImage:
    """Location of an uploaded image."""

    url: str
    public_id: str


@dataclass(frozen=True)
class ImageUpload:
    """Raw bytes of one image plus the MIME type the client declared."""

    data: bytes
    content_type: str
    filename: str | None = None


def _matches_signature(data: bytes, content_type: str) -> bool:
    if content_type in ("image/jpeg", "image/jpg"):
        return data[:3] == b"\xff\xd8\xff"
    if content_type == "image/png":
        return data[:8] == b"\x89PNG\r\n\x1a\n"
    if content_type == "image/webp":
        return data[:4] == b"RIFF" and data[8:12] == b"WEBP"
    return False


def validate_image(upload: ImageUpload, max_bytes: int | None = None) -> None:
    """Reject empty, oversized, unsupported or spoofed images.

    Raises:
        ValidationError: If the image cannot be accepted.
    """
    limit = settings.max_upload_bytes if max_bytes is None else max_bytes
    content_type = (upload.content_type or "").lower()
    if not upload.data:
        raise ValidationError("Image is empty")
    if len(upload.data) > limit:
        raise ValidationError(f"Image exceeds the {limit // (1024 * 1024)}MB limit")
    if content_type not in ALLOWED_IMAGE_TYPES:
        raise ValidationError("Only JPEG, PNG and WebP images are allowed")
    if not _matches_signature(upload.data, content_type):
        raise ValidationError("Image content does not match its declared type")


def validate_images(uploads: Sequence[ImageUpload], max_count: int | None = None) -> None:
    """Validate a batch of images and the per-request count cap.

    Raises:
        QuotaExceededError: If more images than allowed were sent.
        ValidationError: If any single image is invalid.
    """
    limit = settings.max_images_per_post if max_count is None else max_count
    if len(uploads) > limit:
        raise QuotaExceededError(f"Maximum {limit} images allowed")
    for upload in uploads:
        validate_image(upload)


def extract_public_id(url: str) -> str | None:
    """Recover the Cloudinary public id from a delivery URL.

    ``https://res.cloudinary.com/demo/image/upload/c_fill,w_300/v123/folder/pic.jpg``
    yields ``folder/pic``. Returns None for URLs that are not Cloudinary uploads.
    """
    try:
        parts = [part for part in urlparse(url).path.split("/") if part]
    except (AttributeError, ValueError):
        return None
    if "upload" not in parts:
        return None

    remainder = parts[parts.index("upload") + 1:]
    while remainder and (
        _TRANSFORMATION_SEGMENT.match(remainder[0]) or _VERSION_SEGMENT.match(remainder[0])
    ):
        remainder = remainder[1:]
    if not remainder:
        return None

    remainder[-1] = remainder[-1].rsplit(".", 1)[0]
    return "/".join(remainder)


class BlobStorageService:
    """Upload and delete images on Cloudinary."""

    def __init__(
        self,
        folder: str | None = None,
        timeout_seconds: float | None = None,
        batch_size: int | None = None,
        batch_delay_seconds: float | None = None,
    ) -> None:
        self.folder = folder or settings.cloudinary_folder
        self.timeout_seconds = (
            settings.upload_timeout_seconds if timeout_seconds is None else timeout_seconds
        )
        self.batch_size = max(1, batch_size or settings.upload_batch_size)
        self.batch_delay_seconds = (
            settings.upload_batch_delay_seconds
            if batch_delay_seconds is None
            else batch_delay_seconds
        )
        if settings.cloudinary_configured:
            cloudinary.config(
                cloud_name=settings.cloudinary_cloud_name,
                api_key=settings.cloudinary_api_key,
                api_secret=settings.cloudinary_api_secret,
                secure=True,
            )

    def _upload_sync(
        self, upload: ImageUpload, abandoned: threading.Event | None = None
    ) -> dict[str, Any]:
        result = cloudinary.uploader.upload(
            io.BytesIO(upload.data),
            folder=self.folder,
            resource_type="image",
            allowed_formats=["jpg", "jpeg", "png", "webp"],
        )
        if abandoned is not None and abandoned.is_set():
            self._discard_late_upload(upload, result.get("public_id"))
        return result

    def _discard_late_upload(self, upload: ImageUpload, public_id: str | None) -> None:
        logger.warning(
            "Upload of %s finished after its timeout as %s, deleting it",
            upload.filename,
            public_id,
        )
        if not public_id:
            return
        try:
            cloudinary.uploader.destroy(public_id)
        except cloudinary.exceptions.Error as exc:
            logger.error("Failed to delete late upload %s: %s", public_id, exc)

    async def _run(self, func: Any, *args: Any) -> Any:
        loop = asyncio.get_running_loop()
        return await asyncio.wait_for(
            loop.run_in_executor(None, func, *args),
            timeout=self.timeout_seconds,
        )

    async def _upload_checked(self, upload: ImageUpload) -> StoredImage:
        validate_image(upload)
        abandoned = threading.Event()
        try:
            result = await self._run(self._upload_sync, upload, abandoned)
        except asyncio.TimeoutError as exc:
            abandoned.set()
            logger.warning(
                "Upload of %s abandoned after %.0fs", upload.filename, self.timeout_seconds
            )
            raise TransientError("Upload timed out, please try again") from exc
        except cloudinary.exceptions.Error as exc:
            logger.error("Cloudinary rejected upload of %s: %s", upload.filename, exc)
            raise TransientError("Image storage is unavailable") from exc

        url = result.get("secure_url")
        public_id = result.get("public_id")
        if not url or not public_id:
            raise TransientError("Image storage returned an incomplete response")
        logger.info("Uploaded image %s (%d bytes)", public_id, len(upload.data))
        return StoredImage(url=url, public_id=public_id)

    async def upload(self, upload: ImageUpload) -> ServiceResult[StoredImage]:
        """Upload one image; a timeout abandons it and is not retried."""
        try:
            return ServiceResult.ok(await self._upload_checked(upload))
        except (ValidationError, TransientError) as exc:
            return ServiceResult.fail(exc.kind, str(exc))

    async def upload_many(
        self, uploads: Sequence[ImageUpload]
    ) -> ServiceResult[list[StoredImage]]:
        """Upload images in small concurrent batches.

        Every image is validated before the first byte is sent. If any upload
        fails, the images already stored by this call are deleted again.
        """
        try:
            validate_images(uploads)
        except (ValidationError, QuotaExceededError) as exc:
            return ServiceResult.fail(exc.kind, str(exc))

        stored: list[StoredImage] = []
        for start in range(0, len(uploads), self.batch_size):
            if start:
                await asyncio.sleep(self.batch_delay_seconds)
            batch = uploads[start:start + self.batch_size]
            results = await asyncio.gather(
                *(self._upload_checked(upload) for upload in batch),
                return_exceptions=True,
            )
            failure: BaseException | None = None
            for result in results:
                if isinstance(result, StoredImage):
                    stored.append(result)
                elif failure is None:
                    failure = result
            if failure is not None:
                if stored:
                    await self.delete_many([image.public_id for image in stored])
                if isinstance(failure, (ValidationError, TransientError)):
                    return ServiceResult.fail(failure.kind, str(failure))
                raise failure
        return ServiceResult.ok(stored)

    async def delete(self, public_id_or_url: str) -> bool:
        """Delete one image by public id or delivery URL."""
        public_id = public_id_or_url
        if public_id_or_url.startswith(("http://", "https://")):
            public_id = extract_public_id(public_id_or_url) or ""
        if not public_id:
            return False
        try:
            result = await self._run(cloudinary.uploader.destroy, public_id)
        except (asyncio.TimeoutError, cloudinary.exceptions.Error) as exc:
            logger.error("Failed to delete image %s: %s", public_id, exc)
            return False
        return result.get("result") == "ok"

    async def delete_many(self, public_ids_or_urls: Sequence[str]) -> ServiceResult[int]:
        """Delete several images; returns how many were removed."""
        public_ids = []
        for item in public_ids_or_urls:
            if item.startswith(("http://", "https://")):
                item = extract_public_id(item) or ""
            if item:
                public_ids.append(item)
        if not public_ids:
            return ServiceResult.ok(0)
        try:
            result = await self._run(cloudinary.api.delete_resources, public_ids)
        except (asyncio.TimeoutError, cloudinary.exceptions.Error) as exc:
            logger.error("Failed to delete %d images: %s", len(public_ids), exc)
            return ServiceResult.fail(ErrorKind.TRANSIENT, "Image storage is unavailable")
        deleted = result.get("deleted", {})
        return ServiceResult.ok(sum(1 for status in deleted.values() if status == "deleted"))
