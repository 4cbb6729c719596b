# src/resto_pulse/api/v1/endpoints/uploads.py
"""Image upload endpoints for the Resto Pulse API."""

import logging

from fastapi import APIRouter, File, UploadFile

from resto_pulse.core.settings import settings
from resto_pulse.schemas.upload import (
    DeleteImagesRequest,
    DeleteImagesResponse,
    UploadedImage,
    UploadResponse,
)
from resto_pulse.services.results import ErrorKind
from resto_pulse.services.storage import ImageUpload

from ..dependencies import ServiceFailure, StorageServiceDep, unwrap

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/uploads", tags=["uploads"])


async def _read_upload(file: UploadFile) -> ImageUpload:
    # Read one byte past the limit so oversized files are detected without
    # buffering them whole.
    data = await file.read(settings.max_upload_bytes + 1)
    return ImageUpload(
        data=data,
        content_type=file.content_type or "",
        filename=file.filename,
    )


@router.post("", response_model=UploadResponse)
async def upload_images(
    storage: StorageServiceDep,
    files: list[UploadFile] = File(...),
) -> UploadResponse:
    """Validate and store up to five images, returning their HTTPS URLs."""
    if len(files) > settings.max_images_per_post:
        raise ServiceFailure(
            ErrorKind.QUOTA_EXCEEDED, f"Maximum {settings.max_images_per_post} images allowed"
        )
    uploads = [await _read_upload(file) for file in files]
    stored = unwrap(await storage.upload_many(uploads))
    logger.info("Stored %d uploaded images", len(stored))
    return UploadResponse(
        images=[UploadedImage(url=image.url, public_id=image.public_id) for image in stored]
    )


@router.delete("", response_model=DeleteImagesResponse)
async def delete_images(
    payload: DeleteImagesRequest,
    storage: StorageServiceDep,
) -> DeleteImagesResponse:
    """Delete images by public id or delivery URL."""
    deleted = unwrap(await storage.delete_many(payload.items))
    return DeleteImagesResponse(deleted=deleted)
