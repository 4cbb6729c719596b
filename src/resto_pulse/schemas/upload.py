# src/resto_pulse/schemas/upload.py
"""Image upload Pydantic schemas."""

from pydantic import BaseModel, Field


class UploadedImage(BaseModel):
    url: str
    public_id: str


class UploadResponse(BaseModel):
    success: bool = True
    images: list[UploadedImage]


class DeleteImagesRequest(BaseModel):
    """Public ids or delivery URLs of images to remove."""

    items: list[str] = Field(..., min_length=1, max_length=50)


class DeleteImagesResponse(BaseModel):
    success: bool = True
    deleted: int
