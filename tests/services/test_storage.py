# tests/services/test_storage.py
"""Tests for image validation and the Cloudinary-backed storage service."""

import asyncio
import time

import pytest

from resto_pulse.services.results import ErrorKind, QuotaExceededError, ValidationError
from resto_pulse.services.storage import (
    BlobStorageService,
    ImageUpload,
    extract_public_id,
    validate_image,
    validate_images,
)

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 32
JPEG_BYTES = b"\xff\xd8\xff\xe0" + b"\x00" * 32
WEBP_BYTES = b"RIFF\x00\x00\x00\x00WEBPVP8 " + b"\x00" * 16


@pytest.fixture()
def storage() -> BlobStorageService:
    return BlobStorageService(folder="test", timeout_seconds=5, batch_size=2, batch_delay_seconds=0)


def _fake_upload(data, **options):
    name = f"{options['folder']}/img{len(data.getvalue())}"
    return {
        "secure_url": f"https://res.cloudinary.com/demo/image/upload/v1/{name}.png",
        "public_id": name,
    }


@pytest.mark.parametrize(
    ("data", "content_type"),
    [(PNG_BYTES, "image/png"), (JPEG_BYTES, "image/jpeg"), (WEBP_BYTES, "image/webp")],
)
def test_valid_images_pass(data, content_type) -> None:
    validate_image(ImageUpload(data, content_type))


@pytest.mark.parametrize(
    ("upload", "message"),
    [
        (ImageUpload(b"", "image/png"), "empty"),
        (ImageUpload(PNG_BYTES, "image/gif"), "Only JPEG"),
        (ImageUpload(JPEG_BYTES, "image/png"), "does not match"),
    ],
)
def test_invalid_images_are_rejected(upload, message) -> None:
    with pytest.raises(ValidationError, match=message):
        validate_image(upload)


def test_oversized_image_is_rejected() -> None:
    with pytest.raises(ValidationError, match="limit"):
        validate_image(ImageUpload(PNG_BYTES, "image/png"), max_bytes=10)


def test_too_many_images_exceed_quota() -> None:
    with pytest.raises(QuotaExceededError):
        validate_images([ImageUpload(PNG_BYTES, "image/png")] * 6)


@pytest.mark.parametrize(
    ("url", "expected"),
    [
        ("https://res.cloudinary.com/demo/image/upload/v1712/resto-pulse/pic.jpg", "resto-pulse/pic"),
        (
            "https://res.cloudinary.com/demo/image/upload/c_fill,w_300/v1/folder/sub/pic.png",
            "folder/sub/pic",
        ),
        ("https://res.cloudinary.com/demo/image/upload/pic.webp", "pic"),
        ("https://example.com/images/pic.jpg", None),
    ],
)
def test_extract_public_id(url, expected) -> None:
    assert extract_public_id(url) == expected


async def test_upload_returns_secure_url(storage, mocker) -> None:
    upload_mock = mocker.patch("cloudinary.uploader.upload", side_effect=_fake_upload)

    result = await storage.upload(ImageUpload(PNG_BYTES, "image/png", "dish.png"))

    assert result.success
    assert result.value.public_id == f"test/img{len(PNG_BYTES)}"
    assert result.value.url.startswith("https://")
    upload_mock.assert_called_once()


async def test_spoofed_upload_never_reaches_storage(storage, mocker) -> None:
    upload_mock = mocker.patch("cloudinary.uploader.upload", side_effect=_fake_upload)

    result = await storage.upload(ImageUpload(b"<html>", "image/png"))

    assert result.kind is ErrorKind.VALIDATION
    upload_mock.assert_not_called()


async def test_slow_upload_times_out_and_is_deleted_when_it_lands(mocker) -> None:
    def _slow_upload(data, **options):
        time.sleep(0.3)
        return _fake_upload(data, **options)

    mocker.patch("cloudinary.uploader.upload", side_effect=_slow_upload)
    destroy_mock = mocker.patch("cloudinary.uploader.destroy", return_value={"result": "ok"})
    storage = BlobStorageService(folder="test", timeout_seconds=0.05)

    result = await storage.upload(ImageUpload(PNG_BYTES, "image/png"))

    assert result.kind is ErrorKind.TRANSIENT
    assert "timed out" in result.error
    destroy_mock.assert_not_called()

    for _ in range(40):
        if destroy_mock.called:
            break
        await asyncio.sleep(0.05)
    destroy_mock.assert_called_once_with(f"test/img{len(PNG_BYTES)}")


async def test_upload_many_runs_every_batch(storage, mocker) -> None:
    upload_mock = mocker.patch("cloudinary.uploader.upload", side_effect=_fake_upload)
    uploads = [ImageUpload(PNG_BYTES + b"\x00" * i, "image/png") for i in range(5)]

    result = await storage.upload_many(uploads)

    assert result.success
    assert len(result.value) == 5
    assert upload_mock.call_count == 5


async def test_upload_many_cleans_up_after_failure(storage, mocker) -> None:
    import cloudinary.exceptions

    calls = {"count": 0}

    def _flaky_upload(data, **options):
        calls["count"] += 1
        if calls["count"] == 3:
            raise cloudinary.exceptions.Error("boom")
        return _fake_upload(data, **options)

    mocker.patch("cloudinary.uploader.upload", side_effect=_flaky_upload)
    delete_mock = mocker.patch(
        "cloudinary.api.delete_resources", return_value={"deleted": {}}
    )
    uploads = [ImageUpload(PNG_BYTES + b"\x00" * i, "image/png") for i in range(4)]

    result = await storage.upload_many(uploads)

    assert result.kind is ErrorKind.TRANSIENT
    delete_mock.assert_called_once()
    assert len(delete_mock.call_args.args[0]) >= 2


async def test_delete_many_counts_deleted(storage, mocker) -> None:
    delete_mock = mocker.patch(
        "cloudinary.api.delete_resources",
        return_value={"deleted": {"test/a": "deleted", "test/b": "not_found"}},
    )

    result = await storage.delete_many(
        ["https://res.cloudinary.com/demo/image/upload/v1/test/a.png", "test/b", ""]
    )

    assert result.value == 1
    delete_mock.assert_called_once_with(["test/a", "test/b"])


async def test_delete_single_image(storage, mocker) -> None:
    mocker.patch("cloudinary.uploader.destroy", return_value={"result": "ok"})

    assert await storage.delete("test/a")
    assert not await storage.delete("https://example.com/nothing.png")
