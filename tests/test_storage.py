"""
Tests for attachment storage backends.
"""
import os
from unittest.mock import patch

import cloudinary.exceptions
import pytest

from apps.blog.storage import (
    CloudinaryStorage,
    LocalDiskStorage,
    build_storage,
    public_id_from_url,
)
from apps.shared.config import Settings
from apps.shared.errors import AttachmentStorageError, ValidationError

IMAGE = b"\x89PNG fake image bytes"


@pytest.mark.parametrize("url,expected", [
    ("https://res.cloudinary.com/demo/image/upload/v1712/blog-images/1712-photo.png", "blog-images/1712-photo"),
    ("https://res.cloudinary.com/demo/image/upload/v1712/blog-images/1712-photo.jpg.png", "blog-images/1712-photo.jpg"),
    ("https://example.com/folder/noext", "folder/noext"),
    ("", None),
    (None, None),
])
def test_public_id_from_url(url, expected):
    assert public_id_from_url(url) == expected


# ──────────────────────────────────────────────────────────────────────────────
# Local disk
# ──────────────────────────────────────────────────────────────────────────────

@pytest.fixture
def local_storage(tmp_path):
    return LocalDiskStorage(upload_dir=str(tmp_path / "uploads"), base_url="/uploads/")


@pytest.mark.asyncio
async def test_local_store_and_delete(local_storage):
    attachment = await local_storage.store(IMAGE, "photo.PNG", "image/png")

    assert attachment.handle.endswith(".png")
    assert attachment.reference == f"/uploads/{attachment.handle}"
    path = os.path.join(local_storage.upload_dir, attachment.handle)
    with open(path, "rb") as f:
        assert f.read() == IMAGE

    assert await local_storage.delete(attachment.handle) is True
    assert not os.path.exists(path)
    assert await local_storage.delete(attachment.handle) is False


@pytest.mark.asyncio
async def test_local_delete_stays_inside_upload_dir(local_storage, tmp_path):
    outside = tmp_path / "secret.txt"
    outside.write_text("keep me")

    assert await local_storage.delete("../secret.txt") is False
    assert outside.exists()


@pytest.mark.asyncio
async def test_local_store_rejects_bad_uploads(tmp_path):
    storage = LocalDiskStorage(upload_dir=str(tmp_path), base_url="/uploads", max_file_size=4)

    with pytest.raises(ValidationError, match="Invalid file type"):
        await storage.store(IMAGE, "notes.txt", "text/plain")
    with pytest.raises(ValidationError, match="File too large"):
        await storage.store(IMAGE, "photo.png", "image/png")
    with pytest.raises(ValidationError):
        await storage.store(b"", "photo.png", "image/png")


# ──────────────────────────────────────────────────────────────────────────────
# Cloudinary
# ──────────────────────────────────────────────────────────────────────────────

@pytest.fixture
def cloud_storage():
    return CloudinaryStorage(cloud_name="demo", api_key="key", api_secret="secret")


@pytest.mark.asyncio
async def test_cloudinary_store_uses_returned_public_id(cloud_storage):
    with patch("cloudinary.uploader.upload") as mock_upload:
        mock_upload.return_value = {
            "secure_url": "https://res.cloudinary.com/demo/image/upload/v1/blog-images/1-photo.png",
            "public_id": "blog-images/1-photo",
        }
        attachment = await cloud_storage.store(IMAGE, "photo.png", "image/png")

    assert attachment.reference == "https://res.cloudinary.com/demo/image/upload/v1/blog-images/1-photo.png"
    assert attachment.handle == "blog-images/1-photo"
    kwargs = mock_upload.call_args.kwargs
    assert kwargs["folder"] == "blog-images"
    assert kwargs["format"] == "png"
    assert kwargs["public_id"].endswith("-photo.png")


@pytest.mark.asyncio
async def test_cloudinary_store_derives_public_id_from_url(cloud_storage):
    with patch("cloudinary.uploader.upload") as mock_upload:
        mock_upload.return_value = {
            "secure_url": "https://res.cloudinary.com/demo/image/upload/v1/blog-images/2-cat.png",
        }
        attachment = await cloud_storage.store(IMAGE, "cat.png", "image/png")

    assert attachment.handle == "blog-images/2-cat"


@pytest.mark.asyncio
async def test_cloudinary_store_failure_raises(cloud_storage):
    with patch("cloudinary.uploader.upload", side_effect=cloudinary.exceptions.Error("boom")):
        with pytest.raises(AttachmentStorageError):
            await cloud_storage.store(IMAGE, "photo.png", "image/png")


@pytest.mark.asyncio
async def test_cloudinary_delete(cloud_storage):
    with patch("cloudinary.uploader.destroy", return_value={"result": "ok"}) as mock_destroy:
        assert await cloud_storage.delete("blog-images/1-photo") is True
    mock_destroy.assert_called_once_with("blog-images/1-photo")

    with patch("cloudinary.uploader.destroy", return_value={"result": "not found"}):
        assert await cloud_storage.delete("blog-images/missing") is False

    with patch("cloudinary.uploader.destroy", side_effect=cloudinary.exceptions.Error("down")):
        assert await cloud_storage.delete("blog-images/1-photo") is False


# ──────────────────────────────────────────────────────────────────────────────
# Backend selection
# ──────────────────────────────────────────────────────────────────────────────

def test_build_storage_local(tmp_path):
    storage = build_storage(Settings(storage_backend="local", upload_dir=str(tmp_path)))

    assert isinstance(storage, LocalDiskStorage)


def test_build_storage_cloudinary():
    settings = Settings(
        storage_backend="cloudinary",
        cloudinary_cloud_name="demo",
        cloudinary_api_key="key",
        cloudinary_api_secret="secret",
        cloudinary_folder="posts",
    )

    storage = build_storage(settings)

    assert isinstance(storage, CloudinaryStorage)
    assert storage.folder == "posts"


def test_build_storage_cloudinary_requires_credentials():
    with pytest.raises(RuntimeError):
        build_storage(Settings(storage_backend="cloudinary"))


def test_build_storage_unknown_backend():
    with pytest.raises(ValueError):
        build_storage(Settings(storage_backend="s3"))


@pytest.mark.asyncio
async def test_local_store_extension_comes_from_content_type(local_storage):
    attachment = await local_storage.store(IMAGE, "page.html", "image/jpeg")

    assert attachment.handle.endswith(".jpg")
    assert os.path.exists(os.path.join(local_storage.upload_dir, attachment.handle))
