"""
Shared fixtures for the blog service tests.

The app runs against an in-memory mongomock collection and a mocked
attachment backend, so no MongoDB server or Cloudinary account is needed.
"""
from unittest.mock import AsyncMock, MagicMock

import mongomock
import pytest
from fastapi.testclient import TestClient

from apps.blog.main import create_app
from apps.blog.models import Attachment
from apps.blog.storage import AttachmentStorage
from apps.shared.config import Settings

ALLOWED_ORIGIN = "https://blog.example.com"


@pytest.fixture
def settings(tmp_path):
    return Settings(
        allowed_origins=[ALLOWED_ORIGIN],
        storage_backend="local",
        upload_dir=str(tmp_path / "uploads"),
    )


@pytest.fixture
def collection():
    return mongomock.MongoClient().blogs.blogs


@pytest.fixture
def storage():
    mock_storage = MagicMock(spec=AttachmentStorage)
    mock_storage.store = AsyncMock(
        return_value=Attachment(
            reference="https://res.cloudinary.com/demo/image/upload/v1/blog-images/new.png",
            handle="blog-images/new",
        )
    )
    mock_storage.delete = AsyncMock(return_value=True)
    return mock_storage


@pytest.fixture
def app(settings, collection, storage):
    return create_app(settings, collection=collection, storage=storage)


@pytest.fixture
def client(app):
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def blog_form():
    return {
        "title": "A",
        "content": "B",
        "category": "tech",
        "subcategory": "Article",
        "author": "Z",
    }


@pytest.fixture
def insert_blog(collection):
    """Insert a post directly into the collection and return its id as a string."""
    def _insert(**overrides):
        document = {
            "title": "Existing",
            "content": "Body",
            "category": "tech",
            "subcategory": "Tutorial",
            "author": "Ada",
            "status": "None",
            "image": None,
            "imagePublicId": None,
        }
        document.update(overrides)
        return str(collection.insert_one(document).inserted_id)
    return _insert
