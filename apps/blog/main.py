"""
Blog API

CRUD endpoints for blog posts with optional image attachments.
Posts live in MongoDB; images go to the configured attachment backend.
"""
import logging
import os
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, APIRouter, Depends, File, Form, Request, UploadFile
from fastapi.staticfiles import StaticFiles
from pymongo.collection import Collection
from starlette.concurrency import run_in_threadpool

from apps.blog.models import Attachment, document_to_dict, empty_attachment_document
from apps.blog.repository import BlogRepository, build_filter, is_valid_id
from apps.blog.schemas import (
    BlogEnvelope,
    BlogResponse,
    MessageResponse,
    validate_create,
    validate_update,
)
from apps.blog.storage import AttachmentStorage, LocalDiskStorage, build_storage
from apps.shared.config import Settings
from apps.shared.cors import setup_cors
from apps.shared.database import check_db_connection, create_client, get_collection
from apps.shared.errors import NotFoundError, ValidationError, register_exception_handlers
from apps.shared.request_logging import setup_request_logging

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/blogs", tags=["blogs"])


# ──────────────────────────────────────────────────────────────────────────────
# Dependencies
# ──────────────────────────────────────────────────────────────────────────────

def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_repository(request: Request) -> BlogRepository:
    return request.app.state.repository


def get_storage(request: Request) -> AttachmentStorage:
    return request.app.state.storage


def valid_blog_id(blog_id: str) -> str:
    """Reject malformed ids before any database call."""
    if not is_valid_id(blog_id):
        raise ValidationError("Invalid Blog ID format")
    return blog_id


async def store_upload(
    storage: AttachmentStorage, image: Optional[UploadFile]
) -> Optional[Attachment]:
    """Store an uploaded image, if the form carried one."""
    if image is None or not image.filename:
        return None
    data = await image.read()
    return await storage.store(data, image.filename, image.content_type)


async def discard_attachment(storage: AttachmentStorage, handle: str) -> None:
    """Best-effort removal of a stored image. Failures are logged, never raised."""
    try:
        deleted = await storage.delete(handle)
    except Exception:
        logger.exception(f"Failed to delete image {handle}")
        return
    if not deleted:
        logger.warning(f"Image {handle} was not deleted from storage")


def has_upload(image: Optional[UploadFile]) -> bool:
    return image is not None and bool(image.filename)


# ──────────────────────────────────────────────────────────────────────────────
# Endpoints
# ──────────────────────────────────────────────────────────────────────────────

@router.get("/health")
def health(repository: BlogRepository = Depends(get_repository)):
    """Health check endpoint - returns service status and database connectivity"""
    db_connected = check_db_connection(repository.collection.database.client)
    return {
        "status": "ok" if db_connected else "degraded",
        "service": "blog",
        "database": "connected" if db_connected else "disconnected",
    }


@router.get("", response_model=list[BlogResponse])
def list_blogs(
    category: Optional[str] = None,
    subcategory: Optional[str] = None,
    status: Optional[str] = None,
    repository: BlogRepository = Depends(get_repository),
):
    """
    List blog posts.
    Each of category, subcategory and status narrows the result to exact matches;
    empty values and "all" are ignored. No ordering, no pagination.
    """
    query = build_filter(category=category, subcategory=subcategory, status=status)
    return [document_to_dict(doc) for doc in repository.find_many(query)]


@router.get("/{blog_id}", response_model=BlogResponse)
def get_blog(
    blog_id: str = Depends(valid_blog_id),
    repository: BlogRepository = Depends(get_repository),
):
    """Get a single blog post by id."""
    document = repository.get(blog_id)
    if document is None:
        raise NotFoundError("Blog not found")
    return document_to_dict(document)


@router.post("", response_model=BlogEnvelope, status_code=201)
async def create_blog(
    title: Optional[str] = Form(None),
    content: Optional[str] = Form(None),
    category: Optional[str] = Form(None),
    subcategory: Optional[str] = Form(None),
    author: Optional[str] = Form(None),
    status: Optional[str] = Form(None),
    image: Optional[UploadFile] = File(None),
    settings: Settings = Depends(get_settings),
    repository: BlogRepository = Depends(get_repository),
    storage: AttachmentStorage = Depends(get_storage),
):
    """
    Create a new blog post.
    Fields are validated before anything is stored. An uploaded image is stored
    first; if that fails the post is not created.
    """
    blog = validate_create(
        {
            "title": title,
            "content": content,
            "category": category,
            "subcategory": subcategory,
            "author": author,
            "status": status,
        },
        require_subcategory=settings.require_subcategory,
    )

    document = blog.model_dump(mode="json")
    document.update(empty_attachment_document())

    attachment = await store_upload(storage, image)
    if attachment:
        document.update(attachment.to_document())

    created = await run_in_threadpool(repository.create, document)
    return {"message": "Blog created successfully", "blog": document_to_dict(created)}


@router.put("/{blog_id}", response_model=BlogEnvelope)
async def update_blog(
    blog_id: str = Depends(valid_blog_id),
    title: Optional[str] = Form(None),
    content: Optional[str] = Form(None),
    category: Optional[str] = Form(None),
    subcategory: Optional[str] = Form(None),
    author: Optional[str] = Form(None),
    status: Optional[str] = Form(None),
    image: Optional[UploadFile] = File(None),
    repository: BlogRepository = Depends(get_repository),
    storage: AttachmentStorage = Depends(get_storage),
):
    """
    Update an existing blog post. Only supplied fields change.

    A new image replaces the old one: the new image is stored, the old one is
    deleted from storage (best-effort), then the post is saved. The image
    deletion and the post write are not atomic.
    """
    changes = validate_update(
        {
            "title": title,
            "content": content,
            "category": category,
            "subcategory": subcategory,
            "author": author,
            "status": status,
        }
    )

    existing = await run_in_threadpool(repository.get, blog_id)
    if existing is None:
        raise NotFoundError("Blog not found")

    if has_upload(image):
        attachment = await store_upload(storage, image)

        previous = Attachment.from_document(existing)
        if previous and previous.handle:
            await discard_attachment(storage, previous.handle)

        changes.update(attachment.to_document())

    updated = await run_in_threadpool(repository.update, blog_id, changes)
    if updated is None:
        raise NotFoundError("Blog not found")

    return {"message": "Blog updated successfully", "blog": document_to_dict(updated)}


@router.delete("/{blog_id}", response_model=MessageResponse)
async def delete_blog(
    blog_id: str = Depends(valid_blog_id),
    repository: BlogRepository = Depends(get_repository),
    storage: AttachmentStorage = Depends(get_storage),
):
    """Delete a blog post and its image."""
    existing = await run_in_threadpool(repository.get, blog_id)
    if existing is None:
        raise NotFoundError("Blog not found")

    attachment = Attachment.from_document(existing)
    if attachment and attachment.handle:
        await discard_attachment(storage, attachment.handle)

    deleted = await run_in_threadpool(repository.delete, blog_id)
    if not deleted:
        raise NotFoundError("Blog not found")

    return {"message": "Blog and associated image deleted successfully"}


# ──────────────────────────────────────────────────────────────────────────────
# App construction
# ──────────────────────────────────────────────────────────────────────────────

def create_app(
    settings: Settings,
    collection: Optional[Collection] = None,
    storage: Optional[AttachmentStorage] = None,
) -> FastAPI:
    """
    Build the Blog API.

    The MongoDB client and the attachment backend are created here once and
    reused for the lifetime of the app. Tests pass their own collection/storage.
    """
    client = None
    if collection is None:
        client = create_client(settings)
        collection = get_collection(client, settings)
    if storage is None:
        storage = build_storage(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        if client is not None:
            client.close()
            logger.info("MongoDB client closed")

    app = FastAPI(
        title="Blog Service",
        version="1.0.0",
        description="Blog posts with image attachments",
        docs_url="/api/blogs/docs",
        openapi_url="/api/blogs/openapi.json",
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.repository = BlogRepository(collection)
    app.state.storage = storage

    register_exception_handlers(app)
    setup_cors(app, settings)
    setup_request_logging(app)

    # Local uploads are served by the app itself
    if isinstance(storage, LocalDiskStorage) and settings.upload_base_url.startswith("/"):
        os.makedirs(storage.upload_dir, exist_ok=True)
        app.mount(
            settings.upload_base_url,
            StaticFiles(directory=storage.upload_dir),
            name="uploads",
        )

    app.include_router(router)
    logger.info(f"Blog service ready (storage backend: {type(storage).__name__})")
    return app
