"""
Blog document model.

Posts are stored as plain MongoDB documents:

    {
        "_id": ObjectId,
        "title": str, "content": str, "category": str, "author": str,
        "subcategory": str | None, "status": str,
        "image": str | None, "imagePublicId": str | None,
    }

The image/imagePublicId pair is only ever read and written through Attachment.
"""
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel


class BlogStatus(str, Enum):
    TRENDING = "Trending"
    FEATURED = "Featured"
    EDITORS_PICK = "Editor's Pick"
    RECOMMENDED = "Recommended"
    NONE = "None"


class Subcategory(str, Enum):
    ARTICLE = "Article"
    TUTORIAL = "Tutorial"
    INTERVIEW_QUESTIONS = "Interview Questions"


# Field names as stored in the collection
TEXT_FIELDS = ("title", "content", "category", "author")
IMAGE_FIELD = "image"
IMAGE_HANDLE_FIELD = "imagePublicId"


class Attachment(BaseModel):
    """A stored image: where to fetch it, and how to delete it if the backend allows."""

    reference: str
    handle: Optional[str] = None

    def to_document(self) -> dict[str, Optional[str]]:
        return {IMAGE_FIELD: self.reference, IMAGE_HANDLE_FIELD: self.handle}

    @classmethod
    def from_document(cls, document: dict[str, Any]) -> Optional["Attachment"]:
        reference = document.get(IMAGE_FIELD)
        if not reference:
            return None
        return cls(reference=reference, handle=document.get(IMAGE_HANDLE_FIELD) or None)


def empty_attachment_document() -> dict[str, None]:
    return {IMAGE_FIELD: None, IMAGE_HANDLE_FIELD: None}


def document_to_dict(document: dict[str, Any]) -> dict[str, Any]:
    """Convert a stored document to the API representation."""
    attachment = Attachment.from_document(document)
    return {
        "_id": str(document["_id"]),
        "title": document.get("title"),
        "content": document.get("content"),
        "category": document.get("category"),
        "subcategory": document.get("subcategory"),
        "author": document.get("author"),
        "status": document.get("status") or BlogStatus.NONE.value,
        "image": attachment.reference if attachment else None,
        "imagePublicId": attachment.handle if attachment else None,
    }
