"""
Blog document store access.

Every method is a single MongoDB call. PyMongo errors are re-raised as
StorageError so the API can report them uniformly.
"""
import logging
from typing import Any, Optional

from bson import ObjectId
from pymongo import ReturnDocument
from pymongo.collection import Collection
from pymongo.errors import PyMongoError

from apps.shared.errors import StorageError

logger = logging.getLogger(__name__)

FILTER_FIELDS = ("category", "subcategory", "status")

# Filter value meaning "no filtering on this field"
MATCH_ALL = "all"


def is_valid_id(blog_id: str) -> bool:
    """True if blog_id has the shape of a MongoDB ObjectId."""
    return ObjectId.is_valid(blog_id)


def build_filter(
    category: Optional[str] = None,
    subcategory: Optional[str] = None,
    status: Optional[str] = None,
) -> dict[str, str]:
    """
    Build an exact-match query from optional filters.

    Absent, empty and "all" values are ignored.
    """
    query = {}
    for field, value in zip(FILTER_FIELDS, (category, subcategory, status)):
        if value and value != MATCH_ALL:
            query[field] = value
    return query


class BlogRepository:
    """CRUD over the blogs collection."""

    def __init__(self, collection: Collection):
        self.collection = collection

    def find_many(self, query: dict[str, Any]) -> list[dict[str, Any]]:
        try:
            return list(self.collection.find(query))
        except PyMongoError as e:
            raise StorageError("Error fetching blogs", detail=str(e)) from e

    def get(self, blog_id: str) -> Optional[dict[str, Any]]:
        try:
            return self.collection.find_one({"_id": ObjectId(blog_id)})
        except PyMongoError as e:
            raise StorageError("Error fetching blog", detail=str(e)) from e

    def create(self, document: dict[str, Any]) -> dict[str, Any]:
        """Insert a document and return it with its assigned _id."""
        document = dict(document)
        try:
            result = self.collection.insert_one(document)
        except PyMongoError as e:
            raise StorageError("Error creating blog", detail=str(e)) from e
        document["_id"] = result.inserted_id
        logger.info(f"Created blog {result.inserted_id}")
        return document

    def update(self, blog_id: str, changes: dict[str, Any]) -> Optional[dict[str, Any]]:
        """
        Merge changes into an existing document.

        Returns the updated document, or None if it no longer exists.
        """
        try:
            if not changes:
                return self.collection.find_one({"_id": ObjectId(blog_id)})
            return self.collection.find_one_and_update(
                {"_id": ObjectId(blog_id)},
                {"$set": changes},
                return_document=ReturnDocument.AFTER,
            )
        except PyMongoError as e:
            raise StorageError("Error updating blog", detail=str(e)) from e

    def delete(self, blog_id: str) -> bool:
        """Delete a document. Returns False if nothing was deleted."""
        try:
            result = self.collection.delete_one({"_id": ObjectId(blog_id)})
        except PyMongoError as e:
            raise StorageError("Error deleting blog", detail=str(e)) from e
        return result.deleted_count == 1
