"""
Pydantic schemas for Blog API.

Defines request/response models with validation.
"""
from typing import Any, Optional

from pydantic import BaseModel, Field
from pydantic import ValidationError as PydanticValidationError

from apps.blog.models import BlogStatus, Subcategory, TEXT_FIELDS
from apps.shared.errors import ValidationError


class BlogCreate(BaseModel):
    """Schema for creating a new blog post."""
    title: str = Field(..., min_length=1)
    content: str = Field(..., min_length=1)
    category: str = Field(..., min_length=1)
    author: str = Field(..., min_length=1)
    subcategory: Optional[Subcategory] = None
    status: BlogStatus = BlogStatus.NONE


class BlogUpdate(BaseModel):
    """Schema for updating a blog post. All fields optional."""
    title: Optional[str] = Field(None, min_length=1)
    content: Optional[str] = Field(None, min_length=1)
    category: Optional[str] = Field(None, min_length=1)
    author: Optional[str] = Field(None, min_length=1)
    subcategory: Optional[Subcategory] = None
    status: Optional[BlogStatus] = None


class BlogResponse(BaseModel):
    """Schema for blog responses."""
    id: str = Field(..., alias="_id")
    title: str
    content: str
    category: str
    author: str
    subcategory: Optional[str] = None
    status: str = BlogStatus.NONE.value
    image: Optional[str] = None
    imagePublicId: Optional[str] = None

    class Config:
        populate_by_name = True


class BlogEnvelope(BaseModel):
    """Response after a successful create or update."""
    message: str
    blog: BlogResponse


class MessageResponse(BaseModel):
    message: str


def _describe(exc: PydanticValidationError) -> str:
    return "; ".join(
        f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}"
        for err in exc.errors()
    )


def validate_create(data: dict[str, Any], require_subcategory: bool) -> BlogCreate:
    """
    Validate a submitted create form.

    Empty strings count as missing. Raises ValidationError before anything is stored.
    """
    submitted = {key: value for key, value in data.items() if value not in (None, "")}

    required = list(TEXT_FIELDS)
    if require_subcategory:
        required.append("subcategory")
    missing = [field for field in required if field not in submitted]
    if missing:
        raise ValidationError(
            "Missing required fields",
            detail=", ".join(missing),
        )

    try:
        return BlogCreate(**submitted)
    except PydanticValidationError as e:
        raise ValidationError("Validation failed", detail=_describe(e)) from e


def validate_update(data: dict[str, Any]) -> dict[str, Any]:
    """
    Validate a partial update form.

    Returns only the fields that were supplied, ready for a $set.
    """
    supplied = {key: value for key, value in data.items() if value is not None}
    try:
        update = BlogUpdate(**supplied)
    except PydanticValidationError as e:
        raise ValidationError("Validation failed", detail=_describe(e)) from e
    return update.model_dump(exclude_unset=True, mode="json")
