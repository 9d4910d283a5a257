from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from pydantic import Field, HttpUrl, field_validator

from clinic_api.models.common import CamelModel, unique_tags

SLUG_PATTERN = r"^[a-z0-9-]+$"


class BlogStatus(str, Enum):
    DRAFT = "draft"
    PUBLISHED = "published"


class BlogSection(CamelModel):
    title: Optional[str] = Field(None, max_length=200)
    content: str = Field(..., min_length=3)
    image: Optional[HttpUrl] = None


class BlogCreate(CamelModel):
    """Model for creating a blog post"""
    title: str = Field(..., min_length=3, max_length=200)
    slug: str = Field(..., min_length=3, max_length=200, pattern=SLUG_PATTERN)
    excerpt: str = Field(..., min_length=10, max_length=400)
    content: str = Field(..., min_length=10)
    image: Optional[HttpUrl] = None
    author: str = Field("Clinic Team", max_length=100)
    category: Optional[str] = Field(None, max_length=100)
    read_time: Optional[str] = Field(None, max_length=50)
    tags: List[str] = []
    sections: List[BlogSection] = []
    status: BlogStatus = BlogStatus.PUBLISHED
    meta_description: Optional[str] = Field(None, max_length=160)
    seo_keywords: List[str] = []
    meta_tags: List[str] = []

    @field_validator("tags", "seo_keywords", "meta_tags")
    @classmethod
    def dedupe(cls, value: List[str]) -> List[str]:
        return unique_tags(value)

    def to_document(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, mode="json", exclude_none=True)


class BlogUpdate(CamelModel):
    """Partial blog update; unset fields are left untouched"""
    title: Optional[str] = Field(None, min_length=3, max_length=200)
    slug: Optional[str] = Field(None, min_length=3, max_length=200, pattern=SLUG_PATTERN)
    excerpt: Optional[str] = Field(None, min_length=10, max_length=400)
    content: Optional[str] = Field(None, min_length=10)
    image: Optional[HttpUrl] = None
    author: Optional[str] = Field(None, max_length=100)
    category: Optional[str] = Field(None, max_length=100)
    read_time: Optional[str] = Field(None, max_length=50)
    tags: Optional[List[str]] = None
    sections: Optional[List[BlogSection]] = None
    status: Optional[BlogStatus] = None
    meta_description: Optional[str] = Field(None, max_length=160)
    seo_keywords: Optional[List[str]] = None
    meta_tags: Optional[List[str]] = None

    @field_validator("tags", "seo_keywords", "meta_tags")
    @classmethod
    def dedupe(cls, value: Optional[List[str]]) -> Optional[List[str]]:
        return unique_tags(value)

    def to_changes(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, mode="json", exclude_unset=True, exclude_none=True)


def publish_state(
    previous_status: Optional[str],
    document: Dict[str, Any],
    now: datetime,
) -> Tuple[Dict[str, Any], List[str]]:
    """
    Keep publishedAt in step with status on every write.

    Returns the fields to set and the fields to unset: publishedAt is stamped
    when a post becomes published without one, and cleared when it goes back
    to draft.
    """
    status = document.get("status")
    if status is None or status == previous_status:
        return {}, []
    if status == BlogStatus.PUBLISHED.value and not document.get("publishedAt"):
        return {"publishedAt": now}, []
    if status == BlogStatus.DRAFT.value:
        return {}, ["publishedAt"]
    return {}, []


class BlogInDB(CamelModel):
    """Blog post as stored in database"""
    id: str
    title: str
    slug: str
    excerpt: str
    content: str
    image: Optional[str] = None
    author: str = "Clinic Team"
    category: Optional[str] = None
    read_time: Optional[str] = None
    tags: List[str] = []
    sections: List[Dict[str, Any]] = []
    status: BlogStatus = BlogStatus.PUBLISHED
    published_at: Optional[datetime] = None
    meta_description: Optional[str] = None
    seo_keywords: List[str] = []
    meta_tags: List[str] = []
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_document(cls, document: Dict[str, Any]) -> "BlogInDB":
        return cls.model_validate({**document, "id": str(document["_id"])})

    def to_public(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, mode="json")
