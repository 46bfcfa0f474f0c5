"""
Pydantic schemas for blog posts, categories and reviews.

Inbound models accept snake_case and camelCase keys (publishDate,
featuredImage).
"""

from datetime import date, datetime
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

PostStatus = Literal["draft", "published", "archived"]


class _InboundModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class PostCreate(_InboundModel):
    title: str = Field(..., max_length=255)
    excerpt: str
    content: str
    category: str = Field(..., max_length=100)
    status: PostStatus = "draft"
    publish_date: Optional[datetime] = None
    # Reference to a file already stored by the upload collaborator
    featured_image: Optional[str] = Field(None, max_length=500)
    tags: list[str] = []


class PostUpdate(_InboundModel):
    """Omitted or blank fields keep their stored value; tags=None keeps the tags."""

    title: Optional[str] = Field(None, max_length=255)
    excerpt: Optional[str] = None
    content: Optional[str] = None
    category: Optional[str] = Field(None, max_length=100)
    status: Optional[PostStatus] = None
    publish_date: Optional[datetime] = None
    featured_image: Optional[str] = Field(None, max_length=500)
    tags: Optional[list[str]] = None


class PostWriteResponse(BaseModel):
    success: bool = True
    message: str
    post_id: int


class PostView(BaseModel):
    id: int
    title: str
    slug: str
    excerpt: str
    content: str
    category_id: int
    category_name: Optional[str]
    author_id: Optional[int]
    author_type: str
    featured_image: Optional[str]
    status: str
    views: int
    likes: int
    published_at: Optional[datetime]
    created_at: datetime
    updated_at: datetime
    tags: list[str]


class CategoryCreate(_InboundModel):
    name: str = Field(..., max_length=100)


class CategoryView(BaseModel):
    id: int
    name: str

    model_config = {"from_attributes": True}


class ReviewView(BaseModel):
    comment_id: int
    author_name: str
    author_avatar: Optional[str]
    comment: str
    likes: int
    comment_date: date
    post_id: int
    post_title: str
    post_slug: str
    post_status: str


class ReviewListResponse(BaseModel):
    success: bool = True
    data: list[ReviewView]
