"""
Blog posts with their category, tags and reader comments.

Key design decisions:
- Categories are curated: a post must name an existing one
- Tags are created on first use and looked up by slug
- post_tags and comments go away with their post
"""

from sqlalchemy import (
    Column, DateTime, Integer, String, Text, ForeignKey, CheckConstraint, func,
)
from sqlalchemy.orm import relationship

from trekadmin.db.base import Base, TimestampMixin

POST_STATUSES = ("draft", "published", "archived")


class PostCategory(Base):
    __tablename__ = "categories"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), unique=True, nullable=False)

    def __repr__(self) -> str:
        return f"<PostCategory(id={self.id}, name={self.name})>"


class Tag(Base):
    __tablename__ = "tags"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False)
    slug = Column(String(120), unique=True, nullable=False)


class Post(Base, TimestampMixin):
    __tablename__ = "posts"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(255), nullable=False)
    slug = Column(String(280), nullable=False, index=True)
    excerpt = Column(Text, nullable=False)
    content = Column(Text, nullable=False)
    category_id = Column(Integer, ForeignKey("categories.id"), nullable=False, index=True)
    author_id = Column(Integer, nullable=True)
    author_type = Column(String(20), nullable=False, default="admin")
    featured_image = Column(String(500), nullable=True)
    status = Column(String(20), nullable=False, default="draft")
    views = Column(Integer, nullable=False, default=0)
    likes = Column(Integer, nullable=False, default=0)
    published_at = Column(DateTime(timezone=True), nullable=True)

    category = relationship("PostCategory", viewonly=True)
    tags = relationship("Tag", secondary="post_tags", order_by="Tag.name", viewonly=True)

    __table_args__ = (
        CheckConstraint("status IN ('draft', 'published', 'archived')", name="check_post_status"),
    )

    def __repr__(self) -> str:
        return f"<Post(id={self.id}, slug={self.slug}, status={self.status})>"


class PostTag(Base):
    __tablename__ = "post_tags"

    post_id = Column(Integer, ForeignKey("posts.id", ondelete="CASCADE"), primary_key=True)
    tag_id = Column(Integer, ForeignKey("tags.id", ondelete="CASCADE"), primary_key=True, index=True)


class Comment(Base):
    """Reader comment on a post; the admin panel lists these as reviews."""

    __tablename__ = "comments"

    id = Column(Integer, primary_key=True, index=True)
    post_id = Column(Integer, ForeignKey("posts.id", ondelete="CASCADE"), nullable=False, index=True)
    author_name = Column(String(255), nullable=False)
    author_avatar = Column(String(500), nullable=True)
    content = Column(Text, nullable=False)
    likes = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
