"""
Blog post editor.

Writes run in one transaction: the post row, its tag links and any tags
created on the way commit together or not at all.

- Categories must already exist; an unknown name is a ValidationError
- Tags are matched by slug and created when missing; repeats collapse
- Publishing stamps published_at (the given publish date, else now);
  any other status clears it
- On update, blank fields keep their stored value and tags are replaced
  only when a tag list is sent
"""

import re
from datetime import datetime, timezone
from typing import Iterable, Optional

from sqlalchemy import delete, insert, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from trekadmin.core.exceptions import DuplicateEntity, NotFound, ValidationError
from trekadmin.core.logging import get_logger
from trekadmin.db.session import transaction
from trekadmin.models.post import Comment, Post, PostCategory, PostTag, Tag
from trekadmin.schemas.post import CategoryView, PostCreate, PostUpdate, PostView, ReviewView

logger = get_logger(__name__)


def slugify(text: str) -> str:
    """'Monsoon Treks: A Guide!' -> 'monsoon-treks-a-guide'"""
    return re.sub(r"[^a-z0-9]+", "-", text.lower()).strip("-")


def _text(value: Optional[str]) -> str:
    return (value or "").strip()


def _published_at(status: str, publish_date: Optional[datetime], current: Optional[datetime] = None):
    if status != "published":
        return None
    return publish_date or current or datetime.now(timezone.utc)


async def _category_id(db: AsyncSession, name: str) -> int:
    category_id = await db.scalar(select(PostCategory.id).where(PostCategory.name == name))
    if category_id is None:
        raise ValidationError(f"Unknown category '{name}'")
    return category_id


async def _save_tags(db: AsyncSession, post_id: int, tag_names: Iterable[str]) -> int:
    linked = set()
    for raw in tag_names:
        name = _text(raw)
        slug = slugify(name)
        if not slug or slug in linked:
            continue

        tag = await db.scalar(select(Tag).where(Tag.slug == slug))
        if tag is None:
            tag = Tag(name=name, slug=slug)
            db.add(tag)
            await db.flush()
        await db.execute(insert(PostTag).values(post_id=post_id, tag_id=tag.id))
        linked.add(slug)
    return len(linked)


# ---------- writes ----------

async def create_post(db: AsyncSession, data: PostCreate, author_id: Optional[int] = None) -> int:
    """
    Create a post with its tags. Raises ValidationError if title, excerpt,
    content or category is blank, or the category does not exist.
    """
    title, excerpt, content, category = (
        _text(data.title), _text(data.excerpt), _text(data.content), _text(data.category)
    )
    if not (title and excerpt and content and category):
        raise ValidationError("Title, excerpt, content and category are required")

    async with transaction(db):
        post = Post(
            title=title,
            slug=slugify(title) or "post",
            excerpt=excerpt,
            content=content,
            category_id=await _category_id(db, category),
            author_id=author_id,
            author_type="admin",
            featured_image=_text(data.featured_image) or None,
            status=data.status,
            published_at=_published_at(data.status, data.publish_date),
        )
        db.add(post)
        await db.flush()
        tags = await _save_tags(db, post.id, data.tags)
        post_id = post.id

    logger.info("post_created", post_id=post_id, status=data.status, tags=tags)
    return post_id


async def update_post(db: AsyncSession, post_id: int, data: PostUpdate) -> int:
    """Apply the non-blank fields of `data`. Raises NotFound or ValidationError."""
    async with transaction(db):
        post = await db.scalar(
            select(Post).where(Post.id == post_id).execution_options(populate_existing=True)
        )
        if post is None:
            raise NotFound(f"Post {post_id} not found")

        title = _text(data.title)
        if title:
            post.title = title
            post.slug = slugify(title) or "post"
        post.excerpt = _text(data.excerpt) or post.excerpt
        post.content = _text(data.content) or post.content

        category = _text(data.category)
        if category:
            post.category_id = await _category_id(db, category)

        featured_image = _text(data.featured_image)
        if featured_image:
            post.featured_image = featured_image

        status = data.status or post.status
        post.published_at = _published_at(status, data.publish_date, post.published_at)
        post.status = status

        if data.tags is not None:
            await db.execute(delete(PostTag).where(PostTag.post_id == post_id))
            await _save_tags(db, post_id, data.tags)
        await db.flush()

    logger.info("post_updated", post_id=post_id, status=status, tags_replaced=data.tags is not None)
    return post_id


async def delete_post(db: AsyncSession, post_id: int) -> None:
    """Delete a post with its tag links and comments. Raises NotFound."""
    async with transaction(db):
        result = await db.execute(delete(Post).where(Post.id == post_id))
        if not result.rowcount:
            raise NotFound(f"Post {post_id} not found")

    logger.info("post_deleted", post_id=post_id)


async def create_category(db: AsyncSession, name: str) -> CategoryView:
    name = _text(name)
    if not name:
        raise ValidationError("Category name is required")

    async with transaction(db):
        if await db.scalar(select(PostCategory.id).where(PostCategory.name == name)) is not None:
            raise DuplicateEntity(f"Category '{name}' already exists")
        category = PostCategory(name=name)
        db.add(category)
        try:
            await db.flush()
        except IntegrityError as exc:
            raise DuplicateEntity(f"Category '{name}' already exists") from exc
        view = CategoryView.model_validate(category)

    logger.info("category_created", category_id=view.id, name=name)
    return view


# ---------- reads ----------

def _to_view(post: Post) -> PostView:
    return PostView(
        id=post.id,
        title=post.title,
        slug=post.slug,
        excerpt=post.excerpt,
        content=post.content,
        category_id=post.category_id,
        category_name=post.category.name if post.category else None,
        author_id=post.author_id,
        author_type=post.author_type,
        featured_image=post.featured_image,
        status=post.status,
        views=post.views,
        likes=post.likes,
        published_at=post.published_at,
        created_at=post.created_at,
        updated_at=post.updated_at,
        tags=[tag.name for tag in post.tags],
    )


def _post_query():
    return (
        select(Post)
        .options(selectinload(Post.category), selectinload(Post.tags))
        .execution_options(populate_existing=True)
    )


async def list_posts(db: AsyncSession) -> list[PostView]:
    """All posts, newest first, each with its category name and tags."""
    posts = await db.scalars(_post_query().order_by(Post.created_at.desc(), Post.id.desc()))
    return [_to_view(post) for post in posts]


async def get_post(db: AsyncSession, post_id: int) -> PostView:
    post = await db.scalar(_post_query().where(Post.id == post_id))
    if post is None:
        raise NotFound(f"Post {post_id} not found")
    return _to_view(post)


async def list_categories(db: AsyncSession) -> list[CategoryView]:
    categories = await db.scalars(select(PostCategory).order_by(PostCategory.name))
    return [CategoryView.model_validate(category) for category in categories]


async def list_reviews(db: AsyncSession) -> list[ReviewView]:
    """Comments with the post they were left on, ordered by author name."""
    result = await db.execute(
        select(Comment, Post)
        .join(Post, Comment.post_id == Post.id)
        .order_by(Comment.author_name, Comment.id)
        .execution_options(populate_existing=True)
    )
    return [
        ReviewView(
            comment_id=comment.id,
            author_name=comment.author_name,
            author_avatar=comment.author_avatar,
            comment=comment.content,
            likes=comment.likes,
            comment_date=comment.created_at.date(),
            post_id=post.id,
            post_title=post.title,
            post_slug=post.slug,
            post_status=post.status,
        )
        for comment, post in result.all()
    ]
