"""
Tests for the blog post editor: writes, tag handling, reads and endpoints.
"""

import pytest
import pytest_asyncio
from httpx import AsyncClient
from sqlalchemy import func, select

from trekadmin.core.exceptions import DuplicateEntity, NotFound, ValidationError
from trekadmin.models import Comment, Post, PostCategory, PostTag, Tag
from trekadmin.schemas.post import PostCreate, PostUpdate
from trekadmin.services.post_service import (
    create_category, create_post, delete_post, get_post, list_categories, list_posts, list_reviews,
    slugify, update_post,
)


def post_payload(title="Monsoon Treks: A Guide", category="Guides", tags=None, **overrides) -> dict:
    payload = {
        "title": title,
        "excerpt": "What to pack when the rain sets in.",
        "content": "Leeches, slippery trails and the best rain gear.",
        "category": category,
        "tags": tags if tags is not None else ["Monsoon", "Packing"],
    }
    payload.update(overrides)
    return payload


async def count(db, model) -> int:
    return await db.scalar(select(func.count()).select_from(model))


@pytest_asyncio.fixture
async def categories(db_session):
    db_session.add_all([PostCategory(name="Guides"), PostCategory(name="Stories")])
    await db_session.commit()


def test_slugify():
    assert slugify("Monsoon Treks: A Guide!") == "monsoon-treks-a-guide"
    assert slugify("  Kedar   Kantha ") == "kedar-kantha"
    assert slugify("!!!") == ""


# ---------- create ----------

@pytest.mark.asyncio
async def test_create_post_with_tags(db_session, categories):
    post_id = await create_post(db_session, PostCreate.model_validate(post_payload()))

    post = await get_post(db_session, post_id)
    assert post.slug == "monsoon-treks-a-guide"
    assert post.category_name == "Guides"
    assert post.author_type == "admin"
    assert post.status == "draft"
    assert post.published_at is None
    assert post.tags == ["Monsoon", "Packing"]


@pytest.mark.asyncio
async def test_create_published_post_is_stamped(db_session, categories):
    post_id = await create_post(db_session, PostCreate.model_validate(post_payload(status="published")))
    assert (await get_post(db_session, post_id)).published_at is not None

    scheduled = post_payload(title="Winter Treks", status="published", publishDate="2026-12-01T06:00:00")
    post_id = await create_post(db_session, PostCreate.model_validate(scheduled))
    published_at = (await get_post(db_session, post_id)).published_at
    assert (published_at.year, published_at.month, published_at.day) == (2026, 12, 1)


@pytest.mark.asyncio
async def test_tags_are_reused_and_collapsed(db_session, categories):
    """Tags match by slug: repeats in one post collapse, later posts reuse the row."""
    first = await create_post(db_session, PostCreate.model_validate(post_payload(tags=["Monsoon", "monsoon", " ", "Gear"])))
    second = await create_post(db_session, PostCreate.model_validate(post_payload(title="Rain Gear", tags=["MONSOON"])))

    assert (await get_post(db_session, first)).tags == ["Gear", "Monsoon"]
    assert (await get_post(db_session, second)).tags == ["Monsoon"]
    assert await count(db_session, Tag) == 2
    assert await count(db_session, PostTag) == 3


@pytest.mark.asyncio
async def test_create_with_unknown_category_writes_nothing(db_session, categories):
    with pytest.raises(ValidationError):
        await create_post(db_session, PostCreate.model_validate(post_payload(category="Recipes")))

    assert await count(db_session, Post) == 0
    assert await count(db_session, Tag) == 0


@pytest.mark.asyncio
async def test_create_requires_text_fields(db_session, categories):
    with pytest.raises(ValidationError):
        await create_post(db_session, PostCreate.model_validate(post_payload(title="   ")))
    assert await count(db_session, Post) == 0


# ---------- update ----------

@pytest.mark.asyncio
async def test_update_keeps_blank_fields(db_session, categories):
    post_id = await create_post(db_session, PostCreate.model_validate(post_payload()))

    await update_post(db_session, post_id, PostUpdate(title="Monsoon Treks Revisited", excerpt="", category="Stories"))

    post = await get_post(db_session, post_id)
    assert post.title == "Monsoon Treks Revisited"
    assert post.slug == "monsoon-treks-revisited"
    assert post.excerpt == "What to pack when the rain sets in."
    assert post.category_name == "Stories"
    assert post.tags == ["Monsoon", "Packing"]


@pytest.mark.asyncio
async def test_update_replaces_tags_when_sent(db_session, categories):
    post_id = await create_post(db_session, PostCreate.model_validate(post_payload()))

    await update_post(db_session, post_id, PostUpdate(tags=["Leeches"]))
    assert (await get_post(db_session, post_id)).tags == ["Leeches"]

    await update_post(db_session, post_id, PostUpdate(tags=[]))
    assert (await get_post(db_session, post_id)).tags == []
    # Unused tags stay available for other posts
    assert await count(db_session, Tag) == 3


@pytest.mark.asyncio
async def test_publish_and_unpublish(db_session, categories):
    post_id = await create_post(db_session, PostCreate.model_validate(post_payload()))

    await update_post(db_session, post_id, PostUpdate(status="published"))
    first_published = (await get_post(db_session, post_id)).published_at
    assert first_published is not None

    await update_post(db_session, post_id, PostUpdate(content="Edited after publishing"))
    assert (await get_post(db_session, post_id)).published_at == first_published

    await update_post(db_session, post_id, PostUpdate(status="draft"))
    post = await get_post(db_session, post_id)
    assert post.status == "draft"
    assert post.published_at is None


@pytest.mark.asyncio
async def test_update_with_unknown_category_changes_nothing(db_session, categories):
    post_id = await create_post(db_session, PostCreate.model_validate(post_payload()))

    with pytest.raises(ValidationError):
        await update_post(db_session, post_id, PostUpdate(title="Renamed", category="Recipes", tags=["Other"]))

    post = await get_post(db_session, post_id)
    assert post.title == "Monsoon Treks: A Guide"
    assert post.tags == ["Monsoon", "Packing"]


@pytest.mark.asyncio
async def test_update_unknown_post(db_session):
    with pytest.raises(NotFound):
        await update_post(db_session, 4242, PostUpdate(title="Anything"))


# ---------- delete ----------

@pytest.mark.asyncio
async def test_delete_removes_links_and_comments(db_session, categories):
    post_id = await create_post(db_session, PostCreate.model_validate(post_payload()))
    db_session.add(Comment(post_id=post_id, author_name="Meera", content="Very useful"))
    await db_session.commit()

    await delete_post(db_session, post_id)

    assert await count(db_session, Post) == 0
    assert await count(db_session, PostTag) == 0
    assert await count(db_session, Comment) == 0
    assert await count(db_session, Tag) == 2
    with pytest.raises(NotFound):
        await get_post(db_session, post_id)


@pytest.mark.asyncio
async def test_delete_unknown_post(db_session):
    with pytest.raises(NotFound):
        await delete_post(db_session, 4242)


# ---------- reads ----------

@pytest.mark.asyncio
async def test_list_posts_newest_first(db_session, categories):
    older = await create_post(db_session, PostCreate.model_validate(post_payload(title="Older")))
    newer = await create_post(db_session, PostCreate.model_validate(post_payload(title="Newer", tags=[])))

    posts = await list_posts(db_session)

    assert [p.id for p in posts] == [newer, older]
    assert posts[0].tags == []
    assert posts[1].tags == ["Monsoon", "Packing"]


@pytest.mark.asyncio
async def test_categories_sorted_and_unique(db_session, categories):
    await create_category(db_session, "Events")

    assert [c.name for c in await list_categories(db_session)] == ["Events", "Guides", "Stories"]
    with pytest.raises(DuplicateEntity):
        await create_category(db_session, " Guides ")
    with pytest.raises(ValidationError):
        await create_category(db_session, "  ")


@pytest.mark.asyncio
async def test_reviews_ordered_by_author(db_session, categories):
    post_id = await create_post(db_session, PostCreate.model_validate(post_payload()))
    db_session.add_all([
        Comment(post_id=post_id, author_name="Ravi", content="Great tips", likes=3),
        Comment(post_id=post_id, author_name="Anu", content="Thanks!"),
    ])
    await db_session.commit()

    reviews = await list_reviews(db_session)

    assert [r.author_name for r in reviews] == ["Anu", "Ravi"]
    assert reviews[1].comment == "Great tips"
    assert reviews[1].likes == 3
    assert reviews[0].post_slug == "monsoon-treks-a-guide"


# ---------- endpoints ----------

@pytest.mark.asyncio
async def test_post_endpoints(client: AsyncClient, categories):
    response = await client.post("/api/v1/posts/", json=post_payload())
    assert response.status_code == 201
    post_id = response.json()["post_id"]

    response = await client.put(f"/api/v1/posts/{post_id}", json={"status": "published"})
    assert response.status_code == 200

    listed = (await client.get("/api/v1/posts/")).json()
    assert [p["id"] for p in listed] == [post_id]
    assert listed[0]["status"] == "published"

    detail = (await client.get(f"/api/v1/posts/{post_id}")).json()
    assert detail["tags"] == ["Monsoon", "Packing"]

    response = await client.delete(f"/api/v1/posts/{post_id}")
    assert response.status_code == 200

    response = await client.delete(f"/api/v1/posts/{post_id}")
    assert response.status_code == 404
    assert response.json()["error"] == "NOT_FOUND"


@pytest.mark.asyncio
async def test_create_post_endpoint_validation(client: AsyncClient, categories):
    payload = post_payload()
    del payload["title"]
    response = await client.post("/api/v1/posts/", json=payload)
    assert response.status_code == 400
    assert response.json()["error"] == "VALIDATION_ERROR"

    response = await client.post("/api/v1/posts/", json=post_payload(category="Recipes"))
    assert response.status_code == 400
    assert response.json()["message"] == "Unknown category 'Recipes'"


@pytest.mark.asyncio
async def test_category_and_review_endpoints(client: AsyncClient, categories):
    response = await client.post("/api/v1/categories/", json={"name": "Events"})
    assert response.status_code == 201

    response = await client.post("/api/v1/categories/", json={"name": "Events"})
    assert response.status_code == 409

    names = [c["name"] for c in (await client.get("/api/v1/categories/")).json()]
    assert names == ["Events", "Guides", "Stories"]

    response = await client.get("/api/v1/reviews/")
    assert response.status_code == 200
    assert response.json() == {"success": True, "data": []}
