"""
Blog post editor endpoints, plus the category and review listings the
editor screens use.
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from trekadmin.db.session import get_db
from trekadmin.schemas.post import (
    CategoryCreate, CategoryView, PostCreate, PostUpdate, PostView, PostWriteResponse, ReviewListResponse,
)
from trekadmin.services.post_service import (
    create_category, create_post, delete_post, get_post, list_categories, list_posts, list_reviews, update_post,
)

router = APIRouter(prefix="/posts", tags=["Posts"])
category_router = APIRouter(prefix="/categories", tags=["Posts"])
review_router = APIRouter(prefix="/reviews", tags=["Posts"])


@router.get("/", response_model=list[PostView])
async def list_posts_endpoint(db: AsyncSession = Depends(get_db)):
    return await list_posts(db)


@router.get("/{post_id}", response_model=PostView)
async def get_post_endpoint(post_id: int, db: AsyncSession = Depends(get_db)):
    return await get_post(db, post_id)


@router.post("/", response_model=PostWriteResponse, status_code=status.HTTP_201_CREATED)
async def create_post_endpoint(post_data: PostCreate, db: AsyncSession = Depends(get_db)):
    """
    Create a post in an existing category. Tags that do not exist yet are
    created with it.
    """
    post_id = await create_post(db, post_data)
    return PostWriteResponse(message="Post created successfully", post_id=post_id)


@router.put("/{post_id}", response_model=PostWriteResponse)
async def update_post_endpoint(post_id: int, post_data: PostUpdate, db: AsyncSession = Depends(get_db)):
    await update_post(db, post_id, post_data)
    return PostWriteResponse(message="Post updated successfully", post_id=post_id)


@router.delete("/{post_id}")
async def delete_post_endpoint(post_id: int, db: AsyncSession = Depends(get_db)):
    await delete_post(db, post_id)
    return {"success": True, "message": "Post deleted successfully"}


@category_router.get("/", response_model=list[CategoryView])
async def list_categories_endpoint(db: AsyncSession = Depends(get_db)):
    return await list_categories(db)


@category_router.post("/", response_model=CategoryView, status_code=status.HTTP_201_CREATED)
async def create_category_endpoint(category: CategoryCreate, db: AsyncSession = Depends(get_db)):
    return await create_category(db, category.name)


@review_router.get("/", response_model=ReviewListResponse)
async def list_reviews_endpoint(db: AsyncSession = Depends(get_db)):
    """Reader comments across all posts, ordered by author name."""
    return ReviewListResponse(data=await list_reviews(db))
