"""
User endpoints (read only).
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from trekadmin.db.session import get_db
from trekadmin.schemas.user import UserDetail, UserSummary
from trekadmin.services.user_service import get_user_detail, list_users

router = APIRouter(prefix="/users", tags=["Users"])


@router.get("/", response_model=list[UserSummary])
async def list_users_endpoint(db: AsyncSession = Depends(get_db)):
    return await list_users(db)


@router.get("/{user_id}", response_model=UserDetail)
async def get_user_endpoint(user_id: int, db: AsyncSession = Depends(get_db)):
    """User profile with every booking and derived totals."""
    return await get_user_detail(db, user_id)
