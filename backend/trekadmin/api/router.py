"""
Central API router that aggregates all route modules.
"""

from fastapi import APIRouter
from trekadmin.api.routes import treks, batches, bookings, users, analytics, posts

api_router = APIRouter(prefix="/api/v1")
api_router.include_router(treks.router)
api_router.include_router(batches.router)
api_router.include_router(bookings.router)
api_router.include_router(users.router)
api_router.include_router(analytics.router)
api_router.include_router(posts.router)
api_router.include_router(posts.category_router)
api_router.include_router(posts.review_router)
