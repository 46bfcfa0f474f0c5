"""
Trek aggregate endpoints. The trek listing is cached in Redis.
"""

from datetime import date

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from trekadmin.db.session import get_db
from trekadmin.schemas.batch import TrekBatchSummary
from trekadmin.schemas.trek import TrekCreate, TrekDetail, TrekListResponse, TrekUpdate, TrekWriteResponse
from trekadmin.services.cache_service import get_cached_treks, invalidate_trek_cache, set_cached_treks
from trekadmin.services.trek_query_service import get_trek_detail, list_trek_batches, list_treks
from trekadmin.services.trek_service import create_trek, update_trek
from trekadmin.core.logging import get_logger

logger = get_logger(__name__)
router = APIRouter(prefix="/treks", tags=["Treks"])


@router.post("/", response_model=TrekWriteResponse, status_code=status.HTTP_201_CREATED)
async def create_trek_endpoint(trek_data: TrekCreate, db: AsyncSession = Depends(get_db)):
    """
    Create a trek with its batches, itineraries and lists in one transaction.
    Returns 409 if a trek with the same name and location exists.
    """
    trek_id = await create_trek(db, trek_data)
    await invalidate_trek_cache()
    return TrekWriteResponse(message="Trek created successfully", trek_id=trek_id)


@router.put("/{trek_id}", response_model=TrekWriteResponse)
async def update_trek_endpoint(trek_id: int, trek_data: TrekUpdate, db: AsyncSession = Depends(get_db)):
    """
    Replace the trek's full state. Batches are matched by id when ids are
    sent, otherwise by position; dropped batches with bookings are kept and
    deactivated.
    """
    await update_trek(db, trek_id, trek_data)
    await invalidate_trek_cache()
    return TrekWriteResponse(message="Trek updated successfully", trek_id=trek_id)


@router.get("/", response_model=TrekListResponse)
async def list_treks_endpoint(db: AsyncSession = Depends(get_db)):
    """
    List treks with upcoming batch figures.
    Results are cached in Redis until the next trek or batch write.
    """
    today = date.today()
    cached = await get_cached_treks(today)
    if cached:
        logger.info("trek_list_cache_hit")
        cached["cached"] = True
        return TrekListResponse(**cached)

    treks = await list_treks(db, today)
    response_data = {
        "count": len(treks),
        "treks": [trek.model_dump(mode="json") for trek in treks],
        "cached": False,
    }
    await set_cached_treks(today, response_data)
    return TrekListResponse(**response_data)


@router.get("/{trek_id}", response_model=TrekDetail)
async def get_trek_endpoint(trek_id: int, db: AsyncSession = Depends(get_db)):
    """Full trek aggregate, including batch ids for identity-matched updates."""
    return await get_trek_detail(db, trek_id)


@router.get("/{trek_id}/batches", response_model=list[TrekBatchSummary])
async def list_trek_batches_endpoint(trek_id: int, db: AsyncSession = Depends(get_db)):
    return await list_trek_batches(db, trek_id)
