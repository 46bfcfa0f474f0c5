"""
Batch lifecycle endpoints: stop/resume bookings, complete a finished batch.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from trekadmin.api.deps import get_lifecycle_manager
from trekadmin.db.session import get_db
from trekadmin.schemas.batch import BatchCompletionResponse, BatchStatusResponse
from trekadmin.schemas.booking import BatchBookingView
from trekadmin.services.batch_lifecycle import BatchLifecycleManager
from trekadmin.services.booking_service import list_batch_bookings
from trekadmin.services.cache_service import invalidate_trek_cache

router = APIRouter(prefix="/batches", tags=["Batches"])


@router.patch("/{batch_id}/stop-booking", response_model=BatchStatusResponse)
async def stop_booking_endpoint(
    batch_id: int,
    db: AsyncSession = Depends(get_db),
    manager: BatchLifecycleManager = Depends(get_lifecycle_manager),
):
    """Stop taking bookings on a batch. 404 if the batch does not exist."""
    batch = await manager.stop_batch(db, batch_id)
    await invalidate_trek_cache()
    return BatchStatusResponse(message="Booking stopped successfully for this batch", batch=batch)


@router.patch("/{batch_id}/resume-booking", response_model=BatchStatusResponse)
async def resume_booking_endpoint(
    batch_id: int,
    db: AsyncSession = Depends(get_db),
    manager: BatchLifecycleManager = Depends(get_lifecycle_manager),
):
    """Resume taking bookings on a batch. 404 if the batch does not exist."""
    batch = await manager.resume_batch(db, batch_id)
    await invalidate_trek_cache()
    return BatchStatusResponse(message="Booking resumed successfully for this batch", batch=batch)


@router.put("/{batch_id}/complete", response_model=BatchCompletionResponse)
async def complete_batch_endpoint(
    batch_id: int,
    db: AsyncSession = Depends(get_db),
    manager: BatchLifecycleManager = Depends(get_lifecycle_manager),
):
    """
    Mark a batch completed and complete its confirmed bookings.
    409 if the batch is already completed or has not ended yet.
    """
    completion = await manager.complete_batch(db, batch_id)
    await invalidate_trek_cache()
    return BatchCompletionResponse(
        message="Batch marked as completed",
        batch=completion.batch,
        bookings_completed=completion.bookings_completed,
        stats=completion.stats,
    )


@router.get("/{batch_id}/bookings", response_model=list[BatchBookingView])
async def list_batch_bookings_endpoint(batch_id: int, db: AsyncSession = Depends(get_db)):
    return await list_batch_bookings(db, batch_id)
