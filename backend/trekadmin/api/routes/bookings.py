"""
Booking endpoints: admin listing and on-demand completion sweep.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from trekadmin.api.deps import get_lifecycle_manager
from trekadmin.db.session import get_db
from trekadmin.schemas.booking import BookingView, SweepResponse
from trekadmin.services.batch_lifecycle import BatchLifecycleManager
from trekadmin.services.booking_service import list_bookings

router = APIRouter(prefix="/bookings", tags=["Bookings"])


@router.get("/", response_model=list[BookingView])
async def list_bookings_endpoint(db: AsyncSession = Depends(get_db)):
    """All bookings, newest first."""
    return await list_bookings(db)


@router.post("/sweep-completed", response_model=SweepResponse)
async def sweep_completed_endpoint(
    db: AsyncSession = Depends(get_db),
    manager: BatchLifecycleManager = Depends(get_lifecycle_manager),
):
    """
    Complete confirmed bookings whose batch has ended. Same job the
    background sweeper runs; safe to call repeatedly.
    """
    booking_ids = await manager.sweep_completed_bookings(db)
    return SweepResponse(completed_count=len(booking_ids), booking_ids=booking_ids)
