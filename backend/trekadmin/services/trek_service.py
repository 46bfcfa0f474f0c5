"""
Trek aggregate writes: create and reconcile a trek with all of its children.

AGGREGATE SHAPE
===============

  trek
   +- highlights, things to carry, important notes   (owned lists)
   +- gallery images                                  (file references)
   +- batches
       +- inclusions, exclusions                      (owned lists)
       +- itinerary days
           +- activities

Callers always submit the full desired state. Both paths run inside one
transaction; any failure rolls everything back, so a half-written trek is
never visible.

RECONCILIATION (update)
=======================

Owned lists (highlights, inclusions, itinerary, ...) have no dependents and no
identity exposed to callers, so they are deleted and reinserted.

Batches cannot be treated that way: bookings reference them. They are
reconciled instead:

  1. Existing batches are loaded in creation order (by id).
  2. Each input batch is paired with an existing one:
       - by id, when any input batch carries an id
       - otherwise by position (Nth existing <-> Nth input)
  3. Paired batches are updated in place (same key) and their owned lists
     replaced. A completed batch keeps its status.
  4. Unpaired input batches are inserted as new batches.
  5. Unpaired existing batches are retired:
       - no bookings  -> deleted with their children
       - bookings     -> kept, status forced to inactive
     With REJECT_BOOKED_BATCH_CHANGES the second case aborts the whole update
     with ProtectedBatchConflict instead.

Positional pairing relies on the client resubmitting batches in the order
they were listed. Two concurrent updates of one trek are not serialized here;
the database transaction decides and the last commit wins.
"""

import time
from contextlib import contextmanager
from typing import Iterable, Optional

from sqlalchemy import delete, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from trekadmin.core.config import get_settings
from trekadmin.core.exceptions import (
    DuplicateEntity, NotFound, ProtectedBatchConflict, StateConflict, ValidationError,
)
from trekadmin.core.logging import get_logger
from trekadmin.core.metrics import record_batch_transition, record_trek_write, trek_write_latency
from trekadmin.db.session import transaction
from trekadmin.models.batch import (
    BatchExclusion, BatchInclusion, ItineraryActivity, ItineraryDay, TrekBatch,
)
from trekadmin.models.booking import Booking
from trekadmin.models.trek import (
    Trek, TrekHighlight, TrekImage, TrekImportantNote, TrekThingToCarry,
)
from trekadmin.schemas.trek import BatchInput, TrekBase, TrekCreate, TrekUpdate
from trekadmin.services.slot_accounting import sync_booked_slots

logger = get_logger(__name__)

BATCH_FIELDS = (
    "start_date", "end_date", "available_slots", "price", "min_age", "max_age",
    "min_participants", "max_participants", "duration",
)


@contextmanager
def _track_write(operation: str):
    start = time.perf_counter()
    try:
        yield
    except DuplicateEntity:
        record_trek_write(operation, "duplicate")
        raise
    except ValidationError:
        record_trek_write(operation, "invalid")
        raise
    except (StateConflict, NotFound):
        record_trek_write(operation, "conflict")
        raise
    except Exception:
        record_trek_write(operation, "error")
        raise
    else:
        record_trek_write(operation, "success")
    finally:
        trek_write_latency.labels(operation=operation).observe(time.perf_counter() - start)


def _clean(items: Iterable[Optional[str]]) -> list[str]:
    """Drop empty and blank entries, keep order."""
    return [item.strip() for item in items if item and item.strip()]


def _required_identity(data: TrekBase) -> tuple[str, str]:
    name = (data.name or "").strip()
    location = (data.location or "").strip()
    if not name or not location:
        raise ValidationError("Trek name and location are required")
    return name, location


async def _ensure_unique(db: AsyncSession, name: str, location: str, exclude_id: Optional[int] = None) -> None:
    query = select(Trek.id).where(Trek.name == name, Trek.location == location)
    if exclude_id is not None:
        query = query.where(Trek.id != exclude_id)
    if await db.scalar(query) is not None:
        raise DuplicateEntity(f"Trek '{name}' at '{location}' already exists")


# ---------- owned lists ----------

def _add_trek_lists(db: AsyncSession, trek_id: int, data: TrekBase) -> None:
    db.add_all(TrekHighlight(trek_id=trek_id, highlight=h) for h in _clean(data.highlights))
    db.add_all(
        TrekThingToCarry(trek_id=trek_id, item=item, display_order=position)
        for position, item in enumerate(_clean(data.things_to_carry), start=1)
    )
    db.add_all(
        TrekImportantNote(trek_id=trek_id, note=note, display_order=position)
        for position, note in enumerate(_clean(data.important_notes), start=1)
    )


async def _replace_trek_lists(db: AsyncSession, trek_id: int, data: TrekBase) -> None:
    for model in (TrekHighlight, TrekThingToCarry, TrekImportantNote):
        await db.execute(delete(model).where(model.trek_id == trek_id))
    _add_trek_lists(db, trek_id, data)


def _add_gallery(db: AsyncSession, trek_id: int, image_refs: Iterable[str]) -> None:
    db.add_all(TrekImage(trek_id=trek_id, image_url=ref) for ref in _clean(image_refs))


def _activity_order(activity) -> tuple:
    # Untimed activities go last
    return (activity.activity_time is None, activity.activity_time or 0)


async def _insert_batch_children(db: AsyncSession, batch_id: int, batch: BatchInput) -> None:
    db.add_all(BatchInclusion(batch_id=batch_id, inclusion=i) for i in _clean(batch.inclusions))
    db.add_all(BatchExclusion(batch_id=batch_id, exclusion=e) for e in _clean(batch.exclusions))

    if not batch.itinerary_days:
        return

    days = [
        ItineraryDay(batch_id=batch_id, day_number=day.day_number, title=day.title)
        for day in batch.itinerary_days
    ]
    db.add_all(days)
    await db.flush()  # day ids for the activities

    for row, day in zip(days, batch.itinerary_days):
        activities = sorted(
            (a for a in day.activities if a.activity_text and a.activity_text.strip()),
            key=_activity_order,
        )
        db.add_all(
            ItineraryActivity(
                day_id=row.id,
                activity_time=activity.activity_time,
                activity_text=activity.activity_text.strip(),
            )
            for activity in activities
        )


async def _delete_batch_children(db: AsyncSession, batch_id: int) -> None:
    day_ids = select(ItineraryDay.id).where(ItineraryDay.batch_id == batch_id)
    await db.execute(delete(ItineraryActivity).where(ItineraryActivity.day_id.in_(day_ids)))
    await db.execute(delete(ItineraryDay).where(ItineraryDay.batch_id == batch_id))
    await db.execute(delete(BatchInclusion).where(BatchInclusion.batch_id == batch_id))
    await db.execute(delete(BatchExclusion).where(BatchExclusion.batch_id == batch_id))


# ---------- batches ----------

async def _insert_batch(db: AsyncSession, trek_id: int, batch: BatchInput) -> int:
    row = TrekBatch(
        trek_id=trek_id,
        status=batch.batch_status,
        booked_slots=0,
        **{field: getattr(batch, field) for field in BATCH_FIELDS},
    )
    db.add(row)
    await db.flush()
    await _insert_batch_children(db, row.id, batch)
    return row.id


async def _reconcile_batch(db: AsyncSession, batch: TrekBatch, incoming: BatchInput) -> None:
    for field in BATCH_FIELDS:
        setattr(batch, field, getattr(incoming, field))
    if batch.status != "completed":
        batch.status = incoming.batch_status

    await _delete_batch_children(db, batch.id)
    await _insert_batch_children(db, batch.id, incoming)
    await sync_booked_slots(db, batch)


def pair_batches(
    trek_id: int,
    existing: list[TrekBatch],
    incoming: list[BatchInput],
) -> tuple[list[tuple[TrekBatch, BatchInput]], list[BatchInput], list[TrekBatch]]:
    """
    Match submitted batches to stored ones.

    Returns (pairs to update in place, inputs to insert, existing batches left
    unpaired). `existing` must be in creation order.
    """
    if not any(batch.id is not None for batch in incoming):
        pairs = list(zip(existing, incoming))
        return pairs, incoming[len(existing):], existing[len(incoming):]

    by_id = {batch.id: batch for batch in existing}
    pairs: list[tuple[TrekBatch, BatchInput]] = []
    new: list[BatchInput] = []
    matched: set[int] = set()
    for batch in incoming:
        if batch.id is None:
            new.append(batch)
            continue
        if batch.id not in by_id:
            raise ValidationError(f"Batch {batch.id} does not belong to trek {trek_id}")
        if batch.id in matched:
            raise ValidationError(f"Batch {batch.id} submitted more than once")
        matched.add(batch.id)
        pairs.append((by_id[batch.id], batch))

    orphans = [batch for batch in existing if batch.id not in matched]
    return pairs, new, orphans


async def _booking_counts(db: AsyncSession, batch_ids: list[int]) -> dict[int, int]:
    if not batch_ids:
        return {}
    result = await db.execute(
        select(Booking.batch_id, func.count(Booking.id))
        .where(Booking.batch_id.in_(batch_ids))
        .group_by(Booking.batch_id)
    )
    counts = {batch_id: 0 for batch_id in batch_ids}
    counts.update({batch_id: count for batch_id, count in result.all()})
    return counts


async def _retire_batches(db: AsyncSession, trek_id: int, orphans: list[TrekBatch]) -> tuple[int, int]:
    """Delete or deactivate batches that are no longer submitted. Returns (deleted, deactivated)."""
    counts = await _booking_counts(db, [batch.id for batch in orphans])

    protected = [batch.id for batch in orphans if counts[batch.id]]
    if protected and get_settings().REJECT_BOOKED_BATCH_CHANGES:
        raise ProtectedBatchConflict(
            "Cannot remove batches that have existing bookings",
            batch_ids=protected,
        )

    deleted = deactivated = 0
    for batch in orphans:
        if counts[batch.id] == 0:
            await _delete_batch_children(db, batch.id)
            await db.delete(batch)
            deleted += 1
            logger.info("batch_deleted", trek_id=trek_id, batch_id=batch.id)
        elif batch.status != "completed":
            batch.status = "inactive"
            deactivated += 1
            logger.info(
                "batch_deactivated",
                trek_id=trek_id,
                batch_id=batch.id,
                bookings=counts[batch.id],
            )

    if deleted:
        record_batch_transition("delete", deleted)
    if deactivated:
        record_batch_transition("deactivate", deactivated)
    return deleted, deactivated


# ---------- public API ----------

async def create_trek(db: AsyncSession, trek_data: TrekCreate) -> int:
    """
    Create a trek with all nested children in one transaction.
    Raises DuplicateEntity if (name, location) is taken, ValidationError if
    name, location or cover image is missing.
    """
    with _track_write("create"):
        name, location = _required_identity(trek_data)
        cover_image = (trek_data.cover_image or "").strip()
        if not cover_image:
            raise ValidationError("Cover image is required")

        async with transaction(db):
            await _ensure_unique(db, name, location)

            trek = Trek(
                name=name,
                location=location,
                category=trek_data.category,
                difficulty=trek_data.difficulty,
                fitness_level=trek_data.fitness_level,
                description=trek_data.description,
                cover_image=cover_image,
            )
            db.add(trek)
            try:
                await db.flush()
            except IntegrityError as exc:
                # Lost a race with a concurrent create of the same trek
                raise DuplicateEntity(f"Trek '{name}' at '{location}' already exists") from exc

            _add_trek_lists(db, trek.id, trek_data)
            for batch in trek_data.batches:
                await _insert_batch(db, trek.id, batch)
            _add_gallery(db, trek.id, trek_data.gallery_images)
            await db.flush()
            trek_id = trek.id

    logger.info("trek_created", trek_id=trek_id, name=name, location=location, batches=len(trek_data.batches))
    return trek_id


async def update_trek(db: AsyncSession, trek_id: int, trek_data: TrekUpdate) -> int:
    """
    Make the stored trek match `trek_data` exactly, reconciling batches
    (see module docstring). Raises NotFound, DuplicateEntity, ValidationError
    or ProtectedBatchConflict; on any error nothing is changed.
    """
    with _track_write("update"):
        name, location = _required_identity(trek_data)

        async with transaction(db):
            trek = await db.scalar(
                select(Trek).where(Trek.id == trek_id).execution_options(populate_existing=True)
            )
            if trek is None:
                raise NotFound(f"Trek {trek_id} not found")

            existing = list(
                (
                    await db.scalars(
                        select(TrekBatch)
                        .where(TrekBatch.trek_id == trek_id)
                        .order_by(TrekBatch.id)
                        .execution_options(populate_existing=True)
                    )
                ).all()
            )
            pairs, new_batches, orphans = pair_batches(trek_id, existing, trek_data.batches)

            await _ensure_unique(db, name, location, exclude_id=trek_id)
            trek.name = name
            trek.location = location
            trek.category = trek_data.category
            trek.difficulty = trek_data.difficulty
            trek.fitness_level = trek_data.fitness_level
            trek.description = trek_data.description
            new_cover = (trek_data.cover_image or "").strip()
            if new_cover:
                trek.cover_image = new_cover
            elif trek_data.cover_deleted:
                trek.cover_image = None
            try:
                await db.flush()
            except IntegrityError as exc:
                # Another trek took this identity after the check above
                raise DuplicateEntity(f"Trek '{name}' at '{location}' already exists") from exc

            await _replace_trek_lists(db, trek_id, trek_data)

            for batch, incoming in pairs:
                await _reconcile_batch(db, batch, incoming)
                logger.debug("batch_reconciled", trek_id=trek_id, batch_id=batch.id)
            for incoming in new_batches:
                await _insert_batch(db, trek_id, incoming)

            deleted, deactivated = await _retire_batches(db, trek_id, orphans)

            removed = _clean(trek_data.deleted_gallery)
            if removed:
                await db.execute(
                    delete(TrekImage).where(TrekImage.trek_id == trek_id, TrekImage.image_url.in_(removed))
                )
            _add_gallery(db, trek_id, trek_data.gallery_images)
            await db.flush()

    logger.info(
        "trek_updated",
        trek_id=trek_id,
        batches_updated=len(pairs),
        batches_created=len(new_batches),
        batches_deleted=deleted,
        batches_deactivated=deactivated,
    )
    return trek_id
