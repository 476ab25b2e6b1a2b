"""
Slot catalog and availability.

Slots are always real rows: availability is only ever answered from the
``slots`` table, so callers run ``ensure_slots`` before listing a date.
"""
import logging
from datetime import date, time, timedelta
from typing import List, Optional, Tuple
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from studio_booking.config import DEFAULT_CLOSING_HOUR, DEFAULT_OPENING_HOUR, SLOT_HORIZON_DAYS
from studio_booking.db import transaction
from studio_booking.exceptions import ResourceInUse, SlotNotFound, SlotUnavailable, StudioNotFound
from studio_booking.models.slot import Slot
from studio_booking.models.studio import Studio


logger = logging.getLogger(__name__)


def studio_hours(studio: Studio) -> Tuple[int, int]:
    """Return the (opening, closing) hours of a studio, falling back to 9-18."""
    opening = studio.opening_hour if studio.opening_hour is not None else DEFAULT_OPENING_HOUR
    closing = studio.closing_hour if studio.closing_hour is not None else DEFAULT_CLOSING_HOUR
    return opening, closing


def hourly_grid(opening: int, closing: int) -> List[Tuple[time, time]]:
    """
    One-hour ranges covering [opening, closing).

    An empty or inverted window gives an empty grid.
    """
    return [(time(hour=hour), time(hour=hour + 1)) for hour in range(opening, closing)]


def get_studio(db: Session, studio_id: int) -> Studio:
    studio = db.query(Studio).filter(Studio.id == studio_id).first()
    if not studio:
        logger.error(f"Studio not found: {studio_id}")
        raise StudioNotFound()
    return studio


def ensure_slots(db: Session, studio_id: int, day: date) -> List[Slot]:
    """
    Generate the hourly slots of ``day`` unless the date already has any.

    Generation is all-or-nothing for the date: every insert runs in one
    transaction. Returns the slots created, which is empty when the date
    was already populated.
    """
    try:
        with transaction(db):
            studio = db.query(Studio).filter(Studio.id == studio_id).with_for_update().first()
            if not studio:
                logger.error(f"Studio not found: {studio_id}")
                raise StudioNotFound()

            existing = db.query(Slot.id).filter(Slot.studio_id == studio_id, Slot.date == day).first()
            if existing:
                logger.debug(f"Slots already exist for studio {studio_id} on {day}")
                return []

            opening, closing = studio_hours(studio)
            created = [
                Slot(studio_id=studio_id, date=day, start_time=start, end_time=end, held=False)
                for start, end in hourly_grid(opening, closing)
            ]
            db.add_all(created)
            db.flush()
    except IntegrityError:
        # another request populated the same date first
        logger.info(f"Slots for studio {studio_id} on {day} were generated concurrently")
        return []

    logger.info(f"Generated {len(created)} slots for studio {studio_id} on {day}")
    return created


def ensure_slots_for_days(
    db: Session, studio_id: int, start_date: date, num_days: int = SLOT_HORIZON_DAYS
) -> List[Slot]:
    """Run ``ensure_slots`` for ``num_days`` consecutive days, each in its own transaction."""
    created = []
    for offset in range(max(num_days, 0)):
        created.extend(ensure_slots(db, studio_id, start_date + timedelta(days=offset)))
    logger.debug(f"Ensured {num_days} days from {start_date} for studio {studio_id}: {len(created)} new slots")
    return created


def refresh_slot_horizon(db: Session, days: int = SLOT_HORIZON_DAYS, today: Optional[date] = None) -> int:
    """
    Keep a rolling ``days``-day window of slots for every active studio.

    Returns the number of slots created. A studio that fails is logged and
    skipped so one bad row does not stop the refresh.
    """
    today = today or date.today()
    studio_ids = [row.id for row in db.query(Studio.id).filter(Studio.is_active.is_(True)).order_by(Studio.id)]
    db.rollback()

    total = 0
    for studio_id in studio_ids:
        try:
            total += len(ensure_slots_for_days(db, studio_id, today, days))
        except Exception:
            logger.exception(f"Slot refresh failed for studio {studio_id}")
    logger.info(f"Slot refresh created {total} slots across {len(studio_ids)} studios")
    return total


def list_available(db: Session, studio_id: int, day: date) -> List[Slot]:
    get_studio(db, studio_id)
    return (
        db.query(Slot)
        .filter(Slot.studio_id == studio_id, Slot.date == day, Slot.held.is_(False))
        .order_by(Slot.start_time)
        .all()
    )


def list_held(db: Session, studio_id: int, day: date) -> List[Slot]:
    get_studio(db, studio_id)
    return (
        db.query(Slot)
        .filter(Slot.studio_id == studio_id, Slot.date == day, Slot.held.is_(True))
        .order_by(Slot.start_time)
        .all()
    )


def list_studio_slots(db: Session, studio_id: int) -> List[Slot]:
    get_studio(db, studio_id)
    return db.query(Slot).filter(Slot.studio_id == studio_id).order_by(Slot.date, Slot.start_time).all()


def _find_overlap(
    db: Session, studio_id: int, day: date, start_time: time, end_time: time, exclude_id: Optional[int] = None
) -> Optional[Slot]:
    query = db.query(Slot).filter(
        Slot.studio_id == studio_id,
        Slot.date == day,
        Slot.start_time < end_time,
        Slot.end_time > start_time,
    )
    if exclude_id is not None:
        query = query.filter(Slot.id != exclude_id)
    return query.first()


def _check_range(start_time: time, end_time: time) -> None:
    if start_time >= end_time:
        logger.error(f"Invalid slot range: {start_time} - {end_time}")
        raise SlotUnavailable("Slot end time must be after its start time")


def _lock_studio(db: Session, studio_id: int) -> Studio:
    studio = db.query(Studio).filter(Studio.id == studio_id).with_for_update().first()
    if not studio:
        logger.error(f"Studio not found: {studio_id}")
        raise StudioNotFound()
    return studio


def _insert_slot(db: Session, studio_id: int, day: date, start_time: time, end_time: time) -> Slot:
    overlapping = _find_overlap(db, studio_id, day, start_time, end_time)
    if overlapping:
        logger.error(f"Slot {start_time}-{end_time} on {day} overlaps slot {overlapping.id}")
        raise SlotUnavailable(f"Time slot {start_time:%H:%M}-{end_time:%H:%M} conflicts with an existing slot")

    slot = Slot(studio_id=studio_id, date=day, start_time=start_time, end_time=end_time, held=False)
    db.add(slot)
    db.flush()
    return slot


def create_slot(db: Session, studio_id: int, day: date, start_time: time, end_time: time) -> Slot:
    """Add a single slot; its range must not overlap another slot of the same date."""
    _check_range(start_time, end_time)

    with transaction(db):
        _lock_studio(db, studio_id)
        slot = _insert_slot(db, studio_id, day, start_time, end_time)

    db.refresh(slot)
    logger.debug(f"Created slot {slot.id} for studio {studio_id} on {day}")
    return slot


def create_slots_batch(
    db: Session, studio_id: int, day: date, ranges: List[Tuple[time, time]]
) -> List[Slot]:
    """
    Add several slots on one date, all or none.

    Ranges are checked in order against the stored slots and against the
    ones already added by this batch. The first conflict raises
    ``SlotUnavailable`` and nothing from the batch is kept.
    """
    for start_time, end_time in ranges:
        _check_range(start_time, end_time)

    with transaction(db):
        _lock_studio(db, studio_id)
        created = [_insert_slot(db, studio_id, day, start, end) for start, end in ranges]

    logger.info(f"Batch created {len(created)} slots for studio {studio_id} on {day}")
    return created


def update_slot(
    db: Session,
    slot_id: int,
    day: Optional[date] = None,
    start_time: Optional[time] = None,
    end_time: Optional[time] = None,
) -> Slot:
    """
    Move an unheld slot to another date or time range.

    Fields left as None keep their current value. A held slot cannot be
    changed at all; ``held`` itself is only ever written by bookings.
    """
    with transaction(db):
        slot = db.query(Slot).filter(Slot.id == slot_id).with_for_update().first()
        if not slot:
            logger.error(f"Slot not found: {slot_id}")
            raise SlotNotFound()
        if slot.held:
            logger.error(f"Refusing to modify held slot {slot_id}")
            raise SlotUnavailable("Cannot modify a booked slot")

        new_day = day if day is not None else slot.date
        new_start = start_time if start_time is not None else slot.start_time
        new_end = end_time if end_time is not None else slot.end_time
        _check_range(new_start, new_end)

        overlapping = _find_overlap(db, slot.studio_id, new_day, new_start, new_end, exclude_id=slot.id)
        if overlapping:
            logger.error(f"Slot {slot_id} moved to {new_start}-{new_end} on {new_day} overlaps slot {overlapping.id}")
            raise SlotUnavailable("Time slot conflicts with an existing slot")

        slot.date = new_day
        slot.start_time = new_start
        slot.end_time = new_end
        db.flush()

    db.refresh(slot)
    logger.debug(f"Updated slot {slot_id}: {new_day} {new_start}-{new_end}")
    return slot


def delete_slot(db: Session, slot_id: int) -> None:
    with transaction(db):
        slot = db.query(Slot).filter(Slot.id == slot_id).with_for_update().first()
        if not slot:
            logger.error(f"Slot not found: {slot_id}")
            raise SlotNotFound()
        if slot.held:
            logger.error(f"Refusing to delete held slot {slot_id}")
            raise SlotUnavailable("Cannot delete a booked slot")
        if slot.bookings:
            logger.error(f"Refusing to delete slot {slot_id} referenced by past bookings")
            raise ResourceInUse("Cannot delete a slot with booking history")
        db.delete(slot)
    logger.debug(f"Deleted slot: {slot_id}")
