import logging
from datetime import date
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import List
from studio_booking.config import SLOT_HORIZON_DAYS
from studio_booking.db import get_db
from studio_booking.schemas.slot import SlotBatchCreate, SlotCreate, SlotGenerationResponse, SlotResponse, SlotUpdate
from studio_booking.services import slots as slot_service
from studio_booking.utils.auth import require_admin

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/slots",
    tags=["slots"],
)


@router.get(
    "/",
    response_model=List[SlotResponse],
    summary="List available time slots",
    description="Available slots of a studio on a date. Generates the date's slots first if it has none.",
)
def get_available_slots(studio_id: int, date: date, db: Session = Depends(get_db)):
    """
    List available time slots for a studio.

    - **studio_id**: ID of the studio.
    - **date**: Date to check availability (e.g., 2025-05-04).

    Returns unheld slots ordered by start time.
    """
    slot_service.ensure_slots(db, studio_id, date)
    available = slot_service.list_available(db, studio_id, date)
    logger.debug(f"Found {len(available)} available slots for studio {studio_id} on {date}")
    return available


@router.get(
    "/held",
    response_model=List[SlotResponse],
    summary="List booked time slots",
)
def get_held_slots(studio_id: int, date: date, db: Session = Depends(get_db)):
    return slot_service.list_held(db, studio_id, date)


@router.get("/studio/{studio_id}", response_model=List[SlotResponse])
def get_studio_slots(studio_id: int, db: Session = Depends(get_db), admin: dict = Depends(require_admin)):
    """
    Retrieve every slot of a studio ordered by date and start time.
    Requires admin role.
    """
    return slot_service.list_studio_slots(db, studio_id)


@router.post("/", response_model=SlotResponse, status_code=status.HTTP_201_CREATED)
def create_slot(slot: SlotCreate, db: Session = Depends(get_db), admin: dict = Depends(require_admin)):
    """
    Create a single slot. Fails with 409 if it overlaps an existing slot.
    Requires admin role.
    """
    return slot_service.create_slot(db, slot.studio_id, slot.date, slot.start_time, slot.end_time)


@router.post("/batch", response_model=List[SlotResponse], status_code=status.HTTP_201_CREATED)
def create_slots_batch(batch: SlotBatchCreate, db: Session = Depends(get_db), admin: dict = Depends(require_admin)):
    """
    Create several slots on one date. If any of them conflicts, none are created.
    Requires admin role.
    """
    ranges = [(item.start_time, item.end_time) for item in batch.slots]
    return slot_service.create_slots_batch(db, batch.studio_id, batch.date, ranges)


@router.put("/{slot_id}", response_model=SlotResponse)
def update_slot(
    slot_id: int,
    slot_update: SlotUpdate,
    db: Session = Depends(get_db),
    admin: dict = Depends(require_admin),
):
    """
    Move a slot that is not held to another date or time range.
    Requires admin role.
    """
    return slot_service.update_slot(db, slot_id, slot_update.date, slot_update.start_time, slot_update.end_time)


@router.post(
    "/generate/{studio_id}",
    response_model=SlotGenerationResponse,
    status_code=status.HTTP_201_CREATED,
)
def generate_slots(
    studio_id: int,
    days: int = Query(default=SLOT_HORIZON_DAYS, ge=1, le=90),
    db: Session = Depends(get_db),
    admin: dict = Depends(require_admin),
):
    """
    Generate hourly slots for the next `days` days, skipping dates that already have slots.
    Requires admin role.
    """
    created = slot_service.ensure_slots_for_days(db, studio_id, date.today(), days)
    return {
        "message": f"Generated {len(created)} slots for studio ID {studio_id}",
        "slots": created,
    }


@router.delete("/{slot_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_slot(slot_id: int, db: Session = Depends(get_db), admin: dict = Depends(require_admin)):
    """
    Delete a slot that is not held.
    Requires admin role.
    """
    slot_service.delete_slot(db, slot_id)
    return None
