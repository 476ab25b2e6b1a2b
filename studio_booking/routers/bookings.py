from typing import List
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from studio_booking.db import get_db
from studio_booking.schemas.booking import BookingCreate, BookingResponse, BookingStatusUpdate
from studio_booking.services import bookings as booking_service
from studio_booking.utils.auth import get_current_user, is_admin, require_admin
import logging

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/bookings",
    tags=["bookings"],
)


@router.post(
    "/",
    response_model=BookingResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a new booking",
    description="Book a slot with a package. Requires authentication.",
)
def create_booking(
    booking: BookingCreate,
    db: Session = Depends(get_db),
    current_user: dict = Depends(get_current_user),
):
    """
    Book a slot with a package.
    Requires authentication.

    - **slot_id**: ID of the slot to book.
    - **package_id**: ID of a package of the slot's studio.
    - **notes**: (Optional) Notes for the studio.

    Returns the booking with status `pending` and the package price at booking time.
    Fails with 409 if the slot has been taken in the meantime.
    """
    return booking_service.create_booking(
        db, current_user["id"], booking.package_id, booking.slot_id, booking.notes
    )


@router.get(
    "/",
    response_model=List[BookingResponse],
    summary="List my bookings",
)
def get_my_bookings(
    db: Session = Depends(get_db),
    current_user: dict = Depends(get_current_user),
):
    """
    Retrieve the caller's bookings, newest first.
    """
    bookings = booking_service.list_user_bookings(db, current_user["id"])
    logger.debug(f"Retrieved {len(bookings)} bookings for user {current_user['id']}")
    return bookings


@router.get(
    "/admin/all",
    response_model=List[BookingResponse],
    summary="List all bookings",
    description="Retrieve a paginated list of every booking. Requires admin role.",
)
def get_all_bookings(
    skip: int = 0,
    limit: int = 100,
    db: Session = Depends(get_db),
    admin: dict = Depends(require_admin),
):
    return booking_service.list_all_bookings(db, skip, limit)


@router.get(
    "/{booking_id}",
    response_model=BookingResponse,
    summary="Get a booking by ID",
)
def get_booking(
    booking_id: int,
    db: Session = Depends(get_db),
    current_user: dict = Depends(get_current_user),
):
    """
    Retrieve one of the caller's bookings by ID.
    """
    return booking_service.get_booking(db, booking_id, current_user["id"], is_admin(current_user))


@router.put(
    "/{booking_id}/cancel",
    response_model=BookingResponse,
    summary="Cancel a booking",
    description="Cancel a booking and release its slot. Requires authentication and ownership.",
)
def cancel_booking(
    booking_id: int,
    db: Session = Depends(get_db),
    current_user: dict = Depends(get_current_user),
):
    """
    Cancel a booking and release its slot.
    Requires authentication and ownership.

    Cancelling an already cancelled booking fails with 400.
    """
    return booking_service.cancel_booking(db, booking_id, current_user["id"], is_admin(current_user))


@router.put(
    "/{booking_id}/status",
    response_model=BookingResponse,
    summary="Update booking status",
    description="Move a booking to pending, confirmed, completed or cancelled. Requires admin role.",
)
def update_booking_status(
    booking_id: int,
    status_update: BookingStatusUpdate,
    db: Session = Depends(get_db),
    admin: dict = Depends(require_admin),
):
    return booking_service.update_booking_status(db, booking_id, status_update.status)
