"""
Booking transactions.

``create_booking`` is the only writer that flips ``Slot.held`` to true and
cancellation is the only writer that flips it back. Each operation runs in a
single transaction on the session it is given; any failure rolls the whole
transaction back before the error propagates.
"""
import logging
from typing import List, Optional
from sqlalchemy import update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from studio_booking.db import transaction
from studio_booking.exceptions import (
    AlreadyCancelled,
    BookingNotFound,
    Forbidden,
    InvalidStatus,
    InvalidTransition,
    PackageNotFound,
    SlotNotFound,
    SlotUnavailable,
)
from studio_booking.models.booking import ALLOWED_TRANSITIONS, Booking, BookingStatus
from studio_booking.models.package import Package
from studio_booking.models.slot import Slot


logger = logging.getLogger(__name__)


def parse_status(value) -> BookingStatus:
    try:
        return BookingStatus(value)
    except ValueError:
        logger.error(f"Invalid booking status: {value!r}")
        raise InvalidStatus(f"Invalid status '{value}'. Expected one of: "
                            f"{', '.join(s.value for s in BookingStatus)}")


def check_transition(current: BookingStatus, new: BookingStatus) -> None:
    if current == BookingStatus.CANCELLED and new == BookingStatus.CANCELLED:
        raise AlreadyCancelled()
    if new not in ALLOWED_TRANSITIONS[current]:
        logger.error(f"Rejected booking status transition {current.value} -> {new.value}")
        raise InvalidTransition(f"Cannot change booking status from {current.value} to {new.value}")


def _release_slot(db: Session, slot_id: int) -> None:
    db.execute(update(Slot).where(Slot.id == slot_id).values(held=False))


def create_booking(
    db: Session, user_id: int, package_id: int, slot_id: int, notes: Optional[str] = None
) -> Booking:
    """
    Claim ``slot_id`` for ``user_id`` with the price of ``package_id``.

    The slot row is locked and re-read inside the transaction, so a slot
    that looked free to the client but was claimed in the meantime fails
    with ``SlotUnavailable``. Concurrent claims on one slot: the first
    committer wins.
    """
    logger.debug(f"Creating booking for user: {user_id}, slot_id: {slot_id}, package_id: {package_id}")

    try:
        with transaction(db):
            slot = db.query(Slot).filter(Slot.id == slot_id).with_for_update().first()
            if not slot:
                logger.error(f"Slot not found: {slot_id}")
                raise SlotNotFound()
            if slot.held:
                logger.error(f"Slot {slot_id} is already held")
                raise SlotUnavailable()

            package = db.query(Package).filter(Package.id == package_id).first()
            if not package or package.studio_id != slot.studio_id:
                logger.error(f"Package {package_id} not found for studio {slot.studio_id}")
                raise PackageNotFound()

            booking = Booking(
                user_id=user_id,
                studio_id=slot.studio_id,
                package_id=package.id,
                slot_id=slot.id,
                status=BookingStatus.PENDING.value,
                total_price=package.price,
                notes=notes,
            )
            db.add(booking)
            db.flush()

            claimed = db.execute(
                update(Slot).where(Slot.id == slot_id, Slot.held.is_(False)).values(held=True)
            )
            if claimed.rowcount != 1:
                logger.error(f"Slot {slot_id} was claimed by a concurrent booking")
                raise SlotUnavailable()
    except IntegrityError:
        logger.error(f"Slot {slot_id} already has an active booking")
        raise SlotUnavailable()

    db.refresh(booking)
    logger.debug(f"Created booking: {booking.id}, slot_id: {slot_id}, total_price: {booking.total_price}")
    return booking


def get_booking(db: Session, booking_id: int, user_id: int, is_admin: bool = False) -> Booking:
    booking = db.query(Booking).filter(Booking.id == booking_id).first()
    if not booking:
        logger.error(f"Booking not found: {booking_id}")
        raise BookingNotFound()
    if booking.user_id != user_id and not is_admin:
        logger.error(f"User {user_id} not authorized to access booking {booking_id}")
        raise Forbidden()
    return booking


def list_user_bookings(db: Session, user_id: int) -> List[Booking]:
    return (
        db.query(Booking)
        .filter(Booking.user_id == user_id)
        .order_by(Booking.created_at.desc(), Booking.id.desc())
        .all()
    )


def list_all_bookings(db: Session, skip: int = 0, limit: int = 100) -> List[Booking]:
    bookings = (
        db.query(Booking)
        .order_by(Booking.created_at.desc(), Booking.id.desc())
        .offset(skip)
        .limit(limit)
        .all()
    )
    logger.debug(f"Retrieved {len(bookings)} bookings")
    return bookings


def cancel_booking(db: Session, booking_id: int, user_id: int, is_admin: bool = False) -> Booking:
    """
    Cancel a booking and release its slot in one transaction.

    Not idempotent: cancelling an already cancelled booking raises
    ``AlreadyCancelled`` and changes nothing.
    """
    with transaction(db):
        booking = db.query(Booking).filter(Booking.id == booking_id).with_for_update().first()
        if not booking:
            logger.error(f"Booking not found: {booking_id}")
            raise BookingNotFound()
        if booking.user_id != user_id and not is_admin:
            logger.error(f"User {user_id} not authorized to cancel booking {booking_id}")
            raise Forbidden("Not authorized to cancel this booking")

        check_transition(BookingStatus(booking.status), BookingStatus.CANCELLED)
        booking.status = BookingStatus.CANCELLED.value
        db.flush()
        _release_slot(db, booking.slot_id)

    db.refresh(booking)
    logger.debug(f"Cancelled booking: {booking_id}, released slot {booking.slot_id}")
    return booking


def update_booking_status(db: Session, booking_id: int, new_status) -> Booking:
    """
    Move a booking along its lifecycle.

    pending -> confirmed | completed | cancelled, confirmed -> completed |
    cancelled; completed and cancelled are terminal. Entering cancelled
    releases the slot in the same transaction.
    """
    status = parse_status(new_status)

    with transaction(db):
        booking = db.query(Booking).filter(Booking.id == booking_id).with_for_update().first()
        if not booking:
            logger.error(f"Booking not found: {booking_id}")
            raise BookingNotFound()

        previous = BookingStatus(booking.status)
        check_transition(previous, status)
        booking.status = status.value
        db.flush()
        if status == BookingStatus.CANCELLED:
            _release_slot(db, booking.slot_id)

    db.refresh(booking)
    logger.debug(f"Booking {booking_id} status {previous.value} -> {status.value}")
    return booking
