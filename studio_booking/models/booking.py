import enum
from sqlalchemy import Column, DateTime, ForeignKey, Index, Integer, Numeric, String, Text, func, text
from sqlalchemy.orm import relationship
from studio_booking.db import Base


class BookingStatus(str, enum.Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


# pending -> confirmed/completed/cancelled, confirmed -> completed/cancelled
ALLOWED_TRANSITIONS = {
    BookingStatus.PENDING: {BookingStatus.CONFIRMED, BookingStatus.COMPLETED, BookingStatus.CANCELLED},
    BookingStatus.CONFIRMED: {BookingStatus.COMPLETED, BookingStatus.CANCELLED},
    BookingStatus.COMPLETED: set(),
    BookingStatus.CANCELLED: set(),
}


class Booking(Base):
    __tablename__ = "bookings"
    __table_args__ = (
        # at most one non-cancelled booking per slot
        Index(
            "uq_booking_active_slot",
            "slot_id",
            unique=True,
            postgresql_where=text("status != 'cancelled'"),
            sqlite_where=text("status != 'cancelled'"),
        ),
    )

    id = Column(Integer, primary_key=True, index=True)
    # issued by the auth service, which owns the users table
    user_id = Column(Integer, nullable=False, index=True)
    studio_id = Column(Integer, ForeignKey("studios.id", ondelete="RESTRICT"), nullable=False)
    package_id = Column(Integer, ForeignKey("packages.id", ondelete="RESTRICT"), nullable=False)
    slot_id = Column(Integer, ForeignKey("slots.id", ondelete="RESTRICT"), nullable=False)
    status = Column(String(20), nullable=False, default=BookingStatus.PENDING.value)
    total_price = Column(Numeric(10, 2), nullable=False)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime, nullable=False, server_default=func.now())
    updated_at = Column(DateTime, nullable=False, server_default=func.now(), onupdate=func.now())

    studio = relationship("Studio")
    package = relationship("Package", back_populates="bookings")
    slot = relationship("Slot", back_populates="bookings")
