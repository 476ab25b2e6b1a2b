from sqlalchemy.orm import relationship
from sqlalchemy import Boolean, Column, Date, ForeignKey, Integer, Time, UniqueConstraint
from studio_booking.db import Base


class Slot(Base):
    __tablename__ = "slots"
    __table_args__ = (
        # backstop against two generators populating the same date
        UniqueConstraint("studio_id", "date", "start_time", name="uq_slot_studio_date_start"),
    )

    id = Column(Integer, primary_key=True, index=True)
    studio_id = Column(Integer, ForeignKey("studios.id", ondelete="RESTRICT"), nullable=False, index=True)
    date = Column(Date, nullable=False, index=True)
    start_time = Column(Time, nullable=False)
    end_time = Column(Time, nullable=False)
    held = Column(Boolean, nullable=False, default=False)

    studio = relationship("Studio", back_populates="slots")
    bookings = relationship("Booking", back_populates="slot")
