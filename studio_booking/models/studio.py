from sqlalchemy.orm import relationship
from sqlalchemy import Boolean, CheckConstraint, Column, DateTime, Integer, String, Text, func
from studio_booking.db import Base


class Studio(Base):
    __tablename__ = "studios"
    __table_args__ = (
        CheckConstraint("opening_hour >= 0 AND opening_hour < 24", name="ck_studio_opening_hour"),
        CheckConstraint("closing_hour >= 0 AND closing_hour < 24", name="ck_studio_closing_hour"),
    )

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(120), unique=True, index=True, nullable=False)
    description = Column(Text, nullable=True)
    image_url = Column(String, nullable=True)
    opening_hour = Column(Integer, nullable=True)
    closing_hour = Column(Integer, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, nullable=False, server_default=func.now())

    packages = relationship("Package", back_populates="studio")
    slots = relationship("Slot", back_populates="studio")
