from sqlalchemy.orm import relationship
from sqlalchemy import CheckConstraint, Column, ForeignKey, Integer, Numeric, String, Text
from studio_booking.db import Base


class Package(Base):
    __tablename__ = "packages"
    __table_args__ = (CheckConstraint("price > 0", name="ck_package_price_positive"),)

    id = Column(Integer, primary_key=True, index=True)
    studio_id = Column(Integer, ForeignKey("studios.id", ondelete="RESTRICT"), nullable=False, index=True)
    name = Column(String(120), nullable=False)
    description = Column(Text, nullable=True)
    price = Column(Numeric(10, 2), nullable=False)
    duration_minutes = Column(Integer, nullable=False, default=60)

    studio = relationship("Studio", back_populates="packages")
    bookings = relationship("Booking", back_populates="package")
