from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from typing import List, Optional
from studio_booking.db import get_db
from studio_booking.exceptions import PackageNotFound, ResourceInUse
from studio_booking.models.booking import Booking
from studio_booking.models.package import Package
from studio_booking.schemas.package import PackageCreate, PackageResponse
from studio_booking.services.slots import get_studio
from studio_booking.utils.auth import require_admin


router = APIRouter(
    prefix="/api/packages",
    tags=["packages"],
)


@router.post("/", response_model=PackageResponse, status_code=status.HTTP_201_CREATED)
def create_package(package: PackageCreate, db: Session = Depends(get_db), admin: dict = Depends(require_admin)):
    """
    Create a package for a studio.
    Requires admin role.
    """
    get_studio(db, package.studio_id)
    db_package = Package(**package.model_dump())
    db.add(db_package)
    db.commit()
    db.refresh(db_package)
    return db_package


@router.get("/", response_model=List[PackageResponse])
def get_packages(studio_id: Optional[int] = None, db: Session = Depends(get_db)):
    """
    Retrieve packages ordered by price, optionally for one studio.
    """
    query = db.query(Package)
    if studio_id is not None:
        query = query.filter(Package.studio_id == studio_id)
    return query.order_by(Package.price, Package.id).all()


@router.get("/{package_id}", response_model=PackageResponse)
def get_package(package_id: int, db: Session = Depends(get_db)):
    package = db.query(Package).filter(Package.id == package_id).first()
    if not package:
        raise PackageNotFound()
    return package


@router.delete("/{package_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_package(package_id: int, db: Session = Depends(get_db), admin: dict = Depends(require_admin)):
    """
    Delete a package no booking refers to.
    Requires admin role.
    """
    package = db.query(Package).filter(Package.id == package_id).first()
    if not package:
        raise PackageNotFound()
    if db.query(Booking.id).filter(Booking.package_id == package_id).first():
        raise ResourceInUse("Cannot delete a package referenced by bookings")

    db.delete(package)
    db.commit()
    return None
