import logging
from datetime import date
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from typing import List
from studio_booking.config import SLOT_HORIZON_DAYS
from studio_booking.db import get_db
from studio_booking.exceptions import ResourceInUse, StudioNotFound
from studio_booking.models.package import Package
from studio_booking.models.slot import Slot
from studio_booking.models.studio import Studio
from studio_booking.schemas.studio import StudioCreate, StudioUpdate, StudioResponse
from studio_booking.services.slots import ensure_slots_for_days, get_studio
from studio_booking.utils.auth import require_admin

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/studios",
    tags=["studios"],
)


def _check_name_free(db: Session, name: str, studio_id: int = None):
    query = db.query(Studio).filter(Studio.name == name)
    if studio_id is not None:
        query = query.filter(Studio.id != studio_id)
    if query.first():
        logger.error(f"Studio name already taken: {name}")
        raise ResourceInUse("A studio with this name already exists")


@router.post("/", response_model=StudioResponse, status_code=status.HTTP_201_CREATED)
def create_studio(studio: StudioCreate, db: Session = Depends(get_db), admin: dict = Depends(require_admin)):
    """
    Create a new studio and generate its first week of slots.
    Requires admin role.
    """
    _check_name_free(db, studio.name)
    db_studio = Studio(**studio.model_dump())
    db.add(db_studio)
    db.commit()
    db.refresh(db_studio)

    created = ensure_slots_for_days(db, db_studio.id, date.today(), SLOT_HORIZON_DAYS)
    logger.info(f"Created studio {db_studio.id} with {len(created)} initial slots")
    db.refresh(db_studio)
    return db_studio


@router.get("/", response_model=List[StudioResponse])
def get_studios(skip: int = 0, limit: int = 100, db: Session = Depends(get_db)):
    """
    Retrieve a list of all studios.
    """
    return db.query(Studio).order_by(Studio.id).offset(skip).limit(limit).all()


@router.get("/{studio_id}", response_model=StudioResponse)
def get_studio_by_id(studio_id: int, db: Session = Depends(get_db)):
    """
    Retrieve a specific studio by ID.
    """
    return get_studio(db, studio_id)


@router.put("/{studio_id}", response_model=StudioResponse)
def update_studio(
    studio_id: int,
    studio_update: StudioUpdate,
    db: Session = Depends(get_db),
    admin: dict = Depends(require_admin),
):
    """
    Update a studio's details. Slots that already exist are not regenerated.
    Requires admin role.
    """
    db_studio = get_studio(db, studio_id)

    update_data = studio_update.model_dump(exclude_unset=True)
    if update_data.get("name") and update_data["name"] != db_studio.name:
        _check_name_free(db, update_data["name"], studio_id)
    for key, value in update_data.items():
        setattr(db_studio, key, value)

    db.commit()
    db.refresh(db_studio)
    return db_studio


@router.delete("/{studio_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_studio(studio_id: int, db: Session = Depends(get_db), admin: dict = Depends(require_admin)):
    """
    Delete a studio that has no packages and no slots.
    Requires admin role.
    """
    db_studio = db.query(Studio).filter(Studio.id == studio_id).first()
    if not db_studio:
        raise StudioNotFound()
    if db.query(Package.id).filter(Package.studio_id == studio_id).first():
        raise ResourceInUse("Cannot delete studio that has associated packages")
    if db.query(Slot.id).filter(Slot.studio_id == studio_id).first():
        raise ResourceInUse("Cannot delete studio that has associated time slots")

    db.delete(db_studio)
    db.commit()
    return None
