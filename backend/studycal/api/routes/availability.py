from fastapi import APIRouter, Depends, Path
from sqlalchemy.orm import Session

from studycal.db.session import get_db
from studycal.schemas.availability import AvailabilityDay, AvailabilityUpdate
from studycal.services import planner_store

router = APIRouter()


@router.get("/", response_model=list[AvailabilityDay])
def get_availability(db: Session = Depends(get_db)) -> list[AvailabilityDay]:
    """Weekly study windows, one entry per weekday starting on Sunday."""
    calendar = planner_store.load_availability(db)
    return [AvailabilityDay(**entry) for entry in calendar.to_entries()]


@router.put("/{dow}", response_model=AvailabilityDay)
def set_availability(
    payload: AvailabilityUpdate,
    dow: int = Path(ge=0, le=6, description="Weekday, 0 is Sunday"),
    db: Session = Depends(get_db),
) -> AvailabilityDay:
    planner_store.replace_availability(db, dow, payload.slots)
    calendar = planner_store.load_availability(db)
    return AvailabilityDay(**calendar.to_entries()[dow])
