from datetime import date

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from studycal.db.session import get_db
from studycal.schemas.stats import StatsPublic
from studycal.services import planner_store
from studycal.services.stats import study_stats

router = APIRouter()


@router.get("/", response_model=StatsPublic)
def get_stats(
    today: date | None = Query(default=None, description="Day the streak counts back from"),
    db: Session = Depends(get_db),
) -> StatsPublic:
    """Planned and completed minutes, adherence, pomodoros, active days and streak."""
    stats = study_stats(planner_store.load_sessions(db), today or date.today())
    return StatsPublic.model_validate(stats)
