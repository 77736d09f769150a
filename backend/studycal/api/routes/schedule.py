from datetime import date

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from studycal.db.session import get_db
from studycal.models.task import Task
from studycal.schemas.schedule import AutoScheduleResponse
from studycal.schemas.task import TaskPublic
from studycal.services import planner_store

router = APIRouter()


@router.post("/auto", response_model=AutoScheduleResponse)
def auto_schedule_week(
    today: date | None = Query(
        default=None, description="Reference date; the plan covers the week from the next Monday"
    ),
    db: Session = Depends(get_db),
) -> AutoScheduleResponse:
    """Plan the backlog into next week's availability and save the result.

    Sessions and the reduced backlog are committed together. Running it again
    keeps consuming whatever is left of the backlog.
    """
    result = planner_store.run_auto_schedule(db, today or date.today())
    remaining = db.query(Task).order_by(Task.priority.asc(), Task.id.asc()).all()
    return AutoScheduleResponse(
        week_start=result.week_start,
        week_end=result.week_end,
        sessions=result.sessions,
        remaining_tasks=[TaskPublic.model_validate(task) for task in remaining],
    )
