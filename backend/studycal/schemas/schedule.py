from datetime import date

from pydantic import BaseModel

from studycal.schemas.session import PlannedSession
from studycal.schemas.task import TaskPublic


class AutoScheduleResponse(BaseModel):
    week_start: date
    week_end: date
    sessions: list[PlannedSession]
    remaining_tasks: list[TaskPublic]
