from pydantic import BaseModel


class StatsPublic(BaseModel):
    planned_min: int
    done_min: int
    adherence: int | None
    total_pomos: int
    active_days: int
    streak: int

    class Config:
        from_attributes = True
