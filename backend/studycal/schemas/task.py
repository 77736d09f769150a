from datetime import datetime

from pydantic import BaseModel, Field


class TaskBase(BaseModel):
    subject_id: int
    title: str = Field(min_length=1)
    est_min: int = Field(default=60, gt=0, description="Remaining estimated minutes")
    priority: int = Field(default=3, description="Lower is scheduled first")
    tags: list[str] = Field(default_factory=list)


class TaskCreate(TaskBase):
    pass


class TaskUpdate(BaseModel):
    subject_id: int | None = None
    title: str | None = Field(default=None, min_length=1)
    est_min: int | None = Field(default=None, gt=0)
    priority: int | None = None
    tags: list[str] | None = None

    class Config:
        extra = "ignore"


class TaskPublic(TaskBase):
    id: int
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
