from datetime import datetime

from pydantic import BaseModel, Field


class SubjectBase(BaseModel):
    name: str = Field(min_length=1)
    color: str = "#4B5563"


class SubjectCreate(SubjectBase):
    pass


class SubjectUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1)
    color: str | None = None


class SubjectPublic(SubjectBase):
    id: int
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
