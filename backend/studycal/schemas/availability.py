from pydantic import BaseModel, Field, field_validator, model_validator

from studycal.services.timeutils import Weekday, from_minutes, parse_hhmm


class TimeWindowSchema(BaseModel):
    start: str
    end: str

    @field_validator("start", "end")
    @classmethod
    def _check_time(cls, value: str) -> str:
        minutes = parse_hhmm(value)
        if minutes is None:
            raise ValueError("time must be in HH:MM format")
        return from_minutes(minutes)

    @model_validator(mode="after")
    def _check_order(self) -> "TimeWindowSchema":
        if self.start >= self.end:
            raise ValueError("window start must be before its end")
        return self


class AvailabilityUpdate(BaseModel):
    slots: list[TimeWindowSchema] = Field(default_factory=list)

    @model_validator(mode="after")
    def _check_no_overlap(self) -> "AvailabilityUpdate":
        ordered = sorted(self.slots, key=lambda w: w.start)
        for previous, current in zip(ordered, ordered[1:]):
            if current.start < previous.end:
                raise ValueError(
                    f"windows {previous.start}-{previous.end} and "
                    f"{current.start}-{current.end} overlap"
                )
        self.slots = ordered
        return self


class AvailabilityDay(BaseModel):
    dow: Weekday
    slots: list[TimeWindowSchema]
