from studycal.models.subject import Subject
from studycal.models.task import Task
from studycal.models.study_session import StudySession
from studycal.models.availability import AvailabilitySlot

__all__ = [
    "Subject",
    "Task",
    "StudySession",
    "AvailabilitySlot",
]
