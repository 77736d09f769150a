from datetime import datetime

from sqlalchemy import (
    Column,
    Date,
    DateTime,
    Enum as SQLEnum,
    ForeignKey,
    Integer,
    JSON,
    String,
)
from sqlalchemy.orm import relationship

from studycal.db.base import Base
from studycal.schemas.common import SessionStatus, new_session_id


class StudySession(Base):
    __tablename__ = "study_sessions"

    # Ids are minted by the engine before the row exists, hence UUID strings
    id = Column(String(36), primary_key=True, default=new_session_id)
    subject_id = Column(
        Integer, ForeignKey("subjects.id", ondelete="CASCADE"), nullable=False
    )
    task_id = Column(Integer, ForeignKey("tasks.id", ondelete="SET NULL"), nullable=True)
    title = Column(String(255), nullable=False)
    date = Column(Date, nullable=False, index=True)
    start = Column(String(5), nullable=False)  # HH:MM
    duration_min = Column(Integer, nullable=False)
    pomos = Column(Integer, nullable=False, default=0)
    tags = Column(JSON, nullable=False, default=list)
    status = Column(SQLEnum(SessionStatus), nullable=False, default=SessionStatus.OPEN)
    notes = Column(String(1024), nullable=True)
    actual_min = Column(Integer, nullable=True)
    generated_by = Column(String(32), nullable=True)  # manual, auto, recurrence
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(
        DateTime,
        nullable=False,
        default=datetime.utcnow,
        onupdate=datetime.utcnow,
    )

    subject = relationship("Subject", back_populates="sessions")
    task = relationship("Task")
