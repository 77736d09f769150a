from datetime import datetime

from sqlalchemy import (
    Column,
    DateTime,
    ForeignKey,
    Integer,
    JSON,
    String,
)
from sqlalchemy.orm import relationship

from studycal.db.base import Base


class Task(Base):
    __tablename__ = "tasks"

    # Autoincrement ids double as backlog insertion order
    id = Column(Integer, primary_key=True, index=True)
    subject_id = Column(
        Integer, ForeignKey("subjects.id", ondelete="CASCADE"), nullable=False
    )
    title = Column(String(255), nullable=False)
    est_min = Column(Integer, nullable=False, default=60)  # remaining estimate
    priority = Column(Integer, nullable=False, default=3)  # lower = scheduled first
    tags = Column(JSON, nullable=False, default=list)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(
        DateTime,
        nullable=False,
        default=datetime.utcnow,
        onupdate=datetime.utcnow,
    )

    subject = relationship("Subject", back_populates="tasks")
