from sqlalchemy import Column, Integer, String, UniqueConstraint

from studycal.db.base import Base


class AvailabilitySlot(Base):
    """One weekly study window; a weekday's windows are ordered by ``position``."""

    __tablename__ = "availability_slots"
    __table_args__ = (
        UniqueConstraint("dow", "position", name="uq_availability_dow_position"),
    )

    id = Column(Integer, primary_key=True, index=True)
    dow = Column(Integer, nullable=False, index=True)  # 0 = Sunday
    position = Column(Integer, nullable=False, default=0)
    start = Column(String(5), nullable=False)
    end = Column(String(5), nullable=False)
