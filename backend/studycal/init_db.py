"""Create the tables and seed the default weekly availability."""

from studycal.db.base import Base
from studycal.db.session import SessionLocal, engine
from studycal.models import AvailabilitySlot, StudySession, Subject, Task  # noqa: F401
from studycal.services.planner_store import seed_default_availability


def main() -> None:
    Base.metadata.create_all(bind=engine)
    print("Database tables created!")
    with SessionLocal() as db:
        if seed_default_availability(db):
            print("Default availability seeded.")


if __name__ == "__main__":
    main()
