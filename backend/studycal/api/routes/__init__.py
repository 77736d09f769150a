from fastapi import APIRouter

from studycal.api.routes import (
    availability,
    schedule,
    sessions,
    stats,
    subjects,
    tasks,
)


api_router = APIRouter()
api_router.include_router(subjects.router, prefix="/subjects", tags=["subjects"])
api_router.include_router(tasks.router, prefix="/tasks", tags=["tasks"])
api_router.include_router(sessions.router, prefix="/sessions", tags=["sessions"])
api_router.include_router(availability.router, prefix="/availability", tags=["availability"])
api_router.include_router(schedule.router, prefix="/schedule", tags=["schedule"])
api_router.include_router(stats.router, prefix="/stats", tags=["stats"])
