import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from studycal.api.routes.subjects import _get_subject_or_404
from studycal.db.session import get_db
from studycal.models.study_session import StudySession
from studycal.models.task import Task
from studycal.schemas.task import TaskCreate, TaskPublic, TaskUpdate

logger = logging.getLogger(__name__)

router = APIRouter()


def _get_task_or_404(db: Session, task_id: int) -> Task:
    task = db.query(Task).filter(Task.id == task_id).first()
    if not task:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Task not found",
        )
    return task


@router.get("/", response_model=list[TaskPublic])
def list_tasks(db: Session = Depends(get_db)) -> list[TaskPublic]:
    """List the backlog in scheduling order (priority, then insertion)."""
    return db.query(Task).order_by(Task.priority.asc(), Task.id.asc()).all()


@router.post("/", response_model=TaskPublic, status_code=status.HTTP_201_CREATED)
def create_task(
    payload: TaskCreate,
    db: Session = Depends(get_db),
) -> TaskPublic:
    _get_subject_or_404(db, payload.subject_id)
    task = Task(**payload.dict())
    db.add(task)
    db.commit()
    db.refresh(task)
    logger.info(f"Task added: {task.id} | {task.title}")
    return task


@router.put("/{task_id}", response_model=TaskPublic)
def update_task(
    task_id: int,
    payload: TaskUpdate,
    db: Session = Depends(get_db),
) -> TaskPublic:
    task = _get_task_or_404(db, task_id)
    data = payload.dict(exclude_unset=True)
    if data.get("subject_id") is not None:
        _get_subject_or_404(db, data["subject_id"])
    for key, value in data.items():
        setattr(task, key, value)
    db.add(task)
    db.commit()
    db.refresh(task)
    return task


@router.delete("/{task_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_task(
    task_id: int,
    db: Session = Depends(get_db),
) -> None:
    """Delete a task; its sessions stay on the calendar without the task link."""
    task = _get_task_or_404(db, task_id)
    db.query(StudySession).filter(StudySession.task_id == task_id).update(
        {StudySession.task_id: None}, synchronize_session=False
    )
    db.delete(task)
    db.commit()
    logger.info(f"Task deleted: {task_id}")
