import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from studycal.db.session import get_db
from studycal.models.subject import Subject
from studycal.schemas.subject import SubjectCreate, SubjectPublic, SubjectUpdate

logger = logging.getLogger(__name__)

router = APIRouter()


def _get_subject_or_404(db: Session, subject_id: int) -> Subject:
    subject = db.query(Subject).filter(Subject.id == subject_id).first()
    if not subject:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Subject not found"
        )
    return subject


@router.get("/", response_model=list[SubjectPublic])
def list_subjects(db: Session = Depends(get_db)) -> list[SubjectPublic]:
    return db.query(Subject).order_by(Subject.name.asc()).all()


@router.post("/", response_model=SubjectPublic, status_code=status.HTTP_201_CREATED)
def create_subject(
    payload: SubjectCreate,
    db: Session = Depends(get_db),
) -> SubjectPublic:
    subject = Subject(**payload.dict())
    db.add(subject)
    db.commit()
    db.refresh(subject)
    return subject


@router.put("/{subject_id}", response_model=SubjectPublic)
def update_subject(
    subject_id: int,
    payload: SubjectUpdate,
    db: Session = Depends(get_db),
) -> SubjectPublic:
    subject = _get_subject_or_404(db, subject_id)
    data = payload.dict(exclude_unset=True)
    for key, value in data.items():
        setattr(subject, key, value)
    db.add(subject)
    db.commit()
    db.refresh(subject)
    return subject


@router.delete("/{subject_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_subject(
    subject_id: int,
    db: Session = Depends(get_db),
) -> None:
    """Delete a subject together with its tasks and sessions."""
    subject = _get_subject_or_404(db, subject_id)
    db.delete(subject)
    db.commit()
    logger.info(f"Subject deleted: {subject_id}")
