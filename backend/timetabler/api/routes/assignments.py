from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import ValidationError
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from timetabler.api.deps import get_db
from timetabler.models.class_section import ClassSection
from timetabler.models.room import Room
from timetabler.models.teaching_assignment import TeachingAssignment
from timetabler.schemas.assignment import (
    TeachingAssignmentBase,
    TeachingAssignmentCreate,
    TeachingAssignmentOut,
    TeachingAssignmentUpdate,
)

router = APIRouter()


def _get_assignment_or_404(db: Session, assignment_id: str) -> TeachingAssignment:
    assignment = db.get(TeachingAssignment, assignment_id)
    if assignment is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Teaching assignment not found")
    return assignment


def _ensure_references_exist(db: Session, payload: TeachingAssignmentBase) -> None:
    known_sections = set(
        db.execute(select(ClassSection.id).where(ClassSection.id.in_(payload.section_ids))).scalars()
    )
    missing_sections = [item for item in payload.section_ids if item not in known_sections]
    if missing_sections:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Unknown section id(s): {', '.join(missing_sections)}",
        )
    if payload.preferred_room_ids:
        known_rooms = set(
            db.execute(select(Room.id).where(Room.id.in_(payload.preferred_room_ids))).scalars()
        )
        missing_rooms = [item for item in payload.preferred_room_ids if item not in known_rooms]
        if missing_rooms:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Unknown room id(s): {', '.join(missing_rooms)}",
            )


@router.get("/", response_model=list[TeachingAssignmentOut])
def list_assignments(
    academic_year: str | None = Query(default=None, max_length=20),
    teacher_id: str | None = Query(default=None, max_length=36),
    section_id: str | None = Query(default=None, max_length=36),
    active_only: bool = Query(default=False),
    db: Session = Depends(get_db),
) -> list[TeachingAssignmentOut]:
    query = select(TeachingAssignment).order_by(TeachingAssignment.sequence, TeachingAssignment.id)
    if academic_year is not None:
        query = query.where(TeachingAssignment.academic_year == academic_year)
    if teacher_id is not None:
        query = query.where(TeachingAssignment.teacher_id == teacher_id)
    if active_only:
        query = query.where(TeachingAssignment.is_active.is_(True))
    assignments = list(db.execute(query).scalars())
    if section_id is not None:
        assignments = [item for item in assignments if section_id in (item.section_ids or [])]
    return assignments


@router.get("/{assignment_id}", response_model=TeachingAssignmentOut)
def get_assignment(assignment_id: str, db: Session = Depends(get_db)) -> TeachingAssignmentOut:
    return _get_assignment_or_404(db, assignment_id)


@router.post("/", response_model=TeachingAssignmentOut, status_code=status.HTTP_201_CREATED)
def create_assignment(payload: TeachingAssignmentCreate, db: Session = Depends(get_db)) -> TeachingAssignmentOut:
    _ensure_references_exist(db, payload)
    next_sequence = (db.execute(select(func.max(TeachingAssignment.sequence))).scalar() or 0) + 1
    assignment = TeachingAssignment(**payload.model_dump(), sequence=next_sequence)
    db.add(assignment)
    db.commit()
    db.refresh(assignment)
    return assignment


@router.put("/{assignment_id}", response_model=TeachingAssignmentOut)
def update_assignment(
    assignment_id: str,
    payload: TeachingAssignmentUpdate,
    db: Session = Depends(get_db),
) -> TeachingAssignmentOut:
    assignment = _get_assignment_or_404(db, assignment_id)
    data = payload.model_dump(exclude_unset=True)
    if not data:
        return assignment

    merged = TeachingAssignmentOut.model_validate(assignment).model_dump()
    merged.update(data)
    try:
        validated = TeachingAssignmentBase.model_validate(merged)
    except ValidationError as exc:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=exc.errors(include_url=False, include_context=False),
        ) from exc
    _ensure_references_exist(db, validated)

    cleaned = validated.model_dump()
    for key in data:
        setattr(assignment, key, cleaned[key])
    db.commit()
    db.refresh(assignment)
    return assignment


@router.delete("/{assignment_id}")
def delete_assignment(assignment_id: str, db: Session = Depends(get_db)) -> dict:
    assignment = _get_assignment_or_404(db, assignment_id)
    db.delete(assignment)
    db.commit()
    return {"success": True}
