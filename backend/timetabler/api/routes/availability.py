from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from timetabler.api.deps import get_db
from timetabler.models.availability import AvailabilityConstraint, ConstraintType
from timetabler.schemas.availability import (
    AvailabilityClearResult,
    AvailabilityConstraintOut,
    AvailabilityConstraintUpsert,
)
from timetabler.schemas.period_template import DAY_VALUES, validate_day_value

router = APIRouter()


def _cell_order(item: AvailabilityConstraint) -> tuple:
    day_rank = DAY_VALUES.index(item.day_of_week) if item.day_of_week in DAY_VALUES else len(DAY_VALUES)
    return (item.constraint_type.value, item.entity_id, day_rank, item.period_number)


@router.get("/", response_model=list[AvailabilityConstraintOut])
def list_availability(
    constraint_type: ConstraintType | None = Query(default=None),
    entity_id: str | None = Query(default=None, max_length=36),
    academic_year: str | None = Query(default=None, max_length=20),
    day_of_week: str | None = Query(default=None),
    db: Session = Depends(get_db),
) -> list[AvailabilityConstraintOut]:
    query = select(AvailabilityConstraint)
    if constraint_type is not None:
        query = query.where(AvailabilityConstraint.constraint_type == constraint_type)
    if entity_id is not None:
        query = query.where(AvailabilityConstraint.entity_id == entity_id)
    if academic_year is not None:
        query = query.where(AvailabilityConstraint.academic_year == academic_year)
    if day_of_week is not None:
        try:
            day = validate_day_value(day_of_week)
        except ValueError as exc:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
        query = query.where(AvailabilityConstraint.day_of_week == day)
    return sorted(db.execute(query).scalars(), key=_cell_order)


@router.put("/", response_model=AvailabilityConstraintOut)
def upsert_availability(
    payload: AvailabilityConstraintUpsert,
    db: Session = Depends(get_db),
) -> AvailabilityConstraintOut:
    constraint = (
        db.execute(
            select(AvailabilityConstraint).where(
                AvailabilityConstraint.constraint_type == payload.constraint_type,
                AvailabilityConstraint.entity_id == payload.entity_id,
                AvailabilityConstraint.day_of_week == payload.day_of_week,
                AvailabilityConstraint.period_number == payload.period_number,
                AvailabilityConstraint.academic_year == payload.academic_year,
            )
        )
        .scalars()
        .first()
    )
    data = payload.model_dump()
    if constraint is None:
        constraint = AvailabilityConstraint(**data)
        db.add(constraint)
    else:
        for key, value in data.items():
            setattr(constraint, key, value)

    db.commit()
    db.refresh(constraint)
    return constraint


@router.delete("/{constraint_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_availability(constraint_id: str, db: Session = Depends(get_db)) -> None:
    constraint = db.get(AvailabilityConstraint, constraint_id)
    if constraint is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Availability constraint not found")
    db.delete(constraint)
    db.commit()


@router.delete("/", response_model=AvailabilityClearResult)
def clear_availability(
    constraint_type: ConstraintType = Query(...),
    entity_id: str = Query(..., min_length=1, max_length=36),
    academic_year: str | None = Query(default=None, max_length=20),
    db: Session = Depends(get_db),
) -> AvailabilityClearResult:
    query = delete(AvailabilityConstraint).where(
        AvailabilityConstraint.constraint_type == constraint_type,
        AvailabilityConstraint.entity_id == entity_id,
    )
    if academic_year is not None:
        query = query.where(AvailabilityConstraint.academic_year == academic_year)
    result = db.execute(query)
    db.commit()
    return AvailabilityClearResult(deleted=result.rowcount or 0)
