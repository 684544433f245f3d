from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import ValidationError
from sqlalchemy import select, update
from sqlalchemy.orm import Session

from timetabler.api.deps import get_db
from timetabler.models.period_template import PeriodTemplate
from timetabler.schemas.period_template import (
    PeriodTemplateBase,
    PeriodTemplateCreate,
    PeriodTemplateOut,
    PeriodTemplateUpdate,
)

router = APIRouter()


def _get_template_or_404(db: Session, template_id: str) -> PeriodTemplate:
    template = db.get(PeriodTemplate, template_id)
    if template is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Period template not found")
    return template


def _deactivate_others(db: Session, template_id: str | None) -> None:
    query = update(PeriodTemplate).values(is_active=False)
    if template_id is not None:
        query = query.where(PeriodTemplate.id != template_id)
    db.execute(query)


@router.get("/", response_model=list[PeriodTemplateOut])
def list_period_templates(
    academic_year: str | None = Query(default=None, max_length=20),
    db: Session = Depends(get_db),
) -> list[PeriodTemplateOut]:
    query = select(PeriodTemplate).order_by(PeriodTemplate.created_at, PeriodTemplate.id)
    if academic_year is not None:
        query = query.where(PeriodTemplate.academic_year == academic_year)
    return list(db.execute(query).scalars())


@router.get("/active", response_model=PeriodTemplateOut)
def get_active_period_template(db: Session = Depends(get_db)) -> PeriodTemplateOut:
    template = db.execute(
        select(PeriodTemplate).where(PeriodTemplate.is_active.is_(True)).order_by(PeriodTemplate.created_at)
    ).scalars().first()
    if template is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="No active period template")
    return template


@router.get("/{template_id}", response_model=PeriodTemplateOut)
def get_period_template(template_id: str, db: Session = Depends(get_db)) -> PeriodTemplateOut:
    return _get_template_or_404(db, template_id)


@router.post("/", response_model=PeriodTemplateOut, status_code=status.HTTP_201_CREATED)
def create_period_template(payload: PeriodTemplateCreate, db: Session = Depends(get_db)) -> PeriodTemplateOut:
    template = PeriodTemplate(**payload.model_dump())
    db.add(template)
    db.flush()
    if template.is_active:
        _deactivate_others(db, template.id)
    db.commit()
    db.refresh(template)
    return template


@router.put("/{template_id}", response_model=PeriodTemplateOut)
def update_period_template(
    template_id: str,
    payload: PeriodTemplateUpdate,
    db: Session = Depends(get_db),
) -> PeriodTemplateOut:
    template = _get_template_or_404(db, template_id)
    data = payload.model_dump(exclude_unset=True)
    if not data:
        return template

    merged = PeriodTemplateOut.model_validate(template).model_dump()
    merged.update(data)
    try:
        validated = PeriodTemplateBase.model_validate(merged)
    except ValidationError as exc:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=exc.errors(include_url=False, include_context=False),
        ) from exc

    cleaned = validated.model_dump()
    for key in data:
        setattr(template, key, cleaned[key])
    db.commit()
    db.refresh(template)
    return template


@router.post("/{template_id}/activate", response_model=PeriodTemplateOut)
def activate_period_template(template_id: str, db: Session = Depends(get_db)) -> PeriodTemplateOut:
    template = _get_template_or_404(db, template_id)
    _deactivate_others(db, template.id)
    template.is_active = True
    db.commit()
    db.refresh(template)
    return template


@router.delete("/{template_id}")
def delete_period_template(template_id: str, db: Session = Depends(get_db)) -> dict:
    template = _get_template_or_404(db, template_id)
    db.delete(template)
    db.commit()
    return {"success": True}
