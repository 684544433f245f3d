from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import select
from sqlalchemy.orm import Session

from timetabler.api.deps import get_db
from timetabler.models.class_section import ClassSection
from timetabler.schemas.class_section import ClassSectionCreate, ClassSectionOut, ClassSectionUpdate

router = APIRouter()


def _code_taken(db: Session, class_code: str, exclude_id: str | None = None) -> bool:
    query = select(ClassSection).where(ClassSection.class_code == class_code)
    if exclude_id is not None:
        query = query.where(ClassSection.id != exclude_id)
    return db.execute(query).scalar_one_or_none() is not None


@router.get("/", response_model=list[ClassSectionOut])
def list_sections(
    academic_year: str | None = Query(default=None, max_length=20),
    db: Session = Depends(get_db),
) -> list[ClassSectionOut]:
    query = select(ClassSection).order_by(ClassSection.class_name, ClassSection.class_code)
    if academic_year is not None:
        query = query.where(ClassSection.academic_year == academic_year)
    return list(db.execute(query).scalars())


@router.get("/{section_id}", response_model=ClassSectionOut)
def get_section(section_id: str, db: Session = Depends(get_db)) -> ClassSectionOut:
    section = db.get(ClassSection, section_id)
    if section is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Section not found")
    return section


@router.post("/", response_model=ClassSectionOut, status_code=status.HTTP_201_CREATED)
def create_section(payload: ClassSectionCreate, db: Session = Depends(get_db)) -> ClassSectionOut:
    if _code_taken(db, payload.class_code):
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Section code already exists")
    section = ClassSection(**payload.model_dump())
    db.add(section)
    db.commit()
    db.refresh(section)
    return section


@router.put("/{section_id}", response_model=ClassSectionOut)
def update_section(
    section_id: str,
    payload: ClassSectionUpdate,
    db: Session = Depends(get_db),
) -> ClassSectionOut:
    section = db.get(ClassSection, section_id)
    if section is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Section not found")

    data = payload.model_dump(exclude_unset=True)
    if "class_code" in data and _code_taken(db, data["class_code"], exclude_id=section_id):
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Section code already exists")

    for key, value in data.items():
        setattr(section, key, value)
    db.commit()
    db.refresh(section)
    return section


@router.delete("/{section_id}")
def delete_section(section_id: str, db: Session = Depends(get_db)) -> dict:
    section = db.get(ClassSection, section_id)
    if section is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Section not found")
    db.delete(section)
    db.commit()
    return {"success": True}
