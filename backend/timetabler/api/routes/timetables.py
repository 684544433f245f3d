import logging

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy import select
from sqlalchemy.orm import Session

from timetabler.api.deps import get_db
from timetabler.models.generated_timetable import GeneratedTimetable, TimetableSlot, UnassignedSession
from timetabler.models.period_template import PeriodTemplate
from timetabler.models.room import Room
from timetabler.schemas.conflict import ConflictReport
from timetabler.schemas.generator import (
    GeneratedTimetableOut,
    GenerateTimetableRequest,
    GenerateTimetableResponse,
    GridView,
    TimetableSlotOut,
    UnassignedSessionOut,
)
from timetabler.services.conflict_service import ConflictService
from timetabler.services.generation import (
    TimetableGenerationService,
    activate_timetable,
    delete_timetable,
    get_timetable,
)
from timetabler.services.reporting import GridExporter, find_slots
from timetabler.services.time_grid import TimeGrid

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("/generate", response_model=GenerateTimetableResponse, response_model_exclude_none=True)
def generate_timetable(
    payload: GenerateTimetableRequest,
    db: Session = Depends(get_db),
) -> GenerateTimetableResponse:
    return TimetableGenerationService(db).generate(payload)


@router.get("/", response_model=list[GeneratedTimetableOut])
def list_timetables(
    academic_year: str | None = Query(default=None, max_length=20),
    db: Session = Depends(get_db),
) -> list[GeneratedTimetableOut]:
    query = select(GeneratedTimetable).order_by(GeneratedTimetable.created_at.desc(), GeneratedTimetable.id)
    if academic_year is not None:
        query = query.where(GeneratedTimetable.academic_year == academic_year)
    return list(db.execute(query).scalars())


@router.get("/{timetable_id}", response_model=GeneratedTimetableOut)
def get_generated_timetable(timetable_id: str, db: Session = Depends(get_db)) -> GeneratedTimetableOut:
    return get_timetable(db, timetable_id)


@router.delete("/{timetable_id}")
def delete_generated_timetable(timetable_id: str, db: Session = Depends(get_db)) -> dict:
    delete_timetable(db, timetable_id)
    return {"success": True}


@router.post("/{timetable_id}/activate", response_model=GeneratedTimetableOut)
def activate_generated_timetable(timetable_id: str, db: Session = Depends(get_db)) -> GeneratedTimetableOut:
    return activate_timetable(db, timetable_id)


@router.get("/{timetable_id}/slots", response_model=list[TimetableSlotOut])
def list_timetable_slots(
    timetable_id: str,
    section_id: str | None = Query(default=None, max_length=36),
    teacher_id: str | None = Query(default=None, max_length=36),
    room_id: str | None = Query(default=None, max_length=36),
    day: str | None = Query(default=None, max_length=20),
    period: int | None = Query(default=None, ge=1, le=24),
    db: Session = Depends(get_db),
) -> list[TimetableSlotOut]:
    get_timetable(db, timetable_id)
    return find_slots(
        db,
        timetable_id,
        section_id=section_id,
        teacher_id=teacher_id,
        room_id=room_id,
        day=day,
        period=period,
    )


@router.get("/{timetable_id}/unassigned", response_model=list[UnassignedSessionOut])
def list_unassigned_sessions(timetable_id: str, db: Session = Depends(get_db)) -> list[UnassignedSessionOut]:
    get_timetable(db, timetable_id)
    return list(
        db.execute(
            select(UnassignedSession)
            .where(UnassignedSession.timetable_id == timetable_id)
            .order_by(UnassignedSession.teaching_assignment_id, UnassignedSession.session_index)
        ).scalars()
    )


@router.get("/{timetable_id}/conflicts", response_model=ConflictReport)
def detect_timetable_conflicts(timetable_id: str, db: Session = Depends(get_db)) -> ConflictReport:
    timetable = get_timetable(db, timetable_id)
    slots = list(db.execute(select(TimetableSlot).where(TimetableSlot.timetable_id == timetable_id)).scalars())
    grid = None
    if timetable.period_template_id:
        template = db.get(PeriodTemplate, timetable.period_template_id)
        if template is not None:
            grid = TimeGrid.from_template(template)
    room_names = {room.id: room.name for room in db.execute(select(Room)).scalars()}

    report = ConflictService(timetable_id, slots, grid=grid, room_names=room_names).detect_conflicts()
    if report.conflicts:
        logger.warning(
            "TIMETABLE AUDIT FOUND CONFLICTS | timetable_id=%s | conflicts=%s",
            timetable_id,
            len(report.conflicts),
        )
    return report


@router.get("/{timetable_id}/export")
def export_timetable_grid(
    timetable_id: str,
    view: GridView = Query(...),
    entity_id: str = Query(..., min_length=1, max_length=36),
    db: Session = Depends(get_db),
) -> Response:
    timetable = get_timetable(db, timetable_id)
    content = GridExporter(db, timetable).to_csv(view, entity_id)
    filename = f"timetable-{view}-{entity_id}.csv"
    return Response(
        content=content,
        media_type="text/csv; charset=utf-8",
        status_code=status.HTTP_200_OK,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
