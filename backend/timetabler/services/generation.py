from __future__ import annotations

import logging
from datetime import datetime, timezone
from time import perf_counter

from sqlalchemy import delete, select, update
from sqlalchemy.orm import Session

from timetabler.core.config import Settings, get_settings
from timetabler.core.exceptions import AppError, ResourceNotFoundError, SchedulerError
from timetabler.models.availability import AvailabilityConstraint
from timetabler.models.class_section import ClassSection
from timetabler.models.generated_timetable import (
    GeneratedTimetable,
    GenerationStatus,
    TimetableSlot,
    UnassignedSession,
)
from timetabler.models.period_template import PeriodTemplate
from timetabler.models.room import Room
from timetabler.models.teaching_assignment import TeachingAssignment
from timetabler.schemas.generator import GenerateTimetableRequest, GenerateTimetableResponse
from timetabler.services.catalog import AssignmentSpec, RoomSpec, SectionSpec
from timetabler.services.constraint_store import ConstraintStore
from timetabler.services.scheduler import GreedyScheduler, ScheduleResult
from timetabler.services.time_grid import TimeGrid

logger = logging.getLogger(__name__)


def truncate_log(lines: list[str], limit: int) -> list[str]:
    if len(lines) <= limit:
        return list(lines)
    kept = lines[: limit - 1]
    kept.append(f"... {len(lines) - len(kept)} more log line(s) truncated")
    return kept


class TimetableGenerationService:
    """Drives one generation run from request to persisted result.

    The run record moves pending -> generating -> completed | failed. Inputs
    are loaded once into frozen snapshots; slots and unassigned sessions are
    written in a single transaction together with the final counts.
    """

    def __init__(self, db: Session, settings: Settings | None = None) -> None:
        self.db = db
        self.settings = settings or get_settings()

    def generate(self, payload: GenerateTimetableRequest) -> GenerateTimetableResponse:
        started = perf_counter()
        record = GeneratedTimetable(
            name=payload.timetable_name,
            academic_year=payload.academic_year,
            period_template_id=payload.period_template_id,
            generation_status=GenerationStatus.pending,
            generation_log=[],
            is_active=False,
        )
        self.db.add(record)
        self.db.commit()
        self.db.refresh(record)
        logger.info(
            "TIMETABLE GENERATION START | timetable_id=%s | academic_year=%s | template_id=%s",
            record.id,
            record.academic_year,
            payload.period_template_id,
        )

        record.generation_status = GenerationStatus.generating
        self.db.commit()

        try:
            scheduler, preamble = self._build_scheduler(record, payload)
            result = scheduler.run()
        except SchedulerError as exc:
            self._mark_failed(record, exc.message)
            logger.warning(
                "TIMETABLE GENERATION REJECTED | timetable_id=%s | reason=%s",
                record.id,
                exc.message,
            )
            return GenerateTimetableResponse(success=False, timetable_id=record.id, error=exc.message)
        except Exception:
            self.db.rollback()
            logger.exception("TIMETABLE GENERATION FAILED | timetable_id=%s", record.id)
            self._mark_failed(record, "Unexpected error during generation")
            raise

        elapsed_ms = int((perf_counter() - started) * 1000)
        log_lines = [*preamble, *result.log, f"Generation finished in {elapsed_ms} ms"]
        try:
            self._persist(record, result, log_lines)
        except Exception:
            self.db.rollback()
            logger.exception("TIMETABLE GENERATION PERSIST FAILED | timetable_id=%s", record.id)
            self._mark_failed(record, "Failed to store generation results")
            raise

        logger.info(
            "TIMETABLE GENERATION COMPLETE | timetable_id=%s | total=%s | assigned=%s | unassigned=%s | wall_ms=%s",
            record.id,
            result.total_sessions,
            len(result.placed),
            len(result.unplaced),
            elapsed_ms,
        )
        return GenerateTimetableResponse(
            success=True,
            timetable_id=record.id,
            total_sessions=result.total_sessions,
            assigned_sessions=len(result.placed),
            unassigned_sessions=len(result.unplaced),
        )

    def _resolve_template(self, template_id: str | None) -> PeriodTemplate:
        if template_id is not None:
            template = self.db.get(PeriodTemplate, template_id)
            if template is None:
                raise SchedulerError(
                    message=f"Period template {template_id} not found",
                    details={"period_template_id": template_id},
                )
            return template
        template = self.db.execute(
            select(PeriodTemplate)
            .where(PeriodTemplate.is_active.is_(True))
            .order_by(PeriodTemplate.created_at, PeriodTemplate.id)
        ).scalars().first()
        if template is None:
            raise SchedulerError(message="No active period template configured")
        return template

    def _build_scheduler(
        self,
        record: GeneratedTimetable,
        payload: GenerateTimetableRequest,
    ) -> tuple[GreedyScheduler, list[str]]:
        template = self._resolve_template(payload.period_template_id)
        record.period_template_id = template.id
        grid = TimeGrid.from_template(template)

        constraint_rows = self.db.execute(
            select(AvailabilityConstraint)
            .where(AvailabilityConstraint.academic_year == payload.academic_year)
            .order_by(AvailabilityConstraint.updated_at, AvailabilityConstraint.id)
        ).scalars()
        constraints = ConstraintStore.from_rows(constraint_rows, academic_year=payload.academic_year)

        assignments = [
            AssignmentSpec.from_model(item)
            for item in self.db.execute(
                select(TeachingAssignment)
                .where(
                    TeachingAssignment.academic_year == payload.academic_year,
                    TeachingAssignment.is_active.is_(True),
                )
                .order_by(TeachingAssignment.sequence, TeachingAssignment.id)
            ).scalars()
        ]
        rooms = [RoomSpec.from_model(item) for item in self.db.execute(select(Room)).scalars()]
        sections = [SectionSpec.from_model(item) for item in self.db.execute(select(ClassSection)).scalars()]

        preamble = [
            f"Using period template '{template.name}' ({template.id})",
            f"Loaded {len(assignments)} active assignment(s), {len(rooms)} room(s), "
            f"{len(sections)} section(s), {len(constraints)} blocked cell(s)",
        ]
        scheduler = GreedyScheduler(
            grid=grid,
            constraints=constraints,
            assignments=assignments,
            rooms=rooms,
            sections=sections,
        )
        return scheduler, preamble

    def _persist(self, record: GeneratedTimetable, result: ScheduleResult, log_lines: list[str]) -> None:
        self.db.execute(delete(TimetableSlot).where(TimetableSlot.timetable_id == record.id))
        self.db.execute(delete(UnassignedSession).where(UnassignedSession.timetable_id == record.id))
        self.db.add_all(
            TimetableSlot(
                timetable_id=record.id,
                teaching_assignment_id=placed.assignment_id,
                session_index=placed.session_index,
                teacher_id=placed.teacher_id,
                subject_id=placed.subject_id,
                section_ids=list(placed.section_ids),
                day_of_week=placed.day,
                period_number=placed.start_period,
                session_length=placed.session_length,
                room_id=placed.room_id,
            )
            for placed in result.placed
        )
        self.db.add_all(
            UnassignedSession(
                timetable_id=record.id,
                teaching_assignment_id=unplaced.assignment_id,
                session_index=unplaced.session_index,
                conflict_reasons=list(unplaced.reasons),
                suggested_fixes=list(unplaced.suggested_fixes),
            )
            for unplaced in result.unplaced
        )
        record.total_sessions = result.total_sessions
        record.assigned_sessions = len(result.placed)
        record.unassigned_sessions = len(result.unplaced)
        record.generation_log = truncate_log(log_lines, self.settings.generation_log_limit)
        record.generation_status = GenerationStatus.completed
        record.completed_at = datetime.now(timezone.utc)
        self.db.commit()

    def _mark_failed(self, record: GeneratedTimetable, message: str) -> None:
        record.generation_status = GenerationStatus.failed
        record.generation_log = truncate_log([f"ERROR: {message}"], self.settings.generation_log_limit)
        record.completed_at = datetime.now(timezone.utc)
        self.db.commit()


def get_timetable(db: Session, timetable_id: str) -> GeneratedTimetable:
    record = db.get(GeneratedTimetable, timetable_id)
    if record is None:
        raise ResourceNotFoundError("GeneratedTimetable", timetable_id)
    return record


def activate_timetable(db: Session, timetable_id: str) -> GeneratedTimetable:
    record = get_timetable(db, timetable_id)
    if record.generation_status != GenerationStatus.completed:
        raise AppError(
            "Only completed timetables can be activated",
            status_code=409,
            details={"timetable_id": timetable_id, "generation_status": record.generation_status.value},
        )
    db.execute(
        update(GeneratedTimetable)
        .where(GeneratedTimetable.id != timetable_id)
        .values(is_active=False)
    )
    record.is_active = True
    db.commit()
    db.refresh(record)
    logger.info("TIMETABLE ACTIVATED | timetable_id=%s | academic_year=%s", record.id, record.academic_year)
    return record


def delete_timetable(db: Session, timetable_id: str) -> None:
    record = get_timetable(db, timetable_id)
    db.execute(delete(TimetableSlot).where(TimetableSlot.timetable_id == timetable_id))
    db.execute(delete(UnassignedSession).where(UnassignedSession.timetable_id == timetable_id))
    db.delete(record)
    db.commit()
    logger.info("TIMETABLE DELETED | timetable_id=%s", timetable_id)
