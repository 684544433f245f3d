from __future__ import annotations

import uuid
from datetime import datetime
from enum import Enum

from sqlalchemy import JSON, Boolean, DateTime, Enum as SAEnum, Integer, String
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from timetabler.db.base import Base


class GenerationStatus(str, Enum):
    pending = "pending"
    generating = "generating"
    completed = "completed"
    failed = "failed"


class GeneratedTimetable(Base):
    __tablename__ = "generated_timetables"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    academic_year: Mapped[str] = mapped_column(String(20), nullable=False, index=True)
    period_template_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    generation_status: Mapped[GenerationStatus] = mapped_column(
        SAEnum(GenerationStatus, name="generation_status"),
        nullable=False,
        default=GenerationStatus.pending,
        index=True,
    )
    total_sessions: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    assigned_sessions: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    unassigned_sessions: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    generation_log: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)


class TimetableSlot(Base):
    __tablename__ = "timetable_slots"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    timetable_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    teaching_assignment_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    session_index: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    teacher_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    subject_id: Mapped[str] = mapped_column(String(36), nullable=False)
    section_ids: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    day_of_week: Mapped[str] = mapped_column(String(20), nullable=False)
    period_number: Mapped[int] = mapped_column(Integer, nullable=False)
    session_length: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    room_id: Mapped[str | None] = mapped_column(String(36), nullable=True, index=True)

    @property
    def end_period(self) -> int:
        return self.period_number + self.session_length - 1

    def covers(self, day: str, period: int) -> bool:
        return self.day_of_week == day and self.period_number <= period <= self.end_period


class UnassignedSession(Base):
    __tablename__ = "unassigned_sessions"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    timetable_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    teaching_assignment_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    session_index: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    conflict_reasons: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    suggested_fixes: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
