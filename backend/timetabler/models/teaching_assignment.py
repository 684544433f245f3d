import uuid
from datetime import datetime

from sqlalchemy import JSON, Boolean, DateTime, Integer, String
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from timetabler.db.base import Base


class TeachingAssignment(Base):
    __tablename__ = "teaching_assignments"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    # Monotonic creation order; the scheduler's final tie-break.
    sequence: Mapped[int] = mapped_column(Integer, nullable=False, default=0, index=True)
    teacher_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    subject_id: Mapped[str] = mapped_column(String(36), nullable=False)
    section_ids: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    sessions_per_week: Mapped[int] = mapped_column(Integer, nullable=False, default=5)
    session_length: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    preferred_room_ids: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    room_fixed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    allowed_days: Mapped[list[str] | None] = mapped_column(JSON, nullable=True)
    fixed_day: Mapped[str | None] = mapped_column(String(20), nullable=True)
    fixed_period: Mapped[int | None] = mapped_column(Integer, nullable=True)
    same_daily_pattern: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    academic_year: Mapped[str] = mapped_column(String(20), nullable=False, index=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), onupdate=func.now())
