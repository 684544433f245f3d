import uuid
from datetime import datetime
from enum import Enum

from sqlalchemy import Boolean, DateTime, Enum as SAEnum, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from timetabler.db.base import Base


class ConstraintType(str, Enum):
    teacher = "teacher"
    room = "room"


class AvailabilityConstraint(Base):
    __tablename__ = "availability_constraints"
    __table_args__ = (
        UniqueConstraint(
            "constraint_type",
            "entity_id",
            "day_of_week",
            "period_number",
            "academic_year",
            name="uq_availability_constraints_cell",
        ),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    constraint_type: Mapped[ConstraintType] = mapped_column(
        SAEnum(ConstraintType, name="availability_constraint_type"),
        nullable=False,
        index=True,
    )
    entity_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    day_of_week: Mapped[str] = mapped_column(String(20), nullable=False)
    period_number: Mapped[int] = mapped_column(Integer, nullable=False)
    is_available: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    reason: Mapped[str | None] = mapped_column(String(500), nullable=True)
    academic_year: Mapped[str] = mapped_column(String(20), nullable=False, index=True)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
