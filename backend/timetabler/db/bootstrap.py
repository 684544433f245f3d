from __future__ import annotations

import logging

from sqlalchemy import inspect

from timetabler import models  # noqa: F401
from timetabler.core.config import get_settings
from timetabler.core.exceptions import ConfigurationError
from timetabler.db.base import Base
from timetabler.db.session import engine

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS: dict[str, set[str]] = {
    "period_templates": {"id", "days_of_week", "periods_per_day", "period_timings", "is_active"},
    "rooms": {"id", "name", "capacity", "is_active"},
    "class_sections": {"id", "class_name", "strength", "is_active"},
    "availability_constraints": {
        "id",
        "constraint_type",
        "entity_id",
        "day_of_week",
        "period_number",
        "is_available",
        "academic_year",
    },
    "teaching_assignments": {
        "id",
        "sequence",
        "teacher_id",
        "section_ids",
        "sessions_per_week",
        "session_length",
        "same_daily_pattern",
    },
    "generated_timetables": {"id", "generation_status", "generation_log", "is_active"},
    "timetable_slots": {"id", "timetable_id", "day_of_week", "period_number", "session_length"},
    "unassigned_sessions": {"id", "timetable_id", "conflict_reasons", "suggested_fixes"},
}


def missing_schema() -> tuple[list[str], dict[str, list[str]]]:
    with engine.connect() as connection:
        inspector = inspect(connection)
        table_names = set(inspector.get_table_names())
        missing_tables: list[str] = []
        missing_columns: dict[str, list[str]] = {}
        for table_name, required in REQUIRED_COLUMNS.items():
            if table_name not in table_names:
                missing_tables.append(table_name)
                continue
            existing = {item["name"] for item in inspector.get_columns(table_name)}
            missing = sorted(required - existing)
            if missing:
                missing_columns[table_name] = missing
    return sorted(missing_tables), missing_columns


def _assert_required_columns() -> None:
    missing_tables, missing_columns = missing_schema()
    if missing_tables:
        raise ConfigurationError(f"Missing required tables: {', '.join(missing_tables)}")
    if missing_columns:
        flat = [f"{table}.{column}" for table, columns in missing_columns.items() for column in columns]
        raise ConfigurationError(f"Missing required columns: {', '.join(flat)}")


def ensure_runtime_schema_compatibility() -> None:
    settings = get_settings()
    try:
        if settings.auto_create_schema:
            Base.metadata.create_all(bind=engine)
        _assert_required_columns()
    except Exception as exc:  # pragma: no cover - runtime environment dependent
        logger.exception("Runtime schema compatibility bootstrap failed")
        raise RuntimeError("Runtime schema compatibility bootstrap failed") from exc
