from __future__ import annotations

from collections.abc import Sequence

import polars as pl

from .models import (
    LESSON_STATUS_COMPLETED,
    LESSON_STATUS_IN_PROGRESS,
    LESSON_STATUS_NOT_STARTED,
    CurriculumFilters,
    LessonRecord,
)
from .student_progress import filter_lessons

MISSING_LABEL = "N/A"

STATUS_LABELS: dict[str, str] = {
    LESSON_STATUS_COMPLETED: "Completed",
    LESSON_STATUS_IN_PROGRESS: "In Progress",
    LESSON_STATUS_NOT_STARTED: "Not Started",
}

LESSON_TABLE_COLUMNS: tuple[str, ...] = (
    "Curriculum",
    "Collection",
    "Course",
    "Chapter",
    "Lesson",
    "Required",
    "Status",
    "Completion Date",
)

_TABLE_SCHEMA: dict[str, pl.DataType] = {
    "curriculum_id": pl.Int64,
    "collection_id": pl.Int64,
    "course_id": pl.Int64,
    "chapter_id": pl.Int64,
    "Curriculum": pl.Utf8,
    "Collection": pl.Utf8,
    "Course": pl.Utf8,
    "Chapter": pl.Utf8,
    "Lesson": pl.Utf8,
    "Required": pl.Boolean,
    "Status": pl.Utf8,
    "Completion Date": pl.Utf8,
}


def display_course_name(course_name: str | None, collection_name: str | None) -> str:
    """Drop a leading ``"<collection>: "`` from course names."""
    if not course_name:
        return ""
    if collection_name:
        prefix = f"{collection_name}: "
        if course_name.startswith(prefix):
            return course_name[len(prefix) :]
    return course_name


def _or_missing(value: str | None) -> str:
    return value if value else MISSING_LABEL


def build_lesson_table(
    records: Sequence[LessonRecord] | None,
    filters: CurriculumFilters,
    *,
    required_only: bool = False,
) -> pl.DataFrame:
    rows = [
        {
            "curriculum_id": record.curriculum_id,
            "collection_id": record.collection_id,
            "course_id": record.course_id,
            "chapter_id": record.chapter_id,
            "Curriculum": _or_missing(record.curriculum_name),
            "Collection": _or_missing(record.collection_name),
            "Course": _or_missing(display_course_name(record.course_name, record.collection_name)),
            "Chapter": _or_missing(record.chapter_name),
            "Lesson": _or_missing(record.lesson_name),
            "Required": bool(record.is_required),
            "Status": STATUS_LABELS[record.status],
            "Completion Date": (
                record.completion_date.date().isoformat() if record.completion_date is not None else MISSING_LABEL
            ),
        }
        for record in (records or ())
        if isinstance(record, LessonRecord)
    ]
    table = pl.DataFrame(rows, schema=_TABLE_SCHEMA) if rows else pl.DataFrame(schema=_TABLE_SCHEMA)
    table = filter_lessons(table, filters)
    if required_only:
        table = table.filter(pl.col("Required"))
    return table.select(LESSON_TABLE_COLUMNS)
