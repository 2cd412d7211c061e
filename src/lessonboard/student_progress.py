from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field

import polars as pl

from .models import (
    CurriculumFilters,
    LessonRecord,
    ProgressMetrics,
    most_specific_filter,
)

STUDENT_PROGRESS_TITLE = "Student Progress"

_LESSON_SCHEMA: dict[str, pl.DataType] = {
    "lesson_id": pl.Int64,
    "lesson_name": pl.Utf8,
    "chapter_id": pl.Int64,
    "chapter_name": pl.Utf8,
    "course_id": pl.Int64,
    "course_name": pl.Utf8,
    "collection_id": pl.Int64,
    "collection_name": pl.Utf8,
    "curriculum_id": pl.Int64,
    "curriculum_name": pl.Utf8,
    "is_required": pl.Boolean,
    "is_completed": pl.Boolean,
    "is_in_progress": pl.Boolean,
}


@dataclass(frozen=True)
class GroupTotals:
    id: int
    name: str
    total_lessons: int
    completed_lessons: int


@dataclass(frozen=True)
class StudentGroupings:
    collections: dict[int, GroupTotals] = field(default_factory=dict)
    courses: dict[int, GroupTotals] = field(default_factory=dict)
    chapters: dict[int, GroupTotals] = field(default_factory=dict)


def _empty_lessons() -> pl.DataFrame:
    return pl.DataFrame(
        {name: pl.Series(name=name, values=[], dtype=dtype) for name, dtype in _LESSON_SCHEMA.items()}
    )


def lesson_frame(records: Sequence[LessonRecord] | None) -> pl.DataFrame:
    """Return one row per lesson; anything that is not a LessonRecord is dropped."""
    rows = [
        {
            "lesson_id": record.lesson_id,
            "lesson_name": record.lesson_name,
            "chapter_id": record.chapter_id,
            "chapter_name": record.chapter_name,
            "course_id": record.course_id,
            "course_name": record.course_name,
            "collection_id": record.collection_id,
            "collection_name": record.collection_name,
            "curriculum_id": record.curriculum_id,
            "curriculum_name": record.curriculum_name,
            "is_required": bool(record.is_required),
            "is_completed": record.is_completed,
            "is_in_progress": record.is_in_progress,
        }
        for record in (records or ())
        if isinstance(record, LessonRecord)
    ]
    if not rows:
        return _empty_lessons()
    return pl.DataFrame(rows, schema=_LESSON_SCHEMA)


def _group_totals(lessons: pl.DataFrame, id_col: str, name_col: str) -> dict[int, GroupTotals]:
    if lessons.height == 0:
        return {}
    grouped = (
        lessons.filter(pl.col(id_col).is_not_null())
        .group_by(id_col, maintain_order=True)
        .agg(
            pl.col(name_col).first().alias("name"),
            pl.len().alias("total_lessons"),
            pl.col("is_completed").cast(pl.Int64).sum().alias("completed_lessons"),
        )
    )
    return {
        int(row[id_col]): GroupTotals(
            id=int(row[id_col]),
            name=str(row["name"] or ""),
            total_lessons=int(row["total_lessons"]),
            completed_lessons=int(row["completed_lessons"] or 0),
        )
        for row in grouped.to_dicts()
    }


def build_grouping_aggregates(records: Sequence[LessonRecord] | None) -> StudentGroupings:
    """Per collection/course/chapter totals over the unfiltered record set."""
    lessons = lesson_frame(records)
    return StudentGroupings(
        collections=_group_totals(lessons, "collection_id", "collection_name"),
        courses=_group_totals(lessons, "course_id", "course_name"),
        chapters=_group_totals(lessons, "chapter_id", "chapter_name"),
    )


def filter_lessons(lessons: pl.DataFrame, filters: CurriculumFilters) -> pl.DataFrame:
    """Keep rows matching the most specific active filter only."""
    active = most_specific_filter(filters)
    if active is None:
        return lessons
    level, value = active
    return lessons.filter(pl.col(level.id_field) == value)


def compute_filtered_metrics(
    records: Sequence[LessonRecord] | None,
    filters: CurriculumFilters,
) -> ProgressMetrics:
    filtered = filter_lessons(lesson_frame(records), filters)
    totals = filtered.select(
        pl.len().alias("total_lessons"),
        pl.col("is_completed").cast(pl.Int64).sum().alias("total_completed"),
        pl.col("is_required").cast(pl.Int64).sum().alias("required_lessons"),
        (pl.col("is_required") & pl.col("is_completed"))
        .cast(pl.Int64)
        .sum()
        .alias("required_completed"),
    ).to_dicts()[0]

    title = STUDENT_PROGRESS_TITLE
    active = most_specific_filter(filters)
    if active is not None:
        level, _ = active
        name = filtered[level.name_field][0] if filtered.height > 0 else None
        title = f"Student: {name or level.label}"

    return ProgressMetrics(
        total_lessons=int(totals["total_lessons"] or 0),
        total_completed=int(totals["total_completed"] or 0),
        required_lessons=int(totals["required_lessons"] or 0),
        required_completed=int(totals["required_completed"] or 0),
        title=title,
    )
