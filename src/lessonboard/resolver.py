from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from .models import (
    AggregateBundle,
    LessonCounts,
    ProgressMetrics,
    Selection,
    most_specific_filter,
)

# Filter level -> (school-scoped table, cohort-scoped table) on AggregateBundle.
LEVEL_TABLES: dict[str, tuple[str, str]] = {
    "curriculum": ("curriculum", "cohort_curriculum"),
    "collection": ("collection", "cohort_collection"),
    "course": ("course", "cohort_course"),
    "chapter": ("chapter", "cohort_chapter"),
}


@dataclass(frozen=True)
class LevelTables:
    curriculum: tuple[Any, ...]
    collection: tuple[Any, ...]
    course: tuple[Any, ...]
    chapter: tuple[Any, ...]
    cohort_scoped: bool


def use_cohort_tables(selection: Selection, bundle: AggregateBundle | None) -> bool:
    return selection.cohort_id is not None and bundle is not None and len(bundle.cohort) > 0


def _scoped_rows(selection: Selection, bundle: AggregateBundle, level: str) -> tuple[Any, ...]:
    school_table, cohort_table = LEVEL_TABLES[level]
    if not use_cohort_tables(selection, bundle):
        return getattr(bundle, school_table)
    return tuple(row for row in getattr(bundle, cohort_table) if row.cohort_id == selection.cohort_id)


def active_level_tables(selection: Selection, bundle: AggregateBundle | None) -> LevelTables:
    """Rows for each filter level, restricted to the selected cohort when cohort data is loaded."""
    if bundle is None:
        return LevelTables((), (), (), (), cohort_scoped=False)
    return LevelTables(
        curriculum=_scoped_rows(selection, bundle, "curriculum"),
        collection=_scoped_rows(selection, bundle, "collection"),
        course=_scoped_rows(selection, bundle, "course"),
        chapter=_scoped_rows(selection, bundle, "chapter"),
        cohort_scoped=use_cohort_tables(selection, bundle),
    )


def _as_metrics(counts: LessonCounts, title: str) -> ProgressMetrics:
    return ProgressMetrics(
        total_lessons=counts.total_lessons_expected,
        total_completed=counts.total_lessons_completed,
        required_lessons=counts.required_lessons_expected,
        required_completed=counts.required_lessons_completed,
        title=title,
    )


def resolve_current_aggregate(
    selection: Selection,
    student_metrics: ProgressMetrics | None,
    bundle: AggregateBundle | None,
) -> ProgressMetrics | None:
    """Pick the single row describing what to show now; None means no data."""
    if selection.student_id is not None and student_metrics is not None:
        return student_metrics
    if bundle is None:
        return None

    active = most_specific_filter(selection.filters)
    if active is not None:
        level, value = active
        row = next(
            (r for r in _scoped_rows(selection, bundle, level.name) if getattr(r, level.id_field) == value),
            None,
        )
        if row is None:
            return None
        return _as_metrics(row.counts, f"{level.label}: {getattr(row, level.name_field)}")

    if use_cohort_tables(selection, bundle):
        cohort_row = next((r for r in bundle.cohort if r.cohort_id == selection.cohort_id), None)
        if cohort_row is None:
            return None
        return _as_metrics(cohort_row.counts, f"Cohort: {cohort_row.cohort_name}")

    if not bundle.school:
        return None
    school_row = bundle.school[0]
    return _as_metrics(school_row.counts, f"School: {school_row.school_name}")
