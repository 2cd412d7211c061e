from __future__ import annotations

from dataclasses import replace

from sample_data import COHORT_ID, SCHOOL_ID, bundle

from lessonboard.models import AggregateBundle, ProgressMetrics, Selection
from lessonboard.resolver import active_level_tables, resolve_current_aggregate, use_cohort_tables


def test_school_row_when_nothing_else_selected() -> None:
    metrics = resolve_current_aggregate(Selection(school_id=SCHOOL_ID), None, bundle())
    assert metrics is not None
    assert metrics.title == "School: North Campus"
    assert metrics.total_lessons == 200
    assert metrics.required_completed == 30


def test_no_bundle_means_no_data() -> None:
    assert resolve_current_aggregate(Selection(school_id=SCHOOL_ID), None, None) is None


def test_student_metrics_take_precedence() -> None:
    student = ProgressMetrics(4, 2, 3, 1, title="Student Progress")
    selection = Selection(school_id=SCHOOL_ID, student_id=501, curriculum_id=10)
    assert resolve_current_aggregate(selection, student, bundle()) is student


def test_student_selected_but_records_pending_falls_through() -> None:
    selection = Selection(school_id=SCHOOL_ID, student_id=501)
    metrics = resolve_current_aggregate(selection, None, bundle())
    assert metrics is not None
    assert metrics.title == "School: North Campus"


def test_filter_levels_use_most_specific_school_row() -> None:
    selection = Selection(school_id=SCHOOL_ID, curriculum_id=10, collection_id=100)
    metrics = resolve_current_aggregate(selection, None, bundle())
    assert metrics is not None
    assert metrics.title == "Collection: Emergency Medicine"
    assert metrics.total_completed == 23

    chapter = resolve_current_aggregate(
        replace(selection, course_id=1000, chapter_id=5000), None, bundle()
    )
    assert chapter is not None
    assert chapter.title == "Chapter: Airway"
    assert chapter.total_lessons == 10


def test_cohort_selection_uses_cohort_tables() -> None:
    selection = Selection(school_id=SCHOOL_ID, cohort_id=COHORT_ID)
    assert use_cohort_tables(selection, bundle()) is True
    metrics = resolve_current_aggregate(selection, None, bundle())
    assert metrics is not None
    assert metrics.title == "Cohort: Class of 2026"
    assert metrics.total_lessons == 90

    filtered = resolve_current_aggregate(replace(selection, curriculum_id=10), None, bundle())
    assert filtered is not None
    assert filtered.title == "Curriculum: Core"
    assert filtered.total_lessons == 60


def test_missing_row_yields_none() -> None:
    selection = Selection(school_id=SCHOOL_ID, curriculum_id=99)
    assert resolve_current_aggregate(selection, None, bundle()) is None
    assert resolve_current_aggregate(Selection(school_id=SCHOOL_ID, cohort_id=12345), None, bundle()) is None


def test_cohort_without_cohort_data_uses_school_tables() -> None:
    school_only = replace(bundle(), cohort=())
    selection = Selection(school_id=SCHOOL_ID, cohort_id=COHORT_ID)
    assert use_cohort_tables(selection, school_only) is False
    tables = active_level_tables(selection, school_only)
    assert tables.cohort_scoped is False
    assert tables.collection == school_only.collection
    metrics = resolve_current_aggregate(selection, None, school_only)
    assert metrics is not None
    assert metrics.title == "School: North Campus"


def test_empty_bundle_resolves_to_none() -> None:
    empty = AggregateBundle.empty()
    assert resolve_current_aggregate(Selection(school_id=SCHOOL_ID), None, empty) is None
    assert active_level_tables(Selection(school_id=SCHOOL_ID), empty).curriculum == ()
