from __future__ import annotations

from sample_data import record, student_records

from lessonboard.models import CurriculumFilters
from lessonboard.student_progress import (
    STUDENT_PROGRESS_TITLE,
    build_grouping_aggregates,
    compute_filtered_metrics,
    lesson_frame,
)


def test_grouping_aggregates_count_totals_and_completions() -> None:
    records = [
        record(1, collection_id=1),
        record(2, collection_id=1, completed=True),
        record(3, collection_id=2),
    ]
    groupings = build_grouping_aggregates(records)
    assert groupings.collections[1].total_lessons == 2
    assert groupings.collections[1].completed_lessons == 1
    assert groupings.collections[2].total_lessons == 1
    assert groupings.collections[2].completed_lessons == 0


def test_grouping_aggregates_ignore_filters_and_cover_all_levels() -> None:
    groupings = build_grouping_aggregates(student_records())
    assert set(groupings.collections) == {100, 101}
    assert set(groupings.courses) == {1000, 1001}
    assert set(groupings.chapters) == {5000, 5001, 5002}
    assert groupings.chapters[5000].name == "Airway"
    assert groupings.chapters[5000].completed_lessons == 1


def test_unfiltered_metrics_cover_every_lesson() -> None:
    metrics = compute_filtered_metrics(student_records(), CurriculumFilters())
    assert metrics.title == STUDENT_PROGRESS_TITLE
    assert metrics.total_lessons == 4
    assert metrics.total_completed == 2
    assert metrics.required_lessons == 3
    assert metrics.required_completed == 1


def test_most_specific_filter_wins() -> None:
    records = [
        record(1, chapter_id=5, curriculum_id=9, completed=True),
        record(2, chapter_id=5, curriculum_id=10),
        record(3, chapter_id=6, curriculum_id=9, completed=True),
    ]
    metrics = compute_filtered_metrics(records, CurriculumFilters(curriculum_id=9, chapter_id=5))
    assert metrics.total_lessons == 2
    assert metrics.total_completed == 1
    assert metrics.title == "Student: Chapter 5"


def test_filter_title_falls_back_to_level_label_when_nothing_matches() -> None:
    metrics = compute_filtered_metrics(student_records(), CurriculumFilters(curriculum_id=10, collection_id=999))
    assert metrics.total_lessons == 0
    assert metrics.required_completed == 0
    assert metrics.title == "Student: Collection"


def test_empty_or_malformed_input_yields_zero_metrics() -> None:
    for records in (None, [], [{"lesson_id": 1}, "junk"]):
        metrics = compute_filtered_metrics(records, CurriculumFilters(course_id=1000))
        assert metrics.total_lessons == 0
        assert metrics.total_completed == 0
    assert lesson_frame([{"lesson_id": 1}]).height == 0
    assert build_grouping_aggregates(None).collections == {}
