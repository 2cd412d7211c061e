from __future__ import annotations

from sample_data import COHORT_ID, SCHOOL_ID, bundle, hierarchy, student_records

from lessonboard.filters import build_filter_options, build_student_options
from lessonboard.models import Selection, Student
from lessonboard.student_progress import build_grouping_aggregates


def test_options_are_distinct_and_follow_coarser_filters() -> None:
    options = build_filter_options(hierarchy(), Selection())
    assert [o.id for o in options.curricula] == [10, 20]
    assert [o.id for o in options.collections] == [100, 101, 200]
    assert [o.id for o in options.chapters] == [5000, 5001, 5002, 6000]

    narrowed = build_filter_options(hierarchy(), Selection(curriculum_id=10, collection_id=100))
    assert [o.id for o in narrowed.collections] == [100, 101]
    assert [o.id for o in narrowed.courses] == [1000]
    assert [o.id for o in narrowed.chapters] == [5000, 5001]


def test_labels_carry_school_completed_counts() -> None:
    options = build_filter_options(hierarchy(), Selection(school_id=SCHOOL_ID), bundle())
    labels = {o.id: o.label for o in options.collections}
    assert labels[100] == "Emergency Medicine (23)"
    assert labels[101] == "Pediatrics (0)"
    assert options.curricula[0].label == "Core"


def test_labels_follow_selected_cohort() -> None:
    selection = Selection(school_id=SCHOOL_ID, cohort_id=COHORT_ID)
    options = build_filter_options(hierarchy(), selection, bundle())
    labels = {o.id: o.label for o in options.collections}
    assert labels[100] == "Emergency Medicine (12)"
    chapters = {o.id: o.label for o in options.chapters}
    assert chapters[5000] == "Airway (2)"


def test_labels_follow_selected_student() -> None:
    records = student_records()
    selection = Selection(school_id=SCHOOL_ID, student_id=502)
    options = build_filter_options(hierarchy(), selection, bundle(), build_grouping_aggregates(records))
    labels = {o.id: o.label for o in options.collections}
    assert labels[100] == "Emergency Medicine (2)"
    assert labels[101] == "Pediatrics (0)"


def test_empty_hierarchy_gives_no_options() -> None:
    options = build_filter_options([], Selection())
    assert options.curricula == ()
    assert options.chapters == ()


def test_student_options_use_display_names() -> None:
    students = [
        Student(id=1, email="ada@example.edu", first_name="Ada", last_name="Lovelace", school_id=1),
        Student(id=2, email="anon@example.edu", first_name="", last_name="", school_id=1),
        Student(id=1, email="ada@example.edu", first_name="Ada", last_name="Lovelace", school_id=1),
    ]
    options = build_student_options(students)
    assert [(o.id, o.label) for o in options] == [(1, "Lovelace, Ada"), (2, "anon@example.edu")]
