from __future__ import annotations

SNAPSHOT_SCHEMA_VERSION = "2025-09-snapshot-v1"

_COUNT_COLUMNS: list[str] = [
    "total_lessons_expected",
    "total_lessons_completed",
    "required_lessons_expected",
    "required_lessons_completed",
]

LESSON_RECORD_COLUMNS: list[str] = [
    "student_id",
    "school_id",
    "lesson_id",
    "lesson_name",
    "is_required",
    "chapter_id",
    "chapter_name",
    "course_id",
    "course_name",
    "collection_id",
    "collection_name",
    "curriculum_id",
    "curriculum_name",
    "engagement_date",
    "completion_date",
]

HIERARCHY_COLUMNS: list[str] = [
    "curriculum_id",
    "curriculum_name",
    "collection_id",
    "collection_name",
    "course_id",
    "course_name",
    "chapter_id",
    "chapter_name",
]

# Snapshot table name -> columns the dashboard reads.
REQUIRED_SNAPSHOT_COLUMNS: dict[str, list[str]] = {
    "schools": ["school_id", "school_name"],
    "cohorts": ["cohort_id", "cohort_name", "school_id"],
    "curriculum_hierarchy": HIERARCHY_COLUMNS,
    "student_progress": LESSON_RECORD_COLUMNS,
    "agg_school": ["school_id", "school_name", *_COUNT_COLUMNS],
    "agg_school_curriculum": ["school_id", "curriculum_id", "curriculum_name", *_COUNT_COLUMNS],
    "agg_school_collection": ["school_id", "collection_id", "collection_name", *_COUNT_COLUMNS],
    "agg_school_course": ["school_id", "course_id", "course_name", *_COUNT_COLUMNS],
    "agg_school_chapter": ["school_id", "chapter_id", "chapter_name", *_COUNT_COLUMNS],
    "agg_school_student": [
        "school_id",
        "student_id",
        "student_email",
        "student_first",
        "student_last",
        *_COUNT_COLUMNS,
    ],
    "agg_cohort": ["school_id", "cohort_id", "cohort_name", *_COUNT_COLUMNS],
    "agg_cohort_curriculum": [
        "school_id",
        "cohort_id",
        "curriculum_id",
        "curriculum_name",
        *_COUNT_COLUMNS,
    ],
    "agg_cohort_collection": [
        "school_id",
        "cohort_id",
        "collection_id",
        "collection_name",
        *_COUNT_COLUMNS,
    ],
    "agg_cohort_course": ["school_id", "cohort_id", "course_id", "course_name", *_COUNT_COLUMNS],
    "agg_cohort_chapter": ["school_id", "cohort_id", "chapter_id", "chapter_name", *_COUNT_COLUMNS],
    "agg_cohort_student": [
        "school_id",
        "cohort_id",
        "student_id",
        "student_email",
        "student_first",
        "student_last",
    ],
}

SNAPSHOT_TABLES: tuple[str, ...] = tuple(REQUIRED_SNAPSHOT_COLUMNS.keys())

# Bundle field -> snapshot table, in the order the batched fetch reads them.
BUNDLE_TABLES: dict[str, str] = {
    "school": "agg_school",
    "curriculum": "agg_school_curriculum",
    "collection": "agg_school_collection",
    "course": "agg_school_course",
    "chapter": "agg_school_chapter",
    "student": "agg_school_student",
    "cohort": "agg_cohort",
    "cohort_curriculum": "agg_cohort_curriculum",
    "cohort_collection": "agg_cohort_collection",
    "cohort_course": "agg_cohort_course",
    "cohort_chapter": "agg_cohort_chapter",
    "cohort_student": "agg_cohort_student",
}


def snapshot_file_name(table_name: str) -> str:
    return f"{table_name}.parquet"
