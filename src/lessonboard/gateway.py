from __future__ import annotations

import logging
from datetime import date, datetime
from pathlib import Path
from typing import Any, Callable, Protocol

import polars as pl

from .contracts import (
    BUNDLE_TABLES,
    REQUIRED_SNAPSHOT_COLUMNS,
    snapshot_file_name,
)
from .models import (
    AggregateBundle,
    ChapterAggregate,
    Cohort,
    CohortAggregate,
    CohortChapterAggregate,
    CohortCollectionAggregate,
    CohortCourseAggregate,
    CohortCurriculumAggregate,
    CollectionAggregate,
    CourseAggregate,
    CurriculumAggregate,
    CurriculumNode,
    LessonCounts,
    LessonRecord,
    School,
    SchoolAggregate,
    StudentAggregate,
)

logger = logging.getLogger(__name__)


class GatewayError(RuntimeError):
    """A snapshot read failed; carries the gateway operation that failed."""

    def __init__(self, operation: str, message: str) -> None:
        super().__init__(f"{operation}: {message}")
        self.operation = operation
        self.message = message


class Gateway(Protocol):
    def fetch_schools(self) -> list[School]: ...

    def fetch_cohorts(self, school_id: int) -> list[Cohort]: ...

    def fetch_school_aggregate_bundle(self, school_id: int) -> AggregateBundle: ...

    def fetch_student_lesson_records(self, student_id: int) -> list[LessonRecord]: ...

    def fetch_curriculum_hierarchy(self) -> list[CurriculumNode]: ...


def _int_or_none(value: object) -> int | None:
    if value is None:
        return None
    return int(value)


def _text(value: object) -> str:
    return "" if value is None else str(value)


def _as_datetime(value: object) -> datetime | None:
    if value is None:
        return None
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    text = str(value).strip()
    if not text:
        return None
    return datetime.fromisoformat(text)


def _counts(row: dict[str, Any]) -> LessonCounts:
    return LessonCounts(
        total_lessons_expected=int(row.get("total_lessons_expected") or 0),
        total_lessons_completed=int(row.get("total_lessons_completed") or 0),
        required_lessons_expected=int(row.get("required_lessons_expected") or 0),
        required_lessons_completed=int(row.get("required_lessons_completed") or 0),
        total_lessons_engaged=int(row.get("total_lessons_engaged") or 0),
        total_lessons_in_progress=int(row.get("total_lessons_in_progress") or 0),
        total_lessons_not_started=int(row.get("total_lessons_not_started") or 0),
        total_students=int(row.get("total_students") or 0),
    )


def _school(row: dict[str, Any]) -> School:
    return School(id=int(row["school_id"]), name=_text(row.get("school_name")))


def _cohort(row: dict[str, Any]) -> Cohort:
    return Cohort(
        id=int(row["cohort_id"]),
        name=_text(row.get("cohort_name")),
        school_id=int(row["school_id"]),
    )


def _curriculum_node(row: dict[str, Any]) -> CurriculumNode:
    return CurriculumNode(
        curriculum_id=int(row["curriculum_id"]),
        curriculum_name=_text(row.get("curriculum_name")),
        collection_id=_int_or_none(row.get("collection_id")),
        collection_name=row.get("collection_name"),
        course_id=_int_or_none(row.get("course_id")),
        course_name=row.get("course_name"),
        chapter_id=_int_or_none(row.get("chapter_id")),
        chapter_name=row.get("chapter_name"),
    )


def _school_row(row: dict[str, Any]) -> SchoolAggregate:
    return SchoolAggregate(
        school_id=int(row["school_id"]),
        school_name=_text(row.get("school_name")),
        counts=_counts(row),
    )


def _curriculum_row(row: dict[str, Any]) -> CurriculumAggregate:
    return CurriculumAggregate(
        school_id=int(row["school_id"]),
        curriculum_id=int(row["curriculum_id"]),
        curriculum_name=_text(row.get("curriculum_name")),
        counts=_counts(row),
    )


def _collection_row(row: dict[str, Any]) -> CollectionAggregate:
    return CollectionAggregate(
        school_id=int(row["school_id"]),
        curriculum_id=_int_or_none(row.get("curriculum_id")),
        collection_id=int(row["collection_id"]),
        collection_name=_text(row.get("collection_name")),
        counts=_counts(row),
    )


def _course_row(row: dict[str, Any]) -> CourseAggregate:
    return CourseAggregate(
        school_id=int(row["school_id"]),
        collection_id=_int_or_none(row.get("collection_id")),
        course_id=int(row["course_id"]),
        course_name=_text(row.get("course_name")),
        counts=_counts(row),
    )


def _chapter_row(row: dict[str, Any]) -> ChapterAggregate:
    return ChapterAggregate(
        school_id=int(row["school_id"]),
        course_id=_int_or_none(row.get("course_id")),
        chapter_id=int(row["chapter_id"]),
        chapter_name=_text(row.get("chapter_name")),
        counts=_counts(row),
    )


def _student_row(row: dict[str, Any]) -> StudentAggregate:
    return StudentAggregate(
        student_id=int(row["student_id"]),
        school_id=int(row["school_id"]),
        email=_text(row.get("student_email")),
        first_name=_text(row.get("student_first")),
        last_name=_text(row.get("student_last")),
        counts=_counts(row),
        cohort_id=_int_or_none(row.get("cohort_id")),
    )


def _cohort_row(row: dict[str, Any]) -> CohortAggregate:
    return CohortAggregate(
        school_id=int(row["school_id"]),
        cohort_id=int(row["cohort_id"]),
        cohort_name=_text(row.get("cohort_name")),
        counts=_counts(row),
    )


def _cohort_curriculum_row(row: dict[str, Any]) -> CohortCurriculumAggregate:
    return CohortCurriculumAggregate(
        school_id=int(row["school_id"]),
        cohort_id=int(row["cohort_id"]),
        curriculum_id=int(row["curriculum_id"]),
        curriculum_name=_text(row.get("curriculum_name")),
        counts=_counts(row),
    )


def _cohort_collection_row(row: dict[str, Any]) -> CohortCollectionAggregate:
    return CohortCollectionAggregate(
        school_id=int(row["school_id"]),
        cohort_id=int(row["cohort_id"]),
        collection_id=int(row["collection_id"]),
        collection_name=_text(row.get("collection_name")),
        counts=_counts(row),
    )


def _cohort_course_row(row: dict[str, Any]) -> CohortCourseAggregate:
    return CohortCourseAggregate(
        school_id=int(row["school_id"]),
        cohort_id=int(row["cohort_id"]),
        course_id=int(row["course_id"]),
        course_name=_text(row.get("course_name")),
        counts=_counts(row),
    )


def _cohort_chapter_row(row: dict[str, Any]) -> CohortChapterAggregate:
    return CohortChapterAggregate(
        school_id=int(row["school_id"]),
        cohort_id=int(row["cohort_id"]),
        chapter_id=int(row["chapter_id"]),
        chapter_name=_text(row.get("chapter_name")),
        counts=_counts(row),
    )


_BUNDLE_ROW_BUILDERS: dict[str, Callable[[dict[str, Any]], object]] = {
    "school": _school_row,
    "curriculum": _curriculum_row,
    "collection": _collection_row,
    "course": _course_row,
    "chapter": _chapter_row,
    "student": _student_row,
    "cohort": _cohort_row,
    "cohort_curriculum": _cohort_curriculum_row,
    "cohort_collection": _cohort_collection_row,
    "cohort_course": _cohort_course_row,
    "cohort_chapter": _cohort_chapter_row,
    "cohort_student": _student_row,
}


def lesson_record_from_row(row: dict[str, Any]) -> LessonRecord:
    return LessonRecord(
        lesson_id=int(row["lesson_id"]),
        lesson_name=_text(row.get("lesson_name")),
        chapter_id=int(row["chapter_id"]),
        chapter_name=_text(row.get("chapter_name")),
        course_id=int(row["course_id"]),
        course_name=_text(row.get("course_name")),
        collection_id=int(row["collection_id"]),
        collection_name=_text(row.get("collection_name")),
        curriculum_id=int(row["curriculum_id"]),
        curriculum_name=_text(row.get("curriculum_name")),
        is_required=bool(row.get("is_required")),
        completion_date=_as_datetime(row.get("completion_date")),
        engagement_date=_as_datetime(row.get("engagement_date")),
        total_time=float(row["total_time"]) if row.get("total_time") is not None else None,
    )


class SnapshotGateway:
    """Reads the exported aggregate views from a directory of parquet tables."""

    def __init__(self, snapshot_dir: Path) -> None:
        self.snapshot_dir = snapshot_dir

    def _scan(self, table_name: str, operation: str) -> pl.LazyFrame:
        path = self.snapshot_dir / snapshot_file_name(table_name)
        if not path.exists():
            raise GatewayError(operation, f"snapshot table not found: {path}")
        lf = pl.scan_parquet(path)
        try:
            columns = lf.collect_schema().names()
        except (pl.exceptions.PolarsError, OSError) as err:
            raise GatewayError(operation, f"unreadable snapshot table {table_name}: {err}") from err
        missing = [c for c in REQUIRED_SNAPSHOT_COLUMNS[table_name] if c not in columns]
        if missing:
            raise GatewayError(operation, f"{table_name} missing required columns: {missing}")
        return lf

    def _collect(self, lf: pl.LazyFrame, operation: str) -> list[dict[str, Any]]:
        try:
            return lf.collect().to_dicts()
        except (pl.exceptions.PolarsError, OSError) as err:
            raise GatewayError(operation, str(err)) from err

    def _build(
        self,
        rows: list[dict[str, Any]],
        build: Callable[[dict[str, Any]], Any],
        table_name: str,
        operation: str,
    ) -> list[Any]:
        try:
            return [build(row) for row in rows]
        except (KeyError, TypeError, ValueError) as err:
            raise GatewayError(operation, f"malformed row in {table_name}: {err}") from err

    def fetch_schools(self) -> list[School]:
        lf = self._scan("schools", "fetch_schools").sort("school_name")
        rows = self._collect(lf, "fetch_schools")
        return self._build(rows, _school, "schools", "fetch_schools")

    def fetch_cohorts(self, school_id: int) -> list[Cohort]:
        lf = (
            self._scan("cohorts", "fetch_cohorts")
            .filter(pl.col("school_id") == school_id)
            .sort("cohort_name")
        )
        rows = self._collect(lf, "fetch_cohorts")
        return self._build(rows, _cohort, "cohorts", "fetch_cohorts")

    def fetch_school_aggregate_bundle(self, school_id: int) -> AggregateBundle:
        operation = "fetch_school_aggregate_bundle"
        tables: dict[str, tuple[object, ...]] = {}
        for field_name, table_name in BUNDLE_TABLES.items():
            lf = self._scan(table_name, operation).filter(pl.col("school_id") == school_id)
            if field_name in {"student", "cohort_student"}:
                lf = lf.sort(["student_last", "student_first"], nulls_last=True)
            build = _BUNDLE_ROW_BUILDERS[field_name]
            tables[field_name] = tuple(self._build(self._collect(lf, operation), build, table_name, operation))

        bundle = AggregateBundle(school_id=school_id, **tables)
        logger.info("Loaded aggregate bundle for school %s: %s", school_id, bundle.table_sizes())
        return bundle

    def fetch_student_lesson_records(self, student_id: int) -> list[LessonRecord]:
        operation = "fetch_student_lesson_records"
        lf = (
            self._scan("student_progress", operation)
            .filter(pl.col("student_id") == student_id)
            .sort(
                ["curriculum_name", "collection_name", "course_name", "chapter_name", "lesson_name"],
                nulls_last=True,
            )
        )
        rows = self._collect(lf, operation)
        records = self._build(rows, lesson_record_from_row, "student_progress", operation)
        logger.info("Loaded %d lesson records for student %s", len(records), student_id)
        return records

    def fetch_curriculum_hierarchy(self) -> list[CurriculumNode]:
        operation = "fetch_curriculum_hierarchy"
        lf = (
            self._scan("curriculum_hierarchy", operation)
            .unique(maintain_order=True)
            .sort(
                ["curriculum_name", "collection_name", "course_name", "chapter_name"],
                nulls_last=True,
            )
        )
        rows = self._collect(lf, operation)
        return self._build(rows, _curriculum_node, "curriculum_hierarchy", operation)
