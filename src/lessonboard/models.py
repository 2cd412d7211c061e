from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

LESSON_STATUS_COMPLETED = "completed"
LESSON_STATUS_IN_PROGRESS = "in_progress"
LESSON_STATUS_NOT_STARTED = "not_started"


@dataclass(frozen=True)
class School:
    id: int
    name: str


@dataclass(frozen=True)
class Cohort:
    id: int
    name: str
    school_id: int


@dataclass(frozen=True)
class Student:
    id: int
    email: str
    first_name: str
    last_name: str
    school_id: int
    cohort_id: int | None = None

    @property
    def display_name(self) -> str:
        first = (self.first_name or "").strip()
        last = (self.last_name or "").strip()
        if first and last:
            return f"{last}, {first}"
        if first or last:
            return first or last
        return (self.email or "").strip() or f"Student {self.id}"


@dataclass(frozen=True)
class CurriculumNode:
    curriculum_id: int
    curriculum_name: str
    collection_id: int | None = None
    collection_name: str | None = None
    course_id: int | None = None
    course_name: str | None = None
    chapter_id: int | None = None
    chapter_name: str | None = None


@dataclass(frozen=True)
class LessonRecord:
    lesson_id: int
    lesson_name: str
    chapter_id: int
    chapter_name: str
    course_id: int
    course_name: str
    collection_id: int
    collection_name: str
    curriculum_id: int
    curriculum_name: str
    is_required: bool
    completion_date: datetime | None = None
    engagement_date: datetime | None = None
    total_time: float | None = None

    @property
    def is_completed(self) -> bool:
        return self.completion_date is not None

    @property
    def is_in_progress(self) -> bool:
        return self.engagement_date is not None and self.completion_date is None

    @property
    def status(self) -> str:
        if self.is_completed:
            return LESSON_STATUS_COMPLETED
        if self.is_in_progress:
            return LESSON_STATUS_IN_PROGRESS
        return LESSON_STATUS_NOT_STARTED


@dataclass(frozen=True)
class LessonCounts:
    """Counts shared by every pre-aggregated row."""

    total_lessons_expected: int = 0
    total_lessons_completed: int = 0
    required_lessons_expected: int = 0
    required_lessons_completed: int = 0
    total_lessons_engaged: int = 0
    total_lessons_in_progress: int = 0
    total_lessons_not_started: int = 0
    total_students: int = 0


@dataclass(frozen=True)
class SchoolAggregate:
    school_id: int
    school_name: str
    counts: LessonCounts


@dataclass(frozen=True)
class CurriculumAggregate:
    school_id: int
    curriculum_id: int
    curriculum_name: str
    counts: LessonCounts


@dataclass(frozen=True)
class CollectionAggregate:
    school_id: int
    curriculum_id: int | None
    collection_id: int
    collection_name: str
    counts: LessonCounts


@dataclass(frozen=True)
class CourseAggregate:
    school_id: int
    collection_id: int | None
    course_id: int
    course_name: str
    counts: LessonCounts


@dataclass(frozen=True)
class ChapterAggregate:
    school_id: int
    course_id: int | None
    chapter_id: int
    chapter_name: str
    counts: LessonCounts


@dataclass(frozen=True)
class StudentAggregate:
    student_id: int
    school_id: int
    email: str
    first_name: str
    last_name: str
    counts: LessonCounts
    cohort_id: int | None = None

    def to_student(self) -> Student:
        return Student(
            id=self.student_id,
            email=self.email,
            first_name=self.first_name,
            last_name=self.last_name,
            school_id=self.school_id,
            cohort_id=self.cohort_id,
        )


@dataclass(frozen=True)
class CohortAggregate:
    school_id: int
    cohort_id: int
    cohort_name: str
    counts: LessonCounts


@dataclass(frozen=True)
class CohortCurriculumAggregate:
    school_id: int
    cohort_id: int
    curriculum_id: int
    curriculum_name: str
    counts: LessonCounts


@dataclass(frozen=True)
class CohortCollectionAggregate:
    school_id: int
    cohort_id: int
    collection_id: int
    collection_name: str
    counts: LessonCounts


@dataclass(frozen=True)
class CohortCourseAggregate:
    school_id: int
    cohort_id: int
    course_id: int
    course_name: str
    counts: LessonCounts


@dataclass(frozen=True)
class CohortChapterAggregate:
    school_id: int
    cohort_id: int
    chapter_id: int
    chapter_name: str
    counts: LessonCounts


@dataclass(frozen=True)
class AggregateBundle:
    """All pre-aggregated rows for one school, school-wide and per cohort.

    Replaced wholesale on every fetch; never mutated in place.
    """

    school_id: int | None = None
    school: tuple[SchoolAggregate, ...] = ()
    curriculum: tuple[CurriculumAggregate, ...] = ()
    collection: tuple[CollectionAggregate, ...] = ()
    course: tuple[CourseAggregate, ...] = ()
    chapter: tuple[ChapterAggregate, ...] = ()
    student: tuple[StudentAggregate, ...] = ()
    cohort: tuple[CohortAggregate, ...] = ()
    cohort_curriculum: tuple[CohortCurriculumAggregate, ...] = ()
    cohort_collection: tuple[CohortCollectionAggregate, ...] = ()
    cohort_course: tuple[CohortCourseAggregate, ...] = ()
    cohort_chapter: tuple[CohortChapterAggregate, ...] = ()
    cohort_student: tuple[StudentAggregate, ...] = ()

    @classmethod
    def empty(cls) -> AggregateBundle:
        return cls()

    def table_sizes(self) -> dict[str, int]:
        return {
            name: len(getattr(self, name))
            for name in (
                "school",
                "curriculum",
                "collection",
                "course",
                "chapter",
                "student",
                "cohort",
                "cohort_curriculum",
                "cohort_collection",
                "cohort_course",
                "cohort_chapter",
                "cohort_student",
            )
        }


@dataclass(frozen=True)
class CurriculumFilters:
    curriculum_id: int | None = None
    collection_id: int | None = None
    course_id: int | None = None
    chapter_id: int | None = None


@dataclass(frozen=True)
class ProgressMetrics:
    total_lessons: int
    total_completed: int
    required_lessons: int
    required_completed: int
    title: str = field(default="")


@dataclass(frozen=True)
class FilterLevel:
    name: str
    label: str
    id_field: str
    name_field: str


# Most specific first; at most one level drives filtering and lookups.
FILTER_LEVELS: tuple[FilterLevel, ...] = (
    FilterLevel("chapter", "Chapter", "chapter_id", "chapter_name"),
    FilterLevel("course", "Course", "course_id", "course_name"),
    FilterLevel("collection", "Collection", "collection_id", "collection_name"),
    FilterLevel("curriculum", "Curriculum", "curriculum_id", "curriculum_name"),
)


def most_specific_filter(filters: CurriculumFilters) -> tuple[FilterLevel, int] | None:
    for level in FILTER_LEVELS:
        value = getattr(filters, level.id_field)
        if value is not None:
            return level, value
    return None


@dataclass(frozen=True)
class Selection:
    """The two cascades: school > cohort > student, curriculum > collection > course > chapter."""

    school_id: int | None = None
    cohort_id: int | None = None
    student_id: int | None = None
    curriculum_id: int | None = None
    collection_id: int | None = None
    course_id: int | None = None
    chapter_id: int | None = None

    @property
    def filters(self) -> CurriculumFilters:
        return CurriculumFilters(
            curriculum_id=self.curriculum_id,
            collection_id=self.collection_id,
            course_id=self.course_id,
            chapter_id=self.chapter_id,
        )
