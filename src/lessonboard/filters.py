from __future__ import annotations

from collections.abc import Sequence
from dataclasses import asdict, dataclass

import polars as pl

from .models import AggregateBundle, CurriculumNode, Selection, Student
from .resolver import active_level_tables
from .student_progress import StudentGroupings

_HIERARCHY_SCHEMA: dict[str, pl.DataType] = {
    "curriculum_id": pl.Int64,
    "curriculum_name": pl.Utf8,
    "collection_id": pl.Int64,
    "collection_name": pl.Utf8,
    "course_id": pl.Int64,
    "course_name": pl.Utf8,
    "chapter_id": pl.Int64,
    "chapter_name": pl.Utf8,
}

# (level, coarser filter columns applied before listing that level)
_OPTION_LEVELS: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("curriculum", ()),
    ("collection", ("curriculum_id",)),
    ("course", ("curriculum_id", "collection_id")),
    ("chapter", ("curriculum_id", "collection_id", "course_id")),
)


@dataclass(frozen=True)
class FilterOption:
    id: int
    name: str
    completed: int | None = None

    @property
    def label(self) -> str:
        if self.completed is None:
            return self.name
        return f"{self.name} ({self.completed})"


@dataclass(frozen=True)
class FilterOptions:
    curricula: tuple[FilterOption, ...] = ()
    collections: tuple[FilterOption, ...] = ()
    courses: tuple[FilterOption, ...] = ()
    chapters: tuple[FilterOption, ...] = ()


@dataclass(frozen=True)
class StudentOption:
    id: int
    label: str


def hierarchy_frame(nodes: Sequence[CurriculumNode]) -> pl.DataFrame:
    if not nodes:
        return pl.DataFrame(
            {name: pl.Series(name=name, values=[], dtype=dtype) for name, dtype in _HIERARCHY_SCHEMA.items()}
        )
    return pl.DataFrame([asdict(node) for node in nodes], schema=_HIERARCHY_SCHEMA)


def _distinct_level(hierarchy: pl.DataFrame, level: str, selection: Selection, coarser: tuple[str, ...]) -> pl.DataFrame:
    id_col = f"{level}_id"
    name_col = f"{level}_name"
    frame = hierarchy
    for column in coarser:
        value = getattr(selection, column)
        if value is not None:
            frame = frame.filter(pl.col(column) == value)
    return (
        frame.filter(pl.col(id_col).is_not_null())
        .select(id_col, name_col)
        .unique(subset=[id_col], keep="first", maintain_order=True)
    )


def _completed_lookup(
    selection: Selection,
    bundle: AggregateBundle | None,
    groupings: StudentGroupings | None,
) -> dict[str, dict[int, int]]:
    if selection.student_id is not None and groupings is not None:
        return {
            "collection": {key: g.completed_lessons for key, g in groupings.collections.items()},
            "course": {key: g.completed_lessons for key, g in groupings.courses.items()},
            "chapter": {key: g.completed_lessons for key, g in groupings.chapters.items()},
        }
    tables = active_level_tables(selection, bundle)
    lookup: dict[str, dict[int, int]] = {}
    for level, rows in (
        ("collection", tables.collection),
        ("course", tables.course),
        ("chapter", tables.chapter),
    ):
        counts: dict[int, int] = {}
        for row in rows:
            counts.setdefault(getattr(row, f"{level}_id"), row.counts.total_lessons_completed)
        lookup[level] = counts
    return lookup


def build_filter_options(
    hierarchy: Sequence[CurriculumNode],
    selection: Selection,
    bundle: AggregateBundle | None = None,
    groupings: StudentGroupings | None = None,
) -> FilterOptions:
    """Options for the four curriculum selectors.

    Each level lists distinct entries under the coarser filters currently set. Below
    the curriculum level, labels carry the completed-lesson count for the current
    scope: the selected student, else the selected cohort, else the school.
    """
    frame = hierarchy_frame(hierarchy)
    completed = _completed_lookup(selection, bundle, groupings)
    options: dict[str, tuple[FilterOption, ...]] = {}
    for level, coarser in _OPTION_LEVELS:
        distinct = _distinct_level(frame, level, selection, coarser)
        level_counts = completed.get(level)
        options[level] = tuple(
            FilterOption(
                id=int(row[f"{level}_id"]),
                name=str(row[f"{level}_name"] or ""),
                completed=None if level_counts is None else level_counts.get(int(row[f"{level}_id"]), 0),
            )
            for row in distinct.iter_rows(named=True)
        )
    return FilterOptions(
        curricula=options["curriculum"],
        collections=options["collection"],
        courses=options["course"],
        chapters=options["chapter"],
    )


def build_student_options(students: Sequence[Student]) -> tuple[StudentOption, ...]:
    seen: set[int] = set()
    out: list[StudentOption] = []
    for student in students:
        if student.id in seen:
            continue
        seen.add(student.id)
        out.append(StudentOption(id=student.id, label=student.display_name))
    return tuple(out)
