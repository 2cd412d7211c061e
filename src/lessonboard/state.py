"""Selection state and its transitions.

Every transition is a pure function ``(state, ...) -> new state``. The two that need
I/O (school and student selection) also return a ``FetchRequest``; the caller
performs the fetch and hands the result back through ``receive_*`` together with
that request. Responses whose request is no longer the pending one for its kind
belong to a stale selection and are dropped.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field, replace

from .auth import CurrentUser, can_access_school
from .models import AggregateBundle, Cohort, LessonRecord, Selection, Student

logger = logging.getLogger(__name__)

SCHOOL_FETCH = "school"
STUDENT_FETCH = "student"

ACCESS_DENIED_MESSAGE = "You do not have permission to access this school"

ENTITY_CASCADE: tuple[str, ...] = ("school_id", "cohort_id", "student_id")
FILTER_CASCADE: tuple[str, ...] = ("curriculum_id", "collection_id", "course_id", "chapter_id")


@dataclass(frozen=True)
class FetchRequest:
    kind: str
    target_id: int
    request_id: int


@dataclass(frozen=True)
class DashboardState:
    selection: Selection = field(default_factory=Selection)
    bundle: AggregateBundle | None = None
    cohorts: tuple[Cohort, ...] = ()
    students_for_selector: tuple[Student, ...] = ()
    lesson_records: tuple[LessonRecord, ...] | None = None
    error: str | None = None
    pending_school: FetchRequest | None = None
    pending_student: FetchRequest | None = None
    next_request_id: int = 1

    @property
    def loading(self) -> bool:
        return self.pending_school is not None

    @property
    def student_loading(self) -> bool:
        return self.pending_student is not None


def _issue(state: DashboardState, kind: str, target_id: int) -> tuple[DashboardState, FetchRequest]:
    request = FetchRequest(kind=kind, target_id=target_id, request_id=state.next_request_id)
    return replace(state, next_request_id=state.next_request_id + 1), request


def _students_for(bundle: AggregateBundle | None, cohort_id: int | None) -> tuple[Student, ...]:
    if bundle is None:
        return ()
    if cohort_id is None:
        return tuple(row.to_student() for row in bundle.student)
    return tuple(row.to_student() for row in bundle.cohort_student if row.cohort_id == cohort_id)


def select_school(
    state: DashboardState,
    school_id: int | None,
    user: CurrentUser | None = None,
) -> tuple[DashboardState, FetchRequest | None]:
    if school_id is None:
        return (
            replace(
                state,
                selection=Selection(),
                bundle=None,
                cohorts=(),
                students_for_selector=(),
                lesson_records=None,
                error=None,
                pending_school=None,
                pending_student=None,
            ),
            None,
        )

    if not can_access_school(user, school_id):
        logger.warning("School %s refused for user %s", school_id, user.email if user else None)
        return replace(state, error=ACCESS_DENIED_MESSAGE), None

    same_school = state.bundle is not None and state.bundle.school_id == school_id
    bundle = state.bundle if same_school else None
    next_state = replace(
        state,
        selection=Selection(school_id=school_id),
        bundle=bundle,
        cohorts=(),
        students_for_selector=(),
        lesson_records=None,
        error=None,
        pending_student=None,
    )
    next_state, request = _issue(next_state, SCHOOL_FETCH, school_id)
    return replace(next_state, pending_school=request), request


def select_cohort(state: DashboardState, cohort_id: int | None) -> DashboardState:
    if state.selection.school_id is None:
        logger.debug("Ignoring cohort %s: no school selected", cohort_id)
        return state
    return replace(
        state,
        selection=replace(state.selection, cohort_id=cohort_id, student_id=None),
        students_for_selector=_students_for(state.bundle, cohort_id),
        lesson_records=None,
        pending_student=None,
    )


def select_student(
    state: DashboardState,
    student_id: int | None,
) -> tuple[DashboardState, FetchRequest | None]:
    if state.selection.school_id is None:
        logger.debug("Ignoring student %s: no school selected", student_id)
        return state, None
    if student_id is None:
        return (
            replace(
                state,
                selection=replace(state.selection, student_id=None),
                lesson_records=None,
                pending_student=None,
            ),
            None,
        )

    next_state = replace(
        state,
        selection=replace(state.selection, student_id=student_id),
        lesson_records=None,
        error=None,
    )
    next_state, request = _issue(next_state, STUDENT_FETCH, student_id)
    return replace(next_state, pending_student=request), request


def _select_filter(state: DashboardState, level_index: int, value: int | None) -> DashboardState:
    field_name = FILTER_CASCADE[level_index]
    if value is not None and level_index > 0:
        parent = FILTER_CASCADE[level_index - 1]
        if getattr(state.selection, parent) is None:
            logger.debug("Ignoring %s=%s: %s is not selected", field_name, value, parent)
            return state
    changes: dict[str, int | None] = {field_name: value}
    for finer in FILTER_CASCADE[level_index + 1 :]:
        changes[finer] = None
    return replace(state, selection=replace(state.selection, **changes))


def select_curriculum(state: DashboardState, curriculum_id: int | None) -> DashboardState:
    return _select_filter(state, 0, curriculum_id)


def select_collection(state: DashboardState, collection_id: int | None) -> DashboardState:
    return _select_filter(state, 1, collection_id)


def select_course(state: DashboardState, course_id: int | None) -> DashboardState:
    return _select_filter(state, 2, course_id)


def select_chapter(state: DashboardState, chapter_id: int | None) -> DashboardState:
    return _select_filter(state, 3, chapter_id)


def receive_school_bundle(
    state: DashboardState,
    request: FetchRequest,
    bundle: AggregateBundle,
    cohorts: Iterable[Cohort] = (),
) -> DashboardState:
    if state.pending_school != request:
        logger.info("Discarding stale school bundle for school %s", request.target_id)
        return state
    return replace(
        state,
        bundle=bundle,
        cohorts=tuple(cohorts),
        students_for_selector=_students_for(bundle, state.selection.cohort_id),
        pending_school=None,
    )


def receive_student_records(
    state: DashboardState,
    request: FetchRequest,
    records: Iterable[LessonRecord],
) -> DashboardState:
    if state.pending_student != request:
        logger.info("Discarding stale lesson records for student %s", request.target_id)
        return state
    return replace(state, lesson_records=tuple(records), pending_student=None)


def receive_fetch_error(state: DashboardState, request: FetchRequest, message: str) -> DashboardState:
    """Record a failed fetch; whatever was already loaded stays in place."""
    if request.kind == SCHOOL_FETCH and state.pending_school == request:
        return replace(state, error=f"Failed to load school data: {message}", pending_school=None)
    if request.kind == STUDENT_FETCH and state.pending_student == request:
        return replace(state, error=f"Failed to load student data: {message}", pending_student=None)
    logger.info("Discarding stale %s fetch error for %s", request.kind, request.target_id)
    return state


def clear_error(state: DashboardState) -> DashboardState:
    return replace(state, error=None)


def check_cascade(state: DashboardState) -> list[str]:
    """Return every finer id set while an ancestor in its cascade is unset."""
    violations: list[str] = []
    selection = state.selection
    for cascade in (ENTITY_CASCADE, FILTER_CASCADE):
        for idx, name in enumerate(cascade[1:], start=1):
            if getattr(selection, name) is None:
                continue
            # Student only needs the school; the cohort is optional.
            ancestors = ("school_id",) if name == "student_id" else cascade[:idx]
            for ancestor in ancestors:
                if getattr(selection, ancestor) is None:
                    violations.append(f"{name} set without {ancestor}")
    return violations
