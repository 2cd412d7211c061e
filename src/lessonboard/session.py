from __future__ import annotations

import logging
from dataclasses import dataclass, replace

import polars as pl

from .auth import CurrentUser, can_access_school
from .display import NoData, ProgressDisplay, project_display
from .filters import FilterOptions, StudentOption, build_filter_options, build_student_options
from .gateway import Gateway, GatewayError
from .lesson_table import build_lesson_table
from .models import CurriculumNode, ProgressMetrics, School
from .resolver import resolve_current_aggregate
from .state import (
    DashboardState,
    FetchRequest,
    clear_error,
    receive_fetch_error,
    receive_school_bundle,
    receive_student_records,
    select_chapter,
    select_cohort,
    select_collection,
    select_course,
    select_curriculum,
    select_school,
    select_student,
)
from .student_progress import build_grouping_aggregates, compute_filtered_metrics

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DashboardView:
    """Everything the page renders for the current state."""

    state: DashboardState
    schools: tuple[School, ...]
    filter_options: FilterOptions
    student_options: tuple[StudentOption, ...]
    student_metrics: ProgressMetrics | None
    aggregate: ProgressMetrics | None
    display: ProgressDisplay | NoData
    lesson_table: pl.DataFrame | None


class DashboardSession:
    """Owns one DashboardState and runs the fetches its transitions ask for."""

    def __init__(self, gateway: Gateway, user: CurrentUser | None = None) -> None:
        self.gateway = gateway
        self.user = user
        self.state = DashboardState()
        self.schools: tuple[School, ...] = ()
        self.hierarchy: tuple[CurriculumNode, ...] = ()

    def start(self) -> None:
        self.load_schools()
        self.load_hierarchy()
        if self.user is not None and self.user.school_id is not None and self.state.selection.school_id is None:
            logger.info("Auto-selecting school %s for %s", self.user.school_id, self.user.email)
            self.select_school(self.user.school_id)

    def load_schools(self) -> None:
        try:
            schools = self.gateway.fetch_schools()
        except GatewayError as err:
            self.state = replace(self.state, error=f"Failed to load schools: {err.message}")
            return
        self.schools = tuple(school for school in schools if can_access_school(self.user, school.id))

    def load_hierarchy(self) -> None:
        try:
            self.hierarchy = tuple(self.gateway.fetch_curriculum_hierarchy())
        except GatewayError as err:
            self.state = replace(self.state, error=f"Failed to load curriculum hierarchy: {err.message}")

    def _run_school_fetch(self, request: FetchRequest) -> None:
        try:
            bundle = self.gateway.fetch_school_aggregate_bundle(request.target_id)
            cohorts = self.gateway.fetch_cohorts(request.target_id)
        except GatewayError as err:
            logger.warning("School fetch failed for %s: %s", request.target_id, err)
            self.state = receive_fetch_error(self.state, request, err.message)
            return
        self.state = receive_school_bundle(self.state, request, bundle, cohorts)

    def _run_student_fetch(self, request: FetchRequest) -> None:
        try:
            records = self.gateway.fetch_student_lesson_records(request.target_id)
        except GatewayError as err:
            logger.warning("Student fetch failed for %s: %s", request.target_id, err)
            self.state = receive_fetch_error(self.state, request, err.message)
            return
        self.state = receive_student_records(self.state, request, records)

    def select_school(self, school_id: int | None) -> None:
        self.state, request = select_school(self.state, school_id, self.user)
        if request is not None:
            self._run_school_fetch(request)

    def select_cohort(self, cohort_id: int | None) -> None:
        self.state = select_cohort(self.state, cohort_id)

    def select_student(self, student_id: int | None) -> None:
        self.state, request = select_student(self.state, student_id)
        if request is not None:
            self._run_student_fetch(request)

    def select_curriculum(self, curriculum_id: int | None) -> None:
        self.state = select_curriculum(self.state, curriculum_id)

    def select_collection(self, collection_id: int | None) -> None:
        self.state = select_collection(self.state, collection_id)

    def select_course(self, course_id: int | None) -> None:
        self.state = select_course(self.state, course_id)

    def select_chapter(self, chapter_id: int | None) -> None:
        self.state = select_chapter(self.state, chapter_id)

    def clear_error(self) -> None:
        self.state = clear_error(self.state)

    def view(self, *, required_only: bool = False) -> DashboardView:
        state = self.state
        selection = state.selection
        student_records = state.lesson_records if selection.student_id is not None else None

        student_metrics = None
        groupings = None
        lesson_table = None
        if student_records is not None:
            student_metrics = compute_filtered_metrics(student_records, selection.filters)
            groupings = build_grouping_aggregates(student_records)
            lesson_table = build_lesson_table(student_records, selection.filters, required_only=required_only)

        aggregate = resolve_current_aggregate(selection, student_metrics, state.bundle)
        return DashboardView(
            state=state,
            schools=self.schools,
            filter_options=build_filter_options(self.hierarchy, selection, state.bundle, groupings),
            student_options=build_student_options(state.students_for_selector),
            student_metrics=student_metrics,
            aggregate=aggregate,
            display=project_display(aggregate),
            lesson_table=lesson_table,
        )
