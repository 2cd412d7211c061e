from __future__ import annotations

import polars as pl
from sample_data import (
    COHORT_ID,
    OTHER_SCHOOL_ID,
    SCHOOL_ID,
    bundle,
    cohorts,
    hierarchy,
    schools,
    student_records,
    write_snapshot,
)

from lessonboard.auth import CurrentUser
from lessonboard.display import NoData, ProgressDisplay
from lessonboard.gateway import GatewayError, SnapshotGateway
from lessonboard.session import DashboardSession


class FakeGateway:
    def __init__(self) -> None:
        self.fail_students = False
        self.calls: list[tuple[str, int | None]] = []

    def fetch_schools(self):
        self.calls.append(("schools", None))
        return schools()

    def fetch_cohorts(self, school_id):
        self.calls.append(("cohorts", school_id))
        return cohorts(school_id)

    def fetch_school_aggregate_bundle(self, school_id):
        self.calls.append(("bundle", school_id))
        return bundle(school_id)

    def fetch_student_lesson_records(self, student_id):
        self.calls.append(("student", student_id))
        if self.fail_students:
            raise GatewayError("fetch_student_lesson_records", "snapshot table not found")
        return student_records()

    def fetch_curriculum_hierarchy(self):
        return hierarchy()


def test_start_without_user_lists_all_schools_and_shows_no_data() -> None:
    session = DashboardSession(FakeGateway())
    session.start()
    view = session.view()
    assert [s.id for s in view.schools] == [SCHOOL_ID, OTHER_SCHOOL_ID]
    assert isinstance(view.display, NoData)
    assert view.lesson_table is None
    assert [o.id for o in view.filter_options.curricula] == [10, 20]


def test_start_auto_selects_the_users_school() -> None:
    user = CurrentUser(id=1, email="faculty@example.edu", role="faculty", school_id=SCHOOL_ID)
    gateway = FakeGateway()
    session = DashboardSession(gateway, user=user)
    session.start()
    assert session.state.selection.school_id == SCHOOL_ID
    assert [s.id for s in session.schools] == [SCHOOL_ID]
    assert ("bundle", SCHOOL_ID) in gateway.calls
    view = session.view()
    assert isinstance(view.display, ProgressDisplay)
    assert view.display.title == "School: North Campus"


def test_student_view_uses_per_student_metrics() -> None:
    session = DashboardSession(FakeGateway())
    session.start()
    session.select_school(SCHOOL_ID)
    session.select_cohort(COHORT_ID)
    session.select_student(502)
    view = session.view()
    assert view.student_metrics is not None
    assert view.aggregate is view.student_metrics
    assert isinstance(view.display, ProgressDisplay)
    assert view.display.total_lessons == 4
    assert view.display.total_percentage == 50
    assert view.lesson_table is not None
    assert view.lesson_table.height == 4
    assert [o.id for o in view.student_options] == [502]

    session.select_curriculum(10)
    session.select_collection(101)
    narrowed = session.view(required_only=True)
    assert narrowed.display.title == "Student: Pediatrics"
    assert narrowed.lesson_table.height == 1


def test_student_fetch_failure_keeps_school_aggregates() -> None:
    gateway = FakeGateway()
    gateway.fail_students = True
    session = DashboardSession(gateway)
    session.start()
    session.select_school(SCHOOL_ID)
    session.select_student(501)
    view = session.view()
    assert view.state.error == "Failed to load student data: snapshot table not found"
    assert isinstance(view.display, ProgressDisplay)
    assert view.display.title == "School: North Campus"

    session.clear_error()
    assert session.state.error is None


def test_refused_school_does_not_hit_the_gateway() -> None:
    user = CurrentUser(id=1, email="faculty@example.edu", role="faculty", school_id=SCHOOL_ID)
    gateway = FakeGateway()
    session = DashboardSession(gateway, user=user)
    session.select_school(OTHER_SCHOOL_ID)
    assert ("bundle", OTHER_SCHOOL_ID) not in gateway.calls
    assert session.state.error == "You do not have permission to access this school"


def test_cohort_round_trip_switches_between_cohort_and_school_rows() -> None:
    session = DashboardSession(FakeGateway())
    session.start()
    session.select_school(SCHOOL_ID)
    session.select_cohort(COHORT_ID)
    assert session.view().display.title == "Cohort: Class of 2026"

    session.select_cohort(None)
    assert session.view().display.title == "School: North Campus"


def test_malformed_student_rows_surface_as_error_and_clear_loading(tmp_path) -> None:
    write_snapshot(tmp_path)
    path = tmp_path / "student_progress.parquet"
    pl.read_parquet(path).with_columns(pl.lit(None, dtype=pl.Int64).alias("chapter_id")).write_parquet(path)

    session = DashboardSession(SnapshotGateway(tmp_path))
    session.start()
    session.select_school(SCHOOL_ID)
    session.select_student(502)

    state = session.state
    assert state.error is not None
    assert state.error.startswith("Failed to load student data: malformed row in student_progress")
    assert state.pending_student is None
    assert state.student_loading is False
    assert state.bundle is not None
