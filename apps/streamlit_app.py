from __future__ import annotations

import sys
from collections.abc import Callable
from pathlib import Path

import streamlit as st

ROOT_DIR = Path(__file__).resolve().parents[1]
SRC_DIR = ROOT_DIR / "src"
APPS_DIR = ROOT_DIR / "apps"
if str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))
if str(APPS_DIR) not in sys.path:
    sys.path.insert(0, str(APPS_DIR))

from lessonboard.auth import load_current_user
from lessonboard.config import configure_logging, get_settings
from lessonboard.display import NoData, build_progress_figure, no_data_caption
from lessonboard.filters import FilterOption
from lessonboard.gateway import SnapshotGateway
from lessonboard.session import DashboardSession, DashboardView
from runtime_bootstrap import bootstrap_snapshot, secrets_mapping

SESSION_KEY = "lessonboard_session"
ALL_LABEL = "All"


st.set_page_config(
    page_title="Lesson Progress",
    page_icon=":books:",
    layout="wide",
)


st.markdown(
    """
<style>
@import url('https://fonts.googleapis.com/css2?family=Fraunces:opsz,wght@9..144,600;9..144,700&family=IBM+Plex+Sans:wght@400;500;600&display=swap');
:root {
  --bg1: #f2f6f2;
  --bg2: #dbe6da;
  --ink: #17221b;
  --panel: rgba(255, 255, 255, 0.78);
}
.stApp {
  background: linear-gradient(180deg, var(--bg1), var(--bg2));
  color: var(--ink);
}
h1, h2, h3 {
  font-family: "Fraunces", Georgia, serif !important;
  color: var(--ink);
}
div, p, label {
  font-family: "IBM Plex Sans", sans-serif !important;
}
[data-testid="stMetric"] {
  background: var(--panel);
  border: 1px solid rgba(23, 34, 27, 0.10);
  border-radius: 14px;
  padding: 0.85rem;
}
</style>
""",
    unsafe_allow_html=True,
)


@st.cache_resource(show_spinner=False)
def get_gateway(snapshot_dir: Path) -> SnapshotGateway:
    return SnapshotGateway(snapshot_dir)


def _get_session(snapshot_dir: Path) -> DashboardSession:
    session = st.session_state.get(SESSION_KEY)
    if session is None:
        try:
            user = load_current_user(secrets=secrets_mapping())
        except ValueError as err:
            st.error("Signed-in user configuration is invalid.")
            st.code(str(err))
            st.stop()
        session = DashboardSession(get_gateway(snapshot_dir), user=user)
        with st.spinner("Loading schools..."):
            session.start()
        st.session_state[SESSION_KEY] = session
    return session


def _choose(
    label: str,
    options_map: dict[str, int | None],
    current: int | None,
    *,
    disabled: bool = False,
) -> int | None:
    labels = list(options_map.keys())
    index = next((i for i, key in enumerate(labels) if options_map[key] == current), 0)
    choice = st.sidebar.selectbox(label, labels, index=index, disabled=disabled, key=f"select_{label}_{current}")
    return options_map[choice]


def _filter_options_map(options: tuple[FilterOption, ...]) -> dict[str, int | None]:
    options_map: dict[str, int | None] = {ALL_LABEL: None}
    for option in options:
        options_map[f"{option.label} [{option.id}]"] = option.id
    return options_map


def _apply(chosen: int | None, current: int | None, action: Callable[[int | None], None]) -> None:
    if chosen != current:
        action(chosen)
        st.rerun()


def _render_sidebar(session: DashboardSession, view: DashboardView) -> None:
    selection = view.state.selection
    st.sidebar.header("Scope")
    if session.user is not None:
        st.sidebar.caption(f"Signed in as {session.user.display_name} ({session.user.role})")

    school_map: dict[str, int | None] = {"Select a school": None}
    school_map.update({f"{school.name} [{school.id}]": school.id for school in view.schools})
    _apply(_choose("School", school_map, selection.school_id), selection.school_id, session.select_school)

    cohort_map: dict[str, int | None] = {"All cohorts": None}
    cohort_map.update({f"{cohort.name} [{cohort.id}]": cohort.id for cohort in view.state.cohorts})
    chosen_cohort = _choose(
        "Cohort", cohort_map, selection.cohort_id, disabled=selection.school_id is None
    )
    _apply(chosen_cohort, selection.cohort_id, session.select_cohort)

    student_map: dict[str, int | None] = {"All students": None}
    student_map.update({f"{option.label} [{option.id}]": option.id for option in view.student_options})
    chosen_student = _choose(
        "Student", student_map, selection.student_id, disabled=selection.school_id is None
    )
    _apply(chosen_student, selection.student_id, session.select_student)

    st.sidebar.header("Curriculum Filters")
    options = view.filter_options
    _apply(
        _choose("Curriculum", _filter_options_map(options.curricula), selection.curriculum_id),
        selection.curriculum_id,
        session.select_curriculum,
    )
    _apply(
        _choose(
            "Collection",
            _filter_options_map(options.collections),
            selection.collection_id,
            disabled=selection.curriculum_id is None,
        ),
        selection.collection_id,
        session.select_collection,
    )
    _apply(
        _choose(
            "Course",
            _filter_options_map(options.courses),
            selection.course_id,
            disabled=selection.collection_id is None,
        ),
        selection.course_id,
        session.select_course,
    )
    _apply(
        _choose(
            "Chapter",
            _filter_options_map(options.chapters),
            selection.chapter_id,
            disabled=selection.course_id is None,
        ),
        selection.chapter_id,
        session.select_chapter,
    )


def main() -> None:
    bootstrap_snapshot()
    settings = get_settings()
    configure_logging(settings)

    session = _get_session(settings.snapshot_dir)
    required_only = bool(st.sidebar.checkbox("Required lessons only", value=False))
    view = session.view(required_only=required_only)
    _render_sidebar(session, view)

    st.title("Lesson Progress")
    st.caption("Completion of expected and required lessons by school, cohort, student and curriculum level.")

    if view.state.error:
        st.error(view.state.error)
        if st.button("Dismiss"):
            session.clear_error()
            st.rerun()

    if view.state.loading or view.state.student_loading:
        st.info("Loading...")

    display = view.display
    if isinstance(display, NoData):
        st.subheader(display.title)
        st.caption(no_data_caption(view.state.selection.school_id))
        st.plotly_chart(build_progress_figure(display), width="stretch")
        return

    st.subheader(display.title)
    c1, c2, c3, c4 = st.columns(4)
    c1.metric("Total lessons", f"{display.total_lessons:,}")
    c2.metric("Completed", f"{display.total_completed:,}", f"{display.total_percentage}%", delta_color="off")
    c3.metric("Required lessons", f"{display.required_lessons:,}")
    c4.metric(
        "Required completed",
        f"{display.required_completed:,}",
        f"{display.required_percentage}%",
        delta_color="off",
    )
    st.plotly_chart(build_progress_figure(display), width="stretch")

    if view.lesson_table is not None:
        st.subheader("Lessons")
        if view.lesson_table.height == 0:
            st.caption("No lessons match the current filters.")
        else:
            st.dataframe(view.lesson_table.to_pandas(), width="stretch", hide_index=True)


if __name__ == "__main__":
    main()
