from __future__ import annotations

from lessonboard.display import (
    NO_DATA_TITLE,
    NoData,
    ProgressDisplay,
    build_progress_figure,
    completion_percentage,
    no_data_caption,
    project_display,
)
from lessonboard.models import ProgressMetrics


def test_percentages_are_zero_for_empty_denominators() -> None:
    display = project_display(ProgressMetrics(0, 0, 0, 0, title="School: Empty"))
    assert isinstance(display, ProgressDisplay)
    assert display.total_percentage == 0
    assert display.required_percentage == 0


def test_percentages_round_half_up() -> None:
    assert completion_percentage(1, 8) == 13
    assert completion_percentage(1, 3) == 33
    assert completion_percentage(2, 3) == 67
    assert completion_percentage(1, 200) == 1
    assert completion_percentage(5, 5) == 100


def test_projection_carries_counts_and_title() -> None:
    display = project_display(ProgressMetrics(200, 50, 100, 30, title="School: North Campus"))
    assert isinstance(display, ProgressDisplay)
    assert display.title == "School: North Campus"
    assert display.total_percentage == 25
    assert display.required_percentage == 30


def test_missing_metrics_project_to_no_data() -> None:
    display = project_display(None)
    assert isinstance(display, NoData)
    assert display.title == NO_DATA_TITLE


def test_progress_figure_stacks_completed_and_remaining() -> None:
    display = project_display(ProgressMetrics(10, 4, 6, 6, title="Course: Trauma"))
    fig = build_progress_figure(display)
    assert [trace.name for trace in fig.data] == ["Completed", "Remaining"]
    assert list(fig.data[0].x) == [4, 6]
    assert list(fig.data[1].x) == [6, 0]
    assert fig.layout.barmode == "stack"


def test_no_data_figure_has_no_traces() -> None:
    fig = build_progress_figure(NoData())
    assert len(fig.data) == 0
    assert fig.layout.annotations


def test_no_data_caption_depends_on_school_selection() -> None:
    assert no_data_caption(None) == "Select a school to view progress data."
    assert "filters" in no_data_caption(1)
