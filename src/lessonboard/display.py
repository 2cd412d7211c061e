from __future__ import annotations

import math
from dataclasses import dataclass

import plotly.graph_objects as go

from .models import ProgressMetrics

NO_DATA_TITLE = "No Data Available"


@dataclass(frozen=True)
class ProgressDisplay:
    title: str
    total_lessons: int
    total_completed: int
    required_lessons: int
    required_completed: int
    total_percentage: int
    required_percentage: int


@dataclass(frozen=True)
class NoData:
    title: str = NO_DATA_TITLE


def completion_percentage(part: int, whole: int) -> int:
    """Whole-number percentage rounded half up; 0 for an empty denominator."""
    if whole <= 0:
        return 0
    return int(math.floor(100.0 * part / whole + 0.5))


def project_display(metrics: ProgressMetrics | None) -> ProgressDisplay | NoData:
    if metrics is None:
        return NoData()
    return ProgressDisplay(
        title=metrics.title,
        total_lessons=metrics.total_lessons,
        total_completed=metrics.total_completed,
        required_lessons=metrics.required_lessons,
        required_completed=metrics.required_completed,
        total_percentage=completion_percentage(metrics.total_completed, metrics.total_lessons),
        required_percentage=completion_percentage(metrics.required_completed, metrics.required_lessons),
    )


def no_data_caption(school_id: int | None) -> str:
    if school_id is None:
        return "Select a school to view progress data."
    return "No progress rows match the current cohort and curriculum filters."


def build_progress_figure(display: ProgressDisplay | NoData) -> go.Figure:
    if isinstance(display, NoData):
        fig = go.Figure()
        fig.update_layout(
            template="plotly_white",
            height=320,
            margin={"l": 16, "r": 16, "t": 40, "b": 16},
            annotations=[
                {
                    "text": "No progress data for the current selection.",
                    "xref": "paper",
                    "yref": "paper",
                    "x": 0.5,
                    "y": 0.5,
                    "showarrow": False,
                    "font": {"size": 15},
                }
            ],
        )
        return fig

    categories = ["All lessons", "Required lessons"]
    completed = [display.total_completed, display.required_completed]
    remaining = [
        max(0, display.total_lessons - display.total_completed),
        max(0, display.required_lessons - display.required_completed),
    ]
    percentages = [display.total_percentage, display.required_percentage]

    fig = go.Figure(
        data=[
            go.Bar(
                name="Completed",
                y=categories,
                x=completed,
                orientation="h",
                marker_color="#1e7a52",
                text=[f"{count:,} ({pct}%)" for count, pct in zip(completed, percentages, strict=True)],
                textposition="inside",
                hovertemplate="%{y}<br>Completed: %{x:,}<extra></extra>",
            ),
            go.Bar(
                name="Remaining",
                y=categories,
                x=remaining,
                orientation="h",
                marker_color="rgba(23, 34, 27, 0.18)",
                hovertemplate="%{y}<br>Remaining: %{x:,}<extra></extra>",
            ),
        ]
    )
    fig.update_layout(
        template="plotly_white",
        barmode="stack",
        title=display.title,
        height=320,
        margin={"l": 24, "r": 24, "t": 56, "b": 24},
        legend_title_text="Lessons",
    )
    fig.update_xaxes(title_text="Lessons", showgrid=True, gridcolor="rgba(23,34,27,0.14)")
    fig.update_yaxes(autorange="reversed")
    return fig
