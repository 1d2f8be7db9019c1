"""Plotly projection of a dataset into the dashboard charts."""

from __future__ import annotations

from datetime import datetime, timezone

import plotly.graph_objects as go
from plotly.subplots import make_subplots

from models.records import Dataset, Summary
from services.summary import ANOMALY_THRESHOLD

PANEL_TITLES = (
    "Vibration Velocity (RMS)",
    "Acoustics (dB SPL)",
    "Temperature Comparison",
    "Pressure & Humidity",
)

_AXIS_SERIES = (
    ("vel_x", "X-Axis (Radial)", "#F87171"),
    ("vel_y", "Y-Axis (Axial)", "#60A5FA"),
    ("vel_z", "Z-Axis (Vertical)", "#34D399"),
)


def _to_datetime(timestamp_ms: float) -> datetime:
    return datetime.fromtimestamp(timestamp_ms / 1000.0, tz=timezone.utc)


def build_dashboard_figure(dataset: Dataset, summary: Summary) -> go.Figure:
    """Stack the four panels on one shared time axis so zoom and pan stay in sync."""
    fig = make_subplots(
        rows=4,
        cols=1,
        shared_xaxes=True,
        vertical_spacing=0.06,
        subplot_titles=PANEL_TITLES,
        row_heights=[0.34, 0.22, 0.22, 0.22],
        specs=[[{}], [{}], [{}], [{"secondary_y": True}]],
    )
    times = [_to_datetime(record.timestamp) for record in dataset]

    for field, label, color in _AXIS_SERIES:
        fig.add_trace(
            go.Scatter(
                x=times,
                y=[getattr(record, field) for record in dataset],
                name=label,
                mode="lines",
                line={"color": color, "width": 1.5},
            ),
            row=1,
            col=1,
        )
    fig.add_hline(
        y=ANOMALY_THRESHOLD,
        line_dash="dash",
        line_color="red",
        annotation_text="Warning",
        row=1,
        col=1,
    )

    fig.add_trace(
        go.Scatter(
            x=times,
            y=[record.acoustics for record in dataset],
            name="Noise Level",
            mode="lines",
            line={"color": "#FBBF24", "width": 2},
        ),
        row=2,
        col=1,
    )

    fig.add_trace(
        go.Scatter(x=times, y=[r.ambient_temp for r in dataset], name="Ambient", mode="lines",
                   line={"color": "#A78BFA"}),
        row=3,
        col=1,
    )
    fig.add_trace(
        go.Scatter(x=times, y=[r.surface_temp for r in dataset], name="Surface", mode="lines",
                   line={"color": "#FB923C"}),
        row=3,
        col=1,
    )

    fig.add_trace(
        go.Scatter(x=times, y=[r.pressure for r in dataset], name="Pressure", mode="lines",
                   line={"color": "#2DD4BF"}),
        row=4,
        col=1,
        secondary_y=False,
    )
    fig.add_trace(
        go.Scatter(x=times, y=[r.humidity for r in dataset], name="Humidity", mode="lines",
                   line={"color": "#38BDF8"}),
        row=4,
        col=1,
        secondary_y=True,
    )

    fig.update_yaxes(title_text="mm/s", row=1, col=1)
    fig.update_yaxes(title_text="dB", row=2, col=1)
    fig.update_yaxes(title_text="°C", row=3, col=1)
    fig.update_yaxes(title_text="hPa", row=4, col=1, secondary_y=False)
    fig.update_yaxes(title_text="%RH", row=4, col=1, secondary_y=True)
    fig.update_xaxes(rangeslider={"visible": True, "thickness": 0.04}, row=4, col=1)
    fig.update_layout(
        template="plotly_dark",
        height=1100,
        hovermode="x unified",
        title_text=f"{dataset.source_name} | {summary.total_points:,} points",
        legend={"orientation": "h", "y": -0.08},
        margin={"l": 60, "r": 60, "t": 80, "b": 40},
    )
    return fig


def render_dashboard_html(dataset: Dataset, summary: Summary, include_plotlyjs: str | bool = "cdn") -> str:
    """Embeddable HTML fragment for the dashboard template."""
    fig = build_dashboard_figure(dataset, summary)
    return fig.to_html(full_html=False, include_plotlyjs=include_plotlyjs)
