from __future__ import annotations

from typing import Any, Iterable, Sequence

import typer

from models.records import SensorRecord, Summary
from services.summary import is_anomaly


def echo_heading(text: str) -> None:
    typer.secho(text, bold=True)


def echo_key_values(pairs: Iterable[tuple[str, Any]]) -> None:
    for key, value in pairs:
        typer.echo(f"{key}: {value}")


def render_summary(file_name: str, summary: Summary) -> None:
    echo_heading("Dataset Summary")
    echo_key_values(
        [
            ("file_name", file_name),
            ("total_points", summary.total_points),
            ("start_time", summary.start_time),
            ("end_time", summary.end_time),
            ("max_velocity", f"{summary.max_velocity:.2f} mm/s"),
            ("avg_temp", f"{summary.avg_temp:.1f} C"),
        ]
    )
    color = typer.colors.RED if summary.anomalies else typer.colors.GREEN
    typer.secho(f"anomalies: {summary.anomalies}", fg=color)


def render_peaks(peaks: Sequence[SensorRecord]) -> None:
    typer.echo()
    echo_heading("Peak Vibration Readings")
    if not peaks:
        typer.echo("No readings available.")
        return
    for record in peaks:
        marker = " !" if is_anomaly(record) else ""
        typer.echo(
            f"  - {record.date_str}: x={record.vel_x:g} y={record.vel_y:g} "
            f"z={record.vel_z:g} mm/s, acoustics={record.acoustics:g} dB{marker}"
        )


def render_insight(text: str) -> None:
    typer.echo()
    echo_heading("AI Insights")
    typer.echo(text)
