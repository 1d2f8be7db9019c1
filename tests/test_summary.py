"""Unit tests for the summary logic."""

from __future__ import annotations

import pytest

from models.records import SensorRecord, Summary
from services.summary import ANOMALY_THRESHOLD, Summarizer, is_anomaly


def _record(
    date_str: str,
    vel: tuple[float, float, float],
    ambient: float = 20.0,
) -> SensorRecord:
    """Helper to build deterministic sensor records."""

    vel_x, vel_y, vel_z = vel
    return SensorRecord(
        timestamp=0.0,
        date_str=date_str,
        ambient_temp=ambient,
        surface_temp=ambient + 2,
        pressure=1013.0,
        humidity=40.0,
        acoustics=35.0,
        battery=90.0,
        vel_x=vel_x,
        vel_y=vel_y,
        vel_z=vel_z,
    )


def test_summarize_empty_iterable_returns_zero_summary() -> None:
    summary = Summarizer().summarize([])

    assert summary == Summary()
    assert summary.total_points == 0
    assert summary.start_time == ""
    assert summary.end_time == ""
    assert summary.max_velocity == 0.0
    assert summary.avg_temp == 0.0
    assert summary.anomalies == 0


def test_summarize_computes_statistics() -> None:
    records = [
        _record("t1", (2.0, 3.0, 4.0), ambient=20.0),
        _record("t2", (9.0, 12.0, 5.0), ambient=21.0),
        _record("t3", (1.0, 1.0, 10.0), ambient=25.0),
    ]

    summary = Summarizer().summarize(records)

    assert summary.total_points == 3
    assert summary.start_time == "t1"
    assert summary.end_time == "t3"
    assert summary.max_velocity == 12.0
    assert summary.avg_temp == pytest.approx(22.0)
    # Exactly 10.0 is not above the threshold.
    assert summary.anomalies == 1


def test_summarize_is_deterministic() -> None:
    records = [_record(f"t{i}", (float(i), 0.5, 0.5)) for i in range(20)]
    summarizer = Summarizer()

    assert summarizer.summarize(records) == summarizer.summarize(records)


def test_max_velocity_considers_every_axis() -> None:
    records = [
        _record("a", (1.0, 2.0, 7.5)),
        _record("b", (6.0, 2.0, 1.0)),
    ]

    assert Summarizer().summarize(records).max_velocity == 7.5


def test_is_anomaly_uses_peak_axis() -> None:
    assert ANOMALY_THRESHOLD == 10.0
    assert is_anomaly(_record("a", (0.0, 0.0, 10.01)))
    assert not is_anomaly(_record("b", (10.0, 10.0, 10.0)))


def test_custom_threshold() -> None:
    records = [_record("a", (4.0, 0.0, 0.0)), _record("b", (6.0, 0.0, 0.0))]

    assert Summarizer(threshold=5.0).summarize(records).anomalies == 1
