"""Summary statistics for sensor datasets."""

from __future__ import annotations

from typing import Iterable

from models.records import SensorRecord, Summary

# ISO 10816 treats > 10 mm/s RMS as "rough" for class I/II machines.
ANOMALY_THRESHOLD = 10.0


def is_anomaly(record: SensorRecord, threshold: float = ANOMALY_THRESHOLD) -> bool:
    return record.peak_velocity > threshold


class Summarizer:
    """Pure summary component that can be unit tested in isolation."""

    def __init__(self, threshold: float = ANOMALY_THRESHOLD) -> None:
        self.threshold = threshold

    def summarize(self, records: Iterable[SensorRecord]) -> Summary:
        total_points = 0
        first: SensorRecord | None = None
        last: SensorRecord | None = None
        max_velocity: float | None = None
        total_temp = 0.0
        anomalies = 0

        for record in records:
            total_points += 1
            if first is None:
                first = record
            last = record

            peak = record.peak_velocity
            if max_velocity is None or peak > max_velocity:
                max_velocity = peak
            if is_anomaly(record, self.threshold):
                anomalies += 1
            total_temp += record.ambient_temp

        if first is None or last is None or max_velocity is None:
            return Summary()

        return Summary(
            total_points=total_points,
            start_time=first.date_str,
            end_time=last.date_str,
            max_velocity=max_velocity,
            avg_temp=total_temp / total_points,
            anomalies=anomalies,
        )
