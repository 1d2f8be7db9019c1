"""Domain models shared across services."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator, Sequence, overload


@dataclass(slots=True, frozen=True)
class SensorRecord:
    """A single sampled instant parsed from the CSV."""

    timestamp: float
    date_str: str
    ambient_temp: float
    surface_temp: float
    pressure: float
    humidity: float
    acoustics: float
    battery: float
    vel_x: float
    vel_y: float
    vel_z: float

    @property
    def peak_velocity(self) -> float:
        """Largest RMS velocity across the three axes."""
        return max(self.vel_x, self.vel_y, self.vel_z)


@dataclass(frozen=True)
class Dataset(Sequence[SensorRecord]):
    """Records in original file row order, replaced wholesale on every load."""

    records: tuple[SensorRecord, ...]
    source_name: str = "upload.csv"

    def __len__(self) -> int:
        return len(self.records)

    def __iter__(self) -> Iterator[SensorRecord]:
        return iter(self.records)

    @overload
    def __getitem__(self, index: int) -> SensorRecord: ...

    @overload
    def __getitem__(self, index: slice) -> tuple[SensorRecord, ...]: ...

    def __getitem__(self, index):
        return self.records[index]


@dataclass(frozen=True)
class Summary:
    """Aggregate statistics derived from a dataset."""

    total_points: int = 0
    start_time: str = ""
    end_time: str = ""
    max_velocity: float = 0.0
    avg_temp: float = 0.0
    anomalies: int = 0
