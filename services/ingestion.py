"""CSV ingestion for sensor exports."""

from __future__ import annotations

import csv
import logging
import math
import re
from datetime import datetime, timedelta, timezone
from functools import lru_cache
from pathlib import PurePath
from typing import Optional, Sequence

from models.records import Dataset, SensorRecord
from services.errors import NoValidData, ParseFailure, UnsupportedFileType

logger = logging.getLogger(__name__)

# Positional mapping; header text is not checked against these names.
COLUMN_ORDER = (
    "timestamp",
    "ambient_temp",
    "surface_temp",
    "pressure",
    "humidity",
    "acoustics",
    "battery",
    "vel_x",
    "vel_y",
    "vel_z",
)
_NUMERIC_FIELDS = COLUMN_ORDER[1:]

DEMO_FILE_NAME = "demo_sensor_data.csv"

_ACCEPTED_CONTENT_TYPES = {"text/csv", "text/plain"}
_ACCEPTED_SUFFIXES = {".csv", ".txt"}

# Plain ASCII decimal or exponent notation, as exported by data loggers.
_NUMBER_PATTERN = re.compile(r"[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?", re.ASCII)

_FALLBACK_TIMESTAMP_FORMATS = (
    "%Y-%m-%d %H:%M:%S",
    "%Y-%m-%d %H:%M",
    "%Y/%m/%d %H:%M:%S",
    "%Y/%m/%d %H:%M",
    "%m/%d/%Y %H:%M:%S",
    "%m/%d/%Y %H:%M",
)


def parse_timestamp(value: str) -> float:
    """Convert a textual timestamp into epoch milliseconds (naive means UTC)."""
    candidate = value.strip()
    if not candidate:
        raise ValueError("Timestamp is empty.")

    if candidate.endswith(("Z", "z")):
        candidate = candidate[:-1] + "+00:00"

    try:
        parsed = datetime.fromisoformat(candidate)
    except ValueError:
        parsed = _parse_fallback_timestamp(candidate)

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)

    return parsed.timestamp() * 1000.0


def _parse_fallback_timestamp(candidate: str) -> datetime:
    for fmt in _FALLBACK_TIMESTAMP_FORMATS:
        try:
            return datetime.strptime(candidate, fmt)
        except ValueError:
            continue
    raise ValueError("Invalid timestamp format")


def _parse_number(raw: str) -> float:
    candidate = raw.strip()
    if not _NUMBER_PATTERN.fullmatch(candidate):
        raise ValueError(f"Not a decimal number {raw!r}")
    value = float(candidate)
    if not math.isfinite(value):
        raise ValueError(f"Non-finite value {raw!r}")
    return value


def _parse_row(fields: Sequence[str]) -> SensorRecord:
    if len(fields) < len(COLUMN_ORDER):
        raise ValueError("missing fields")

    date_str = fields[0]
    try:
        timestamp = parse_timestamp(date_str)
    except ValueError as exc:
        raise ValueError("invalid timestamp") from exc

    numbers: dict[str, float] = {}
    for name, raw in zip(_NUMERIC_FIELDS, fields[1 : len(COLUMN_ORDER)]):
        try:
            numbers[name] = _parse_number(raw)
        except ValueError as exc:
            raise ValueError(f"invalid numeric value in {name}") from exc

    return SensorRecord(timestamp=timestamp, date_str=date_str, **numbers)


def _split_line(line: str) -> list[str]:
    # One reader per line so an unbalanced quote cannot run into later rows.
    return next(csv.reader([line]), [])


def parse_csv(text: str, source_name: str = "upload.csv") -> Dataset:
    """Parse sensor CSV text, dropping rows that fail to parse.

    The first line is treated as the header. Every later non-empty line is
    split on its own and mapped positionally onto ``COLUMN_ORDER``. Raises
    ``NoValidData`` when no row survives.
    """
    lines = text.lstrip("\ufeff").splitlines()
    if not lines:
        raise NoValidData("Input contains no header row.")
    header = _split_line(lines[0])
    if len(header) < len(COLUMN_ORDER):
        logger.warning(
            "Header has fewer columns than expected",
            extra={"file_name": source_name, "reason": f"{len(header)} columns"},
        )

    records: list[SensorRecord] = []
    dropped = 0
    for row_number, line in enumerate(lines[1:], start=2):
        if not line.strip():
            continue
        try:
            record = _parse_row(_split_line(line))
        except (ValueError, csv.Error) as exc:
            dropped += 1
            logger.debug(
                "Dropped row",
                extra={"file_name": source_name, "row_number": row_number, "reason": str(exc)},
            )
            continue
        records.append(record)

    if not records:
        logger.info(
            "No valid rows found",
            extra={"file_name": source_name, "dropped_count": dropped},
        )
        raise NoValidData()

    logger.info(
        "Parsed sensor CSV",
        extra={"file_name": source_name, "record_count": len(records), "dropped_count": dropped},
    )
    return Dataset(records=tuple(records), source_name=source_name)


def check_file_type(file_name: Optional[str], content_type: Optional[str]) -> None:
    """Reject files that are neither CSV nor plain text by MIME type or name."""
    media_type = (content_type or "").split(";", 1)[0].strip().lower()
    suffix = PurePath(file_name or "").suffix.lower()
    if media_type in _ACCEPTED_CONTENT_TYPES or suffix in _ACCEPTED_SUFFIXES:
        return
    raise UnsupportedFileType(f"Unsupported file {file_name!r} ({media_type or 'unknown type'}).")


def ingest_upload(file_name: Optional[str], content_type: Optional[str], payload: bytes | str) -> Dataset:
    """Validate, decode and parse an uploaded file."""
    name = PurePath(file_name or "upload.csv").name
    check_file_type(name, content_type)
    try:
        text = payload.decode("utf-8-sig") if isinstance(payload, bytes) else payload
        return parse_csv(text, source_name=name)
    except (ValueError, csv.Error) as exc:
        logger.warning("Failed to parse upload", extra={"file_name": name, "reason": str(exc)})
        raise ParseFailure(str(exc)) from exc


# Row index -> (vel_x, vel_y, vel_z) for rows above the anomaly threshold.
_DEMO_SPIKES = {
    60: (11.8, 6.2, 4.1),
    61: (13.4, 7.0, 4.6),
    150: (9.1, 12.7, 5.3),
    212: (15.2, 8.8, 6.9),
    213: (12.6, 7.4, 5.8),
}
_DEMO_START = datetime(2024, 3, 1, tzinfo=timezone.utc)
_DEMO_ROWS = 288


@lru_cache
def demo_csv_text() -> str:
    """Deterministic 24h export at 5 minute resolution."""
    lines = ["Timestamp,Ambient Temp (C),Surface Temp (C),Pressure (hPa),Humidity (%RH),"
             "Acoustics (dB),Battery (%),Vel X (mm/s),Vel Y (mm/s),Vel Z (mm/s)"]
    for i in range(_DEMO_ROWS):
        stamp = (_DEMO_START + timedelta(minutes=5 * i)).strftime("%Y-%m-%dT%H:%M:%SZ")
        ambient = 22.0 + 3.0 * math.sin(2 * math.pi * i / _DEMO_ROWS)
        surface = ambient + 14.0 + 2.0 * math.sin(2 * math.pi * i / 96)
        pressure = 1013.0 + 4.0 * math.cos(2 * math.pi * i / _DEMO_ROWS)
        humidity = 45.0 + 8.0 * math.sin(2 * math.pi * i / 144 + 1.0)
        acoustics = 68.0 + 4.0 * math.sin(2 * math.pi * i / 36)
        battery = 100.0 - 0.05 * i
        vel_x = 3.2 + 0.8 * math.sin(2 * math.pi * i / 24)
        vel_y = 2.1 + 0.5 * math.cos(2 * math.pi * i / 30)
        vel_z = 1.6 + 0.4 * math.sin(2 * math.pi * i / 18 + 0.5)
        if i in _DEMO_SPIKES:
            vel_x, vel_y, vel_z = _DEMO_SPIKES[i]
            acoustics += 12.0
        values = (ambient, surface, pressure, humidity, acoustics, battery, vel_x, vel_y, vel_z)
        lines.append(stamp + "," + ",".join(f"{value:.2f}" for value in values))
    return "\n".join(lines) + "\n"


def load_demo() -> Dataset:
    """Parse the bundled demo export through the regular CSV path."""
    return parse_csv(demo_csv_text(), source_name=DEMO_FILE_NAME)
