"""Pydantic schemas for the HTTP API layer."""

from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, Field

from models.records import SensorRecord, Summary
from services.session import SessionState, ViewMode


class SummaryResponse(BaseModel):
    """Aggregate metrics computed for the loaded dataset."""

    total_points: int = Field(..., ge=0)
    start_time: str
    end_time: str
    max_velocity: float
    avg_temp: float
    anomalies: int = Field(..., ge=0)

    @classmethod
    def from_summary(cls, summary: Summary) -> "SummaryResponse":
        return cls(
            total_points=summary.total_points,
            start_time=summary.start_time,
            end_time=summary.end_time,
            max_velocity=summary.max_velocity,
            avg_temp=summary.avg_temp,
            anomalies=summary.anomalies,
        )


class RecordResponse(BaseModel):
    """One sensor reading, keyed the way chart clients expect."""

    timestamp: float = Field(..., description="Epoch milliseconds.")
    date_str: str = Field(..., description="Timestamp text as it appeared in the file.")
    ambient_temp: float
    surface_temp: float
    pressure: float
    humidity: float
    acoustics: float
    battery: float
    vel_x: float
    vel_y: float
    vel_z: float

    @classmethod
    def from_record(cls, record: SensorRecord) -> "RecordResponse":
        return cls(
            timestamp=record.timestamp,
            date_str=record.date_str,
            ambient_temp=record.ambient_temp,
            surface_temp=record.surface_temp,
            pressure=record.pressure,
            humidity=record.humidity,
            acoustics=record.acoustics,
            battery=record.battery,
            vel_x=record.vel_x,
            vel_y=record.vel_y,
            vel_z=record.vel_z,
        )


class DatasetResponse(BaseModel):
    """Response after a successful load."""

    file_name: str
    summary: SummaryResponse


class SessionStateResponse(BaseModel):
    view_mode: ViewMode
    file_name: str = ""
    error: Optional[str] = None
    summary: Optional[SummaryResponse] = None
    insight: Optional[str] = None
    insight_loading: bool = False

    @classmethod
    def from_state(cls, state: SessionState) -> "SessionStateResponse":
        has_data = state.dataset is not None
        return cls(
            view_mode=state.view_mode,
            file_name=state.file_name,
            error=state.error,
            summary=SummaryResponse.from_summary(state.summary) if has_data else None,
            insight=state.insight.text,
            insight_loading=state.insight.loading,
        )


class RecordsResponse(BaseModel):
    file_name: str
    records: List[RecordResponse] = Field(default_factory=list)


class InsightResponse(BaseModel):
    """Generated markdown, or the fixed fallback when the AI call failed."""

    text: str
