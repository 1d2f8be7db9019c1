"""Single-user dashboard session: the upload/dashboard view machine."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from enum import Enum
from functools import lru_cache
from threading import Lock
from typing import Optional

from models.records import Dataset, Summary
from services.errors import InsightInProgress, NoDatasetLoaded, SensorTrendError
from services.ingestion import ingest_upload, load_demo
from services.insights import InsightService, build_default_insight_service
from services.summary import Summarizer

logger = logging.getLogger(__name__)


class ViewMode(str, Enum):
    """The two screens a session can show."""

    upload = "upload"
    dashboard = "dashboard"


@dataclass(frozen=True)
class InsightState:
    text: Optional[str] = None
    loading: bool = False


@dataclass(frozen=True)
class SessionState:
    """Immutable view of the session; every transition swaps in a new one."""

    view_mode: ViewMode = ViewMode.upload
    dataset: Optional[Dataset] = None
    summary: Summary = field(default_factory=Summary)
    error: Optional[str] = None
    insight: InsightState = field(default_factory=InsightState)

    @property
    def file_name(self) -> str:
        return self.dataset.source_name if self.dataset is not None else ""


class DashboardSession:
    """Coordinates ingestion, summarization and the insight panel for one user."""

    def __init__(self, summarizer: Summarizer, insight_service: InsightService) -> None:
        self.summarizer = summarizer
        self.insight_service = insight_service
        self._state = SessionState()
        self._lock = Lock()

    @property
    def state(self) -> SessionState:
        with self._lock:
            return self._state

    def load_upload(self, file_name: Optional[str], content_type: Optional[str], payload: bytes) -> SessionState:
        """Ingest an uploaded file and switch to the dashboard.

        On failure the session returns to the upload view carrying the error's
        user message, and the error is re-raised for the caller.
        """
        try:
            dataset = ingest_upload(file_name, content_type, payload)
        except SensorTrendError as exc:
            self._fail(exc, file_name)
            raise
        return self._show(dataset)

    def load_demo(self) -> SessionState:
        return self._show(load_demo())

    def reset(self) -> SessionState:
        with self._lock:
            self._state = SessionState()
            state = self._state
        logger.info("Session reset", extra={"view_mode": state.view_mode.value})
        return state

    def request_insights(self) -> str:
        """Run one insight request against the current dataset.

        Raises ``InsightInProgress`` while another request is outstanding.
        """
        with self._lock:
            current = self._state
            if current.dataset is None:
                raise NoDatasetLoaded()
            if current.insight.loading:
                raise InsightInProgress()
            self._state = replace(current, insight=InsightState(text=current.insight.text, loading=True))

        dataset, summary = current.dataset, current.summary
        text: Optional[str] = None
        try:
            text = self.insight_service.generate_insights(summary, dataset)
        finally:
            with self._lock:
                # A newer load already replaced the insight panel.
                if self._state.dataset is dataset:
                    previous = self._state.insight.text
                    self._state = replace(
                        self._state,
                        insight=InsightState(text=text if text is not None else previous, loading=False),
                    )
        return text

    def _show(self, dataset: Dataset) -> SessionState:
        summary = self.summarizer.summarize(dataset)
        with self._lock:
            self._state = SessionState(
                view_mode=ViewMode.dashboard,
                dataset=dataset,
                summary=summary,
            )
            state = self._state
        logger.info(
            "Dataset loaded",
            extra={
                "file_name": dataset.source_name,
                "view_mode": state.view_mode.value,
                "record_count": summary.total_points,
                "anomalies": summary.anomalies,
            },
        )
        return state

    def _fail(self, exc: SensorTrendError, file_name: Optional[str]) -> None:
        with self._lock:
            self._state = SessionState(error=exc.user_message)
        logger.warning(
            "Dataset load failed",
            extra={"file_name": file_name, "view_mode": ViewMode.upload.value, "reason": exc.detail},
        )


@lru_cache
def build_default_session() -> DashboardSession:
    """Factory that wires the session with the configured insight backend."""
    return DashboardSession(
        summarizer=Summarizer(),
        insight_service=build_default_insight_service(),
    )
