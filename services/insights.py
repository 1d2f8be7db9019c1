"""AI-generated reliability insights for a loaded dataset."""

from __future__ import annotations

import logging
import time
from typing import Iterable, Optional, Protocol, Sequence

import google.generativeai as genai
import markdown

from models.records import SensorRecord, Summary
from services.errors import AIRequestFailure
from settings import DEFAULT_MODEL_NAME, get_settings

logger = logging.getLogger(__name__)

PEAK_LIMIT = 5
FALLBACK_MESSAGE = AIRequestFailure.user_message
EMPTY_RESPONSE_MESSAGE = "No insights generated."


class TextGenerator(Protocol):
    """Anything that turns a prompt into prose, raising ``AIRequestFailure`` on error."""

    def generate(self, prompt: str) -> str:
        ...


class GeminiTextGenerator:
    """Text generator backed by the Gemini API."""

    def __init__(self, api_key: Optional[str], model_name: str = DEFAULT_MODEL_NAME) -> None:
        self.api_key = api_key
        self.model_name = model_name

    def generate(self, prompt: str) -> str:
        if not self.api_key:
            raise AIRequestFailure("Missing Gemini API key.")
        try:
            genai.configure(api_key=self.api_key)
            model = genai.GenerativeModel(self.model_name)
            response = model.generate_content(prompt)
            return getattr(response, "text", "") or ""
        except Exception as exc:  # noqa: BLE001 - SDK raises transport, quota and safety errors alike
            raise AIRequestFailure(str(exc)) from exc


def select_peaks(records: Iterable[SensorRecord], limit: int = PEAK_LIMIT) -> list[SensorRecord]:
    """Highest peak-velocity records first; ties keep file order."""
    ranked = sorted(records, key=lambda record: record.peak_velocity, reverse=True)
    return ranked[:limit]


def _format_number(value: float) -> str:
    return f"{value:g}"


def build_prompt(summary: Summary, peaks: Sequence[SensorRecord]) -> str:
    peak_lines = "\n".join(
        f"    Time: {record.date_str}, Vel X: {_format_number(record.vel_x)}, "
        f"Vel Y: {_format_number(record.vel_y)}, Vel Z: {_format_number(record.vel_z)}, "
        f"Acoustics: {_format_number(record.acoustics)}"
        for record in peaks
    )
    return f"""
    Act as an expert industrial reliability engineer. Analyze the following sensor data summary from a machine health monitoring system.

    **Dataset Summary:**
    - Duration: {summary.start_time} to {summary.end_time}
    - Total Data Points: {summary.total_points}
    - Max Recorded Velocity (RMS): {_format_number(summary.max_velocity)} mm/s
    - Average Ambient Temp: {summary.avg_temp:.1f}°C
    - Readings Above 10 mm/s: {summary.anomalies}

    **Detected High Vibration Events (Anomalies):**
{peak_lines}

    **Task:**
    1. Assess the severity of the vibration levels based on ISO 10816 standards (assuming a standard medium-sized machine).
    2. Suggest potential root causes for the spikes (e.g., imbalance, misalignment, bearing looseness) considering the relationship between axes if visible.
    3. Recommend immediate maintenance actions.

    Keep the response concise, technical, and formatted in Markdown.
    """


class InsightService:
    """Builds the prompt and degrades every collaborator failure to a fixed message."""

    def __init__(self, generator: TextGenerator, peak_limit: int = PEAK_LIMIT) -> None:
        self.generator = generator
        self.peak_limit = peak_limit

    def generate_insights(self, summary: Summary, records: Iterable[SensorRecord]) -> str:
        peaks = select_peaks(records, self.peak_limit)
        prompt = build_prompt(summary, peaks)
        start_time = time.perf_counter()
        try:
            text = self.generator.generate(prompt)
        except Exception as exc:  # noqa: BLE001 - the panel shows a fallback instead
            logger.warning(
                "Insight request failed",
                extra={
                    "reason": str(exc),
                    "elapsed_ms": int((time.perf_counter() - start_time) * 1000),
                },
            )
            return FALLBACK_MESSAGE

        logger.info(
            "Insight request completed",
            extra={"elapsed_ms": int((time.perf_counter() - start_time) * 1000)},
        )
        return text.strip() or EMPTY_RESPONSE_MESSAGE


def render_markdown(text: str) -> str:
    """Render generated markdown into HTML for the insight panel."""
    return markdown.markdown(text, extensions=["tables"])


def build_default_insight_service() -> InsightService:
    settings = get_settings()
    generator = GeminiTextGenerator(api_key=settings.api_key, model_name=settings.model_name)
    return InsightService(generator=generator)
