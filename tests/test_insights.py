from __future__ import annotations

from typing import List

import pytest

from models.records import SensorRecord
from services import insights
from services.errors import AIRequestFailure
from services.ingestion import load_demo, parse_csv
from services.insights import (
    EMPTY_RESPONSE_MESSAGE,
    FALLBACK_MESSAGE,
    GeminiTextGenerator,
    InsightService,
    build_prompt,
    render_markdown,
    select_peaks,
)
from services.summary import Summarizer


class RecordingGenerator:
    def __init__(self, response: str = "## Severity\n\nZone C") -> None:
        self.response = response
        self.prompts: List[str] = []

    def generate(self, prompt: str) -> str:
        self.prompts.append(prompt)
        return self.response


class FailingGenerator:
    def __init__(self, exc: Exception) -> None:
        self.exc = exc
        self.calls = 0

    def generate(self, prompt: str) -> str:
        self.calls += 1
        raise self.exc


def _dataset_with_peaks(peaks: List[float]):
    rows = [
        f"2024-01-01T00:{minute:02d}:00Z,20,22,1013,40,35,90,{peak},1,1"
        for minute, peak in enumerate(peaks)
    ]
    return parse_csv("ts,a,b,c,d,e,f,x,y,z\n" + "\n".join(rows))


def test_select_peaks_orders_descending_and_caps_at_five() -> None:
    dataset = _dataset_with_peaks([3.0, 9.0, 1.0, 12.0, 4.0, 7.0, 2.0])

    peaks = select_peaks(dataset)

    assert [record.vel_x for record in peaks] == [12.0, 9.0, 7.0, 4.0, 3.0]


def test_select_peaks_ties_keep_file_order() -> None:
    dataset = _dataset_with_peaks([5.0, 8.0, 5.0, 8.0])

    peaks = select_peaks(dataset, limit=4)

    assert [record.date_str for record in peaks] == [
        "2024-01-01T00:01:00Z",
        "2024-01-01T00:03:00Z",
        "2024-01-01T00:00:00Z",
        "2024-01-01T00:02:00Z",
    ]


def test_select_peaks_with_fewer_records() -> None:
    dataset = _dataset_with_peaks([2.0, 3.0])

    assert len(select_peaks(dataset)) == 2


def test_build_prompt_includes_summary_and_peaks() -> None:
    dataset = load_demo()
    summary = Summarizer().summarize(dataset)
    peaks = select_peaks(dataset)

    prompt = build_prompt(summary, peaks)

    assert "Duration: 2024-03-01T00:00:00Z to 2024-03-01T23:55:00Z" in prompt
    assert "Total Data Points: 288" in prompt
    assert "Max Recorded Velocity (RMS): 15.2 mm/s" in prompt
    assert f"Average Ambient Temp: {summary.avg_temp:.1f}°C" in prompt
    assert "ISO 10816" in prompt
    assert prompt.count("Time: ") == 5
    assert "Vel X: 15.2, Vel Y: 8.8, Vel Z: 6.9" in prompt


def test_generate_insights_sends_one_prompt() -> None:
    dataset = load_demo()
    summary = Summarizer().summarize(dataset)
    generator = RecordingGenerator()

    text = InsightService(generator).generate_insights(summary, dataset)

    assert text == "## Severity\n\nZone C"
    assert len(generator.prompts) == 1


@pytest.mark.parametrize(
    "exc",
    [AIRequestFailure("quota exceeded"), RuntimeError("network down")],
)
def test_generate_insights_falls_back_on_failure(exc: Exception) -> None:
    dataset = load_demo()
    summary = Summarizer().summarize(dataset)
    generator = FailingGenerator(exc)

    text = InsightService(generator).generate_insights(summary, dataset)

    assert text == FALLBACK_MESSAGE
    assert generator.calls == 1
    assert Summarizer().summarize(dataset) == summary


def test_generate_insights_empty_response() -> None:
    dataset = load_demo()
    summary = Summarizer().summarize(dataset)

    text = InsightService(RecordingGenerator(response="   ")).generate_insights(summary, dataset)

    assert text == EMPTY_RESPONSE_MESSAGE


def test_gemini_generator_requires_api_key() -> None:
    with pytest.raises(AIRequestFailure):
        GeminiTextGenerator(api_key=None).generate("hello")


class _FakeResponse:
    def __init__(self, text: str) -> None:
        self.text = text


class _FakeGenAI:
    def __init__(self, fail: bool = False) -> None:
        self.fail = fail
        self.configured_key: str | None = None
        self.model_name: str | None = None
        self.prompts: List[str] = []

    def configure(self, api_key: str) -> None:
        self.configured_key = api_key

    def GenerativeModel(self, model_name: str) -> "_FakeGenAI":  # noqa: N802 - mirrors SDK name
        self.model_name = model_name
        return self

    def generate_content(self, prompt: str) -> _FakeResponse:
        if self.fail:
            raise ValueError("API key not valid")
        self.prompts.append(prompt)
        return _FakeResponse("**ok**")


def test_gemini_generator_calls_sdk(monkeypatch: pytest.MonkeyPatch) -> None:
    fake = _FakeGenAI()
    monkeypatch.setattr(insights, "genai", fake)

    text = GeminiTextGenerator(api_key="secret", model_name="gemini-test").generate("prompt")

    assert text == "**ok**"
    assert fake.configured_key == "secret"
    assert fake.model_name == "gemini-test"
    assert fake.prompts == ["prompt"]


def test_gemini_generator_wraps_sdk_errors(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(insights, "genai", _FakeGenAI(fail=True))

    with pytest.raises(AIRequestFailure) as excinfo:
        GeminiTextGenerator(api_key="secret").generate("prompt")

    assert "API key not valid" in str(excinfo.value)


def test_render_markdown_produces_html() -> None:
    html = render_markdown("## Severity\n\n| Axis | mm/s |\n| --- | --- |\n| X | 15.2 |\n")

    assert "<h2>Severity</h2>" in html
    assert "<table>" in html


def test_insight_service_accepts_any_record_iterable() -> None:
    records: List[SensorRecord] = list(load_demo())
    summary = Summarizer().summarize(records)
    generator = RecordingGenerator()

    InsightService(generator, peak_limit=2).generate_insights(summary, iter(records))

    assert generator.prompts[0].count("Time: ") == 2
