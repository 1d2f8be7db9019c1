from typing import Iterator, List

import pytest
from fastapi.testclient import TestClient

from app.main import create_app
from services.insights import FALLBACK_MESSAGE, InsightService
from services.session import DashboardSession
from services.summary import Summarizer

CSV_CONTENT = """ts,amb,surf,pres,hum,aco,batt,vx,vy,vz
2024-01-01T00:00:00Z,20,22,1013,40,35,90,2,3,4
2024-01-01T00:01:00Z,21,23,1012,41,36,90,9,12,5
"""


class StubGenerator:
    def __init__(self) -> None:
        self.fail = False

    def generate(self, prompt: str) -> str:
        if self.fail:
            raise ConnectionError("unreachable")
        return "## Severity\n\nZone **C**"


@pytest.fixture
def generator() -> StubGenerator:
    return StubGenerator()


@pytest.fixture
def ui_client(generator: StubGenerator, monkeypatch) -> Iterator[TestClient]:
    sessions: List[DashboardSession] = []

    def build_test_session() -> DashboardSession:
        if not sessions:
            sessions.append(
                DashboardSession(summarizer=Summarizer(), insight_service=InsightService(generator))
            )
        return sessions[0]

    build_test_session.cache_clear = sessions.clear  # type: ignore[attr-defined]

    monkeypatch.setattr("app.main.build_default_session", build_test_session)
    monkeypatch.setattr("app.api.build_default_session", build_test_session)

    with TestClient(create_app()) as client:
        yield client


def test_index_shows_upload_view(ui_client: TestClient) -> None:
    response = ui_client.get("/")

    assert response.status_code == 200
    assert "Drop your CSV file here" in response.text
    assert "Load Demo Data" in response.text


def test_dashboard_without_data_redirects_to_upload(ui_client: TestClient) -> None:
    response = ui_client.get("/dashboard", follow_redirects=False)

    assert response.status_code == 303
    assert response.headers["location"].endswith("/")


def test_upload_redirects_to_dashboard(ui_client: TestClient) -> None:
    response = ui_client.post(
        "/upload",
        files={"file": ("readings.csv", CSV_CONTENT, "text/csv")},
    )

    assert response.status_code == 200
    assert str(response.url).endswith("/dashboard")
    assert "File: readings.csv" in response.text
    assert "12.00 mm/s" in response.text
    assert "Vibration Velocity (RMS)" in response.text


def test_upload_error_stays_on_upload_view(ui_client: TestClient) -> None:
    response = ui_client.post(
        "/upload",
        files={"file": ("notes.pdf", b"%PDF", "application/pdf")},
    )

    assert response.status_code == 415
    assert "Please upload a CSV or Text file." in response.text
    assert "Drop your CSV file here" in response.text


def test_demo_then_reset(ui_client: TestClient) -> None:
    dashboard = ui_client.post("/demo")

    assert dashboard.status_code == 200
    assert "demo_sensor_data.csv" in dashboard.text
    assert "Upload New File" in ui_client.get("/").text

    upload = ui_client.post("/reset")

    assert upload.status_code == 200
    assert "Drop your CSV file here" in upload.text


def test_dashboard_recommends_analysis_when_anomalies_exist(ui_client: TestClient) -> None:
    response = ui_client.post("/demo")

    assert "5 Significant anomalies detected" in response.text
    assert "Analysis recommended." in response.text
    assert "Analyze Data" in response.text


def test_dashboard_without_anomalies_has_no_alert(ui_client: TestClient) -> None:
    calm = "ts,amb,surf,pres,hum,aco,batt,vx,vy,vz\n2024-01-01T00:00:00Z,20,22,1013,40,35,90,2,3,4\n"

    response = ui_client.post("/upload", files={"file": ("calm.csv", calm, "text/csv")})

    assert response.status_code == 200
    assert "Significant anomalies detected" not in response.text
    assert "No readings above" in response.text


def test_insight_button_offers_regeneration(ui_client: TestClient) -> None:
    ui_client.post("/demo")

    response = ui_client.post("/insights")

    assert "Regenerate Insights" in response.text
    assert "Analyze Data" not in response.text
    assert "Significant anomalies detected" not in response.text


def test_insights_render_as_markdown(ui_client: TestClient) -> None:
    ui_client.post("/demo")

    response = ui_client.post("/insights")

    assert response.status_code == 200
    assert "<h2>Severity</h2>" in response.text
    assert "<strong>C</strong>" in response.text


def test_insights_failure_shows_fallback(ui_client: TestClient, generator: StubGenerator) -> None:
    ui_client.post("/demo")
    generator.fail = True

    response = ui_client.post("/insights")

    assert response.status_code == 200
    assert FALLBACK_MESSAGE in response.text
    assert "demo_sensor_data.csv" in response.text


def test_insights_without_data_returns_to_upload(ui_client: TestClient) -> None:
    response = ui_client.post("/insights")

    assert response.status_code == 200
    assert "Drop your CSV file here" in response.text
