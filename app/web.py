from __future__ import annotations

from pathlib import Path

from fastapi import APIRouter, Depends, File, HTTPException, Request, UploadFile, status
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import HTMLResponse, RedirectResponse
from fastapi.templating import Jinja2Templates

from app.api import error_status, get_session, read_upload
from services.charts import render_dashboard_html
from services.errors import InsightInProgress, NoDatasetLoaded, SensorTrendError
from services.insights import render_markdown
from services.session import DashboardSession, SessionState, ViewMode
from services.summary import ANOMALY_THRESHOLD


templates = Jinja2Templates(directory=str(Path(__file__).resolve().parent / "templates"))


def _redirect(url: str) -> RedirectResponse:
    return RedirectResponse(url, status_code=status.HTTP_303_SEE_OTHER)


def _render_upload(request: Request, error: str | None, status_code: int = status.HTTP_200_OK) -> HTMLResponse:
    return templates.TemplateResponse(
        request,
        "ui/upload.html",
        {"error": error},
        status_code=status_code,
    )


def _render_dashboard(request: Request, state: SessionState) -> HTMLResponse:
    insight_text = state.insight.text
    return templates.TemplateResponse(
        request,
        "ui/dashboard.html",
        {
            "file_name": state.file_name,
            "summary": state.summary,
            "threshold": ANOMALY_THRESHOLD,
            "chart_html": render_dashboard_html(state.dataset, state.summary),
            "insight_html": render_markdown(insight_text) if insight_text else None,
            "insight_loading": state.insight.loading,
        },
    )


router = APIRouter(include_in_schema=False)


@router.get("/", name="ui_index", response_class=HTMLResponse)
async def ui_index(
    request: Request,
    session: DashboardSession = Depends(get_session),
) -> HTMLResponse:
    state = session.state
    if state.view_mode is ViewMode.dashboard and state.dataset is not None:
        return _render_dashboard(request, state)
    return _render_upload(request, state.error)


@router.get("/dashboard", name="ui_dashboard", response_class=HTMLResponse)
async def ui_dashboard(
    request: Request,
    session: DashboardSession = Depends(get_session),
) -> HTMLResponse:
    state = session.state
    if state.dataset is None:
        return _redirect(str(request.url_for("ui_index")))
    return _render_dashboard(request, state)


@router.post("/upload", name="ui_upload", response_class=HTMLResponse)
async def ui_upload(
    request: Request,
    file: UploadFile = File(...),
    session: DashboardSession = Depends(get_session),
) -> HTMLResponse:
    try:
        contents = await read_upload(file)
        session.load_upload(file.filename, file.content_type, contents)
    except SensorTrendError as exc:
        return _render_upload(request, exc.user_message, status_code=error_status(exc))
    except HTTPException as exc:
        return _render_upload(request, str(exc.detail), status_code=exc.status_code)
    finally:
        await file.close()
    return _redirect(str(request.url_for("ui_dashboard")))


@router.post("/demo", name="ui_demo")
async def ui_demo(
    request: Request,
    session: DashboardSession = Depends(get_session),
) -> RedirectResponse:
    session.load_demo()
    return _redirect(str(request.url_for("ui_dashboard")))


@router.post("/reset", name="ui_reset")
async def ui_reset(
    request: Request,
    session: DashboardSession = Depends(get_session),
) -> RedirectResponse:
    session.reset()
    return _redirect(str(request.url_for("ui_index")))


@router.post("/insights", name="ui_insights")
async def ui_insights(
    request: Request,
    session: DashboardSession = Depends(get_session),
) -> RedirectResponse:
    try:
        await run_in_threadpool(session.request_insights)
    except NoDatasetLoaded:
        return _redirect(str(request.url_for("ui_index")))
    except InsightInProgress:
        # The outstanding request fills the panel when it finishes.
        pass
    return _redirect(str(request.url_for("ui_dashboard")))
