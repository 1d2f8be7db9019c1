"""JSON route definitions for the dashboard session."""

from __future__ import annotations

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile, status
from fastapi.concurrency import run_in_threadpool

from app.schemas import (
    DatasetResponse,
    InsightResponse,
    RecordResponse,
    RecordsResponse,
    SessionStateResponse,
    SummaryResponse,
)
from services.errors import (
    InsightInProgress,
    NoDatasetLoaded,
    NoValidData,
    ParseFailure,
    SensorTrendError,
    UnsupportedFileType,
)
from services.session import DashboardSession, SessionState, build_default_session
from settings import get_settings

router = APIRouter()

_ERROR_STATUS = {
    UnsupportedFileType: status.HTTP_415_UNSUPPORTED_MEDIA_TYPE,
    NoValidData: status.HTTP_422_UNPROCESSABLE_ENTITY,
    ParseFailure: status.HTTP_400_BAD_REQUEST,
    NoDatasetLoaded: status.HTTP_404_NOT_FOUND,
    InsightInProgress: status.HTTP_409_CONFLICT,
}


def get_session() -> DashboardSession:
    return build_default_session()


def error_status(exc: SensorTrendError) -> int:
    return _ERROR_STATUS.get(type(exc), status.HTTP_400_BAD_REQUEST)


def _http_error(exc: SensorTrendError) -> HTTPException:
    return HTTPException(status_code=error_status(exc), detail=exc.user_message)


async def read_upload(file: UploadFile) -> bytes:
    """Read an uploaded file, enforcing the configured size limit."""
    limit = get_settings().max_upload_bytes
    contents = await file.read(limit + 1)
    if len(contents) > limit:
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail=f"Uploaded file exceeds {limit} bytes.",
        )
    return contents


def _require_dataset(state: SessionState) -> SessionState:
    if state.dataset is None:
        raise _http_error(NoDatasetLoaded())
    return state


@router.post(
    "/api/datasets",
    response_model=DatasetResponse,
    summary="Upload a sensor CSV and replace the loaded dataset.",
)
async def upload_dataset(
    file: UploadFile = File(..., description="CSV file containing sensor readings."),
    session: DashboardSession = Depends(get_session),
) -> DatasetResponse:
    try:
        contents = await read_upload(file)
        state = session.load_upload(file.filename, file.content_type, contents)
    except SensorTrendError as exc:
        raise _http_error(exc) from exc
    finally:
        await file.close()
    return DatasetResponse(file_name=state.file_name, summary=SummaryResponse.from_summary(state.summary))


@router.post(
    "/api/datasets/demo",
    response_model=DatasetResponse,
    summary="Load the bundled demo dataset.",
)
async def load_demo_dataset(session: DashboardSession = Depends(get_session)) -> DatasetResponse:
    state = session.load_demo()
    return DatasetResponse(file_name=state.file_name, summary=SummaryResponse.from_summary(state.summary))


@router.get("/api/state", response_model=SessionStateResponse, summary="Current view and panel state.")
async def get_state(session: DashboardSession = Depends(get_session)) -> SessionStateResponse:
    return SessionStateResponse.from_state(session.state)


@router.get("/api/summary", response_model=SummaryResponse, summary="Summary of the loaded dataset.")
async def get_summary(session: DashboardSession = Depends(get_session)) -> SummaryResponse:
    state = _require_dataset(session.state)
    return SummaryResponse.from_summary(state.summary)


@router.get("/api/records", response_model=RecordsResponse, summary="Loaded records in file order.")
async def get_records(session: DashboardSession = Depends(get_session)) -> RecordsResponse:
    state = _require_dataset(session.state)
    return RecordsResponse(
        file_name=state.file_name,
        records=[RecordResponse.from_record(record) for record in state.dataset],
    )


@router.post(
    "/api/insights",
    response_model=InsightResponse,
    summary="Ask the text-generation service to analyze the loaded dataset.",
)
async def create_insights(session: DashboardSession = Depends(get_session)) -> InsightResponse:
    try:
        text = await run_in_threadpool(session.request_insights)
    except SensorTrendError as exc:
        raise _http_error(exc) from exc
    return InsightResponse(text=text)


@router.post("/api/reset", response_model=SessionStateResponse, summary="Return to the upload view.")
async def reset_session(session: DashboardSession = Depends(get_session)) -> SessionStateResponse:
    return SessionStateResponse.from_state(session.reset())


@router.get(
    "/health",
    summary="Health check endpoint.",
    status_code=status.HTTP_200_OK,
)
async def healthcheck() -> dict[str, str]:
    return {"status": "ok"}
