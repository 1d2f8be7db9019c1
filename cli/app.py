from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import typer
import uvicorn

from cli.render import render_insight, render_peaks, render_summary
from logging_config import configure_logging
from models.records import Dataset
from services.errors import SensorTrendError
from services.ingestion import ingest_upload, load_demo
from services.insights import InsightService, build_default_insight_service, select_peaks
from services.summary import Summarizer


@dataclass
class CLIState:
    summarizer: Summarizer
    insight_service: InsightService


app = typer.Typer(
    help="Inspect industrial sensor CSV exports and serve the SensorTrend dashboard.",
    context_settings={"help_option_names": ["-h", "--help"]},
)


def _get_state(ctx: typer.Context) -> CLIState:
    state = ctx.obj
    if not isinstance(state, CLIState):
        raise typer.Exit(code=1)
    return state


def _load_dataset(file: Optional[Path], demo: bool) -> Dataset:
    if demo:
        return load_demo()
    if file is None:
        raise typer.BadParameter("Pass a CSV file or --demo.")
    try:
        return ingest_upload(file.name, None, file.read_bytes())
    except SensorTrendError as exc:
        typer.secho(exc.user_message, fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1) from exc


@app.callback()
def main(
    ctx: typer.Context,
    log_level: Optional[str] = typer.Option(
        None,
        "--log-level",
        help="Logging level (defaults to LOG_LEVEL env or INFO).",
    ),
) -> None:
    """Entry point for the CLI."""
    configure_logging(log_level.upper() if log_level else None)
    ctx.obj = CLIState(
        summarizer=Summarizer(),
        insight_service=build_default_insight_service(),
    )


@app.command("summary")
def summary_command(
    ctx: typer.Context,
    file: Optional[Path] = typer.Argument(
        None, exists=True, dir_okay=False, readable=True, help="Path to a sensor CSV file."
    ),
    demo: bool = typer.Option(False, "--demo", help="Use the bundled demo dataset."),
) -> None:
    """Print summary statistics and peak readings for a CSV file."""
    state = _get_state(ctx)
    dataset = _load_dataset(file, demo)
    summary = state.summarizer.summarize(dataset)
    render_summary(dataset.source_name, summary)
    render_peaks(select_peaks(dataset))


@app.command("insights")
def insights_command(
    ctx: typer.Context,
    file: Optional[Path] = typer.Argument(
        None, exists=True, dir_okay=False, readable=True, help="Path to a sensor CSV file."
    ),
    demo: bool = typer.Option(False, "--demo", help="Use the bundled demo dataset."),
) -> None:
    """Ask the text-generation service to analyze a CSV file."""
    state = _get_state(ctx)
    dataset = _load_dataset(file, demo)
    summary = state.summarizer.summarize(dataset)
    render_summary(dataset.source_name, summary)
    typer.echo(f"Requesting insights for {dataset.source_name} ...")
    render_insight(state.insight_service.generate_insights(summary, dataset))


@app.command("serve")
def serve_command(
    host: str = typer.Option("127.0.0.1", "--host", help="Interface to bind."),
    port: int = typer.Option(8000, "--port", "-p", help="Port to listen on."),
) -> None:
    """Run the dashboard web server."""
    typer.echo(f"Serving SensorTrend on http://{host}:{port}/ ...")
    uvicorn.run("app.main:app", host=host, port=port)
