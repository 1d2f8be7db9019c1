"""Failure conditions surfaced to the user."""

from __future__ import annotations


class SensorTrendError(Exception):
    """Base class for errors that end an attempt but not the session."""

    user_message = "Something went wrong."

    def __init__(self, detail: str | None = None) -> None:
        super().__init__(detail or self.user_message)
        self.detail = detail or self.user_message


class NoValidData(SensorTrendError):
    user_message = "No valid data found in file. Please check the format."


class UnsupportedFileType(SensorTrendError):
    user_message = "Please upload a CSV or Text file."


class ParseFailure(SensorTrendError):
    user_message = "Failed to parse CSV file."


class AIRequestFailure(SensorTrendError):
    user_message = "Unable to generate AI insights at this time. Please check your API key."


class InsightInProgress(SensorTrendError):
    user_message = "An insight request is already running."


class NoDatasetLoaded(SensorTrendError):
    user_message = "Load a file or the demo data first."
