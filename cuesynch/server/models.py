"""Pydantic response models for the HTTP API.

WHY: The FastAPI endpoints need typed schemas for response serialization
and automatic OpenAPI documentation. The WAV download itself is a raw
audio body, so only the analysis, error and health payloads are modelled.

RULES:
- All models use Field(description=...) for OpenAPI documentation
- Response models never expose internal implementation details
- Python 3.9+ compatible (no PEP 604 unions, use Optional from typing)
"""

from __future__ import annotations

from typing import Dict, List

from pydantic import BaseModel, Field


class AnalyzeResponse(BaseModel):
    """Result of analyzing an uploaded CSV.

    WHY: Clients show the columns and a preview so the user can pick the
    time column and the label columns before generating the WAV.

    RULES:
    - rows holds at most the first 5 data rows, keyed by header
    - detected_time_column is "" only when the CSV has no header cells
    """

    headers: List[str] = Field(description="Column headers in file order.")
    rows: List[Dict[str, str]] = Field(description="Preview of the first data rows.")
    row_count: int = Field(description="Number of non-blank data rows.")
    frame_rate: float = Field(
        description="Frame rate used for HH:MM:SS:FF values (detected for 'auto').",
        json_schema_extra={"example": 25.0},
    )
    detected_time_column: str = Field(
        description="Suggested time column (first header that looks like a time field).",
        json_schema_extra={"example": "Timecode"},
    )


class ErrorResponse(BaseModel):
    """Standard error response body.

    WHY: Consistent error format across all endpoints makes client-side
    error handling predictable.
    """

    detail: str = Field(description="Human-readable error description.")


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = Field(description="Service health status.", json_schema_extra={"example": "ok"})
    version: str = Field(description="API version string.", json_schema_extra={"example": "0.1.0"})
