"""FastAPI application exposing the CSV analysis and WAV generation routes.

WHY: Browser front-ends and automation tools (curl, n8n, shortcuts) need
an HTTP way to upload a marker log, see how it was understood, and
download the marker WAV. FastAPI provides automatic OpenAPI
documentation and multipart form handling.

HOW: Three endpoints, grouped by tags:
  POST /analyze-csv   — headers, preview rows, detected time column and
                        frame rate for an uploaded CSV
  POST /generate-wav  — streams the encoded marker WAV as an attachment
  GET  /health        — liveness check
All work is synchronous and in memory; nothing is written to disk.

RULES:
- All endpoints have OpenAPI descriptions on every parameter and response
- Error responses use a consistent ErrorResponse schema; unexpected
  exceptions are logged and returned as 500
- File validation checks extension against SUPPORTED_CSV_FORMATS and
  size against MAX_UPLOAD_BYTES
- Missing form fields are a 400 (not FastAPI's 422) so clients get one
  error message for every bad request
- The WAV body is streamed; every size is checked before the first byte
- Python 3.9+ compatible (no match/case, no PEP 604 unions)
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Annotated, List, Optional

from fastapi import FastAPI, File, Form, HTTPException, Request, UploadFile
from fastapi.responses import JSONResponse, StreamingResponse

from cuesynch import __version__
from cuesynch.config import API_HOST, API_PORT, LOG_LEVEL, MAX_UPLOAD_BYTES, SUPPORTED_CSV_FORMATS
from cuesynch.errors import CueSynchError, EncodingOverflowError
from cuesynch.pipeline import analyze_csv, collect_markers, suggest_output_filename
from cuesynch.server.models import AnalyzeResponse, ErrorResponse, HealthResponse
from cuesynch.wav.encoder import BWFMarkerEncoder

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# App setup
# ---------------------------------------------------------------------------

encoder = BWFMarkerEncoder()

app = FastAPI(
    title="CueSynch Marker API",
    description=(
        "REST API for converting CSV timecode logs into Broadcast Wave "
        "marker files. Analyze a CSV to pick the time and label columns, "
        "then download a silent WAV whose cue points import as DAW markers."
    ),
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
)


@app.exception_handler(Exception)
async def _unhandled_exception(request: Request, exc: Exception) -> JSONResponse:
    """Log unexpected failures and answer with the ErrorResponse schema."""
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"detail": "Internal server error"})


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _validate_file_extension(filename: str) -> None:
    """Raise HTTPException if the file extension is not supported."""
    ext = Path(filename).suffix.lower()
    if ext not in SUPPORTED_CSV_FORMATS:
        sorted_formats = sorted(SUPPORTED_CSV_FORMATS)
        raise HTTPException(
            status_code=400,
            detail="Unsupported file type '{}'. Supported formats: {}".format(
                ext, ", ".join(sorted_formats)
            ),
        )


async def _read_csv_upload(file: UploadFile) -> str:
    """Validate an uploaded CSV and return its text.

    RULES:
    - Filename is reduced to its last path component before validation
    - More than MAX_UPLOAD_BYTES → 413
    - Must decode as UTF-8 (a leading BOM is dropped) → otherwise 400
    """
    filename = Path(file.filename or "upload.csv").name
    _validate_file_extension(filename)

    content = await file.read(MAX_UPLOAD_BYTES + 1)
    if len(content) > MAX_UPLOAD_BYTES:
        raise HTTPException(
            status_code=413,
            detail="File too large (limit {} bytes)".format(MAX_UPLOAD_BYTES),
        )
    try:
        return content.decode("utf-8-sig")
    except UnicodeDecodeError:
        raise HTTPException(status_code=400, detail="CSV file must be UTF-8 encoded")


def _parse_selected_fields(raw: str) -> List[str]:
    """Decode the selected_fields form value (a JSON list of column names)."""
    try:
        value = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise HTTPException(
            status_code=400,
            detail="selected_fields must be a JSON list of column names: {}".format(exc.msg),
        )
    if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
        raise HTTPException(
            status_code=400,
            detail="selected_fields must be a JSON list of column names",
        )
    return value


# ---------------------------------------------------------------------------
# Endpoints: Conversion
# ---------------------------------------------------------------------------


@app.post(
    "/analyze-csv",
    response_model=AnalyzeResponse,
    tags=["conversion"],
    summary="Analyze a CSV marker log",
    description=(
        "Upload a CSV file to get its column headers, a preview of the first "
        "rows, the detected time column, and the frame rate used for "
        "HH:MM:SS:FF timecodes."
    ),
    responses={
        400: {"model": ErrorResponse, "description": "Empty CSV, invalid file type or frame rate"},
        413: {"model": ErrorResponse, "description": "Upload exceeds the size limit"},
    },
)
async def analyze_csv_route(
    file: Annotated[
        Optional[UploadFile],
        File(description="CSV marker log (.csv or .txt)."),
    ] = None,
    frame_rate: Annotated[
        str,
        Form(description="Frame rate for HH:MM:SS:FF values, or 'auto' to detect it."),
    ] = "auto",
) -> AnalyzeResponse:
    if file is None:
        raise HTTPException(status_code=400, detail="No file uploaded")
    csv_text = await _read_csv_upload(file)

    try:
        analysis = analyze_csv(csv_text, frame_rate)
    except (CueSynchError, ValueError) as exc:
        raise HTTPException(status_code=400, detail=str(exc))

    return AnalyzeResponse(
        headers=analysis.headers,
        rows=analysis.preview_rows,
        row_count=analysis.row_count,
        frame_rate=analysis.frame_rate,
        detected_time_column=analysis.time_column,
    )


@app.post(
    "/generate-wav",
    tags=["conversion"],
    summary="Generate a marker WAV file",
    description=(
        "Upload a CSV file with the chosen time column and label columns. "
        "Returns a silent 44.1 kHz stereo Broadcast Wave file with one cue "
        "point and label per valid row, as an attachment."
    ),
    response_class=StreamingResponse,
    responses={
        200: {"content": {"audio/wav": {}}, "description": "The marker WAV file"},
        400: {"model": ErrorResponse, "description": "Missing parameters or no valid markers"},
        413: {"model": ErrorResponse, "description": "Upload exceeds the size limit"},
        422: {"model": ErrorResponse, "description": "Markers do not fit in a WAV file"},
    },
)
async def generate_wav_route(
    file: Annotated[
        Optional[UploadFile],
        File(description="CSV marker log (.csv or .txt)."),
    ] = None,
    frame_rate: Annotated[
        str,
        Form(description="Frame rate for HH:MM:SS:FF values, or 'auto' to detect it."),
    ] = "auto",
    time_column: Annotated[
        Optional[str],
        Form(description="Header of the column holding the time values."),
    ] = None,
    selected_fields: Annotated[
        Optional[str],
        Form(
            description=(
                "JSON list of column headers joined into each marker name "
                "(e.g. '[\"Name\", \"Description\"]'). An empty list names "
                "every marker 'Marker'."
            )
        ),
    ] = None,
) -> StreamingResponse:
    if file is None or not time_column or selected_fields is None:
        raise HTTPException(status_code=400, detail="Missing required parameters")

    csv_text = await _read_csv_upload(file)
    label_columns = _parse_selected_fields(selected_fields)

    try:
        markers, _, _ = collect_markers(csv_text, frame_rate, time_column, label_columns)
        size = encoder.file_size(markers)
        body = encoder.iter_encode(markers)
    except EncodingOverflowError as exc:
        raise HTTPException(status_code=422, detail=str(exc))
    except (CueSynchError, ValueError) as exc:
        raise HTTPException(status_code=400, detail=str(exc))

    filename = suggest_output_filename(file.filename)
    logger.info("Generated %s with %d markers (%d bytes)", filename, len(markers), size)

    return StreamingResponse(
        body,
        media_type=encoder.media_type,
        headers={
            "Content-Disposition": 'attachment; filename="{}"'.format(filename),
            "Content-Length": str(size),
        },
    )


# ---------------------------------------------------------------------------
# Endpoints: Health
# ---------------------------------------------------------------------------


@app.get(
    "/health",
    response_model=HealthResponse,
    tags=["health"],
    summary="Health check",
    description="Liveness and readiness check for load balancers and orchestrators.",
)
async def health_check() -> HealthResponse:
    return HealthResponse(status="ok", version=__version__)


def run_api():
    """Entry point for the cuesynch-api console script."""
    import uvicorn

    logging.basicConfig(
        level=LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    uvicorn.run(app, host=API_HOST, port=API_PORT)
