"""Shared conversion pipeline used by the CLI and the HTTP API.

WHY: Both adapters do the same work — analyze a CSV to suggest settings,
then convert it with the user's choices into a marker WAV. Keeping that
orchestration in one module means the adapters only deal with their own
transport (files and exit codes, or multipart uploads and status codes).

HOW: analyze_csv() parses the text, detects the time column and (for
"auto") the frame rate, and returns a CsvAnalysis. collect_markers()
validates the settings and extracts markers; convert_csv() also encodes
them into a ConversionResult.
suggest_output_filename() derives the download/save name.

RULES:
- frame_rate accepts "auto" (or None), a number, or numeric text; it
  must be positive
- A time column that is not a CSV header is a MissingParameterError
- No valid markers after extraction is a NoMarkersError
- The pipeline never writes files; callers persist ConversionResult.output
"""

from __future__ import annotations

import logging
import math
import re
from dataclasses import dataclass
from pathlib import PurePath
from typing import List, Optional, Sequence, Tuple, Union

from cuesynch.config import (
    DEFAULT_OUTPUT_FILENAME,
    OUTPUT_FILENAME_SUFFIX,
    PREVIEW_ROW_COUNT,
)
from cuesynch.core.csv_reader import detect_time_column, parse_csv
from cuesynch.core.ir import CsvAnalysis, Marker
from cuesynch.core.markers import extract_markers, session_start_timecode
from cuesynch.core.timecode import detect_frame_rate
from cuesynch.errors import MissingParameterError, NoMarkersError
from cuesynch.wav.encoder import BWFMarkerEncoder, EncoderOutput

logger = logging.getLogger(__name__)

FrameRateSetting = Union[str, float, int, None]

_INPUT_EXTENSION_RE = re.compile(r"\.(csv|txt)$", re.IGNORECASE)
_UNSAFE_FILENAME_CHARS_RE = re.compile(r"[^A-Za-z0-9_\- ]")


@dataclass
class ConversionResult:
    """Outcome of a successful CSV → WAV conversion.

    RULES:
    - markers: the encoded markers, in cue ID order
    - session_start: "HH 00 00 00" hour of the earliest marker, for the
      automation hook
    - output: the encoded file (suffix, bytes, media type)
    """

    markers: List[Marker]
    frame_rate: float
    time_column: str
    label_columns: List[str]
    session_start: str
    output: EncoderOutput


def resolve_frame_rate(frame_rate: FrameRateSetting, csv_text: str) -> float:
    """Turn a frame-rate setting into a number, detecting it for "auto".

    Raises:
        ValueError: If the setting is not "auto", not numeric, or not
            a positive finite number.
    """
    if frame_rate is None or (isinstance(frame_rate, str) and frame_rate.strip().lower() in ("", "auto")):
        return detect_frame_rate(csv_text)

    try:
        value = float(frame_rate)
    except (TypeError, ValueError):
        raise ValueError("Invalid frame rate {!r}: use 'auto' or a number".format(frame_rate))

    if not math.isfinite(value) or value <= 0:
        raise ValueError("Frame rate must be a positive number, got {!r}".format(frame_rate))
    return value


def analyze_csv(csv_text: str, frame_rate: FrameRateSetting = "auto") -> CsvAnalysis:
    """Summarize a CSV log so the user can choose conversion settings.

    Args:
        csv_text: The full CSV file content.
        frame_rate: "auto" to detect, or an explicit frame rate.

    Returns:
        CsvAnalysis with headers, a preview, and detected defaults.

    Raises:
        EmptyInputError: If the CSV has no lines.
        ValueError: If frame_rate is invalid.
    """
    table = parse_csv(csv_text)
    rate = resolve_frame_rate(frame_rate, csv_text)
    time_column = detect_time_column(table.headers)

    logger.info(
        "Analyzed CSV: %d columns, %d rows, time column %r, %s fps",
        len(table.headers), len(table.rows), time_column, rate,
    )
    return CsvAnalysis(
        headers=table.headers,
        preview_rows=table.rows[:PREVIEW_ROW_COUNT],
        row_count=len(table.rows),
        frame_rate=rate,
        time_column=time_column,
    )


def collect_markers(
    csv_text: str,
    frame_rate: FrameRateSetting,
    time_column: Optional[str],
    label_columns: Optional[Sequence[str]],
) -> Tuple[List[Marker], float, List[str]]:
    """Parse a CSV log and extract its markers without encoding them.

    WHY: This is the one place where a file-level failure is decided:
    row-level problems were already skipped by the extractor, so an
    empty marker list here means the whole file is unusable.

    Returns:
        (markers, resolved frame rate, label columns)

    Raises:
        EmptyInputError: If the CSV has no lines.
        MissingParameterError: If the time column or label columns are
            missing, or the time column is not in the CSV header.
        NoMarkersError: If no row has a valid time value.
    """
    if not time_column:
        raise MissingParameterError("A time column must be specified")
    if label_columns is None:
        raise MissingParameterError("Label columns must be specified")

    table = parse_csv(csv_text)
    if time_column not in table.headers:
        raise MissingParameterError(
            "Time column '{}' not found. Available columns: {}".format(
                time_column, ", ".join(table.headers)
            )
        )

    rate = resolve_frame_rate(frame_rate, csv_text)
    labels = list(label_columns)
    markers = extract_markers(table.rows, rate, time_column, labels)
    if not markers:
        raise NoMarkersError("No valid markers found in CSV")
    return markers, rate, labels


def convert_csv(
    csv_text: str,
    frame_rate: FrameRateSetting,
    time_column: Optional[str],
    label_columns: Optional[Sequence[str]],
    encoder: Optional[BWFMarkerEncoder] = None,
) -> ConversionResult:
    """Convert a CSV log into an encoded marker WAV.

    HOW: collect_markers() → encode with ``encoder`` (a default
    BWFMarkerEncoder if None).

    Raises:
        The errors of collect_markers(), plus EncodingOverflowError if
        the markers do not fit a WAV file.
    """
    markers, rate, labels = collect_markers(csv_text, frame_rate, time_column, label_columns)

    encoder = encoder or BWFMarkerEncoder()
    output = encoder.output(markers)

    return ConversionResult(
        markers=markers,
        frame_rate=rate,
        time_column=time_column,
        label_columns=labels,
        session_start=session_start_timecode(markers),
        output=output,
    )


def suggest_output_filename(csv_name: Optional[str]) -> str:
    """Derive the marker WAV filename from the uploaded CSV name.

    RULES:
    - Directory parts are ignored
    - A trailing .csv/.txt extension is dropped (case-insensitive)
    - Characters other than ASCII letters, digits, "_", "-" and space
      become "_"; the result is trimmed
    - "{name}_marker_list.wav", or "marker_list.wav" when nothing is left
    """
    if not csv_name:
        return DEFAULT_OUTPUT_FILENAME
    base = PurePath(csv_name.replace("\\", "/")).name
    base = _INPUT_EXTENSION_RE.sub("", base)
    sanitized = _UNSAFE_FILENAME_CHARS_RE.sub("_", base).strip()
    if not sanitized:
        return DEFAULT_OUTPUT_FILENAME
    return "{}{}".format(sanitized, OUTPUT_FILENAME_SUFFIX)
