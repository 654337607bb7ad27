"""Marker extraction from parsed CSV rows.

WHY: The CSV reader only knows rows and columns. The encoder needs an
ordered list of (offset, label) markers. This module applies the user's
column choices: which column holds the time, and which columns are
joined into the marker name.

HOW: For each row, the time cell is parsed with the timecode parser.
Rows without a usable time are skipped. The selected label cells are
filtered for blanks and joined with " - ". The resulting markers are
stable-sorted by offset so equal timecodes keep their file order.

RULES:
- time_column must be given; label_columns must be given (may be empty)
- Rows with a missing/empty time cell, an unparsable time, or a negative
  offset are skipped silently (DEBUG log only)
- Label = non-blank selected cells joined with " - ", else "Marker"
- Embedded NUL characters are removed from labels
- Sorting is stable: ties keep original row order
- session_start_timecode() is for the automation hook only; the encoder
  never uses it
"""

from __future__ import annotations

import logging
import math
from typing import Dict, List, Optional, Sequence

from cuesynch.config import DEFAULT_MARKER_LABEL, LABEL_SEPARATOR
from cuesynch.core.ir import Marker
from cuesynch.core.timecode import parse_time
from cuesynch.errors import MissingParameterError

logger = logging.getLogger(__name__)


def build_label(row: Dict[str, str], label_columns: Sequence[str]) -> str:
    """Join the selected cells of a row into a marker label.

    Columns missing from the row are treated like empty cells.
    """
    parts: List[str] = []
    for column in label_columns:
        value = row.get(column, "").replace("\x00", "")
        if value.strip():
            parts.append(value)
    return LABEL_SEPARATOR.join(parts) if parts else DEFAULT_MARKER_LABEL


def extract_markers(
    rows: Sequence[Dict[str, str]],
    frame_rate: float,
    time_column: Optional[str],
    label_columns: Optional[Sequence[str]],
) -> List[Marker]:
    """Convert CSV rows into a time-ordered list of markers.

    Args:
        rows: Data rows from parse_csv(), in file order.
        frame_rate: Frames per second for HH:MM:SS:FF timecodes.
        time_column: Header of the column holding the time values.
        label_columns: Headers whose cells form the marker name.

    Returns:
        Markers sorted ascending by offset (stable for equal offsets).

    Raises:
        MissingParameterError: If time_column is empty or label_columns
            is None.
    """
    if not time_column:
        raise MissingParameterError("A time column must be specified")
    if label_columns is None:
        raise MissingParameterError("Label columns must be specified")

    markers: List[Marker] = []
    skipped = 0

    for index, row in enumerate(rows):
        time_text = row.get(time_column)
        if not time_text:
            skipped += 1
            logger.debug("Row %d: empty time cell, skipped", index + 1)
            continue

        offset = parse_time(time_text, frame_rate)
        if offset is None or offset < 0:
            skipped += 1
            logger.debug("Row %d: unusable time %r, skipped", index + 1, time_text)
            continue

        markers.append(Marker(offset_s=offset, label=build_label(row, label_columns)))

    # sorted() is stable: equal offsets keep row order
    markers = sorted(markers, key=lambda m: m.offset_s)

    logger.info(
        "Extracted %d markers from %d rows (%d skipped)",
        len(markers), len(rows), skipped,
    )
    return markers


def session_start_timecode(markers: Sequence[Marker]) -> str:
    """Return the hour containing the earliest marker as "HH 00 00 00".

    WHY: Projects that use an SMPTE offset (e.g. 01:00:00:00) need the
    DAW's session start moved to that hour before the marker file is
    imported. The automation helper types this value into the DAW, which
    expects space-separated timecode fields.

    RULES:
    - Earliest offset is floored to a whole hour
    - "00 00 00 00" when there are no markers
    """
    if not markers:
        return "00 00 00 00"
    earliest = min(marker.offset_s for marker in markers)
    hours = int(math.floor(earliest / 3600))
    return "{:02d} 00 00 00".format(hours)
