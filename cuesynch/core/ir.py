"""Intermediate representation dataclasses for parsed CSV logs and markers.

WHY: The CSV reader, the marker extractor, and the WAV encoder each work
on a different view of the same data. A small set of typed containers
keeps those stages decoupled: the encoder only ever sees Marker objects
and never has to know that they came from a spreadsheet.

HOW: Three dataclasses:
  Marker      — one cue point (offset in seconds + label), immutable
  CSVTable    — header row plus keyed data rows from the CSV reader
  CsvAnalysis — what the "analyze" step reports before conversion

RULES:
- Marker is frozen; offset_s must be >= 0 and label must not contain NUL
  (NUL is the string terminator inside labl chunks)
- All offsets are float seconds from timeline zero
- CSV rows map header name -> trimmed cell text; missing cells are ""
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Dict, List


@dataclass(frozen=True)
class Marker:
    """A single named position on the timeline.

    WHY: The encoder turns each Marker into one cue point and one labl
    record. Keeping it immutable means a sorted marker list can be handed
    to the encoder without any risk of the IDs drifting from the labels.

    RULES:
    - offset_s: finite float seconds, >= 0
    - label: UTF-8 text without embedded NUL characters
    """

    offset_s: float
    label: str

    def __post_init__(self) -> None:
        if not math.isfinite(self.offset_s) or self.offset_s < 0:
            raise ValueError(
                "Marker offset must be a finite number >= 0, got {!r}".format(self.offset_s)
            )
        if "\x00" in self.label:
            raise ValueError("Marker label must not contain NUL characters")


@dataclass
class CSVTable:
    """Header row and data rows produced by the CSV reader.

    RULES:
    - headers: fields of the first line, in file order
    - rows: one dict per non-blank data line, keyed positionally by header
    """

    headers: List[str]
    rows: List[Dict[str, str]] = field(default_factory=list)


@dataclass
class CsvAnalysis:
    """Summary of a CSV log used to pick conversion settings.

    WHY: Before converting, a user (or UI) needs to see the columns, a
    few example rows, and the detected time column and frame rate so they
    can choose which columns become marker names.

    RULES:
    - preview_rows: at most PREVIEW_ROW_COUNT rows from the top of the file
    - row_count: total number of non-blank data rows
    - frame_rate: detected when the caller asked for "auto", else as given
    - time_column: auto-detected from header keywords (first column fallback)
    """

    headers: List[str]
    preview_rows: List[Dict[str, str]]
    row_count: int
    frame_rate: float
    time_column: str
