"""Line-based CSV reader with quote-aware field splitting.

WHY: Marker logs come from review tools, spreadsheets, and hand edits.
They are simple comma-separated text, but label cells often contain
commas ("Verse, take 2") and are wrapped in double quotes. The reader has
to keep those cells together while staying predictable for the marker
extractor that consumes its output.

HOW: The text is trimmed and split on newlines. The first line is the
header row. Each line is split into fields by walking it character by
character: a double quote flips an "inside quotes" flag, and a comma
only separates fields outside quotes. Fields are trimmed and keyed
positionally against the headers.

RULES:
- Empty input (after trimming) raises EmptyInputError
- Quote characters toggle quoting and are not copied into the field
- There is no "" escape: a doubled quote toggles twice and disappears
- Each field is stripped of surrounding whitespace (this also removes
  the \\r of CRLF line endings)
- Blank data lines are skipped
- Missing trailing cells become ""; extra cells beyond the header count
  are ignored; duplicate header names keep the last value
"""

from __future__ import annotations

import logging
from typing import Dict, List, Sequence

from cuesynch.config import TIME_COLUMN_KEYWORDS
from cuesynch.core.ir import CSVTable
from cuesynch.errors import EmptyInputError

logger = logging.getLogger(__name__)


def parse_csv_line(line: str) -> List[str]:
    """Split one CSV line into trimmed fields, honoring double quotes.

    Args:
        line: A single line of CSV text without its newline.

    Returns:
        The list of field values. An empty line yields ``[""]``.
    """
    values: List[str] = []
    current: List[str] = []
    in_quotes = False

    for char in line:
        if char == '"':
            in_quotes = not in_quotes
        elif char == "," and not in_quotes:
            values.append("".join(current).strip())
            current = []
        else:
            current.append(char)

    values.append("".join(current).strip())
    return values


def split_lines(csv_text: str) -> List[str]:
    """Trim the whole text and split it on newlines."""
    return csv_text.strip().split("\n")


def parse_csv(csv_text: str) -> CSVTable:
    """Parse CSV text into a header row and keyed data rows.

    WHY: The marker extractor works on rows keyed by column name so the
    user can pick the time column and label columns by header.

    HOW: First line → headers. Every following non-blank line → a dict
    mapping each header to the cell at the same position.

    RULES:
    - Raises EmptyInputError when the trimmed text is empty
    - Row order matches file order (the extractor relies on this for
      stable ordering of equal timecodes)

    Args:
        csv_text: The full CSV file content.

    Returns:
        CSVTable with headers and rows.
    """
    if not csv_text.strip():
        raise EmptyInputError("CSV file is empty")

    lines = split_lines(csv_text)
    headers = parse_csv_line(lines[0])

    rows: List[Dict[str, str]] = []
    for line in lines[1:]:
        line = line.strip()
        if not line:
            continue

        values = parse_csv_line(line)
        row: Dict[str, str] = {}
        for index, header in enumerate(headers):
            row[header] = values[index] if index < len(values) else ""
        rows.append(row)

    logger.debug("Parsed CSV: %d columns, %d rows", len(headers), len(rows))
    return CSVTable(headers=headers, rows=rows)


def detect_time_column(headers: Sequence[str]) -> str:
    """Pick the column most likely to hold timecodes.

    WHY: Most logs label the time column "Time", "Timecode", "TC" or
    similar. Guessing it saves the user a step; they can still override.

    HOW: Return the first header that contains any of the
    TIME_COLUMN_KEYWORDS (case-insensitive substring match).

    RULES:
    - Falls back to the first header when nothing matches
    - Returns "" for an empty header list
    """
    for header in headers:
        header_lower = header.lower()
        if any(keyword in header_lower for keyword in TIME_COLUMN_KEYWORDS):
            return header
    return headers[0] if headers else ""
