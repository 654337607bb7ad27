"""Timecode parsing and frame-rate detection.

WHY: Marker logs express time in whatever format the source tool
produced: plain seconds ("10.5"), minutes and seconds ("1:30"), clock
time ("00:01:30") or SMPTE timecode with frames ("00:01:45:15"). The
encoder needs one number — seconds from timeline zero — and SMPTE frames
only convert to seconds once the frame rate is known.

HOW: parse_time() counts the colon-separated parts and applies the
matching grammar. Component parsers raise InvalidTimeFormatError, which
parse_time() turns into None so callers can skip the row.
detect_frame_rate() scans the first column for four-part timecodes and
infers the frame rate from the largest frame number it sees.

RULES:
- No colon: decimal seconds (optional sign, optional fraction)
- 2 parts: MM:SS, minutes integer, seconds may be fractional
- 3 parts: HH:MM:SS, seconds may be fractional
- 4 parts: HH:MM:SS:FF, all integers, frames / frame_rate added
- Any other part count is invalid
- Only the leading component may carry a sign ("1:-30" is invalid)
- nan, inf, exponent notation and values too large for a finite
  float are invalid
- Frame-rate detection is a best-effort heuristic, defaulting to 30
"""

from __future__ import annotations

import logging
import math
import re
from typing import List, Optional

from cuesynch.config import (
    DEFAULT_FRAME_RATE,
    FALLBACK_HIGH_FRAME_RATE,
    FRAME_RATE_BUCKETS,
    HEADER_HINT_KEYWORDS,
)
from cuesynch.core.csv_reader import parse_csv_line, split_lines
from cuesynch.errors import InvalidTimeFormatError

logger = logging.getLogger(__name__)

_INTEGER_RE = re.compile(r"^[+-]?\d+$")
_UNSIGNED_INTEGER_RE = re.compile(r"^\d+$")
_DECIMAL_RE = re.compile(r"^[+-]?(?:\d+(?:\.\d*)?|\.\d+)$")
_UNSIGNED_DECIMAL_RE = re.compile(r"^(?:\d+(?:\.\d*)?|\.\d+)$")


def _parse_integer(text: str, part: str, name: str, signed: bool = False) -> int:
    """Parse one integer timecode component or raise InvalidTimeFormatError."""
    part = part.strip()
    pattern = _INTEGER_RE if signed else _UNSIGNED_INTEGER_RE
    if not pattern.match(part):
        raise InvalidTimeFormatError(text, "{} {!r} is not an integer".format(name, part))
    try:
        return int(part)
    except ValueError:
        # more digits than int() converts
        raise InvalidTimeFormatError(text, "{} has too many digits".format(name))


def _parse_decimal(text: str, part: str, name: str, signed: bool = False) -> float:
    """Parse one decimal timecode component or raise InvalidTimeFormatError."""
    part = part.strip()
    pattern = _DECIMAL_RE if signed else _UNSIGNED_DECIMAL_RE
    if not pattern.match(part):
        raise InvalidTimeFormatError(text, "{} {!r} is not a number".format(name, part))
    value = float(part)
    if not math.isfinite(value):
        raise InvalidTimeFormatError(text, "{} is out of range".format(name))
    return value


def parse_time_strict(text: str, frame_rate: float = DEFAULT_FRAME_RATE) -> float:
    """Parse a time value to seconds, raising on malformed input.

    Args:
        text: Time cell text (surrounding whitespace is ignored).
        frame_rate: Frames per second for HH:MM:SS:FF timecodes.

    Returns:
        Offset in seconds.

    Raises:
        InvalidTimeFormatError: If the text matches no supported format.
        ValueError: If a frame-based timecode is parsed with a
            non-positive frame rate.
    """
    text = text.strip()
    parts = text.split(":")

    if len(parts) == 1:
        return _parse_decimal(text, text, "seconds", signed=True)

    if len(parts) == 2:
        whole = _parse_integer(text, parts[0], "minutes", signed=True) * 60
        seconds = _parse_decimal(text, parts[1], "seconds")
    elif len(parts) == 3:
        hours = _parse_integer(text, parts[0], "hours", signed=True)
        minutes = _parse_integer(text, parts[1], "minutes")
        whole = hours * 3600 + minutes * 60
        seconds = _parse_decimal(text, parts[2], "seconds")
    elif len(parts) == 4:
        hours = _parse_integer(text, parts[0], "hours", signed=True)
        minutes = _parse_integer(text, parts[1], "minutes")
        whole = hours * 3600 + minutes * 60 + _parse_integer(text, parts[2], "seconds")
        frames = _parse_integer(text, parts[3], "frames")
        if frame_rate <= 0:
            raise ValueError("Frame rate must be positive, got {!r}".format(frame_rate))
        try:
            seconds = frames / frame_rate
        except OverflowError:
            raise InvalidTimeFormatError(text, "frames is out of range")
    else:
        raise InvalidTimeFormatError(text, "expected 1 to 4 colon-separated parts")

    try:
        total = whole + seconds
    except OverflowError:
        raise InvalidTimeFormatError(text, "time is out of range")
    if not math.isfinite(total):
        raise InvalidTimeFormatError(text, "time is out of range")
    return total


def parse_time(text: str, frame_rate: float = DEFAULT_FRAME_RATE) -> Optional[float]:
    """Parse a time value to seconds, returning None when it is malformed.

    WHY: Logs often contain sparse or malformed rows (notes without a
    time, "TBD", stray headers). One bad cell must not abort the whole
    file, so the lenient variant signals failure with None.

    Args:
        text: Time cell text.
        frame_rate: Frames per second for HH:MM:SS:FF timecodes.

    Returns:
        Offset in seconds, or None if the text is not a valid time.
    """
    try:
        return parse_time_strict(text, frame_rate)
    except InvalidTimeFormatError as exc:
        logger.debug("%s", exc)
        return None


def _bucket_frame_rate(max_frame: int) -> float:
    for upper_bound, rate in FRAME_RATE_BUCKETS:
        if max_frame < upper_bound:
            return rate
    return FALLBACK_HIGH_FRAME_RATE


def detect_frame_rate(csv_text: str) -> float:
    """Infer the frame rate from the frame numbers in a CSV log.

    WHY: SMPTE timecodes do not say which frame rate they use, but the
    frame field never reaches the rate: a log containing frame 27 cannot
    be 24 or 25 fps. The largest observed frame number is a good hint.

    HOW: Skip the first line if it looks like a header (contains "time"
    or "name"). For every other non-blank line, split the first field on
    ":" and collect the frame number of four-part timecodes. Bucket the
    maximum: <24 → 24, <25 → 25, <30 → 30, <50 → 50, else 60.

    RULES:
    - Only the first column is inspected, whatever the time column is
    - Never raises; returns DEFAULT_FRAME_RATE when no frames are found
    - Best-effort: a log that never reaches high frame numbers can be
      under-detected (a 30 fps log whose frames stop at 20 reads as 24)

    Args:
        csv_text: The full CSV file content.

    Returns:
        The inferred frame rate in frames per second.
    """
    if not csv_text.strip():
        return DEFAULT_FRAME_RATE

    lines = split_lines(csv_text)
    first_line = lines[0].lower()
    start_index = 1 if any(word in first_line for word in HEADER_HINT_KEYWORDS) else 0

    frame_numbers: List[int] = []
    for line in lines[start_index:]:
        line = line.strip()
        if not line:
            continue

        first_field = parse_csv_line(line)[0]
        time_parts = first_field.strip().split(":")
        if len(time_parts) != 4:
            continue

        frame_part = time_parts[3].strip()
        if _INTEGER_RE.match(frame_part):
            frame_numbers.append(int(frame_part))

    if not frame_numbers:
        logger.debug("No frame-based timecodes found, using %s fps", DEFAULT_FRAME_RATE)
        return DEFAULT_FRAME_RATE

    max_frame = max(frame_numbers)
    rate = _bucket_frame_rate(max_frame)
    logger.debug("Detected %s fps from max frame %d", rate, max_frame)
    return rate
