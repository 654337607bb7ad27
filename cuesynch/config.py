"""Configuration constants, audio format parameters, and .env loading.

WHY: Centralizes all configurable values so they are easy to find,
update, and override. Keyword lists, supported file extensions, and the
fixed WAV parameters are plain data structures — not buried in logic — so
both the encoder and the adapters read the same values.

HOW: python-dotenv loads the .env file on import. Constants are defined
as module-level tuples, sets, and strings. Values that only affect the
adapters (upload limit, API host/port, automation command, log level)
can be overridden via environment variables.

RULES:
- Audio parameters (44100 Hz, 2 channels, 16 bit PCM) are NOT
  overridable: the encoded bytes are a compatibility contract
- BWF_TIME_REFERENCE is always 0 (the file starts at timeline 0)
- TIME_COLUMN_KEYWORDS are matched case-insensitively as substrings
- FRAME_RATE_BUCKETS is ordered: the first bound above the max frame wins
"""

from __future__ import annotations

import os
import shlex

from dotenv import load_dotenv

# Load .env from the project root (where the script is run from)
load_dotenv()

# ---------------------------------------------------------------------------
# Audio format written by the encoder
# ---------------------------------------------------------------------------

SAMPLE_RATE = 44100
NUM_CHANNELS = 2
BITS_PER_SAMPLE = 16
PCM_FORMAT_TAG = 1

EMPTY_DURATION_S = 10
"""Length of the silent data chunk when there are no markers."""

TAIL_PADDING_S = 1
"""Silence appended after the (rounded-up) last marker."""

# ---------------------------------------------------------------------------
# Broadcast Wave (bext) metadata
# ---------------------------------------------------------------------------

BWF_DESCRIPTION = "CueSynch - Generated marker file"
BWF_ORIGINATOR = "CueSynch"
BWF_ORIGINATOR_REFERENCE_PREFIX = "CSV2LOGIC"
BWF_VERSION = 2
BWF_TIME_REFERENCE = 0
"""Sample position of the file start on the DAW timeline (always 0)."""

# ---------------------------------------------------------------------------
# CSV / timecode defaults
# ---------------------------------------------------------------------------

DEFAULT_FRAME_RATE = float(os.getenv("CUESYNCH_DEFAULT_FRAME_RATE", "30"))

FRAME_RATE_BUCKETS: tuple[tuple[int, float], ...] = (
    (24, 24.0),  # film
    (25, 25.0),  # PAL
    (30, 30.0),  # NTSC / common
    (50, 50.0),  # high frame rate
)
"""(exclusive upper bound on max frame number, frame rate) pairs."""

FALLBACK_HIGH_FRAME_RATE = 60.0

TIME_COLUMN_KEYWORDS: tuple[str, ...] = ("time", "timecode", "tc", "smpte", "timestamp")

HEADER_HINT_KEYWORDS: tuple[str, ...] = ("time", "name")
"""Words that mark the first CSV line as a header during frame-rate detection."""

DEFAULT_MARKER_LABEL = "Marker"
LABEL_SEPARATOR = " - "

PREVIEW_ROW_COUNT = 5

SUPPORTED_CSV_FORMATS: set[str] = {".csv", ".txt"}
"""Input file extensions accepted by the CLI and the HTTP API (lowercase, with dot)."""

OUTPUT_FILENAME_SUFFIX = "_marker_list.wav"
DEFAULT_OUTPUT_FILENAME = "marker_list.wav"

# ---------------------------------------------------------------------------
# Adapter configuration
# ---------------------------------------------------------------------------

MAX_UPLOAD_BYTES = int(os.getenv("CUESYNCH_MAX_UPLOAD_BYTES", str(5 * 1024 * 1024)))
API_HOST = os.getenv("CUESYNCH_API_HOST", "0.0.0.0")
API_PORT = int(os.getenv("CUESYNCH_API_PORT", "8000"))
LOG_LEVEL = os.getenv("CUESYNCH_LOG_LEVEL", "INFO").upper()


def load_automation_command() -> list[str]:
    """Load the optional post-conversion automation command.

    WHY: After a marker file is written, some setups drive the DAW import
    with an external helper (for example an accessibility-scripting tool).
    The converter only knows the command line, never the helper itself.

    HOW: Reads CUESYNCH_AUTOMATION_COMMAND and splits it with shell
    quoting rules, so paths containing spaces can be quoted.

    RULES:
    - Returns an empty list when the variable is missing or blank
    - An empty list means automation is disabled
    """
    raw = os.getenv("CUESYNCH_AUTOMATION_COMMAND", "").strip()
    return shlex.split(raw) if raw else []
