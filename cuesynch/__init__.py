"""CueSynch — CSV timecode logs to BWF marker files.

WHY: Editors and producers keep marker logs as spreadsheets (review notes,
shot lists, show rundowns). DAWs such as Logic Pro can only import markers
from the cue points embedded in an audio file. This package turns a CSV
timecode log into a silent Broadcast Wave file whose cue points carry the
marker positions and names.

HOW: Three-stage pipeline — parse (CSV reader + timecode parser), extract
(ordered Marker list), encode (RIFF/WAVE writer with fmt, bext, data, cue
and LIST/adtl chunks). The CLI and the HTTP API are thin adapters around
the shared pipeline in ``cuesynch.pipeline``.

RULES:
- The Marker list is the stable contract between extraction and encoding
- Encoder output is byte-exact apart from the bext timestamp fields
- Row-level parse failures are skipped, file-level failures raise
"""

__version__ = "0.1.0"
