"""Exception types shared by the parser, encoder, and adapters.

WHY: Callers need typed exceptions to tell file-level failures (empty
CSV, no usable markers, oversized output) apart from programming errors,
and to map each kind onto a CLI exit code or an HTTP status.

HOW: Every exception derives from CueSynchError. Input and encoding
problems also derive from ValueError so generic ``except ValueError``
handlers (like the ones around config loading) keep working.

RULES:
- InvalidTimeFormatError never escapes the timecode parser; rows with a
  bad time cell are skipped, not reported
- AutomationError never escapes the automation hook; automation is
  best-effort and cannot fail a conversion
- Messages are human-readable and safe to show to end users
"""

from __future__ import annotations


class CueSynchError(Exception):
    """Base class for all CueSynch errors."""


class EmptyInputError(CueSynchError, ValueError):
    """Raised when the CSV text contains no lines at all."""


class InvalidTimeFormatError(CueSynchError, ValueError):
    """Raised internally when a time cell matches no supported grammar.

    WHY: The parser needs a single failure path for every malformed
    component (non-numeric minutes, fractional frames, too many colons).

    HOW: Raised by the component parsers, caught by parse_time(), which
    turns it into ``None`` so the row can be skipped.
    """

    def __init__(self, text: str, reason: str) -> None:
        self.text = text
        self.reason = reason
        super().__init__("Invalid time value {!r}: {}".format(text, reason))


class MissingParameterError(CueSynchError, ValueError):
    """Raised when the time column or label columns were not specified."""


class NoMarkersError(CueSynchError, ValueError):
    """Raised when a CSV yields no valid markers after extraction."""


class EncodingOverflowError(CueSynchError, ValueError):
    """Raised when a size or position does not fit a 32-bit RIFF field.

    RULES:
    - field names the RIFF field that would overflow
    - value is the offending value, limit the largest allowed value
    """

    def __init__(self, field: str, value: int, limit: int) -> None:
        self.field = field
        self.value = value
        self.limit = limit
        super().__init__(
            "{} ({:,}) exceeds the 32-bit limit of {:,}. "
            "Markers are too far into the timeline to encode.".format(field, value, limit)
        )


class WavFormatError(CueSynchError, ValueError):
    """Raised when a buffer is not a readable RIFF/WAVE file."""


class AutomationError(CueSynchError, RuntimeError):
    """Raised when the post-conversion automation command fails."""
