"""Broadcast Wave encoder that embeds markers as cue points.

WHY: Logic Pro (and other DAWs) can import markers from the cue points
of an audio file, but not from a spreadsheet. The encoder produces a
silent BWF file long enough to hold every marker, with one cue point and
one label per marker.

HOW: The encoder builds each chunk payload with the helpers in
chunks.py, computes every size up front, and yields the file as a
sequence of byte pieces: RIFF header, fmt, bext, data (streamed as
zero-filled blocks), cue, and LIST/adtl. encode() joins the pieces,
write() streams them to disk, and the HTTP API streams them to clients.

RULES:
- Fixed format: 44100 Hz, 2 channels, 16-bit PCM (format tag 1)
- Chunk order: fmt → bext → data → cue → LIST (consumers scan in order)
- Duration = ceil(last offset) + 1 s, or 10 s with no markers
- Cue ID i+1 belongs to the i-th marker in offset order, in both the
  cue and labl records; IDs are never reassigned after sorting
- Cue position = floor(offset * sample_rate)
- RIFF size = 4 + sum(8 + payload) over the five chunks
- Output is byte-identical for identical markers, except the bext
  originator reference, date and time (pin them with ``clock``)
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from datetime import datetime
from decimal import ROUND_FLOOR, Decimal
from pathlib import Path
from typing import Callable, Iterator, List, Optional, Sequence

from cuesynch.config import (
    BITS_PER_SAMPLE,
    BWF_DESCRIPTION,
    BWF_ORIGINATOR,
    BWF_ORIGINATOR_REFERENCE_PREFIX,
    BWF_TIME_REFERENCE,
    BWF_VERSION,
    EMPTY_DURATION_S,
    NUM_CHANNELS,
    PCM_FORMAT_TAG,
    SAMPLE_RATE,
    TAIL_PADDING_S,
)
from cuesynch.core.ir import Marker
from cuesynch.wav.chunks import (
    CHUNK_HEADER_SIZE,
    adtl_list_chunk,
    bext_chunk,
    check_uint32,
    chunk_header,
    cue_chunk,
    fmt_chunk,
)

logger = logging.getLogger(__name__)

# Silence is streamed in blocks of this many bytes (a multiple of 4-byte frames)
DEFAULT_BLOCK_SIZE = 1024 * 1024


@dataclass
class EncoderOutput:
    """One encoded file, ready to be saved or sent.

    Attributes:
        suffix: File extension including the dot, e.g. ``".wav"``.
        content: The complete file bytes.
        media_type: MIME type for the content.
    """

    suffix: str
    content: bytes
    media_type: str


@dataclass
class _Layout:
    """Pre-built chunk payloads and sizes for one encode call."""

    fmt: bytes
    bext: bytes
    data_size: int
    cue: bytes
    adtl: bytes
    riff_size: int
    duration_s: int


class BWFMarkerEncoder:
    """Encoder for silent Broadcast Wave files carrying marker cue points.

    WHY: The encoder holds only immutable settings, so one instance can
    serve concurrent requests; every call builds fresh buffers.

    HOW: Construct once (optionally overriding the bext strings, the
    TimeReference policy, or the clock), then call encode(), iter_encode(),
    write() or output() with a marker sequence.

    RULES:
    - time_reference defaults to 0; it is a policy knob, never derived
      from the markers
    - clock returns the local datetime used for the bext origination
      fields; override it for reproducible output
    - Markers are stable-sorted by offset before IDs are assigned, which
      leaves already-sorted input untouched
    """

    name = "BWF Marker WAV"
    suffix = ".wav"
    media_type = "audio/wav"

    sample_rate = SAMPLE_RATE
    num_channels = NUM_CHANNELS
    bits_per_sample = BITS_PER_SAMPLE

    def __init__(
        self,
        description: str = BWF_DESCRIPTION,
        originator: str = BWF_ORIGINATOR,
        time_reference: int = BWF_TIME_REFERENCE,
        clock: Optional[Callable[[], datetime]] = None,
        block_size: int = DEFAULT_BLOCK_SIZE,
    ) -> None:
        self.description = description
        self.originator = originator
        self.time_reference = time_reference
        self._clock = clock or datetime.now
        self.block_align = self.num_channels * (self.bits_per_sample // 8)
        # Keep streamed blocks frame-aligned
        self.block_size = max(self.block_align, block_size - block_size % self.block_align)

    # ------------------------------------------------------------------
    # Sizing
    # ------------------------------------------------------------------

    @staticmethod
    def sort_markers(markers: Sequence[Marker]) -> List[Marker]:
        """Return markers in ascending offset order (stable)."""
        return sorted(markers, key=lambda m: m.offset_s)

    @staticmethod
    def duration_seconds(markers: Sequence[Marker]) -> int:
        """Length of the silent audio in whole seconds."""
        if not markers:
            return EMPTY_DURATION_S
        last_offset = max(marker.offset_s for marker in markers)
        return int(math.ceil(last_offset)) + TAIL_PADDING_S

    def sample_position(self, marker: Marker) -> int:
        """Sample frame index of a marker (floor of offset * sample rate).

        The product is taken on the shortest decimal form of the offset, so
        1.15 s lands on sample 50715 rather than 50714.99999... floored.
        """
        exact = Decimal(repr(marker.offset_s)) * self.sample_rate
        return int(exact.to_integral_value(rounding=ROUND_FLOOR))

    def _bext_payload(self) -> bytes:
        now = self._clock()
        millis = int(now.timestamp() * 1000)
        return bext_chunk(
            description=self.description,
            originator=self.originator,
            originator_reference="{}{}".format(BWF_ORIGINATOR_REFERENCE_PREFIX, millis),
            origination_date=now.strftime("%Y:%m:%d"),
            origination_time=now.strftime("%H:%M:%S"),
            time_reference=self.time_reference,
            version=BWF_VERSION,
        )

    def _layout(self, markers: Sequence[Marker]) -> _Layout:
        ordered = self.sort_markers(markers)
        duration_s = self.duration_seconds(ordered)
        num_samples = duration_s * self.sample_rate
        data_size = check_uint32("'data' chunk size", num_samples * self.block_align)

        fmt = fmt_chunk(self.sample_rate, self.num_channels, self.bits_per_sample, PCM_FORMAT_TAG)
        bext = self._bext_payload()
        cue = cue_chunk([self.sample_position(marker) for marker in ordered])
        adtl = adtl_list_chunk([marker.label for marker in ordered])

        riff_size = 4 + sum(
            CHUNK_HEADER_SIZE + size
            for size in (len(fmt), len(bext), data_size, len(cue), len(adtl))
        )
        check_uint32("RIFF size", riff_size)

        return _Layout(
            fmt=fmt,
            bext=bext,
            data_size=data_size,
            cue=cue,
            adtl=adtl,
            riff_size=riff_size,
            duration_s=duration_s,
        )

    def file_size(self, markers: Sequence[Marker]) -> int:
        """Total size in bytes of the file encode() would produce."""
        return self._layout(markers).riff_size + CHUNK_HEADER_SIZE

    # ------------------------------------------------------------------
    # Encoding
    # ------------------------------------------------------------------

    def _iter_silence(self, size: int) -> Iterator[bytes]:
        block = bytes(self.block_size)
        full_blocks, remainder = divmod(size, self.block_size)
        for _ in range(full_blocks):
            yield block
        if remainder:
            yield bytes(remainder)

    def iter_encode(self, markers: Sequence[Marker]) -> Iterator[bytes]:
        """Yield the encoded file as consecutive byte pieces.

        WHY: An hour of 44.1 kHz stereo silence is ~635 MB. Streaming the
        data chunk in blocks keeps memory flat for long timelines.

        HOW: All sizes are computed (and overflow-checked) before the
        first piece is yielded, so a failing encode never produces a
        partial stream.

        Raises:
            EncodingOverflowError: If any size or position overflows
                its 32-bit field.
        """
        layout = self._layout(markers)
        logger.info(
            "Encoding %d markers: %d s of silence, %d bytes",
            len(markers), layout.duration_s, layout.riff_size + CHUNK_HEADER_SIZE,
        )
        return self._iter_layout(layout)

    def _iter_layout(self, layout: _Layout) -> Iterator[bytes]:
        yield chunk_header(b"RIFF", layout.riff_size) + b"WAVE"
        yield chunk_header(b"fmt ", len(layout.fmt)) + layout.fmt
        yield chunk_header(b"bext", len(layout.bext)) + layout.bext
        yield chunk_header(b"data", layout.data_size)
        yield from self._iter_silence(layout.data_size)
        yield chunk_header(b"cue ", len(layout.cue)) + layout.cue
        yield chunk_header(b"LIST", len(layout.adtl)) + layout.adtl

    def encode(self, markers: Sequence[Marker]) -> bytes:
        """Encode markers into a complete WAV file in memory."""
        return b"".join(self.iter_encode(markers))

    def write(self, markers: Sequence[Marker], path: str | Path) -> Path:
        """Stream the encoded file to ``path`` and return it.

        The file is only created once the layout has been validated, and
        is removed again if writing fails partway (disk full).
        """
        pieces = self.iter_encode(markers)
        out_path = Path(path)
        handle = out_path.open("wb")
        try:
            with handle:
                for piece in pieces:
                    handle.write(piece)
        except BaseException:
            logger.warning("Removing incomplete %s", out_path)
            out_path.unlink(missing_ok=True)
            raise
        return out_path

    def output(self, markers: Sequence[Marker]) -> EncoderOutput:
        """Encode markers and wrap the bytes with suffix and media type."""
        return EncoderOutput(
            suffix=self.suffix,
            content=self.encode(markers),
            media_type=self.media_type,
        )
