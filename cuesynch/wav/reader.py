"""Read back the chunks, cue points and labels of a marker WAV file.

WHY: After conversion, users want to confirm what ended up in the file
(the ``inspect`` command), and the test suite needs to decode the cue
and labl records to check positions and labels against the input.

HOW: Walk the RIFF chunk list from offset 12. Each chunk header gives an
id and a payload size; odd-sized payloads are followed by one pad byte.
The ``fmt ``, ``bext``, ``cue `` and ``LIST``/``adtl`` payloads are decoded,
everything else is only listed.

RULES:
- Raises WavFormatError if the buffer is not RIFF/WAVE or a chunk runs
  past the end of the buffer
- Labels are decoded as UTF-8 with the NUL terminator and padding removed
- Only labl sub-chunks of an adtl list are read; other sub-chunks are skipped
- Reading never modifies the file
"""

from __future__ import annotations

import struct
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from cuesynch.core.ir import Marker
from cuesynch.errors import WavFormatError


@dataclass
class CuePoint:
    """One decoded ``cue `` record."""

    cue_id: int
    position: int
    data_chunk_id: str
    chunk_start: int
    block_start: int
    sample_offset: int


@dataclass
class BextInfo:
    """Decoded text and timing fields of a ``bext`` chunk."""

    description: str
    originator: str
    originator_reference: str
    origination_date: str
    origination_time: str
    time_reference: int
    version: int


@dataclass
class WavSummary:
    """Everything the reader decoded from one file.

    RULES:
    - chunks: (id, payload size) in file order, including unknown chunks
    - labels: cue ID → label text
    - labl_sizes: cue ID → labl payload size, for padding checks
    """

    riff_size: int
    chunks: List[Tuple[str, int]] = field(default_factory=list)
    sample_rate: int = 0
    num_channels: int = 0
    bits_per_sample: int = 0
    data_size: int = 0
    cue_points: List[CuePoint] = field(default_factory=list)
    labels: Dict[int, str] = field(default_factory=dict)
    labl_sizes: Dict[int, int] = field(default_factory=dict)
    bext: Optional[BextInfo] = None

    @property
    def duration_s(self) -> float:
        """Length of the audio data in seconds."""
        frame_size = self.num_channels * (self.bits_per_sample // 8)
        if not frame_size or not self.sample_rate:
            return 0.0
        return self.data_size / frame_size / self.sample_rate

    def markers(self) -> List[Marker]:
        """Rebuild Marker objects from the cue points, in cue order."""
        if not self.sample_rate:
            return []
        return [
            Marker(
                offset_s=cue.position / self.sample_rate,
                label=self.labels.get(cue.cue_id, ""),
            )
            for cue in self.cue_points
        ]


def _text(raw: bytes) -> str:
    return raw.split(b"\x00", 1)[0].decode("utf-8", errors="replace")


def _read_bext(payload: bytes) -> BextInfo:
    if len(payload) < 348:
        raise WavFormatError("bext chunk too short ({} bytes)".format(len(payload)))
    low, high = struct.unpack_from("<II", payload, 338)
    (version,) = struct.unpack_from("<H", payload, 346)
    return BextInfo(
        description=_text(payload[0:256]),
        originator=_text(payload[256:288]),
        originator_reference=_text(payload[288:320]),
        origination_date=_text(payload[320:330]),
        origination_time=_text(payload[330:338]),
        time_reference=(high << 32) | low,
        version=version,
    )


def _read_cues(payload: bytes) -> List[CuePoint]:
    (count,) = struct.unpack_from("<I", payload, 0)
    if 4 + count * 24 > len(payload):
        raise WavFormatError("cue chunk declares {} points but is too short".format(count))
    cues = []
    for index in range(count):
        cue_id, position, chunk_id, chunk_start, block_start, sample_offset = struct.unpack_from(
            "<II4sIII", payload, 4 + index * 24
        )
        cues.append(CuePoint(
            cue_id=cue_id,
            position=position,
            data_chunk_id=chunk_id.decode("ascii", errors="replace"),
            chunk_start=chunk_start,
            block_start=block_start,
            sample_offset=sample_offset,
        ))
    return cues


def _read_adtl(payload: bytes, summary: WavSummary) -> None:
    offset = 4
    while offset + 8 <= len(payload):
        sub_id, sub_size = struct.unpack_from("<4sI", payload, offset)
        body = payload[offset + 8:offset + 8 + sub_size]
        if len(body) < sub_size:
            raise WavFormatError("truncated {!r} sub-chunk".format(sub_id))
        if sub_id == b"labl" and sub_size >= 4:
            (cue_id,) = struct.unpack_from("<I", body, 0)
            summary.labels[cue_id] = _text(body[4:])
            summary.labl_sizes[cue_id] = sub_size
        offset += 8 + sub_size + (sub_size & 1)


def read_wav(data: bytes) -> WavSummary:
    """Decode the chunk structure and marker metadata of a WAV buffer.

    Args:
        data: The complete file content.

    Returns:
        WavSummary with format fields, cue points, labels and bext info.

    Raises:
        WavFormatError: If the buffer is not a well-formed RIFF/WAVE file.
    """
    if len(data) < 12 or data[0:4] != b"RIFF" or data[8:12] != b"WAVE":
        raise WavFormatError("Not a RIFF/WAVE file")

    (riff_size,) = struct.unpack_from("<I", data, 4)
    summary = WavSummary(riff_size=riff_size)
    end = min(len(data), 8 + riff_size)
    offset = 12

    while offset + 8 <= end:
        chunk_id, size = struct.unpack_from("<4sI", data, offset)
        start = offset + 8
        if start + size > len(data):
            raise WavFormatError(
                "Chunk {!r} at offset {} runs past the end of the file".format(chunk_id, offset)
            )
        name = chunk_id.decode("ascii", errors="replace")
        summary.chunks.append((name, size))

        if chunk_id == b"fmt ":
            _, channels, rate, _, _, bits = struct.unpack_from("<HHIIHH", data, start)
            summary.num_channels = channels
            summary.sample_rate = rate
            summary.bits_per_sample = bits
        elif chunk_id == b"data":
            summary.data_size = size
        elif chunk_id == b"bext":
            summary.bext = _read_bext(bytes(data[start:start + size]))
        elif chunk_id == b"cue ":
            summary.cue_points = _read_cues(bytes(data[start:start + size]))
        elif chunk_id == b"LIST" and data[start:start + 4] == b"adtl":
            _read_adtl(bytes(data[start:start + size]), summary)

        offset = start + size + (size & 1)

    return summary


def read_wav_file(path: str | Path) -> WavSummary:
    """Read a WAV file from disk and decode it with read_wav()."""
    return read_wav(Path(path).read_bytes())
