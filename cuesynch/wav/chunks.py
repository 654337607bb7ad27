"""RIFF chunk builders for the marker WAV file.

WHY: Every chunk in the output file has a fixed binary layout defined by
the RIFF/WAVE and Broadcast Wave (EBU Tech 3285) specs. Building each one
in its own function keeps the byte offsets in one place and lets the
encoder assemble chunks without knowing their internals.

HOW: Fixed-size payloads are built in a pre-zeroed bytearray and filled
with struct.pack_into at their documented offsets, so unused bytes are
implicit NUL padding. Variable-size payloads (cue list, adtl list) are
concatenated from fixed-size records.

RULES:
- All integers are little-endian
- Chunk sizes exclude the 8-byte chunk header
- Fixed-width text fields are raw bytes, truncated to the field width,
  never length-prefixed
- labl sub-chunks are NUL-terminated and padded to an even length
- Every 32-bit field is range-checked; overflow raises
  EncodingOverflowError instead of wrapping around
"""

from __future__ import annotations

import struct
from typing import Sequence

from cuesynch.errors import EncodingOverflowError

UINT32_MAX = 0xFFFFFFFF

CHUNK_HEADER_SIZE = 8
FMT_CHUNK_SIZE = 16
BEXT_CHUNK_SIZE = 602
CUE_POINT_SIZE = 24

# bext field offsets (EBU Tech 3285, version 2)
_BEXT_DESCRIPTION = (0, 256)
_BEXT_ORIGINATOR = (256, 32)
_BEXT_ORIGINATOR_REFERENCE = (288, 32)
_BEXT_ORIGINATION_DATE = (320, 10)
_BEXT_ORIGINATION_TIME = (330, 8)
_BEXT_TIME_REFERENCE_OFFSET = 338
_BEXT_VERSION_OFFSET = 346
# UMID (64), loudness/reserved (190) and coding history stay zero


def check_uint32(field: str, value: int) -> int:
    """Return value unchanged, or raise if it does not fit an unsigned 32-bit field."""
    if value < 0 or value > UINT32_MAX:
        raise EncodingOverflowError(field, value, UINT32_MAX)
    return value


def chunk_header(chunk_id: bytes, size: int) -> bytes:
    """Build the 8-byte header (4-byte id + little-endian payload size)."""
    check_uint32("'{}' chunk size".format(chunk_id.decode("ascii")), size)
    return struct.pack("<4sI", chunk_id, size)


def _write_text(buffer: bytearray, field: tuple, text: str) -> None:
    offset, width = field
    raw = text.encode("utf-8")[:width]
    buffer[offset:offset + len(raw)] = raw


def fmt_chunk(sample_rate: int, num_channels: int, bits_per_sample: int, format_tag: int = 1) -> bytes:
    """Build the 16-byte PCM ``fmt `` payload."""
    block_align = num_channels * (bits_per_sample // 8)
    byte_rate = sample_rate * block_align
    return struct.pack(
        "<HHIIHH",
        format_tag,
        num_channels,
        sample_rate,
        byte_rate,
        block_align,
        bits_per_sample,
    )


def bext_chunk(
    description: str,
    originator: str,
    originator_reference: str,
    origination_date: str,
    origination_time: str,
    time_reference: int = 0,
    version: int = 2,
) -> bytes:
    """Build the 602-byte Broadcast Wave ``bext`` payload.

    WHY: DAWs read the bext TimeReference to decide where the file sits
    on the timeline. Writing 0 places sample 0 at timeline zero, so each
    cue's sample position equals its absolute timeline position.

    HOW: A zeroed 602-byte buffer; text fields are copied in at their
    offsets and truncated to width. TimeReference is a 64-bit sample
    count written as low and high 32-bit halves.

    RULES:
    - description 256 bytes, originator 32, originator reference 32
    - origination date "yyyy:mm:dd" (10), time "hh:mm:ss" (8)
    - TimeReference low/high at offset 338, version at 346
    - UMID, reserved area and coding history are left zero
    """
    if time_reference < 0 or time_reference > 0xFFFFFFFFFFFFFFFF:
        raise EncodingOverflowError("bext TimeReference", time_reference, 0xFFFFFFFFFFFFFFFF)

    buffer = bytearray(BEXT_CHUNK_SIZE)
    _write_text(buffer, _BEXT_DESCRIPTION, description)
    _write_text(buffer, _BEXT_ORIGINATOR, originator)
    _write_text(buffer, _BEXT_ORIGINATOR_REFERENCE, originator_reference)
    _write_text(buffer, _BEXT_ORIGINATION_DATE, origination_date)
    _write_text(buffer, _BEXT_ORIGINATION_TIME, origination_time)
    struct.pack_into(
        "<II",
        buffer,
        _BEXT_TIME_REFERENCE_OFFSET,
        time_reference & UINT32_MAX,
        time_reference >> 32,
    )
    struct.pack_into("<H", buffer, _BEXT_VERSION_OFFSET, version)
    return bytes(buffer)


def cue_chunk(positions: Sequence[int]) -> bytes:
    """Build the ``cue `` payload: a count, then one 24-byte record per cue.

    Cue IDs are assigned 1-based in the order of ``positions``. Each
    record is (id, position, "data", chunk start 0, block start 0,
    sample offset), with the sample position written twice.
    """
    check_uint32("cue point count", len(positions))
    buffer = bytearray(4 + len(positions) * CUE_POINT_SIZE)
    struct.pack_into("<I", buffer, 0, len(positions))

    for index, position in enumerate(positions):
        check_uint32("cue point {} sample position".format(index + 1), position)
        struct.pack_into(
            "<II4sIII",
            buffer,
            4 + index * CUE_POINT_SIZE,
            index + 1,
            position,
            b"data",
            0,
            0,
            position,
        )
    return bytes(buffer)


def labl_subchunk(cue_id: int, label: str) -> bytes:
    """Build one ``labl`` sub-chunk (header included) linking a cue ID to text.

    RULES:
    - size field = 4 (cue ID) + label bytes + NUL + optional pad byte
    - one pad byte is added when label bytes + NUL is odd
    """
    encoded = label.encode("utf-8")
    text_length = len(encoded) + 1
    padded_length = text_length + (text_length % 2)
    size = check_uint32("labl size for cue {}".format(cue_id), 4 + padded_length)
    return (
        struct.pack("<4sII", b"labl", size, cue_id)
        + encoded
        + b"\x00" * (padded_length - len(encoded))
    )


def adtl_list_chunk(labels: Sequence[str]) -> bytes:
    """Build the ``LIST`` payload: "adtl" followed by one labl per label.

    Label i gets cue ID i + 1, matching cue_chunk(). With no labels the
    payload is just the 4-byte "adtl" list type.
    """
    return b"adtl" + b"".join(
        labl_subchunk(index + 1, label) for index, label in enumerate(labels)
    )
