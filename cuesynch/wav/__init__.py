"""RIFF/WAVE encoding and decoding for marker files.

WHY: The binary side of the converter lives here, separate from CSV
parsing: chunk builders (chunks.py), the Broadcast Wave encoder
(encoder.py), and a reader that decodes cue points and labels back out
of a produced file (reader.py).

RULES:
- The encoder consumes Marker objects only
- Chunk layouts live in chunks.py; the encoder never packs bytes itself
"""

from cuesynch.wav.encoder import BWFMarkerEncoder, EncoderOutput
from cuesynch.wav.reader import WavSummary, read_wav, read_wav_file

__all__ = [
    "BWFMarkerEncoder",
    "EncoderOutput",
    "WavSummary",
    "read_wav",
    "read_wav_file",
]
