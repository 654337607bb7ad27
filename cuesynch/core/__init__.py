"""Core parsing and marker extraction modules.

WHY: The core package holds everything between raw CSV text and the
Marker list: the IR dataclasses, the CSV reader, the timecode parser and
frame-rate detector, and the marker extractor. None of it knows about
WAV files, HTTP, or the command line.

HOW: ir.py defines the data structures, csv_reader.py and timecode.py
parse text, markers.py combines them into sorted markers.

RULES:
- Pure functions only (no file or network I/O)
- Marker is the contract with the encoder — change with care
"""
