"""Shared test fixtures for the cuesynch test suite.

WHY: Most test modules need the same reference marker log: four rows
covering every time grammar (seconds, decimal seconds, MM:SS and SMPTE
with frames). Centralizing it here keeps the expected offsets and cue
positions in one place.

HOW: Pytest fixtures provide the CSV text, the markers it should produce
at 30 fps, and an encoder with a pinned clock so the bext timestamp
fields are reproducible.

RULES:
- SCENARIO_CSV at 30 fps yields offsets [0, 10.5, 90, 105.5]
- Cue positions at 44.1 kHz are [0, 463050, 3969000, 4652550]
- FIXED_NOW is a naive local datetime; bext date/time are derived from it
"""

from datetime import datetime
from typing import List

import pytest

from cuesynch.core.ir import Marker
from cuesynch.wav.encoder import BWFMarkerEncoder

SCENARIO_CSV = "time,name\n0,Intro\n10.5,Verse 1\n1:30,Chorus\n0:01:45:15,Bridge"

SCENARIO_OFFSETS = [0.0, 10.5, 90.0, 105.5]
SCENARIO_LABELS = ["Intro", "Verse 1", "Chorus", "Bridge"]
SCENARIO_POSITIONS = [0, 463050, 3969000, 4652550]

FIXED_NOW = datetime(2024, 3, 9, 14, 5, 7)


@pytest.fixture
def scenario_csv() -> str:
    """The four-row reference marker log."""
    return SCENARIO_CSV


@pytest.fixture
def scenario_markers() -> List[Marker]:
    """Markers the reference log produces at 30 fps."""
    return [
        Marker(offset_s=offset, label=label)
        for offset, label in zip(SCENARIO_OFFSETS, SCENARIO_LABELS)
    ]


@pytest.fixture
def encoder() -> BWFMarkerEncoder:
    """Encoder with a pinned clock for reproducible output."""
    return BWFMarkerEncoder(clock=lambda: FIXED_NOW)
