"""Tests for the FastAPI marker API.

WHY: Front-ends depend on the exact status codes and payloads of the two
conversion routes: 400 with a message for anything the user can fix,
413 for oversized uploads, 422 when markers cannot fit a WAV file, and a
streamed WAV attachment on success.

HOW: Each test posts a multipart form through the FastAPI TestClient
(synchronous, in process) and checks status, headers and body. WAV
bodies are decoded with the cue reader.

RULES:
- All tests use the FastAPI TestClient (synchronous)
- No files are written; the API never touches disk
- The analyze payload is validated against the response model's JSON Schema
"""

from __future__ import annotations

import io
import json

import jsonschema
import pytest
from fastapi.testclient import TestClient

from cuesynch import __version__
from cuesynch.server import app as app_module
from cuesynch.server.app import app
from cuesynch.server.models import AnalyzeResponse
from cuesynch.wav.reader import read_wav


@pytest.fixture
def client():
    """Create a TestClient for the FastAPI app."""
    return TestClient(app)


def _csv_file(content: str, name: str = "show.csv"):
    """Build a multipart file tuple for a CSV upload."""
    return {"file": (name, io.BytesIO(content.encode("utf-8")), "text/csv")}


# ---------------------------------------------------------------------------
# POST /analyze-csv
# ---------------------------------------------------------------------------


class TestAnalyzeCsv:
    """Tests for POST /analyze-csv."""

    def test_scenario(self, client, scenario_csv):
        resp = client.post("/analyze-csv", files=_csv_file(scenario_csv))
        assert resp.status_code == 200
        body = resp.json()
        jsonschema.validate(body, AnalyzeResponse.model_json_schema())
        assert body["headers"] == ["time", "name"]
        assert body["detected_time_column"] == "time"
        assert body["frame_rate"] == 24.0
        assert body["row_count"] == 4
        assert body["rows"][3] == {"time": "0:01:45:15", "name": "Bridge"}

    def test_preview_limited_to_five_rows(self, client):
        csv_text = "Timecode,Name\n" + "\n".join("{},M{}".format(i, i) for i in range(8))
        resp = client.post("/analyze-csv", files=_csv_file(csv_text))
        assert resp.status_code == 200
        assert len(resp.json()["rows"]) == 5
        assert resp.json()["row_count"] == 8

    def test_explicit_frame_rate(self, client, scenario_csv):
        resp = client.post("/analyze-csv", files=_csv_file(scenario_csv), data={"frame_rate": "25"})
        assert resp.json()["frame_rate"] == 25.0

    def test_txt_extension_accepted(self, client, scenario_csv):
        resp = client.post("/analyze-csv", files=_csv_file(scenario_csv, name="log.TXT"))
        assert resp.status_code == 200

    def test_empty_csv_returns_400(self, client):
        resp = client.post("/analyze-csv", files=_csv_file("  \n "))
        assert resp.status_code == 400
        assert resp.json()["detail"] == "CSV file is empty"

    def test_invalid_frame_rate_returns_400(self, client, scenario_csv):
        resp = client.post("/analyze-csv", files=_csv_file(scenario_csv), data={"frame_rate": "fast"})
        assert resp.status_code == 400
        assert "Invalid frame rate" in resp.json()["detail"]

    def test_unsupported_extension_returns_400(self, client, scenario_csv):
        resp = client.post("/analyze-csv", files=_csv_file(scenario_csv, name="log.xlsx"))
        assert resp.status_code == 400
        assert "Unsupported file type '.xlsx'" in resp.json()["detail"]

    def test_missing_file_returns_400(self, client):
        resp = client.post("/analyze-csv", data={"frame_rate": "auto"})
        assert resp.status_code == 400

    def test_non_utf8_returns_400(self, client):
        files = {"file": ("show.csv", io.BytesIO(b"time,name\n1,\xff\xfe"), "text/csv")}
        resp = client.post("/analyze-csv", files=files)
        assert resp.status_code == 400
        assert "UTF-8" in resp.json()["detail"]

    def test_oversized_upload_returns_413(self, client, monkeypatch):
        monkeypatch.setattr(app_module, "MAX_UPLOAD_BYTES", 16)
        resp = client.post("/analyze-csv", files=_csv_file("time,name\n" + "1,A\n" * 10))
        assert resp.status_code == 413


# ---------------------------------------------------------------------------
# POST /generate-wav
# ---------------------------------------------------------------------------


class TestGenerateWav:
    """Tests for POST /generate-wav."""

    def _form(self, **overrides):
        form = {
            "frame_rate": "30",
            "time_column": "time",
            "selected_fields": json.dumps(["name"]),
        }
        form.update(overrides)
        return form

    def test_scenario_download(self, client, scenario_csv):
        resp = client.post("/generate-wav", files=_csv_file(scenario_csv), data=self._form())
        assert resp.status_code == 200
        assert resp.headers["content-type"] == "audio/wav"
        assert resp.headers["content-disposition"] == 'attachment; filename="show_marker_list.wav"'
        assert int(resp.headers["content-length"]) == len(resp.content)

        summary = read_wav(resp.content)
        assert [cue.position for cue in summary.cue_points] == [0, 463050, 3969000, 4652550]
        assert summary.labels == {1: "Intro", 2: "Verse 1", 3: "Chorus", 4: "Bridge"}
        assert summary.data_size == 107 * 176400

    def test_filename_is_sanitized(self, client, scenario_csv):
        resp = client.post(
            "/generate-wav",
            files=_csv_file(scenario_csv, name="Ep #3 (rough).csv"),
            data=self._form(),
        )
        assert resp.headers["content-disposition"] == 'attachment; filename="Ep _3 _rough__marker_list.wav"'

    def test_empty_selected_fields_use_default_label(self, client, scenario_csv):
        resp = client.post("/generate-wav", files=_csv_file(scenario_csv), data=self._form(selected_fields="[]"))
        assert resp.status_code == 200
        assert set(read_wav(resp.content).labels.values()) == {"Marker"}

    def test_invalid_rows_are_skipped(self, client):
        csv_text = "time,name\n1,A\nabc,Bad\n2,B"
        resp = client.post("/generate-wav", files=_csv_file(csv_text), data=self._form())
        assert resp.status_code == 200
        assert read_wav(resp.content).labels == {1: "A", 2: "B"}

    def test_missing_time_column_returns_400(self, client, scenario_csv):
        form = self._form()
        del form["time_column"]
        resp = client.post("/generate-wav", files=_csv_file(scenario_csv), data=form)
        assert resp.status_code == 400
        assert resp.json()["detail"] == "Missing required parameters"

    def test_missing_selected_fields_returns_400(self, client, scenario_csv):
        form = self._form()
        del form["selected_fields"]
        resp = client.post("/generate-wav", files=_csv_file(scenario_csv), data=form)
        assert resp.status_code == 400
        assert resp.json()["detail"] == "Missing required parameters"

    def test_missing_file_returns_400(self, client):
        resp = client.post("/generate-wav", data=self._form())
        assert resp.status_code == 400

    @pytest.mark.parametrize("value", ["name", "{\"a\": 1}", "[1, 2]"])
    def test_invalid_selected_fields_returns_400(self, client, scenario_csv, value):
        resp = client.post("/generate-wav", files=_csv_file(scenario_csv), data=self._form(selected_fields=value))
        assert resp.status_code == 400
        assert "selected_fields" in resp.json()["detail"]

    def test_unknown_time_column_returns_400(self, client, scenario_csv):
        resp = client.post("/generate-wav", files=_csv_file(scenario_csv), data=self._form(time_column="TC"))
        assert resp.status_code == 400
        assert "Time column 'TC' not found" in resp.json()["detail"]

    def test_no_valid_markers_returns_400(self, client):
        resp = client.post("/generate-wav", files=_csv_file("time,name\nabc,A"), data=self._form())
        assert resp.status_code == 400
        assert resp.json()["detail"] == "No valid markers found in CSV"

    def test_overflow_returns_422(self, client):
        resp = client.post("/generate-wav", files=_csv_file("time,name\n30000,Far"), data=self._form())
        assert resp.status_code == 422
        assert "32-bit" in resp.json()["detail"]


# ---------------------------------------------------------------------------
# GET /health
# ---------------------------------------------------------------------------


class TestHealth:
    """Tests for GET /health."""

    def test_health(self, client):
        resp = client.get("/health")
        assert resp.status_code == 200
        assert resp.json() == {"status": "ok", "version": __version__}


# ---------------------------------------------------------------------------
# Unexpected failures
# ---------------------------------------------------------------------------


class TestUnhandledErrors:
    """Tests for the catch-all exception handler."""

    def test_unexpected_error_returns_500(self, monkeypatch, scenario_csv):
        def boom(csv_text, frame_rate):
            raise RuntimeError("disk on fire")

        monkeypatch.setattr(app_module, "analyze_csv", boom)
        client = TestClient(app, raise_server_exceptions=False)
        resp = client.post("/analyze-csv", files=_csv_file(scenario_csv))
        assert resp.status_code == 500
        assert resp.json() == {"detail": "Internal server error"}
