"""Tests for the shared analyze/convert pipeline."""

import pytest

from cuesynch.core.markers import session_start_timecode
from cuesynch.errors import EmptyInputError, EncodingOverflowError, MissingParameterError, NoMarkersError
from cuesynch.pipeline import (
    analyze_csv,
    collect_markers,
    convert_csv,
    resolve_frame_rate,
    suggest_output_filename,
)
from cuesynch.wav.reader import read_wav


class TestResolveFrameRate:
    """Tests for resolve_frame_rate()."""

    @pytest.mark.parametrize("setting", ["auto", "AUTO", " auto ", "", None])
    def test_auto_detects(self, setting, scenario_csv):
        assert resolve_frame_rate(setting, scenario_csv) == 24.0

    @pytest.mark.parametrize("setting,expected", [("25", 25.0), ("29.97", 29.97), (30, 30.0), (23.976, 23.976)])
    def test_explicit_values(self, setting, expected):
        assert resolve_frame_rate(setting, "") == pytest.approx(expected)

    @pytest.mark.parametrize("setting", ["fast", "0", "-25", "nan", "inf"])
    def test_invalid_values_raise(self, setting):
        with pytest.raises(ValueError):
            resolve_frame_rate(setting, "")


class TestAnalyzeCsv:
    """Tests for analyze_csv()."""

    def test_scenario(self, scenario_csv):
        analysis = analyze_csv(scenario_csv)
        assert analysis.headers == ["time", "name"]
        assert analysis.time_column == "time"
        assert analysis.row_count == 4
        assert analysis.frame_rate == 24.0
        assert analysis.preview_rows[0] == {"time": "0", "name": "Intro"}

    def test_preview_limited_to_five_rows(self):
        csv_text = "Timecode,Name\n" + "\n".join("{},M{}".format(i, i) for i in range(12))
        analysis = analyze_csv(csv_text, "25")
        assert analysis.row_count == 12
        assert len(analysis.preview_rows) == 5
        assert analysis.frame_rate == 25.0
        assert analysis.time_column == "Timecode"

    def test_empty_csv_raises(self):
        with pytest.raises(EmptyInputError):
            analyze_csv("   ")


class TestConvertCsv:
    """Tests for collect_markers() and convert_csv()."""

    def test_scenario_end_to_end(self, scenario_csv, encoder):
        result = convert_csv(scenario_csv, 30, "time", ["name"], encoder=encoder)
        summary = read_wav(result.output.content)
        assert [cue.position for cue in summary.cue_points] == [0, 463050, 3969000, 4652550]
        assert summary.data_size == 107 * 176400
        assert result.session_start == "00 00 00 00"
        assert result.output.media_type == "audio/wav"

    def test_invalid_row_dropped_siblings_kept(self, encoder):
        csv_text = "time,name\n1,A\nabc,Bad\n2,B"
        result = convert_csv(csv_text, "auto", "time", ["name"], encoder=encoder)
        assert [m.label for m in result.markers] == ["A", "B"]
        assert read_wav(result.output.content).labels == {1: "A", 2: "B"}

    def test_auto_frame_rate_changes_smpte_offsets(self):
        markers, rate, _ = collect_markers("time,name\n0:00:01:12,A", "auto", "time", ["name"])
        assert rate == 24.0
        assert markers[0].offset_s == pytest.approx(1.5)

    def test_empty_label_columns_use_default_name(self, scenario_csv):
        markers, _, labels = collect_markers(scenario_csv, 30, "time", [])
        assert labels == []
        assert {m.label for m in markers} == {"Marker"}

    def test_hour_offset_markers_keep_absolute_time(self):
        markers, _, _ = collect_markers("tc,name\n01:00:05:00,A", 25, "tc", ["name"])
        assert markers[0].offset_s == pytest.approx(3605.0)
        assert session_start_timecode(markers) == "01 00 00 00"

    def test_missing_time_column_raises(self, scenario_csv):
        with pytest.raises(MissingParameterError):
            collect_markers(scenario_csv, 30, "", ["name"])

    def test_missing_label_columns_raises(self, scenario_csv):
        with pytest.raises(MissingParameterError):
            collect_markers(scenario_csv, 30, "time", None)

    def test_unknown_time_column_raises(self, scenario_csv):
        with pytest.raises(MissingParameterError, match="Available columns: time, name"):
            collect_markers(scenario_csv, 30, "Timecode", ["name"])

    def test_no_valid_markers_raises(self):
        with pytest.raises(NoMarkersError, match="No valid markers found in CSV"):
            convert_csv("time,name\nabc,A\n,B", 30, "time", ["name"])

    def test_header_only_raises_no_markers(self):
        with pytest.raises(NoMarkersError):
            convert_csv("time,name", 30, "time", ["name"])

    def test_empty_csv_raises(self):
        with pytest.raises(EmptyInputError):
            convert_csv("", 30, "time", ["name"])

    def test_overflow_propagates(self):
        with pytest.raises(EncodingOverflowError):
            convert_csv("time,name\n30000,Far", 30, "time", ["name"])


class TestSuggestOutputFilename:
    """Tests for suggest_output_filename()."""

    @pytest.mark.parametrize("name,expected", [
        ("show.csv", "show_marker_list.wav"),
        ("Show Notes.CSV", "Show Notes_marker_list.wav"),
        ("log.txt", "log_marker_list.wav"),
        ("take#2 (final).csv", "take_2 _final__marker_list.wav"),
        ("/tmp/uploads/ep-01.csv", "ep-01_marker_list.wav"),
        ("C:\\logs\\ep_02.csv", "ep_02_marker_list.wav"),
        ("archive.csv.bak", "archive_csv_bak_marker_list.wav"),
        ("åäö.csv", "____marker_list.wav"),
        (".csv", "marker_list.wav"),
        ("", "marker_list.wav"),
        (None, "marker_list.wav"),
    ])
    def test_names(self, name, expected):
        assert suggest_output_filename(name) == expected
