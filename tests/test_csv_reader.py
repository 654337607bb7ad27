"""Tests for the line-based CSV reader and time column detection."""

import pytest

from cuesynch.core.csv_reader import detect_time_column, parse_csv, parse_csv_line
from cuesynch.errors import EmptyInputError


class TestParseCsvLine:
    """Tests for quote-aware field splitting."""

    def test_simple_fields_are_trimmed(self):
        assert parse_csv_line(" a , b,c ") == ["a", "b", "c"]

    def test_quoted_comma_stays_in_field(self):
        assert parse_csv_line('10,"Verse, take 2",x') == ["10", "Verse, take 2", "x"]

    def test_quote_characters_are_dropped(self):
        assert parse_csv_line('"Intro"') == ["Intro"]

    def test_doubled_quote_disappears(self):
        """There is no "" escape: the two quotes toggle twice."""
        assert parse_csv_line('say ""hi""') == ["say hi"]

    def test_empty_line_yields_one_empty_field(self):
        assert parse_csv_line("") == [""]

    def test_trailing_comma_adds_empty_field(self):
        assert parse_csv_line("a,b,") == ["a", "b", ""]


class TestParseCsv:
    """Tests for parse_csv()."""

    def test_headers_and_rows(self, scenario_csv):
        table = parse_csv(scenario_csv)
        assert table.headers == ["time", "name"]
        assert len(table.rows) == 4
        assert table.rows[1] == {"time": "10.5", "name": "Verse 1"}

    def test_empty_text_raises(self):
        with pytest.raises(EmptyInputError):
            parse_csv("")

    def test_whitespace_only_raises(self):
        with pytest.raises(EmptyInputError, match="empty"):
            parse_csv("  \n\n \t ")

    def test_header_only_has_no_rows(self):
        table = parse_csv("time,name\n")
        assert table.headers == ["time", "name"]
        assert table.rows == []

    def test_blank_lines_skipped(self):
        table = parse_csv("time,name\n0,A\n\n   \n1,B\n")
        assert [row["name"] for row in table.rows] == ["A", "B"]

    def test_crlf_line_endings(self):
        table = parse_csv("time,name\r\n0,A\r\n1,B\r\n")
        assert table.headers == ["time", "name"]
        assert table.rows[1] == {"time": "1", "name": "B"}

    def test_missing_cells_become_empty(self):
        table = parse_csv("time,name,note\n5,A")
        assert table.rows[0] == {"time": "5", "name": "A", "note": ""}

    def test_extra_cells_ignored(self):
        table = parse_csv("time,name\n5,A,surplus")
        assert table.rows[0] == {"time": "5", "name": "A"}


class TestDetectTimeColumn:
    """Tests for detect_time_column()."""

    @pytest.mark.parametrize("headers,expected", [
        (["Name", "Timecode"], "Timecode"),
        (["Note", "TC In"], "TC In"),
        (["SMPTE", "Comment"], "SMPTE"),
        (["label", "Start Time"], "Start Time"),
    ])
    def test_keyword_match(self, headers, expected):
        assert detect_time_column(headers) == expected

    def test_first_match_wins(self):
        assert detect_time_column(["Name", "Time", "Timestamp"]) == "Time"

    def test_falls_back_to_first_header(self):
        assert detect_time_column(["Position", "Name"]) == "Position"

    def test_empty_headers(self):
        assert detect_time_column([]) == ""
