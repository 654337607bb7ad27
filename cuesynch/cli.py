"""Command-line interface for CueSynch.

WHY: Users need a simple way to turn a marker log into a WAV marker file
from the terminal, check what a CSV looks like to the parser before
converting, and verify what ended up inside a produced file.

HOW: argparse with three subcommands:
  analyze  — show columns, detected time column, frame rate, and a preview
  convert  — write the marker WAV (time column and label columns default
             to the detected time column and all other columns)
  inspect  — list the cue points and labels of a WAV file
Status messages go to stderr; logging is configured once in main().

RULES:
- Input must be an existing .csv or .txt file
- Output naming: {csv stem}_marker_list.wav next to the CSV (or in
  --output-dir), numeric suffix on conflict (_marker_list-2.wav);
  --output writes to an explicit path
- CueSynchError / ValueError / OSError → "Error: ..." on stderr, exit
  code 1; anything else is logged with its traceback, then exit code 1
- The WAV is streamed to disk; nothing is created if encoding would overflow
- --automate runs the configured automation command after writing;
  its failure is reported but does not change the exit code
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from cuesynch import __version__
from cuesynch.automation import CommandAutomation
from cuesynch.config import SUPPORTED_CSV_FORMATS
from cuesynch.core.markers import session_start_timecode
from cuesynch.errors import CueSynchError
from cuesynch.pipeline import analyze_csv, collect_markers, suggest_output_filename
from cuesynch.wav.encoder import BWFMarkerEncoder
from cuesynch.wav.reader import read_wav_file

logger = logging.getLogger(__name__)


def _status(msg: str) -> None:
    """Print a status message to stderr.

    WHY: Status output must not pollute stdout so the CLI can be piped.
    """
    print(msg, file=sys.stderr, flush=True)


def _fail(msg: str) -> None:
    print("Error: {}".format(msg), file=sys.stderr)
    sys.exit(1)


def _format_seconds(seconds: float) -> str:
    """Format seconds as HH:MM:SS.mmm for display."""
    millis = int(round(seconds * 1000))
    hours, millis = divmod(millis, 3_600_000)
    minutes, millis = divmod(millis, 60_000)
    secs, millis = divmod(millis, 1000)
    return "{:02d}:{:02d}:{:02d}.{:03d}".format(hours, minutes, secs, millis)


def _read_csv_file(path_arg: str) -> tuple:
    """Validate and read the input CSV, returning (path, text)."""
    input_path = Path(path_arg).resolve()
    if not input_path.is_file():
        _fail("File not found: {}".format(input_path))

    ext = input_path.suffix.lower()
    if ext not in SUPPORTED_CSV_FORMATS:
        _fail("Unsupported file type '{}'. Supported formats: {}".format(
            ext, ", ".join(sorted(SUPPORTED_CSV_FORMATS))
        ))

    # utf-8-sig drops the BOM spreadsheet exports often start with
    return input_path, input_path.read_text(encoding="utf-8-sig")


def _resolve_output_path(filename: str, output_dir: Path) -> Path:
    """Resolve the output file path, adding a numeric suffix on conflict.

    WHY: Users may convert the same log several times while tweaking
    columns. Overwriting the previous marker file would lose work.

    RULES:
    - First attempt: {filename}
    - Conflict: insert "-N" before the extension, N starting at 2
    """
    base_path = output_dir / filename
    if not base_path.exists():
        return base_path

    stem = base_path.stem
    suffix = base_path.suffix
    counter = 2
    while True:
        candidate = output_dir / "{}-{}{}".format(stem, counter, suffix)
        if not candidate.exists():
            return candidate
        counter += 1


def _parse_fields(raw: Optional[str]) -> Optional[List[str]]:
    if raw is None:
        return None
    return [f.strip() for f in raw.split(",") if f.strip()]


# ---------------------------------------------------------------------------
# Subcommands
# ---------------------------------------------------------------------------


def _cmd_analyze(args: argparse.Namespace) -> None:
    _, csv_text = _read_csv_file(args.input_file)
    analysis = analyze_csv(csv_text, args.frame_rate)

    print("Columns:      {}".format(", ".join(analysis.headers)))
    print("Time column:  {}".format(analysis.time_column))
    print("Frame rate:   {:g} fps".format(analysis.frame_rate))
    print("Rows:         {}".format(analysis.row_count))
    if analysis.preview_rows:
        print("Preview:")
        for row in analysis.preview_rows:
            print("  " + " | ".join(row.get(h, "") for h in analysis.headers))


def _cmd_convert(args: argparse.Namespace) -> None:
    input_path, csv_text = _read_csv_file(args.input_file)

    analysis = analyze_csv(csv_text, args.frame_rate)
    time_column = args.time_column or analysis.time_column
    label_columns = _parse_fields(args.fields)
    if label_columns is None:
        label_columns = [h for h in analysis.headers if h != time_column]

    _status("Converting {}...".format(input_path.name))
    _status("  Time column: {}".format(time_column))
    _status("  Label columns: {}".format(", ".join(label_columns) or "(none)"))
    _status("  Frame rate: {:g} fps".format(analysis.frame_rate))

    markers, _, _ = collect_markers(csv_text, analysis.frame_rate, time_column, label_columns)
    session_start = session_start_timecode(markers)
    _status("  {} markers, session start {}".format(len(markers), session_start))

    if args.output:
        out_path = Path(args.output).resolve()
        if not out_path.parent.is_dir():
            _fail("Output directory does not exist: {}".format(out_path.parent))
    else:
        output_dir = Path(args.output_dir).resolve() if args.output_dir else input_path.parent
        if not output_dir.is_dir():
            _fail("Output directory does not exist: {}".format(output_dir))
        out_path = _resolve_output_path(suggest_output_filename(input_path.name), output_dir)

    BWFMarkerEncoder().write(markers, out_path)
    _status("Saved: {}".format(out_path))

    if args.automate:
        automation = CommandAutomation()
        outcome = automation.run(out_path, session_start)
        if outcome.ok:
            _status("Automation: {}".format(outcome.message))
        else:
            _status("Automation skipped: {}".format(outcome.message))

    _status("")
    _status("To import into Logic Pro: Navigate > Other > Import Marker from Audio File")


def _cmd_inspect(args: argparse.Namespace) -> None:
    path = Path(args.wav_file)
    if not path.is_file():
        _fail("File not found: {}".format(path))

    summary = read_wav_file(path)
    print("Format:     {} Hz, {} ch, {} bit".format(
        summary.sample_rate, summary.num_channels, summary.bits_per_sample
    ))
    print("Duration:   {}".format(_format_seconds(summary.duration_s)))
    print("Chunks:     {}".format(", ".join("{}({})".format(cid, size) for cid, size in summary.chunks)))
    if summary.bext is not None:
        print("Originator: {} {} {}".format(
            summary.bext.originator,
            summary.bext.origination_date,
            summary.bext.origination_time,
        ))
        print("TimeRef:    {}".format(summary.bext.time_reference))
    print("Cues:       {}".format(len(summary.cue_points)))
    for cue in summary.cue_points:
        seconds = cue.position / summary.sample_rate if summary.sample_rate else 0.0
        print("  #{:<4d} {}  {:>10d}  {}".format(
            cue.cue_id, _format_seconds(seconds), cue.position, summary.labels.get(cue.cue_id, "")
        ))


# ---------------------------------------------------------------------------
# Parser / entry point
# ---------------------------------------------------------------------------


def build_parser() -> argparse.ArgumentParser:
    """Build the argparse parser for the CLI.

    WHY: Separating parser construction from main() makes the CLI
    testable — tests can inspect the parser without running a command.
    """
    parser = argparse.ArgumentParser(
        prog="cuesynch",
        description="Convert CSV timecode logs into Broadcast Wave marker files "
                    "for DAW marker import.",
    )
    parser.add_argument("--version", action="version", version="%(prog)s {}".format(__version__))
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Show debug logging (per-row parse decisions, encoding sizes).",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    analyze = subparsers.add_parser("analyze", help="Show columns, time column and frame rate of a CSV.")
    analyze.add_argument("input_file", help="Path to the CSV marker log.")
    analyze.add_argument(
        "--frame-rate",
        default="auto",
        help="Frame rate for HH:MM:SS:FF timecodes, or 'auto' (default: %(default)s).",
    )
    analyze.set_defaults(func=_cmd_analyze)

    convert = subparsers.add_parser("convert", help="Write a WAV marker file from a CSV.")
    convert.add_argument("input_file", help="Path to the CSV marker log.")
    convert.add_argument(
        "--frame-rate",
        default="auto",
        help="Frame rate for HH:MM:SS:FF timecodes, or 'auto' (default: %(default)s).",
    )
    convert.add_argument(
        "--time-column",
        default=None,
        help="Column holding the time values (default: auto-detected).",
    )
    convert.add_argument(
        "--fields",
        default=None,
        help="Comma-separated columns joined into marker names "
             "(default: every column except the time column).",
    )
    destination = convert.add_mutually_exclusive_group()
    destination.add_argument(
        "--output",
        default=None,
        help="Exact path of the WAV file to write (overwrites).",
    )
    destination.add_argument(
        "--output-dir",
        default=None,
        help="Directory to save the WAV file (default: same as the CSV).",
    )
    convert.add_argument(
        "--automate",
        action="store_true",
        help="Run CUESYNCH_AUTOMATION_COMMAND with the written file and session start.",
    )
    convert.set_defaults(func=_cmd_convert)

    inspect = subparsers.add_parser("inspect", help="List the cue points and labels of a WAV file.")
    inspect.add_argument("wav_file", help="Path to a WAV file.")
    inspect.set_defaults(func=_cmd_inspect)

    return parser


def main(argv: Optional[List[str]] = None) -> None:
    """Entry point for the ``cuesynch`` console script.

    RULES:
    - argv=None means use sys.argv (normal CLI invocation)
    - Explicit argv is for testing
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    try:
        args.func(args)
    except KeyboardInterrupt:
        _status("\nCancelled by user.")
        sys.exit(130)
    except (CueSynchError, ValueError, OSError) as e:
        _fail(str(e))
    except Exception as e:
        logger.exception("Unexpected error")
        _fail(str(e))


if __name__ == "__main__":
    main()
