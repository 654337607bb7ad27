"""Optional post-conversion automation hook.

WHY: Importing a marker file into a DAW is a few menu clicks that some
users script with an external accessibility helper (set the session
start, create a track, import the file, import markers from it). The
converter should be able to hand the finished file to such a helper
without depending on it: a marker file is useful even if the DAW is
closed or the helper breaks.

HOW: CommandAutomation runs a configured external command with the
output file path and the session start timecode appended as arguments.
Any failure (missing executable, non-zero exit, timeout) is turned into
an AutomationError internally and reported as a failed AutomationResult.

RULES:
- Automation never raises to the caller and never changes whether the
  conversion succeeded
- Disabled when no command is configured (CUESYNCH_AUTOMATION_COMMAND)
- Arguments are appended as: <command...> <file_path> <session_start>
"""

from __future__ import annotations

import logging
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Sequence

from cuesynch.config import load_automation_command
from cuesynch.errors import AutomationError

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_S = 60.0


@dataclass
class AutomationResult:
    """Outcome of one automation run."""

    ok: bool
    message: str


class CommandAutomation:
    """Runs an external command after a marker file has been written."""

    def __init__(
        self,
        command: Optional[Sequence[str]] = None,
        timeout_s: float = DEFAULT_TIMEOUT_S,
    ) -> None:
        self.command: List[str] = list(command) if command is not None else load_automation_command()
        self.timeout_s = timeout_s

    @property
    def enabled(self) -> bool:
        return bool(self.command)

    def _run(self, file_path: Path, session_start: str) -> str:
        args = self.command + [str(file_path), session_start]
        try:
            completed = subprocess.run(
                args,
                capture_output=True,
                text=True,
                timeout=self.timeout_s,
                check=False,
            )
        except FileNotFoundError:
            raise AutomationError("Automation command not found: {}".format(self.command[0]))
        except OSError as exc:
            raise AutomationError("Automation command could not start: {}".format(exc))
        except subprocess.TimeoutExpired:
            raise AutomationError(
                "Automation command timed out after {:.0f}s".format(self.timeout_s)
            )

        if completed.returncode != 0:
            detail = (completed.stderr or completed.stdout or "").strip()
            raise AutomationError(
                "Automation command exited with code {}{}".format(
                    completed.returncode, ": {}".format(detail) if detail else ""
                )
            )
        return (completed.stdout or "").strip()

    def run(self, file_path: str | Path, session_start: str) -> AutomationResult:
        """Hand the finished file to the automation command.

        Args:
            file_path: Path of the written marker WAV.
            session_start: Session start timecode, e.g. "01 00 00 00".

        Returns:
            AutomationResult; ok is False when automation is disabled or
            the command failed.
        """
        if not self.enabled:
            return AutomationResult(ok=False, message="Automation is not configured")

        try:
            output = self._run(Path(file_path), session_start)
        except AutomationError as exc:
            logger.warning("Automation failed for %s: %s", file_path, exc)
            return AutomationResult(ok=False, message=str(exc))

        logger.info("Automation finished for %s", file_path)
        return AutomationResult(ok=True, message=output or "Automation finished")
