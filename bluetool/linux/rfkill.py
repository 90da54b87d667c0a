"""Inspect and change radio kill switches through sysfs and the rfkill tool.

Soft blocks are set by software, hard blocks by a physical switch. Known
identifiers include all, wifi, wlan, bluetooth, uwb, ultrawideband, wimax,
wwan, gps and fm.
"""

from __future__ import annotations

import logging
import shutil
import subprocess
from dataclasses import dataclass
from pathlib import Path

log = logging.getLogger(__name__)

DEFAULT_SYSFS_ROOT = "/sys/class/rfkill"


def _limit_text(text: str) -> str:
    t = text.strip()
    if len(t) > 150:
        t = t[:150] + "..."
    return "[" + t + "]"


@dataclass
class RFKillResult:
    """State of one rfkill device."""

    index: int = 0
    identifier_type: str = ""
    description: str = ""
    soft_blocked: bool = False
    hard_blocked: bool = False


class RFKill:
    """Query kill switch state from sysfs and toggle soft blocks."""

    def __init__(self, sysfs_root: str | Path = DEFAULT_SYSFS_ROOT) -> None:
        self.sysfs_root = Path(sysfs_root)

    def is_installed(self) -> bool:
        """Whether the rfkill program is on PATH."""
        return shutil.which("rfkill") is not None

    @staticmethod
    def _file_query(path: Path) -> str:
        try:
            return path.read_text().strip()
        except OSError:
            return ""

    def list_all(self) -> list[RFKillResult]:
        """Return the state of every rfkill device, ordered by directory name."""
        try:
            entries = sorted(self.sysfs_root.iterdir(), key=lambda p: p.name)
        except OSError as err:
            raise OSError(
                f"RFKill: Error reading directory '{self.sysfs_root}/': {err}"
            ) from err

        results = []
        for entry in entries:
            if len(entry.name) <= 6 or not entry.name.startswith("rfkill"):
                continue
            try:
                index = int(self._file_query(entry / "index"))
            except ValueError:
                index = 0
            results.append(
                RFKillResult(
                    index=index,
                    identifier_type=self._file_query(entry / "type"),
                    description=self._file_query(entry / "name"),
                    soft_blocked=self._file_query(entry / "soft") == "1",
                    hard_blocked=self._file_query(entry / "hard") == "1",
                )
            )
        return results

    def _run(self, action: str, identifier: str) -> None:
        try:
            subprocess.run(
                ["rfkill", action, identifier],
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                text=True,
                check=True,
            )
        except subprocess.CalledProcessError as err:
            log.error("Command Error: %s : %s", err, _limit_text(err.stdout or ""))
            raise
        except OSError as err:
            log.error("Command Error: %s : %s", err, _limit_text(""))
            raise

    def soft_block(self, identifier: str) -> None:
        """Set a software block on an identifier."""
        self._run("block", identifier)

    def soft_unblock(self, identifier: str) -> None:
        """Remove a software block on an identifier."""
        self._run("unblock", identifier)

    def _matching(self, identifier: str) -> list[RFKillResult]:
        try:
            results = self.list_all()
        except OSError:
            return []
        return [
            r
            for r in results
            if identifier in ("", "all") or identifier == r.identifier_type
        ]

    def is_blocked(self, identifier: str) -> bool:
        """Whether an identifier has a software or hardware block."""
        return any(r.soft_blocked or r.hard_blocked for r in self._matching(identifier))

    def is_soft_blocked(self, identifier: str) -> bool:
        """Whether an identifier has a software block."""
        return any(r.soft_blocked for r in self._matching(identifier))

    def is_hard_blocked(self, identifier: str) -> bool:
        """Whether an identifier has a hardware block."""
        return any(r.hard_blocked for r in self._matching(identifier))

    def is_blocked_after_unblocking(self, identifier: str) -> bool:
        """Remove any software block, then report whether a block remains."""
        if not self.is_blocked(identifier):
            return False
        try:
            self.soft_unblock(identifier)
        except (subprocess.CalledProcessError, OSError):
            pass
        return self.is_blocked(identifier)