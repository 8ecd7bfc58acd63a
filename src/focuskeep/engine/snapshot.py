# src/focuskeep/engine/snapshot.py

"""
Daily snapshots of the data file.

At most one snapshot per calendar day, named `<YYYY-MM-DD>.md`. The first
successful write of the day wins; later writes that day leave the
snapshot alone. Old snapshots are never pruned.
"""

from __future__ import annotations

import logging
import os
import re
import shutil
import tempfile
from datetime import date, datetime, timezone
from pathlib import Path
from typing import Callable, Optional


logger = logging.getLogger(__name__)

_SNAPSHOT_NAME_RE = re.compile(r"^\d{4}-\d{2}-\d{2}\.md$")


def utc_today() -> date:
    """Snapshot names follow the UTC calendar, not the local one."""
    return datetime.now(timezone.utc).date()


class DailySnapshots:
    """
    Snapshot manager for one backup directory.

    `today` is injectable so tests can move the calendar.
    """

    def __init__(self, backup_dir: str | Path, *, today: Callable[[], date] = utc_today) -> None:
        self.backup_dir = Path(backup_dir)
        self._today = today

    def path_for(self, day: date) -> Path:
        return self.backup_dir / f"{day.isoformat()}.md"

    def snapshot(self, source: str | Path) -> Optional[Path]:
        """
        Copy `source` into today's snapshot if none exists yet.

        Returns the snapshot path when one was written, else None.
        A missing source is a no-op. Errors propagate to the caller.
        """
        src = Path(source)
        if not src.is_file():
            logger.debug("No snapshot: %s does not exist", src)
            return None

        target = self.path_for(self._today())
        if target.exists():
            return None

        self.backup_dir.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(prefix=target.name, suffix=".tmp", dir=self.backup_dir)
        try:
            with os.fdopen(fd, "wb") as out, src.open("rb") as inp:
                shutil.copyfileobj(inp, out)
                out.flush()
                os.fsync(out.fileno())
            os.replace(tmp_name, target)
        finally:
            if os.path.exists(tmp_name):
                os.remove(tmp_name)

        logger.info("Daily snapshot written: %s", target)
        return target

    def list(self) -> list[Path]:
        """Existing snapshots, oldest first."""
        if not self.backup_dir.is_dir():
            return []
        return sorted(
            p for p in self.backup_dir.iterdir()
            if p.is_file() and _SNAPSHOT_NAME_RE.match(p.name)
        )
