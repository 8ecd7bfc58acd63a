# src/focuskeep/engine/store.py

"""
Atomic persistence of the data file.

One StateStore owns one canonical file. Writers serialise through the
store's asyncio.Lock; each write renders the whole document, writes it
to a temp file in the same directory, fsyncs, and `os.replace`s it over
the canonical file. Readers take no lock: the replace is atomic, so a
reader sees either the previous or the new document.

Public operations return values instead of raising. Failures are logged.
"""

from __future__ import annotations

import asyncio
import logging
import os
import stat
import tempfile
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

import yaml

from ..config import StorageConfig
from .document import decode, encode, looks_like_document
from .model import AppState
from .snapshot import DailySnapshots


logger = logging.getLogger(__name__)


def atomic_write_text(path: Path, text: str) -> None:
    """
    Write text so that `path` holds either the old or the new content.

    An existing file keeps its permission bits. The temp file is removed
    on any failure. Errors propagate.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(prefix=path.name, suffix=".tmp", dir=path.parent)
    try:
        with os.fdopen(fd, "w", encoding="utf-8", newline="\n") as f:
            f.write(text)
            f.flush()
            os.fsync(f.fileno())
        try:
            os.chmod(tmp_name, stat.S_IMODE(os.stat(path).st_mode))
        except FileNotFoundError:
            pass
        os.replace(tmp_name, path)
    finally:
        if os.path.exists(tmp_name):
            os.remove(tmp_name)


class StateStore:
    """
    Load and save AppState for one data file.

    Create one store per canonical path and share it between all writers
    of that file; two stores on the same path do not exclude each other.
    """

    def __init__(self, config: StorageConfig, *, snapshots: Optional[DailySnapshots] = None) -> None:
        self.config = config
        self.path = config.data_file
        self.snapshots = snapshots if snapshots is not None else DailySnapshots(config.backup_dir)
        self._lock = asyncio.Lock()

    # -----------------------------------------------------------------
    # Reads
    # -----------------------------------------------------------------

    async def exists(self) -> bool:
        return await asyncio.to_thread(self.path.is_file)

    async def read_text(self) -> Optional[str]:
        """Raw document text, or None when missing or unreadable."""
        try:
            return await asyncio.to_thread(self.path.read_text, encoding="utf-8")
        except FileNotFoundError:
            return None
        except (OSError, UnicodeDecodeError) as e:
            logger.error("Cannot read %s: %s", self.path, e)
            return None

    async def load(self) -> Optional[AppState]:
        """
        Decode the data file.

        Returns None when the file is missing, unreadable or not
        recognisable as a data document.
        """
        text = await self.read_text()
        if text is None:
            return None
        if not looks_like_document(text):
            logger.error("%s is not a recognisable data document", self.path)
            return None
        return decode(text)

    async def timestamp(self) -> Optional[datetime]:
        """Last modification time of the data file (aware, UTC)."""
        try:
            st = await asyncio.to_thread(self.path.stat)
        except FileNotFoundError:
            return None
        except OSError as e:
            logger.error("Cannot stat %s: %s", self.path, e)
            return None
        return datetime.fromtimestamp(st.st_mtime, tz=timezone.utc)

    # -----------------------------------------------------------------
    # Writes
    # -----------------------------------------------------------------

    async def save(self, state: AppState) -> bool:
        """
        Render and atomically persist `state`.

        Returns True when the canonical file was replaced. A failed
        snapshot after a successful write is logged and does not count
        as a failure.
        """
        async with self._lock:
            try:
                text = encode(state)
            except (TypeError, ValueError, AttributeError, yaml.YAMLError) as e:
                logger.error("Cannot render state for %s: %s", self.path, e)
                return False

            try:
                await asyncio.to_thread(atomic_write_text, self.path, text)
            except OSError as e:
                logger.error("Cannot write %s: %s", self.path, e)
                return False

            logger.debug("Saved %s (%d bytes)", self.path, len(text))

            try:
                await asyncio.to_thread(self.snapshots.snapshot, self.path)
            except OSError as e:
                logger.warning("Daily snapshot failed for %s: %s", self.path, e)

            return True

    async def import_text(self, text: str) -> bool:
        """Replace the data file with a decoded copy of `text`."""
        if not looks_like_document(text):
            logger.error("Import rejected: text is not a recognisable data document")
            return False
        return await self.save(decode(text))
