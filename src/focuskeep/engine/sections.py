# src/focuskeep/engine/sections.py

"""
Document sections.

A data document is a title line followed by `## ` sections. This module
splits raw text into sections and handles the two key/value sections
(Settings and Preferences). Table sections are handled by `tables`.

Key/value lines look like:

    - **Focus Duration:** 25 min

Every field decodes through its own fallback, so one bad line never
takes the rest of the section down with it.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Final, Mapping, Optional

from .fields import (
    escape_cell,
    parse_bool,
    parse_enum,
    parse_float,
    parse_int,
    render_bool,
    render_enum,
    render_number,
    render_text,
    trim_cell,
    unescape_cell,
)
from .model import AppPreferences, ContextFilter, NotificationSound, TimerSettings
from .tables import normalize_header


logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------
# Layout constants
# ---------------------------------------------------------------------

TITLE: Final[str] = "# Focus Assist Data"

SETTINGS: Final[str] = "Settings"
TASKS: Final[str] = "Tasks"
POMODOROS: Final[str] = "Pomodoros"
DAILY_STATS: Final[str] = "Daily Stats"
TEMPLATES: Final[str] = "Templates"
PREFERENCES: Final[str] = "Preferences"
READING_LIST: Final[str] = "Reading List"
REMINDERS: Final[str] = "Reminders"
SCRATCH_PAD: Final[str] = "Scratch Pad"

# Emission order.
KNOWN_HEADINGS: Final[tuple[str, ...]] = (
    SETTINGS,
    TASKS,
    POMODOROS,
    DAILY_STATS,
    TEMPLATES,
    PREFERENCES,
    READING_LIST,
    REMINDERS,
    SCRATCH_PAD,
)

_KNOWN_KEYS: Final[frozenset[str]] = frozenset(h.lower() for h in KNOWN_HEADINGS)

_HEADING_PREFIX = "## "
_KV_LINE_RE = re.compile(r"^\s*[-*]\s*\*\*(.+?):\*\*\s?(.*)$")


def heading_key(heading: str) -> str:
    return " ".join(heading.split()).lower()


def is_known_heading(heading: str) -> bool:
    return heading_key(heading) in _KNOWN_KEYS


# ---------------------------------------------------------------------
# Splitting
# ---------------------------------------------------------------------

@dataclass(slots=True)
class Section:
    heading: str
    lines: list[str] = field(default_factory=list)

    @property
    def body(self) -> str:
        """Section text without the surrounding blank lines."""
        return "\n".join(self.lines).strip("\n")


@dataclass(slots=True)
class Document:
    title: Optional[str] = None
    sections: list[Section] = field(default_factory=list)


def split_document(text: str) -> Document:
    """
    Split raw text into a title and ordered `## ` sections.

    Lines before the first heading other than the title are ignored.
    """
    doc = Document()
    current: Optional[Section] = None

    for line in text.replace("\r\n", "\n").replace("\r", "\n").split("\n"):
        if line.startswith(_HEADING_PREFIX):
            current = Section(heading=line[len(_HEADING_PREFIX):].strip())
            doc.sections.append(current)
            continue

        if current is not None:
            current.lines.append(line)
        elif doc.title is None and line.startswith("# "):
            doc.title = line.strip()
        elif line.strip():
            logger.debug("Ignoring text before first section: %r", line)

    return doc


# ---------------------------------------------------------------------
# Key/value blocks
# ---------------------------------------------------------------------

def parse_key_values(lines: list[str]) -> dict[str, str]:
    """
    Collect `- **Label:** value` lines, keyed by normalised label.

    Values are returned raw (still escaped). The first occurrence of a
    label wins.
    """
    values: dict[str, str] = {}
    for line in lines:
        m = _KV_LINE_RE.match(line)
        if not m:
            continue
        values.setdefault(normalize_header(m.group(1)), trim_cell(m.group(2)))
    return values


def render_key_value(label: str, value: str) -> str:
    if not value:
        return f"- **{label}:**"
    return f"- **{label}:** {value}"


def _first_token(raw: Optional[str]) -> str:
    parts = (raw or "").split()
    return parts[0] if parts else ""


# ---------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------

def decode_timer_settings(values: Mapping[str, str]) -> TimerSettings:
    d = TimerSettings()
    return TimerSettings(
        focus_duration=parse_int(_first_token(values.get("focusduration")), d.focus_duration),
        short_break=parse_int(_first_token(values.get("shortbreak")), d.short_break),
        long_break=parse_int(_first_token(values.get("longbreak")), d.long_break),
        sessions_before_long_break=parse_int(
            _first_token(values.get("sessionsbeforelongbreak")),
            d.sessions_before_long_break,
        ),
    )


def decode_streak(values: Mapping[str, str]) -> int:
    return parse_int(_first_token(values.get("currentstreak")), 0)


def render_settings(settings: TimerSettings, current_streak: int) -> list[str]:
    return [
        render_key_value("Focus Duration", f"{render_number(settings.focus_duration)} min"),
        render_key_value("Short Break", f"{render_number(settings.short_break)} min"),
        render_key_value("Long Break", f"{render_number(settings.long_break)} min"),
        render_key_value(
            "Sessions Before Long Break",
            render_number(settings.sessions_before_long_break),
        ),
        render_key_value("Current Streak", f"{render_number(current_streak or 0)} days"),
    ]


# ---------------------------------------------------------------------
# Preferences
# ---------------------------------------------------------------------

def decode_preferences(values: Mapping[str, str]) -> AppPreferences:
    d = AppPreferences()

    def text(key: str) -> Optional[str]:
        raw = values.get(key)
        return None if raw is None else unescape_cell(raw)

    return AppPreferences(
        notification_sound=parse_enum(
            text("notificationsound"), NotificationSound, d.notification_sound
        ),
        obsidian_vault_path=text("obsidianvaultpath") or d.obsidian_vault_path,
        obsidian_auto_sync=parse_bool(text("obsidianautosync"), d.obsidian_auto_sync),
        active_context=parse_enum(text("activecontext"), ContextFilter, d.active_context),
        auto_complete_parent=parse_bool(text("autocompleteparent"), d.auto_complete_parent),
        available_hours_per_day=parse_float(
            text("availablehoursperday"), d.available_hours_per_day
        ),
    )


def render_preferences(prefs: AppPreferences) -> list[str]:
    return [
        render_key_value("Notification Sound", render_enum(prefs.notification_sound)),
        render_key_value("Obsidian Vault Path", render_text(prefs.obsidian_vault_path)),
        render_key_value("Obsidian Auto Sync", render_bool(prefs.obsidian_auto_sync)),
        render_key_value("Active Context", render_enum(prefs.active_context)),
        render_key_value("Auto Complete Parent", render_bool(prefs.auto_complete_parent)),
        render_key_value(
            "Available Hours Per Day",
            escape_cell(render_number(prefs.available_hours_per_day)),
        ),
    ]
