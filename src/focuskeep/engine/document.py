# src/focuskeep/engine/document.py

"""
Whole-document codec.

`encode` turns an AppState into the canonical Markdown document and
`decode` rebuilds an AppState from any text. Both are pure.

Guarantees:
- encode is deterministic: equal states give byte-identical output and
  nothing time-dependent is written.
- decode never raises for text input; damaged parts fall back to their
  defaults.
- decode(encode(s)) == s for every representable state.
"""

from __future__ import annotations

import logging
from typing import Any, Iterable

from . import sections, tables
from .model import AppPreferences, AppState, RawSection, TimerSettings
from .sections import (
    TITLE,
    decode_preferences,
    decode_streak,
    decode_timer_settings,
    heading_key,
    is_known_heading,
    parse_key_values,
    render_preferences,
    render_settings,
    split_document,
)


logger = logging.getLogger(__name__)


# Table sections: (codec, AppState attribute, always emitted).
_TABLE_SECTIONS: tuple[tuple[tables.TableCodec[Any], str, bool], ...] = (
    (tables.TASKS, "tasks", True),
    (tables.POMODOROS, "pomodoros", True),
    (tables.DAILY_STATS, "daily_stats", True),
    (tables.TEMPLATES, "templates", True),
    (tables.READING_LIST, "reading_list", False),
    (tables.REMINDERS, "reminders", False),
    (tables.SCRATCH_PAD, "scratch_pad", False),
)

_TABLES_BY_KEY = {heading_key(codec.heading): (codec, attr) for codec, attr, _ in _TABLE_SECTIONS}


# ---------------------------------------------------------------------
# Encoding
# ---------------------------------------------------------------------

def encode(state: AppState) -> str:
    """Render the full document. Section order is fixed."""
    out: list[str] = [TITLE, ""]

    def add(heading: str, body: Iterable[str]) -> None:
        out.append(f"## {heading}")
        out.append("")
        out.extend(body)
        out.append("")

    add(sections.SETTINGS, render_settings(state.settings or TimerSettings(), state.current_streak))

    for codec, attr, always in _TABLE_SECTIONS:
        items = getattr(state, attr) or []
        if items or always:
            add(codec.heading, codec.encode(items))
        # Preferences sit between Templates and the optional tables.
        if codec is tables.TEMPLATES:
            add(sections.PREFERENCES, render_preferences(state.preferences or AppPreferences()))

    for raw in state.extra_sections or []:
        add(raw.heading, raw.body.split("\n") if raw.body else [])

    return "\n".join(out).rstrip("\n") + "\n"


# ---------------------------------------------------------------------
# Decoding
# ---------------------------------------------------------------------

def decode(text: str) -> AppState:
    """
    Rebuild an AppState from document text.

    Unknown sections are kept in `extra_sections`; a repeated known
    section is ignored after its first occurrence.
    """
    doc = split_document(text or "")
    state = AppState()
    seen: set[str] = set()

    for section in doc.sections:
        key = heading_key(section.heading)

        if not is_known_heading(section.heading):
            state.extra_sections.append(RawSection(heading=section.heading, body=section.body))
            continue

        if key in seen:
            logger.warning("Duplicate section %r ignored", section.heading)
            continue
        seen.add(key)

        if key == heading_key(sections.SETTINGS):
            values = parse_key_values(section.lines)
            state.settings = decode_timer_settings(values)
            state.current_streak = decode_streak(values)
        elif key == heading_key(sections.PREFERENCES):
            state.preferences = decode_preferences(parse_key_values(section.lines))
        else:
            codec, attr = _TABLES_BY_KEY[key]
            setattr(state, attr, codec.decode(section.lines))

    return state


def looks_like_document(text: str) -> bool:
    """True when the text carries the title line or a known section heading."""
    doc = split_document(text or "")
    if doc.title is not None and doc.title.lower() == TITLE.lower():
        return True
    return any(is_known_heading(s.heading) for s in doc.sections)
