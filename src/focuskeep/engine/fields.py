# src/focuskeep/engine/fields.py

"""
Per-field codecs.

Every table cell and settings value goes through one of these helpers.
Decoders never raise: anything they cannot read falls back to the
default the caller supplies.

Cell escaping rules (one logical value is always one physical row):
- `\\`  -> `\\\\`
- `|`   -> `\\|`
- line break -> `<br>`, literal `<br>` -> `\\<br>`
- leading / trailing whitespace -> backslash + the whitespace character
"""

from __future__ import annotations

import logging
import math
import re
from enum import Enum
from typing import Any, Optional, TypeVar

import yaml


logger = logging.getLogger(__name__)

E = TypeVar("E", bound=Enum)

_BREAK = "<br>"
_SEPARATOR_CELL_RE = re.compile(r"^:?-+:?$")


# ---------------------------------------------------------------------
# Escaping
# ---------------------------------------------------------------------

def escape_cell(text: str) -> str:
    """Escape free text so it fits in a single table cell."""
    s = text.replace("\r\n", "\n").replace("\r", "\n")
    s = s.replace("\\", "\\\\").replace("|", "\\|")
    s = s.replace(_BREAK, "\\" + _BREAK).replace("\n", _BREAK)

    if not s.strip():
        return "".join("\\" + ch for ch in s)

    core = s.strip()
    start = s.index(core)
    lead = s[:start]
    trail = s[start + len(core):]
    return (
        "".join("\\" + ch for ch in lead)
        + core
        + "".join("\\" + ch for ch in trail)
    )


def unescape_cell(raw: str) -> str:
    """Reverse escape_cell. Unknown `\\x` pairs are kept untouched."""
    out: list[str] = []
    i = 0
    n = len(raw)

    while i < n:
        ch = raw[i]

        if ch == "\\" and i + 1 < n:
            nxt = raw[i + 1]
            if nxt in "\\|" or nxt.isspace():
                out.append(nxt)
                i += 2
                continue
            if raw.startswith(_BREAK, i + 1):
                out.append(_BREAK)
                i += 1 + len(_BREAK)
                continue
            out.append(ch)
            i += 1
            continue

        if raw.startswith(_BREAK, i):
            out.append("\n")
            i += len(_BREAK)
            continue

        out.append(ch)
        i += 1

    return "".join(out)


# ---------------------------------------------------------------------
# Row splitting
# ---------------------------------------------------------------------

def split_row(line: str) -> list[str]:
    """
    Split a pipe table row into raw (still escaped) cells.

    Escaped pipes stay inside their cell; the outer delimiters are
    dropped and unescaped outer whitespace is trimmed.
    """
    s = line.strip()
    cells: list[str] = []
    cur: list[str] = []
    trailing_pipe = False
    i = 0

    while i < len(s):
        ch = s[i]
        if ch == "\\" and i + 1 < len(s):
            cur.append(s[i:i + 2])
            trailing_pipe = False
            i += 2
            continue
        if ch == "|":
            cells.append("".join(cur))
            cur = []
            trailing_pipe = True
        else:
            cur.append(ch)
            trailing_pipe = False
        i += 1

    cells.append("".join(cur))

    if s.startswith("|"):
        cells = cells[1:]
    if trailing_pipe and cells:
        cells.pop()

    return [trim_cell(c) for c in cells]


def is_separator_row(cells: list[str]) -> bool:
    return bool(cells) and all(_SEPARATOR_CELL_RE.match(c) for c in cells)


def render_row(cells: list[str]) -> str:
    return "| " + " | ".join(cells) + " |"


def trim_cell(raw: str) -> str:
    """Strip outer whitespace, keeping a trailing character that is escaped."""
    s = raw.lstrip()
    t = s.rstrip()
    if len(t) < len(s) and _ends_with_escape(t):
        t += s[len(t)]
    return t


def _ends_with_escape(s: str) -> bool:
    count = len(s) - len(s.rstrip("\\"))
    return count % 2 == 1


# ---------------------------------------------------------------------
# Decoders
# ---------------------------------------------------------------------

def parse_int(text: Optional[str], default: int) -> int:
    """
    Zero-safe integer decode.

    Any valid number is returned, including 0; a finite float is
    truncated toward zero. Only empty, blank, non-numeric or non-finite
    text gives `default`.
    """
    s = (text or "").strip()
    if not s:
        return default

    try:
        return int(s)
    except ValueError:
        pass

    try:
        value = float(s)
    except ValueError:
        return default

    if not math.isfinite(value):
        return default
    return int(value)


def parse_optional_int(text: Optional[str]) -> Optional[int]:
    s = (text or "").strip()
    if not s:
        return None

    try:
        return int(s)
    except ValueError:
        pass

    try:
        value = float(s)
    except ValueError:
        return None
    return int(value) if math.isfinite(value) else None


def parse_float(text: Optional[str], default: float) -> float:
    s = (text or "").strip()
    if not s:
        return default

    try:
        value = float(s)
    except ValueError:
        return default
    return value if math.isfinite(value) else default


def parse_optional_text(text: Optional[str]) -> Optional[str]:
    """Empty means absent; anything else passes through unmodified."""
    if text is None or text == "":
        return None
    return text


def parse_bool(text: Optional[str], default: Optional[bool]) -> Optional[bool]:
    s = (text or "").strip().lower()
    if s in {"true", "yes"}:
        return True
    if s in {"false", "no"}:
        return False
    return default


def parse_enum(text: Optional[str], enum_cls: type[E], default: Optional[E]) -> Optional[E]:
    """Membership check; unknown or empty values give `default`."""
    s = (text or "").strip().lower()
    if not s:
        return default
    try:
        return enum_cls(s)
    except ValueError:
        return default


def parse_domain(text: Optional[str], enum_cls: type[E], default: E) -> E | str:
    """
    Decode a required closed-domain field.

    Empty text gives `default`; a value outside the domain is returned
    verbatim so it survives until the integrity checker repairs it.
    """
    s = (text or "").strip()
    if not s:
        return default
    try:
        return enum_cls(s.lower())
    except ValueError:
        return s


# ---------------------------------------------------------------------
# Nested values (one cell)
# ---------------------------------------------------------------------

def dump_fragment(value: Any) -> str:
    """Render a list as a single-line YAML flow collection."""
    return yaml.safe_dump(
        value,
        default_flow_style=True,
        sort_keys=False,
        allow_unicode=True,
        width=float("inf"),
    ).strip()


def load_fragment(text: Optional[str]) -> Any:
    """Load a flow collection (or legacy JSON); malformed text gives None."""
    s = (text or "").strip()
    if not s:
        return None
    try:
        return yaml.safe_load(s)
    except (yaml.YAMLError, ValueError, TypeError, OverflowError) as e:
        logger.debug("Unreadable nested value %r: %s", s, e)
        return None


# ---------------------------------------------------------------------
# Encoders
# ---------------------------------------------------------------------

def render_text(value: Optional[str]) -> str:
    return escape_cell(value) if value else ""


def render_number(value: Optional[float]) -> str:
    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def render_bool(value: Optional[bool]) -> str:
    if value is None:
        return ""
    return "true" if value else "false"


def render_enum(value: Enum | str | None) -> str:
    if value is None:
        return ""
    if isinstance(value, Enum):
        return escape_cell(str(value.value))
    return escape_cell(str(value))
