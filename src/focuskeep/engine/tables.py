# src/focuskeep/engine/tables.py

"""
Entity table codecs.

Each entity kind owns a fixed, append-only column list. Never reorder or
remove a column: older documents carry a prefix of the current list and
are read by header name, so a shorter header simply leaves the newer
fields absent.

Decoding is lenient:
- rows that cannot reach their identity cell (or leave it empty) are
  skipped with a warning,
- a malformed cell decodes to the field default,
- a table whose header lacks the identity column decodes as empty.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Generic, Iterable, Optional, Sequence, TypeVar

from .fields import (
    dump_fragment,
    is_separator_row,
    load_fragment,
    parse_bool,
    parse_domain,
    parse_enum,
    parse_int,
    parse_optional_int,
    parse_optional_text,
    render_bool,
    render_enum,
    render_number,
    render_row,
    render_text,
    split_row,
    unescape_cell,
)
from .model import (
    Category,
    DailyStats,
    Energy,
    Pomodoro,
    PomodoroLink,
    PomodoroStatus,
    Priority,
    Quadrant,
    ReadingItem,
    ReadingStatus,
    Recurrence,
    Reminder,
    ReminderCategory,
    ReminderRecurrence,
    ScratchNote,
    Subtask,
    TagList,
    Task,
    TaskStatus,
    TaskTemplate,
    TemplateTask,
)


logger = logging.getLogger(__name__)

T = TypeVar("T")

_HEADER_KEY_RE = re.compile(r"[^a-z0-9]+")


def normalize_header(name: str) -> str:
    """`Status Changed At` and `StatusChangedAt` name the same column."""
    return _HEADER_KEY_RE.sub("", name.lower())


# ---------------------------------------------------------------------
# Generic machinery
# ---------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class Column(Generic[T]):
    name: str
    render: Callable[[T], str]

    @property
    def key(self) -> str:
        return normalize_header(self.name)


class Row:
    """Unescaped cell values of one data row, looked up by column name."""

    __slots__ = ("_cells",)

    def __init__(self, cells: dict[str, str]) -> None:
        self._cells = cells

    def get(self, name: str) -> Optional[str]:
        return self._cells.get(normalize_header(name))


class TableCodec(Generic[T]):
    """Render and parse one entity table."""

    def __init__(
        self,
        heading: str,
        placeholder: str,
        columns: Sequence[Column[T]],
        build: Callable[[Row], T],
    ) -> None:
        self.heading = heading
        self.placeholder = placeholder
        self.columns = tuple(columns)
        self._build = build
        self._keys = frozenset(c.key for c in self.columns)
        self.identity_key = self.columns[0].key

    @property
    def column_names(self) -> list[str]:
        return [c.name for c in self.columns]

    def encode(self, items: Iterable[T]) -> list[str]:
        items = list(items)
        if not items:
            return [self.placeholder]

        lines = [
            render_row(self.column_names),
            render_row(["---"] * len(self.columns)),
        ]
        for item in items:
            lines.append(render_row([c.render(item) for c in self.columns]))
        return lines

    def decode(self, lines: Iterable[str]) -> list[T]:
        header: Optional[list[str]] = None
        id_pos = 0
        after_header = False
        items: list[T] = []

        for line in lines:
            if not line.lstrip().startswith("|"):
                continue

            cells = split_row(line)

            # Only the row right below the header is a separator; later
            # dash-only rows are data.
            if header is None or after_header:
                after_header = False
                if is_separator_row(cells):
                    continue

            if header is None:
                after_header = True
                header = [normalize_header(unescape_cell(c)) for c in cells]
                if self.identity_key not in header:
                    logger.warning(
                        "%s: table header has no identity column; section ignored",
                        self.heading,
                    )
                    return []
                id_pos = header.index(self.identity_key)
                continue

            if len(cells) <= id_pos or not unescape_cell(cells[id_pos]).strip():
                logger.warning("%s: skipping row without identity: %r", self.heading, line)
                continue

            values: dict[str, str] = {}
            for key, cell in zip(header, cells):
                if key in self._keys:
                    values.setdefault(key, unescape_cell(cell))

            try:
                items.append(self._build(Row(values)))
            except (TypeError, ValueError, AttributeError) as e:
                logger.warning("%s: skipping unreadable row %r: %s", self.heading, line, e)

        return items


# ---------------------------------------------------------------------
# Nested value helpers
# ---------------------------------------------------------------------

def _as_str(value: Any) -> str:
    return "" if value is None else str(value)


def _enum_value(value: Enum | str | None) -> Optional[str]:
    if value is None:
        return None
    return value.value if isinstance(value, Enum) else str(value)


def _render_fragment(value: Optional[list[Any]]) -> str:
    if value is None:
        return ""
    return render_text(dump_fragment(value))


def _pick(item: dict[str, Any], *keys: str) -> Any:
    for key in keys:
        if key in item:
            return item[key]
    return None


def _subtasks_to_cell(subtasks: Optional[list[Subtask]]) -> str:
    if subtasks is None:
        return ""
    return _render_fragment(
        [{"id": s.id, "title": s.title, "done": bool(s.done)} for s in subtasks]
    )


def _subtasks_from_cell(text: Optional[str]) -> Optional[list[Subtask]]:
    value = load_fragment(text)
    if not isinstance(value, list):
        return None

    out: list[Subtask] = []
    for item in value:
        if not isinstance(item, dict):
            continue
        out.append(
            Subtask(
                id=_as_str(item.get("id")),
                title=_as_str(item.get("title")),
                done=item.get("done") is True,
            )
        )
    return out


def _tags_to_cell(tags: Optional[Iterable[str]]) -> str:
    if tags is None:
        return ""
    return _render_fragment([str(t) for t in tags])


def _tags_from_cell(text: Optional[str]) -> Optional[TagList]:
    value = load_fragment(text)
    if not isinstance(value, list):
        return None
    return TagList(str(t) for t in value if t is not None)


def _links_to_cell(links: Optional[list[PomodoroLink]]) -> str:
    if links is None:
        return ""
    out: list[dict[str, str]] = []
    for link in links:
        item = {"task_id": link.task_id}
        if link.subtask_id is not None:
            item["subtask_id"] = link.subtask_id
        out.append(item)
    return _render_fragment(out)


def _links_from_cell(text: Optional[str]) -> Optional[list[PomodoroLink]]:
    value = load_fragment(text)
    if not isinstance(value, list):
        return None

    out: list[PomodoroLink] = []
    for item in value:
        if not isinstance(item, dict):
            continue
        task_id = _pick(item, "task_id", "taskId")
        if task_id is None:
            continue
        subtask_id = _pick(item, "subtask_id", "subtaskId")
        out.append(
            PomodoroLink(
                task_id=str(task_id),
                subtask_id=None if subtask_id is None else str(subtask_id),
            )
        )
    return out


def _stubs_to_cell(stubs: list[TemplateTask]) -> str:
    out: list[dict[str, Any]] = []
    for stub in stubs:
        item: dict[str, Any] = {
            "title": stub.title,
            "priority": _enum_value(stub.priority),
        }
        if stub.description is not None:
            item["description"] = stub.description
        if stub.category is not None:
            item["category"] = _enum_value(stub.category)
        if stub.energy is not None:
            item["energy"] = _enum_value(stub.energy)
        if stub.subtasks is not None:
            item["subtasks"] = list(stub.subtasks)
        out.append(item)
    return _render_fragment(out)


def _stubs_from_cell(text: Optional[str]) -> list[TemplateTask]:
    value = load_fragment(text)
    if not isinstance(value, list):
        return []

    out: list[TemplateTask] = []
    for item in value:
        if not isinstance(item, dict):
            continue

        subtasks: Optional[list[str]] = None
        raw_subtasks = item.get("subtasks")
        if isinstance(raw_subtasks, list):
            subtasks = []
            for sub in raw_subtasks:
                if isinstance(sub, dict):
                    subtasks.append(_as_str(sub.get("title")))
                elif sub is not None:
                    subtasks.append(str(sub))

        description = item.get("description")
        out.append(
            TemplateTask(
                title=_as_str(item.get("title")),
                priority=parse_domain(_as_str(item.get("priority")), Priority, Priority.MEDIUM),
                description=None if description is None else str(description),
                category=parse_enum(_as_str(item.get("category")), Category, None),
                energy=parse_enum(_as_str(item.get("energy")), Energy, None),
                subtasks=subtasks,
            )
        )
    return out


# ---------------------------------------------------------------------
# Tasks
# ---------------------------------------------------------------------

def _task_from_row(r: Row) -> Task:
    return Task(
        id=r.get("ID") or "",
        title=r.get("Title") or "",
        description=parse_optional_text(r.get("Description")),
        priority=parse_domain(r.get("Priority"), Priority, Priority.MEDIUM),
        status=parse_domain(r.get("Status"), TaskStatus, TaskStatus.ACTIVE),
        due_date=parse_optional_text(r.get("Due Date")),
        category=parse_enum(r.get("Category"), Category, None),
        energy=parse_enum(r.get("Energy"), Energy, None),
        quadrant=parse_domain(r.get("Quadrant"), Quadrant, Quadrant.UNASSIGNED),
        created_at=r.get("Created") or "",
        completed_at=parse_optional_text(r.get("Completed")),
        recurrence=parse_enum(r.get("Recurrence"), Recurrence, None),
        recurrence_parent_id=parse_optional_text(r.get("Recurrence Parent")),
        recurrence_next_date=parse_optional_text(r.get("Next Recurrence")),
        subtasks=_subtasks_from_cell(r.get("Subtasks")),
        recurrence_day_of_month=parse_optional_int(r.get("Recurrence Day")),
        recurrence_start_month=parse_optional_int(r.get("Recurrence Start Month")),
        pinned_today=parse_optional_text(r.get("Pinned Today")),
        status_changed_at=parse_optional_text(r.get("Status Changed At")),
        is_focus_goal=parse_bool(r.get("IsFocusGoal"), None),
        estimated_minutes=parse_optional_int(r.get("EstimatedMinutes")),
        actual_minutes=parse_optional_int(r.get("ActualMinutes")),
        tags=_tags_from_cell(r.get("Tags")),
        snoozed_until=parse_optional_text(r.get("SnoozedUntil")),
    )


TASK_COLUMNS: tuple[Column[Task], ...] = (
    Column("ID", lambda t: render_text(t.id)),
    Column("Title", lambda t: render_text(t.title)),
    Column("Description", lambda t: render_text(t.description)),
    Column("Priority", lambda t: render_enum(t.priority)),
    Column("Status", lambda t: render_enum(t.status)),
    Column("Due Date", lambda t: render_text(t.due_date)),
    Column("Category", lambda t: render_enum(t.category)),
    Column("Energy", lambda t: render_enum(t.energy)),
    Column("Quadrant", lambda t: render_enum(t.quadrant)),
    Column("Created", lambda t: render_text(t.created_at)),
    Column("Completed", lambda t: render_text(t.completed_at)),
    Column("Recurrence", lambda t: render_enum(t.recurrence)),
    Column("Recurrence Parent", lambda t: render_text(t.recurrence_parent_id)),
    Column("Next Recurrence", lambda t: render_text(t.recurrence_next_date)),
    Column("Subtasks", lambda t: _subtasks_to_cell(t.subtasks)),
    Column("Recurrence Day", lambda t: render_number(t.recurrence_day_of_month)),
    Column("Recurrence Start Month", lambda t: render_number(t.recurrence_start_month)),
    Column("Pinned Today", lambda t: render_text(t.pinned_today)),
    Column("Status Changed At", lambda t: render_text(t.status_changed_at)),
    # Columns below were appended after the 19-column layout.
    Column("IsFocusGoal", lambda t: render_bool(t.is_focus_goal)),
    Column("EstimatedMinutes", lambda t: render_number(t.estimated_minutes)),
    Column("ActualMinutes", lambda t: render_number(t.actual_minutes)),
    Column("Tags", lambda t: _tags_to_cell(t.tags)),
    Column("SnoozedUntil", lambda t: render_text(t.snoozed_until)),
)

TASKS: TableCodec[Task] = TableCodec("Tasks", "_No tasks yet._", TASK_COLUMNS, _task_from_row)


# ---------------------------------------------------------------------
# Pomodoros
# ---------------------------------------------------------------------

def _pomodoro_from_row(r: Row) -> Pomodoro:
    return Pomodoro(
        id=r.get("ID") or "",
        title=r.get("Title") or "",
        duration=parse_int(r.get("Duration"), 25),
        elapsed=parse_int(r.get("Elapsed"), 0),
        status=parse_domain(r.get("Status"), PomodoroStatus, PomodoroStatus.IDLE),
        created_at=r.get("Created") or "",
        completed_at=parse_optional_text(r.get("Completed")),
        started_at=parse_optional_text(r.get("StartedAt")),
        accumulated_seconds=parse_optional_int(r.get("AccumulatedSeconds")),
        linked_task_id=parse_optional_text(r.get("LinkedTaskId")),
        linked_tasks=_links_from_cell(r.get("LinkedTasks")),
    )


POMODORO_COLUMNS: tuple[Column[Pomodoro], ...] = (
    Column("ID", lambda p: render_text(p.id)),
    Column("Title", lambda p: render_text(p.title)),
    Column("Duration", lambda p: render_number(p.duration)),
    Column("Elapsed", lambda p: render_number(p.elapsed)),
    Column("Status", lambda p: render_enum(p.status)),
    Column("Created", lambda p: render_text(p.created_at)),
    Column("Completed", lambda p: render_text(p.completed_at)),
    Column("StartedAt", lambda p: render_text(p.started_at)),
    Column("AccumulatedSeconds", lambda p: render_number(p.accumulated_seconds)),
    Column("LinkedTaskId", lambda p: render_text(p.linked_task_id)),
    Column("LinkedTasks", lambda p: _links_to_cell(p.linked_tasks)),
)

POMODOROS: TableCodec[Pomodoro] = TableCodec(
    "Pomodoros", "_No pomodoros yet._", POMODORO_COLUMNS, _pomodoro_from_row
)


# ---------------------------------------------------------------------
# Daily stats
# ---------------------------------------------------------------------

def _stats_from_row(r: Row) -> DailyStats:
    return DailyStats(
        date=r.get("Date") or "",
        tasks_completed=parse_int(r.get("Tasks Completed"), 0),
        focus_minutes=parse_int(r.get("Focus Minutes"), 0),
        pomodoros_completed=parse_int(r.get("Pomodoros Completed"), 0),
    )


STATS_COLUMNS: tuple[Column[DailyStats], ...] = (
    Column("Date", lambda s: render_text(s.date)),
    Column("Tasks Completed", lambda s: render_number(s.tasks_completed)),
    Column("Focus Minutes", lambda s: render_number(s.focus_minutes)),
    Column("Pomodoros Completed", lambda s: render_number(s.pomodoros_completed)),
)

DAILY_STATS: TableCodec[DailyStats] = TableCodec(
    "Daily Stats", "_No stats yet._", STATS_COLUMNS, _stats_from_row
)


# ---------------------------------------------------------------------
# Templates
# ---------------------------------------------------------------------

def _template_from_row(r: Row) -> TaskTemplate:
    return TaskTemplate(
        id=r.get("ID") or "",
        name=r.get("Name") or "",
        description=parse_optional_text(r.get("Description")),
        tasks=_stubs_from_cell(r.get("Tasks")),
        created_at=r.get("Created") or "",
    )


TEMPLATE_COLUMNS: tuple[Column[TaskTemplate], ...] = (
    Column("ID", lambda t: render_text(t.id)),
    Column("Name", lambda t: render_text(t.name)),
    Column("Description", lambda t: render_text(t.description)),
    Column("Tasks", lambda t: _stubs_to_cell(t.tasks)),
    Column("Created", lambda t: render_text(t.created_at)),
)

TEMPLATES: TableCodec[TaskTemplate] = TableCodec(
    "Templates", "_No templates yet._", TEMPLATE_COLUMNS, _template_from_row
)


# ---------------------------------------------------------------------
# Reading list
# ---------------------------------------------------------------------

def _reading_item_from_row(r: Row) -> ReadingItem:
    return ReadingItem(
        id=r.get("ID") or "",
        url=r.get("URL") or "",
        title=r.get("Title") or "",
        description=parse_optional_text(r.get("Description")),
        tags=_tags_from_cell(r.get("Tags")) or TagList(),
        status=parse_domain(r.get("Status"), ReadingStatus, ReadingStatus.UNREAD),
        notes=parse_optional_text(r.get("Notes")),
        image_url=parse_optional_text(r.get("Image")),
        domain=parse_optional_text(r.get("Domain")),
        created_at=r.get("Created") or "",
        read_at=parse_optional_text(r.get("Read At")),
    )


READING_COLUMNS: tuple[Column[ReadingItem], ...] = (
    Column("ID", lambda i: render_text(i.id)),
    Column("URL", lambda i: render_text(i.url)),
    Column("Title", lambda i: render_text(i.title)),
    Column("Description", lambda i: render_text(i.description)),
    Column("Tags", lambda i: _tags_to_cell(i.tags)),
    Column("Status", lambda i: render_enum(i.status)),
    Column("Notes", lambda i: render_text(i.notes)),
    Column("Image", lambda i: render_text(i.image_url)),
    Column("Domain", lambda i: render_text(i.domain)),
    Column("Created", lambda i: render_text(i.created_at)),
    Column("Read At", lambda i: render_text(i.read_at)),
)

READING_LIST: TableCodec[ReadingItem] = TableCodec(
    "Reading List", "_No reading items yet._", READING_COLUMNS, _reading_item_from_row
)


# ---------------------------------------------------------------------
# Reminders
# ---------------------------------------------------------------------

def _reminder_from_row(r: Row) -> Reminder:
    return Reminder(
        id=r.get("ID") or "",
        title=r.get("Title") or "",
        description=parse_optional_text(r.get("Description")),
        date=r.get("Date") or "",
        time=parse_optional_text(r.get("Time")),
        recurrence=parse_domain(r.get("Recurrence"), ReminderRecurrence, ReminderRecurrence.NONE),
        category=parse_domain(r.get("Category"), ReminderCategory, ReminderCategory.OTHER),
        acknowledged=parse_bool(r.get("Acknowledged"), None),
        acknowledged_at=parse_optional_text(r.get("Acknowledged At")),
        created_at=r.get("Created") or "",
    )


REMINDER_COLUMNS: tuple[Column[Reminder], ...] = (
    Column("ID", lambda m: render_text(m.id)),
    Column("Title", lambda m: render_text(m.title)),
    Column("Description", lambda m: render_text(m.description)),
    Column("Date", lambda m: render_text(m.date)),
    Column("Time", lambda m: render_text(m.time)),
    Column("Recurrence", lambda m: render_enum(m.recurrence)),
    Column("Category", lambda m: render_enum(m.category)),
    Column("Acknowledged", lambda m: render_bool(m.acknowledged)),
    Column("Acknowledged At", lambda m: render_text(m.acknowledged_at)),
    Column("Created", lambda m: render_text(m.created_at)),
)

REMINDERS: TableCodec[Reminder] = TableCodec(
    "Reminders", "_No reminders yet._", REMINDER_COLUMNS, _reminder_from_row
)


# ---------------------------------------------------------------------
# Scratch pad
# ---------------------------------------------------------------------

def _note_from_row(r: Row) -> ScratchNote:
    return ScratchNote(
        id=r.get("ID") or "",
        text=r.get("Text") or "",
        created_at=r.get("Created") or "",
    )


SCRATCH_COLUMNS: tuple[Column[ScratchNote], ...] = (
    Column("ID", lambda n: render_text(n.id)),
    Column("Text", lambda n: render_text(n.text)),
    Column("Created", lambda n: render_text(n.created_at)),
)

SCRATCH_PAD: TableCodec[ScratchNote] = TableCodec(
    "Scratch Pad", "_No notes yet._", SCRATCH_COLUMNS, _note_from_row
)
