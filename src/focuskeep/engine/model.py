# src/focuskeep/engine/model.py

"""
Core domain models.

This module defines the in-memory representation of the whole persisted
application state: tasks, pomodoros, daily stats, templates, reminders,
the reading list, scratch notes and the two singleton settings objects.

Conventions:
- Optional fields default to None; None is the only "absent" state.
  Numeric 0 and boolean False are values, never absence.
- Closed-domain fields hold an enum member. A decoded value outside its
  domain is kept verbatim as a plain str so the integrity checker can
  report and repair it.

No filesystem access should happen here.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, Optional


# ---------------------------------------------------------------------
# Closed domains
# ---------------------------------------------------------------------

class Priority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


class TaskStatus(str, Enum):
    """
    Task lifecycle status.

    `monitored` marks tasks that are waiting on someone else; anything
    outside these three values is corruption and normalises to ACTIVE.
    """

    ACTIVE = "active"
    DONE = "done"
    MONITORED = "monitored"


class Quadrant(str, Enum):
    DO_FIRST = "do-first"
    SCHEDULE = "schedule"
    DELEGATE = "delegate"
    ELIMINATE = "eliminate"
    UNASSIGNED = "unassigned"


class Category(str, Enum):
    WORK = "work"
    PERSONAL = "personal"
    HEALTH = "health"
    LEARNING = "learning"
    ERRANDS = "errands"
    OTHER = "other"


class Energy(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class Recurrence(str, Enum):
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    WEEKDAYS = "weekdays"
    NONE = "none"


class PomodoroStatus(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    PAUSED = "paused"
    COMPLETED = "completed"


class ReminderRecurrence(str, Enum):
    """Reminder repeat cycle (deliberately distinct from task Recurrence)."""

    NONE = "none"
    YEARLY = "yearly"
    QUARTERLY = "quarterly"
    MONTHLY = "monthly"
    WEEKLY = "weekly"


class ReminderCategory(str, Enum):
    BIRTHDAY = "birthday"
    APPOINTMENT = "appointment"
    EVENT = "event"
    OTHER = "other"


class ReadingStatus(str, Enum):
    UNREAD = "unread"
    READING = "reading"
    READ = "read"


class NotificationSound(str, Enum):
    GENTLE_CHIME = "gentle-chime"
    BELL = "bell"
    SINGING_BOWL = "singing-bowl"
    WOOD_BLOCK = "wood-block"
    DIGITAL_BEEP = "digital-beep"
    NONE = "none"


class ContextFilter(str, Enum):
    ALL = "all"
    WORK = "work"
    PERSONAL = "personal"


# ---------------------------------------------------------------------
# Tags
# ---------------------------------------------------------------------

class TagList(list):
    """
    Ordered tag collection with set semantics.

    Duplicates are dropped on construction, display order is kept, and
    two tag lists compare equal when they hold the same tags in any order.
    """

    def __init__(self, tags: Iterable[str] = ()) -> None:
        seen: set[str] = set()
        unique: list[str] = []
        for tag in tags:
            if tag in seen:
                continue
            seen.add(tag)
            unique.append(tag)
        super().__init__(unique)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, list):
            return NotImplemented
        return set(self) == set(other)

    def __ne__(self, other: object) -> bool:
        result = self.__eq__(other)
        if result is NotImplemented:
            return result
        return not result

    __hash__ = None  # type: ignore[assignment]


# ---------------------------------------------------------------------
# Tasks
# ---------------------------------------------------------------------

@dataclass(slots=True)
class Subtask:
    id: str
    title: str
    done: bool = False


@dataclass(slots=True)
class Task:
    """
    A single task.

    Notes:
    - id is unique within AppState.tasks.
    - created_at is always present; completed_at and status_changed_at
      only appear after a status transition.
    - The recurrence descriptor is spread over recurrence,
      recurrence_day_of_month, recurrence_start_month,
      recurrence_parent_id and recurrence_next_date.
    - Timestamps and dates are kept as the strings the caller supplied.
    """

    id: str
    title: str
    priority: Priority = Priority.MEDIUM
    status: TaskStatus = TaskStatus.ACTIVE
    quadrant: Quadrant = Quadrant.UNASSIGNED
    created_at: str = ""

    description: Optional[str] = None
    due_date: Optional[str] = None
    category: Optional[Category] = None
    energy: Optional[Energy] = None
    completed_at: Optional[str] = None

    recurrence: Optional[Recurrence] = None
    recurrence_parent_id: Optional[str] = None
    recurrence_next_date: Optional[str] = None
    recurrence_day_of_month: Optional[int] = None
    recurrence_start_month: Optional[int] = None

    subtasks: Optional[list[Subtask]] = None
    pinned_today: Optional[str] = None
    status_changed_at: Optional[str] = None

    is_focus_goal: Optional[bool] = None
    estimated_minutes: Optional[int] = None
    actual_minutes: Optional[int] = None
    tags: Optional[TagList] = None
    snoozed_until: Optional[str] = None

    def __post_init__(self) -> None:
        if self.tags is not None and not isinstance(self.tags, TagList):
            self.tags = TagList(self.tags)


# ---------------------------------------------------------------------
# Pomodoros
# ---------------------------------------------------------------------

@dataclass(slots=True)
class PomodoroLink:
    """A (task, optional subtask) pair a focus session counts towards."""

    task_id: str
    subtask_id: Optional[str] = None


@dataclass(slots=True)
class Pomodoro:
    """
    A focus session.

    started_at and accumulated_seconds let a running timer resume after
    a reload. linked_task_id is the legacy single link; linked_tasks is
    the multi-link list. Both may be set at once and are kept apart.
    """

    id: str
    title: str
    duration: int = 25
    elapsed: int = 0
    status: PomodoroStatus = PomodoroStatus.IDLE
    created_at: str = ""
    completed_at: Optional[str] = None
    started_at: Optional[str] = None
    accumulated_seconds: Optional[int] = None
    linked_task_id: Optional[str] = None
    linked_tasks: Optional[list[PomodoroLink]] = None


# ---------------------------------------------------------------------
# Stats, templates, reminders, reading list, scratch pad
# ---------------------------------------------------------------------

@dataclass(slots=True)
class DailyStats:
    date: str
    tasks_completed: int = 0
    focus_minutes: int = 0
    pomodoros_completed: int = 0


@dataclass(slots=True)
class TemplateTask:
    """A task stub inside a template (not a full Task)."""

    title: str
    priority: Priority = Priority.MEDIUM
    description: Optional[str] = None
    category: Optional[Category] = None
    energy: Optional[Energy] = None
    subtasks: Optional[list[str]] = None


@dataclass(slots=True)
class TaskTemplate:
    id: str
    name: str
    created_at: str = ""
    tasks: list[TemplateTask] = field(default_factory=list)
    description: Optional[str] = None


@dataclass(slots=True)
class Reminder:
    """A dated reminder; time=None means all-day."""

    id: str
    title: str
    date: str = ""
    created_at: str = ""
    recurrence: ReminderRecurrence = ReminderRecurrence.NONE
    category: ReminderCategory = ReminderCategory.OTHER
    description: Optional[str] = None
    time: Optional[str] = None
    acknowledged: Optional[bool] = None
    acknowledged_at: Optional[str] = None


@dataclass(slots=True)
class ReadingItem:
    id: str
    url: str
    title: str
    created_at: str = ""
    tags: TagList = field(default_factory=TagList)
    status: ReadingStatus = ReadingStatus.UNREAD
    description: Optional[str] = None
    notes: Optional[str] = None
    image_url: Optional[str] = None
    domain: Optional[str] = None
    read_at: Optional[str] = None

    def __post_init__(self) -> None:
        if not isinstance(self.tags, TagList):
            self.tags = TagList(self.tags or ())


@dataclass(slots=True)
class ScratchNote:
    id: str
    text: str
    created_at: str = ""


# ---------------------------------------------------------------------
# Singletons
# ---------------------------------------------------------------------

@dataclass(slots=True)
class TimerSettings:
    focus_duration: int = 25
    short_break: int = 5
    long_break: int = 15
    sessions_before_long_break: int = 4


@dataclass(slots=True)
class AppPreferences:
    notification_sound: NotificationSound = NotificationSound.GENTLE_CHIME
    obsidian_vault_path: str = ""
    obsidian_auto_sync: bool = False
    active_context: ContextFilter = ContextFilter.ALL
    auto_complete_parent: bool = False
    available_hours_per_day: float = 8.0


# ---------------------------------------------------------------------
# Aggregate root
# ---------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class RawSection:
    """A document section with an unrecognised heading, kept verbatim."""

    heading: str
    body: str


@dataclass(slots=True)
class AppState:
    """
    Everything persisted in one data file.

    AppState has no identity of its own; the codec layer only sees a
    complete snapshot at encode time and produces one at decode time.
    """

    tasks: list[Task] = field(default_factory=list)
    pomodoros: list[Pomodoro] = field(default_factory=list)
    settings: TimerSettings = field(default_factory=TimerSettings)
    daily_stats: list[DailyStats] = field(default_factory=list)
    current_streak: int = 0
    templates: list[TaskTemplate] = field(default_factory=list)
    preferences: AppPreferences = field(default_factory=AppPreferences)
    reading_list: list[ReadingItem] = field(default_factory=list)
    reminders: list[Reminder] = field(default_factory=list)
    scratch_pad: list[ScratchNote] = field(default_factory=list)
    extra_sections: list[RawSection] = field(default_factory=list)

    def counts(self) -> dict[str, int]:
        """Entity counts per collection, in document order."""
        return {
            "tasks": len(self.tasks),
            "pomodoros": len(self.pomodoros),
            "daily_stats": len(self.daily_stats),
            "templates": len(self.templates or []),
            "reading_list": len(self.reading_list or []),
            "reminders": len(self.reminders or []),
            "scratch_pad": len(self.scratch_pad or []),
        }
