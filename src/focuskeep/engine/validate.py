# src/focuskeep/engine/validate.py

"""
State validation rules.

This module checks a decoded AppState against the closed domains of the
model and a few collection-wide invariants.

Responsibilities:
- closed-domain membership (with a repair per violation),
- id uniqueness per collection.

It does NOT perform parsing or filesystem access.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterable, Iterator, Optional, Sequence

from .model import (
    AppState,
    Category,
    ContextFilter,
    Energy,
    NotificationSound,
    PomodoroStatus,
    Priority,
    Quadrant,
    ReadingStatus,
    Recurrence,
    ReminderCategory,
    ReminderRecurrence,
    TaskStatus,
)


# ---------------------------------------------------------------------
# Result objects
# ---------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class ValidationIssue:
    """
    A single validation problem.

    `code` is a stable identifier suitable for tests and filtering.
    """

    code: str
    message: str


@dataclass(frozen=True, slots=True)
class ValidationResult:
    """
    Aggregated validation result for one state.
    """

    path: str
    issues: Sequence[ValidationIssue]

    @property
    def ok(self) -> bool:
        return not self.issues


@dataclass(slots=True)
class DomainViolation:
    """
    A closed-domain field holding a value outside its domain.

    `target` is the object carrying the field; `repair()` resets the
    field to `default` in place.
    """

    entity: str
    label: str
    field: str
    value: Any
    default: Optional[Enum]
    target: Any

    @property
    def code(self) -> str:
        return f"{self.entity.replace(' ', '_')}_{self.field}_invalid"

    @property
    def field_label(self) -> str:
        return self.field.replace("_", " ")

    def describe(self) -> str:
        return f'{self.entity.capitalize()} "{self.label}" has invalid {self.field_label}: {self.value}'

    def describe_fix(self) -> str:
        if self.default is None:
            return f'Cleared {self.entity} "{self.label}" {self.field_label}'
        return f'Fixed {self.entity} "{self.label}" {self.field_label} to "{self.default.value}"'

    def repair(self) -> None:
        setattr(self.target, self.field, self.default)


# ---------------------------------------------------------------------
# Domain rules
# ---------------------------------------------------------------------

def _in_domain(value: Any, enum_cls: type[Enum], optional: bool) -> bool:
    if value is None:
        return optional
    if isinstance(value, enum_cls):
        return True
    return isinstance(value, str) and value in {m.value for m in enum_cls}


def _check(
    entity: str,
    label: str,
    target: Any,
    rules: Iterable[tuple[str, type[Enum], Optional[Enum]]],
) -> Iterator[DomainViolation]:
    # A rule with a None default is an optional field.
    for field_name, enum_cls, default in rules:
        value = getattr(target, field_name)
        if not _in_domain(value, enum_cls, optional=default is None):
            yield DomainViolation(
                entity=entity,
                label=label,
                field=field_name,
                value=value,
                default=default,
                target=target,
            )


_TASK_RULES = (
    ("status", TaskStatus, TaskStatus.ACTIVE),
    ("priority", Priority, Priority.MEDIUM),
    ("quadrant", Quadrant, Quadrant.UNASSIGNED),
    ("category", Category, None),
    ("energy", Energy, None),
    ("recurrence", Recurrence, None),
)

_POMODORO_RULES = (("status", PomodoroStatus, PomodoroStatus.IDLE),)

_REMINDER_RULES = (
    ("recurrence", ReminderRecurrence, ReminderRecurrence.NONE),
    ("category", ReminderCategory, ReminderCategory.OTHER),
)

_READING_RULES = (("status", ReadingStatus, ReadingStatus.UNREAD),)

_TEMPLATE_TASK_RULES = (
    ("priority", Priority, Priority.MEDIUM),
    ("category", Category, None),
    ("energy", Energy, None),
)

_PREFERENCE_RULES = (
    ("notification_sound", NotificationSound, NotificationSound.GENTLE_CHIME),
    ("active_context", ContextFilter, ContextFilter.ALL),
)


def iter_violations(state: AppState) -> Iterator[DomainViolation]:
    """
    Yield every closed-domain violation in document order.

    Violations are independent: repairing one never changes another.
    """
    for task in state.tasks:
        yield from _check("task", task.title, task, _TASK_RULES)

    for pomodoro in state.pomodoros:
        yield from _check("pomodoro", pomodoro.title, pomodoro, _POMODORO_RULES)

    for template in state.templates or []:
        for stub in template.tasks:
            yield from _check("template task", stub.title, stub, _TEMPLATE_TASK_RULES)

    if state.preferences is not None:
        yield from _check("preferences", "preferences", state.preferences, _PREFERENCE_RULES)

    for item in state.reading_list or []:
        yield from _check("reading item", item.title, item, _READING_RULES)

    for reminder in state.reminders or []:
        yield from _check("reminder", reminder.title, reminder, _REMINDER_RULES)


# ---------------------------------------------------------------------
# Collection rules
# ---------------------------------------------------------------------

def duplicate_id_issues(state: AppState) -> list[ValidationIssue]:
    """Report ids (dates for daily stats) used more than once per collection."""
    collections: tuple[tuple[str, Iterable[str]], ...] = (
        ("task", (t.id for t in state.tasks)),
        ("pomodoro", (p.id for p in state.pomodoros)),
        ("daily stats", (s.date for s in state.daily_stats)),
        ("template", (t.id for t in state.templates or [])),
        ("reading item", (i.id for i in state.reading_list or [])),
        ("reminder", (r.id for r in state.reminders or [])),
        ("scratch note", (n.id for n in state.scratch_pad or [])),
    )

    issues: list[ValidationIssue] = []
    for entity, ids in collections:
        counts = Counter(ids)
        for ident, n in counts.items():
            if n > 1:
                issues.append(
                    ValidationIssue(
                        code="duplicate_id",
                        message=f'Duplicate {entity} id "{ident}" ({n} entries)',
                    )
                )
    return issues


def validate_state(state: AppState, path: str = "") -> ValidationResult:
    """
    Validate a decoded state without modifying it.

    `path` only labels the result.
    """
    issues = [ValidationIssue(code=v.code, message=v.describe()) for v in iter_violations(state)]
    issues.extend(duplicate_id_issues(state))
    return ValidationResult(path=path, issues=tuple(issues))
