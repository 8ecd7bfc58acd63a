from datetime import date

import pytest

from focuskeep.config import StorageConfig
from focuskeep.engine.model import (
    AppPreferences,
    AppState,
    Category,
    ContextFilter,
    DailyStats,
    Energy,
    NotificationSound,
    Pomodoro,
    PomodoroLink,
    PomodoroStatus,
    Priority,
    Quadrant,
    RawSection,
    ReadingItem,
    ReadingStatus,
    Recurrence,
    Reminder,
    ReminderCategory,
    ReminderRecurrence,
    ScratchNote,
    Subtask,
    Task,
    TaskStatus,
    TaskTemplate,
    TemplateTask,
    TimerSettings,
)
from focuskeep.engine.snapshot import DailySnapshots
from focuskeep.engine.store import StateStore


def make_full_state() -> AppState:
    """A state with every collection populated and most optional fields set."""
    return AppState(
        tasks=[
            Task(
                id="t1",
                title="Write report",
                description="Quarterly numbers",
                priority=Priority.HIGH,
                status=TaskStatus.ACTIVE,
                due_date="2024-06-01",
                category=Category.WORK,
                energy=Energy.HIGH,
                quadrant=Quadrant.DO_FIRST,
                created_at="2024-05-01T09:00:00.000Z",
                recurrence=Recurrence.MONTHLY,
                recurrence_parent_id="t0",
                recurrence_next_date="2024-07-01",
                recurrence_day_of_month=15,
                recurrence_start_month=3,
                subtasks=[Subtask("s1", "Collect data", True), Subtask("s2", "Draft", False)],
                pinned_today="2024-05-02",
                status_changed_at="2024-05-01T10:00:00.000Z",
                is_focus_goal=False,
                estimated_minutes=0,
                actual_minutes=45,
                tags=["finance", "q2"],
                snoozed_until="2024-05-03",
            ),
            Task(
                id="t2",
                title="Water plants",
                status=TaskStatus.DONE,
                created_at="2024-05-01T08:00:00.000Z",
                completed_at="2024-05-01T08:05:00.000Z",
                subtasks=[],
            ),
        ],
        pomodoros=[
            Pomodoro(
                id="p1",
                title="Deep work",
                duration=50,
                elapsed=1200,
                status=PomodoroStatus.PAUSED,
                created_at="2024-05-01T09:30:00.000Z",
                started_at="2024-05-01T09:31:00.000Z",
                accumulated_seconds=0,
                linked_task_id="t1",
                linked_tasks=[PomodoroLink("t1", "s2"), PomodoroLink("t2")],
            ),
        ],
        settings=TimerSettings(focus_duration=30, short_break=6, long_break=20, sessions_before_long_break=3),
        daily_stats=[DailyStats("2024-05-01", tasks_completed=3, focus_minutes=0, pomodoros_completed=2)],
        current_streak=7,
        templates=[
            TaskTemplate(
                id="tpl1",
                name="Morning routine",
                description="Start the day",
                created_at="2024-04-01T07:00:00.000Z",
                tasks=[
                    TemplateTask("Stretch", Priority.LOW, category=Category.HEALTH, energy=Energy.LOW),
                    TemplateTask("Plan day", subtasks=["Check calendar", "Pick top 3"]),
                ],
            ),
        ],
        preferences=AppPreferences(
            notification_sound=NotificationSound.SINGING_BOWL,
            obsidian_vault_path="/home/me/Vault",
            obsidian_auto_sync=True,
            active_context=ContextFilter.WORK,
            auto_complete_parent=False,
            available_hours_per_day=6.5,
        ),
        reading_list=[
            ReadingItem(
                id="r1",
                url="https://example.com/post?a=1&b=2",
                title="A post",
                created_at="2024-05-01T12:00:00.000Z",
                tags=["python", "storage"],
                status=ReadingStatus.READING,
                notes="Good part on fsync",
                domain="example.com",
            ),
        ],
        reminders=[
            Reminder(
                id="m1",
                title="Mum's birthday",
                date="2024-09-12",
                created_at="2024-05-01T12:00:00.000Z",
                recurrence=ReminderRecurrence.YEARLY,
                category=ReminderCategory.BIRTHDAY,
                acknowledged=False,
            ),
        ],
        scratch_pad=[ScratchNote("n1", "Call the plumber\nafter 5pm", "2024-05-01T13:00:00.000Z")],
        extra_sections=[RawSection("Notes", "Kept by hand.\n\n- one\n- two")],
    )


@pytest.fixture
def full_state() -> AppState:
    return make_full_state()


@pytest.fixture
def config(tmp_path) -> StorageConfig:
    return StorageConfig(data_dir=tmp_path / "data")


@pytest.fixture
def today() -> list[date]:
    """Mutable calendar for snapshot tests; tests may replace the single item."""
    return [date(2024, 5, 1)]


@pytest.fixture
def store(config, today) -> StateStore:
    snapshots = DailySnapshots(config.backup_dir, today=lambda: today[0])
    return StateStore(config, snapshots=snapshots)
