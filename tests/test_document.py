import logging

from focuskeep.engine.document import decode, encode, looks_like_document
from focuskeep.engine.model import (
    AppPreferences,
    AppState,
    Category,
    Energy,
    Pomodoro,
    PomodoroLink,
    Priority,
    Quadrant,
    RawSection,
    ReadingItem,
    Recurrence,
    ScratchNote,
    Subtask,
    Task,
    TaskStatus,
    TimerSettings,
)

from conftest import make_full_state


OLD_TASK_HEADER = (
    "| ID | Title | Description | Priority | Status | Due Date | Category | Energy | Quadrant "
    "| Created | Completed | Recurrence | Recurrence Parent | Next Recurrence | Subtasks "
    "| Recurrence Day | Recurrence Start Month | Pinned Today | Status Changed At |"
)


def _doc(*sections: str) -> str:
    return "# Focus Assist Data\n\n" + "\n\n".join(sections) + "\n"


# ---------------------------------------------------------------------
# Round trip and determinism
# ---------------------------------------------------------------------

def test_full_state_round_trip(full_state):
    assert decode(encode(full_state)) == full_state


def test_default_state_round_trip():
    assert decode(encode(AppState())) == AppState()


def test_encode_is_deterministic(full_state):
    text = encode(full_state)

    assert encode(make_full_state()) == text
    assert encode(decode(text)) == text


def test_encode_section_order_and_placeholders():
    text = encode(AppState())

    assert text.startswith("# Focus Assist Data\n")
    order = ["## Settings", "## Tasks", "## Pomodoros", "## Daily Stats", "## Templates", "## Preferences"]
    positions = [text.index(h) for h in order]
    assert positions == sorted(positions)

    assert "_No tasks yet._" in text
    assert "_No pomodoros yet._" in text
    assert "_No stats yet._" in text
    assert "_No templates yet._" in text
    assert "## Reading List" not in text
    assert "## Reminders" not in text
    assert "## Scratch Pad" not in text


def test_optional_sections_follow_preferences(full_state):
    text = encode(full_state)

    order = ["## Preferences", "## Reading List", "## Reminders", "## Scratch Pad", "## Notes"]
    positions = [text.index(h) for h in order]
    assert positions == sorted(positions)


def test_encode_accepts_none_for_optional_collections():
    state = AppState(templates=None, preferences=None, reading_list=None, reminders=None, scratch_pad=None)

    decoded = decode(encode(state))

    assert decoded.templates == []
    assert decoded.preferences == AppPreferences()
    assert decoded.reading_list == []


def test_settings_lines():
    text = encode(AppState(current_streak=7))

    assert "- **Focus Duration:** 25 min" in text
    assert "- **Sessions Before Long Break:** 4" in text
    assert "- **Current Streak:** 7 days" in text


# ---------------------------------------------------------------------
# Scenarios
# ---------------------------------------------------------------------

def test_done_task_with_empty_collections():
    task = Task(
        id="t1",
        title="Ship it",
        status=TaskStatus.DONE,
        created_at="2024-05-01T09:00:00.000Z",
        completed_at="2024-05-01T17:00:00.000Z",
    )
    state = AppState(tasks=[task], pomodoros=[], reminders=[], reading_list=[])

    decoded = decode(encode(state))

    assert len(decoded.tasks) == 1
    assert decoded.tasks[0].status is TaskStatus.DONE
    assert decoded.tasks[0].completed_at == "2024-05-01T17:00:00.000Z"
    assert decoded.pomodoros == []
    assert decoded.reminders == []
    assert decoded.reading_list == []


def test_pipes_and_line_breaks_survive():
    task = Task(
        id="t1",
        title="Option A | Option B",
        description="Line 1\nLine 2 | with pipe",
    )

    decoded = decode(encode(AppState(tasks=[task])))

    assert decoded.tasks[0].title == "Option A | Option B"
    assert decoded.tasks[0].description == "Line 1\nLine 2 | with pipe"


def test_awkward_text_survives():
    titles = [
        "  padded  ",
        "literal <br> tag",
        "back\\slash\\",
        "ends with pipe |",
        "windows\r\nline",
        "- **Fake:** label",
    ]
    tasks = [Task(id=f"t{i}", title=t) for i, t in enumerate(titles)]

    decoded = decode(encode(AppState(tasks=tasks)))

    expected = [t.replace("\r\n", "\n") for t in titles]
    assert [t.title for t in decoded.tasks] == expected


def test_previous_task_schema_decodes():
    row = (
        "| t1 | Old task | Desc | high | monitored | 2024-06-01 | work | low | do-first "
        "| 2024-05-01T10:00:00.000Z |  | monthly | p0 | 2024-07-01 "
        '| [{"id":"s1","title":"Sub","done":true}] | 15 | 3 | 2024-05-02 | 2024-05-01T11:00:00.000Z |'
    )
    text = _doc("## Tasks\n\n" + OLD_TASK_HEADER + "\n|" + " --- |" * 19 + "\n" + row)

    state = decode(text)

    assert len(state.tasks) == 1
    t = state.tasks[0]
    assert t.title == "Old task"
    assert t.description == "Desc"
    assert t.priority is Priority.HIGH
    assert t.status is TaskStatus.MONITORED
    assert t.category is Category.WORK
    assert t.energy is Energy.LOW
    assert t.quadrant is Quadrant.DO_FIRST
    assert t.completed_at is None
    assert t.recurrence is Recurrence.MONTHLY
    assert t.recurrence_parent_id == "p0"
    assert t.subtasks == [Subtask("s1", "Sub", True)]
    assert t.recurrence_day_of_month == 15
    assert t.recurrence_start_month == 3
    assert t.status_changed_at == "2024-05-01T11:00:00.000Z"

    assert t.is_focus_goal is None
    assert t.estimated_minutes is None
    assert t.actual_minutes is None
    assert t.tags is None
    assert t.snoozed_until is None


def test_zero_settings_are_kept():
    settings = TimerSettings(focus_duration=0, short_break=0, long_break=0, sessions_before_long_break=0)

    decoded = decode(encode(AppState(settings=settings, current_streak=0)))

    assert decoded.settings == settings
    assert decoded.current_streak == 0


# ---------------------------------------------------------------------
# Lenient decoding
# ---------------------------------------------------------------------

def test_empty_and_title_only_documents():
    assert decode("") == AppState()
    assert decode("# Focus Assist Data\n") == AppState()


def test_nonsense_settings_fall_back_per_field():
    text = _doc(
        "## Settings\n\n"
        "- **Focus Duration:** NaN min\n"
        "- **Short Break:** 0 min\n"
        "- **Long Break:** lots\n"
        "- **Current Streak:** 3.9 days"
    )

    state = decode(text)

    assert state.settings.focus_duration == 25
    assert state.settings.short_break == 0
    assert state.settings.long_break == 15
    assert state.settings.sessions_before_long_break == 4
    assert state.current_streak == 3


def test_unknown_preference_values_fall_back():
    text = _doc(
        "## Preferences\n\n"
        "- **Notification Sound:** kazoo\n"
        "- **Obsidian Auto Sync:** maybe\n"
        "- **Available Hours Per Day:** inf"
    )

    prefs = decode(text).preferences

    assert prefs == AppPreferences()


def test_rows_without_identity_are_skipped(caplog):
    text = _doc(
        "## Tasks\n\n"
        "| ID | Title |\n"
        "| --- | --- |\n"
        "|  | No id |\n"
        "| t2 | Kept |"
    )

    with caplog.at_level(logging.WARNING):
        state = decode(text)

    assert [t.id for t in state.tasks] == ["t2"]
    assert "skipping row" in caplog.text


def test_header_without_identity_column_gives_empty_table():
    text = _doc("## Tasks\n\n| Title | Status |\n| --- | --- |\n| Orphan | active |")

    assert decode(text).tasks == []


def test_columns_matched_by_name_in_any_order():
    text = _doc(
        "## Tasks\n\n"
        "| Title | Legacy Column | StatusChangedAt | ID |\n"
        "| --- | --- | --- | --- |\n"
        "| Moved | junk | 2024-05-01 | t9 |"
    )

    task = decode(text).tasks[0]

    assert task.id == "t9"
    assert task.title == "Moved"
    assert task.status_changed_at == "2024-05-01"


def test_unknown_enum_value_is_kept_for_checking():
    text = _doc("## Tasks\n\n| ID | Title | Status | Energy |\n| --- | --- | --- | --- |\n| t1 | X | archived | extreme |")

    task = decode(text).tasks[0]

    assert task.status == "archived"
    assert task.energy is None


def test_duplicate_known_section_uses_first(caplog):
    text = _doc(
        "## Tasks\n\n| ID | Title |\n| --- | --- |\n| t1 | First |",
        "## Tasks\n\n| ID | Title |\n| --- | --- |\n| t2 | Second |",
    )

    with caplog.at_level(logging.WARNING):
        state = decode(text)

    assert [t.title for t in state.tasks] == ["First"]
    assert "Duplicate section" in caplog.text


def test_unknown_sections_are_preserved():
    text = _doc("## Tasks\n\n_No tasks yet._", "## Journal\n\nDear diary\n\n| a | b |")

    state = decode(text)

    assert state.extra_sections == [RawSection("Journal", "Dear diary\n\n| a | b |")]
    assert "## Journal\n\nDear diary\n\n| a | b |\n" in encode(state)


def test_both_pomodoro_links_are_independent():
    pomodoro = Pomodoro(
        id="p1",
        title="Focus",
        linked_task_id="legacy",
        linked_tasks=[PomodoroLink("t1", "s1"), PomodoroLink("t2")],
    )

    decoded = decode(encode(AppState(pomodoros=[pomodoro]))).pomodoros[0]

    assert decoded.linked_task_id == "legacy"
    assert decoded.linked_tasks == [PomodoroLink("t1", "s1"), PomodoroLink("t2", None)]


def test_legacy_camel_case_links_decode():
    text = _doc(
        "## Pomodoros\n\n"
        "| ID | Title | LinkedTasks |\n"
        "| --- | --- | --- |\n"
        '| p1 | Focus | [{"taskId":"t1","subtaskId":"s1"}] |'
    )

    assert decode(text).pomodoros[0].linked_tasks == [PomodoroLink("t1", "s1")]


def test_reading_tags_compare_as_sets():
    item = ReadingItem(id="r1", url="https://a.example", title="A", tags=["b", "a", "b"])

    decoded = decode(encode(AppState(reading_list=[item]))).reading_list[0]

    assert list(decoded.tags) == ["b", "a"]
    assert decoded.tags == ["a", "b"]


# ---------------------------------------------------------------------
# Recognition
# ---------------------------------------------------------------------

def test_looks_like_document():
    assert looks_like_document(encode(AppState()))
    assert looks_like_document("## Tasks\n\n_No tasks yet._\n")
    assert not looks_like_document("")
    assert not looks_like_document("just some notes\n## Shopping\n- milk\n")


def test_malformed_nested_cell_keeps_the_row():
    text = _doc(
        "## Tasks\n\n"
        "| ID | Title | Tags | Subtasks |\n"
        "| --- | --- | --- | --- |\n"
        "| t1 | Keep me | [2024-13-45] | [{id: s1, title: A, done: true}] |\n"
        "| t2 | Me too | [a] | [!!int abc] |"
    )

    tasks = decode(text).tasks

    assert [t.title for t in tasks] == ["Keep me", "Me too"]
    assert tasks[0].tags is None
    assert tasks[0].subtasks == [Subtask("s1", "A", True)]
    assert tasks[1].tags == ["a"]
    assert tasks[1].subtasks is None


def test_dash_only_data_rows_survive():
    state = AppState(scratch_pad=[ScratchNote("-", "---", "--")])

    assert decode(encode(state)).scratch_pad == [ScratchNote("-", "---", "--")]
